"""Export helpers for schedules and summaries.

Schedules can be written as CSV (with an optional loan summary block above
the table) or as JSON together with the summary. ``Decimal`` values are
converted to floats for JSON, and to fixed two-decimal strings for CSV.
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .data_models import AmortizationRow, LoanSummary


def _plain(value: Any) -> Any:
    """Recursively convert Decimals and Enums into JSON-friendly values."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def summary_to_dict(summary: LoanSummary) -> Dict[str, Any]:
    return _plain(asdict(summary))


def schedule_to_dicts(schedule: Iterable[AmortizationRow]) -> List[Dict[str, Any]]:
    """Convert schedule rows into JSON-serialisable dictionaries."""
    return [_plain(asdict(row)) for row in schedule]


def _money(value: Decimal, currency_symbol: str) -> str:
    return f"{currency_symbol}{value:,.2f}"


def schedule_to_csv(
    schedule: Iterable[AmortizationRow],
    summary: Optional[LoanSummary] = None,
    currency_symbol: str = "",
    generated_on: Optional[date] = None,
) -> str:
    """Render a schedule as CSV text.

    When ``summary`` is given, a metadata block (title, generation date and
    the main loan figures) precedes the column headers. Values containing a
    comma, quote or newline are quoted with internal quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    if summary is not None:
        generated_on = generated_on or date.today()
        writer.writerow(["Loan Amortization Schedule"])
        writer.writerow(["Generated on", generated_on.isoformat()])
        writer.writerow([])
        writer.writerow(["Loan Summary"])
        writer.writerow(["Loan Amount", _money(summary.principal, currency_symbol)])
        writer.writerow(["Interest Rate", f"{summary.rate}%"])
        writer.writerow(["Term", f"{summary.term_years} years"])
        writer.writerow(["Monthly Payment", _money(summary.monthly_payment, currency_symbol)])
        writer.writerow(["Total Interest", _money(summary.total_interest, currency_symbol)])
        writer.writerow(["Total Repayment", _money(summary.total_repayment, currency_symbol)])
        writer.writerow([])

    suffix = f" ({currency_symbol})" if currency_symbol else ""
    writer.writerow(
        [
            "Month",
            f"Payment{suffix}",
            f"Principal{suffix}",
            f"Interest{suffix}",
            f"Balance{suffix}",
            f"Total Interest Paid{suffix}",
        ]
    )
    for row in schedule:
        writer.writerow(
            [
                row.month,
                f"{row.payment:.2f}",
                f"{row.principal_payment:.2f}",
                f"{row.interest_payment:.2f}",
                f"{row.balance:.2f}",
                f"{row.total_interest_paid:.2f}",
            ]
        )
    return buffer.getvalue()


def export_to_csv(
    path: Path,
    schedule: Iterable[AmortizationRow],
    summary: Optional[LoanSummary] = None,
    currency_symbol: str = "",
) -> None:
    """Export schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        f.write(schedule_to_csv(schedule, summary, currency_symbol))


def export_to_json(path: Path, schedule: Iterable[AmortizationRow], summary: Optional[LoanSummary]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {
        "summary": summary_to_dict(summary) if summary is not None else None,
        "schedule": schedule_to_dicts(schedule),
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
