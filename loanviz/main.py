"""Command-line interface for the loan engine.

This module uses the ``click`` library to implement a multi-command
interface. Users can summarize a loan, print or export its amortization
schedule (optionally with extra monthly payments), estimate affordability,
compare scenarios, compare debt payoff strategies and compute stamp duty.
"""

from __future__ import annotations

import json
import logging
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .affordability import assess_affordability
from .data_models import Debt, LoanParameters, LoanType, RepaymentType, Scenario
from .debt_consolidation import compare_payoff_strategies, make_debt
from .early_repayment import apply_extra_payment
from .engine import build_loan, make_parameters
from .export import export_to_csv, export_to_json, summary_to_dict
from .formatter import (
    print_affordability,
    print_comparison,
    print_payoff_comparison,
    print_schedule,
    print_stamp_duty,
    print_summary,
)
from .scenarios import compare_scenarios
from .stamp_duty import DEFAULT_RATE_TABLES, calculate_stamp_duty, load_rate_tables
from .utils import to_decimal

logger = logging.getLogger(__name__)

REPAYMENT_CHOICES = [t.value for t in RepaymentType]


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        return float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_fee_strings(values: Tuple[str, ...]) -> Dict[str, float]:
    fees: Dict[str, float] = {}
    for item in values:
        name, sep, amount = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Fee must be in NAME=AMOUNT format; got {item}")
        fees[name.strip()] = parse_amount(amount)
    return fees


def parse_debt_strings(values: Tuple[str, ...]) -> List[Debt]:
    """Parse NAME:BALANCE:RATE:MINIMUM strings into debts."""
    debts: List[Debt] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 4 or not parts[0].strip():
            raise click.BadParameter(f"Debt must be in NAME:BALANCE:RATE:MINIMUM format; got {item}")
        name, balance, rate, minimum = parts
        try:
            annual_rate = float(rate)
        except ValueError:
            raise click.BadParameter(f"Invalid debt rate: {rate}")
        debts.append(make_debt(name.strip(), parse_amount(balance), annual_rate, parse_amount(minimum)))
    return debts


def build_params_from_options(
    principal: str,
    rate: float,
    term: int,
    repayment_type: str = RepaymentType.REPAYMENT.value,
    down_payment: Optional[str] = None,
    trade_in: Optional[str] = None,
    grace_months: int = 0,
    fee: Tuple[str, ...] = (),
) -> LoanParameters:
    return make_parameters(
        principal=to_decimal(parse_amount(principal)),
        annual_rate_percent=to_decimal(rate),
        term_years=term,
        repayment_type=RepaymentType(repayment_type),
        down_payment=to_decimal(parse_amount(down_payment)) if down_payment else 0,
        trade_in_value=to_decimal(parse_amount(trade_in)) if trade_in else 0,
        grace_period_months=grace_months,
        fees=parse_fee_strings(fee),
    )


def loan_options(func):
    """Attach the options shared by the ``summary`` and ``schedule`` commands."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Total loan amount"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in years"),
        click.option(
            "--type", "repayment_type", type=click.Choice(REPAYMENT_CHOICES), default="repayment", help="Repayment type"
        ),
        click.option("--down-payment", "-d", "down_payment", help="Down payment amount"),
        click.option("--trade-in", "trade_in", help="Trade-in value"),
        click.option("--grace-months", "grace_months", type=int, default=0, help="Months before repayments start"),
        click.option("--fee", "fee", multiple=True, help="One-time fee in NAME=AMOUNT format"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """Loan amortization and affordability calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: float,
    term: int,
    repayment_type: str,
    down_payment: Optional[str],
    trade_in: Optional[str],
    grace_months: int,
    fee: Tuple[str, ...],
    output: Optional[str],
) -> None:
    """Compute and print only the summary metrics for a loan."""
    params = build_params_from_options(principal, rate, term, repayment_type, down_payment, trade_in, grace_months, fee)
    loan_summary, _ = build_loan(params)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_to_dict(loan_summary)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(loan_summary)


@cli.command()
@loan_options
@click.option("--extra", "extra", help="Extra payment applied every month")
@click.option("--max-rows", "max_rows", type=int, default=120, show_default=True, help="Rows to print")
@click.option("--currency", "currency", default="", help="Currency symbol for CSV export")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    term: int,
    repayment_type: str,
    down_payment: Optional[str],
    trade_in: Optional[str],
    grace_months: int,
    fee: Tuple[str, ...],
    extra: Optional[str],
    max_rows: int,
    currency: str,
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    params = build_params_from_options(principal, rate, term, repayment_type, down_payment, trade_in, grace_months, fee)
    loan_summary, rows = build_loan(params)
    extra_result = None
    if extra:
        extra_result = apply_extra_payment(rows, parse_amount(extra), loan_summary.rate)
        rows = list(extra_result.schedule)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, rows, loan_summary)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, rows, loan_summary, currency)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(loan_summary, extra_result)
    # Limit schedule length printed to avoid flooding the terminal
    if len(rows) > max_rows:
        click.echo(f"Schedule has {len(rows)} rows; showing first {max_rows} rows.")
        print_schedule(rows[:max_rows])
    else:
        print_schedule(rows)


@cli.command()
@click.option("--income", "income", required=True, help="Gross monthly income")
@click.option("--debts", "debts", default="0", help="Existing monthly debt payments")
@click.option("--expenses", "expenses", default="0", help="Monthly living expenses")
@click.option("--down-payment", "-d", "down_payment", default="0", help="Down payment amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Loan term in years")
@click.option("--dti", "dti", type=float, default=0.36, show_default=True, help="Maximum debt-to-income ratio")
@click.option(
    "--loan-type", "loan_type", type=click.Choice([t.value for t in LoanType]), default="mortgage", show_default=True
)
@click.option("--debt", "debt", multiple=True, help="Existing debt as NAME:BALANCE:RATE:MINIMUM (debt-consolidation)")
@click.option("--expected-return", "expected_return", type=float, help="Annual return in percent (investment)")
@click.option("--investment-years", "investment_years", type=int, help="Investment period in years (investment)")
def afford(
    income: str,
    debts: str,
    expenses: str,
    down_payment: str,
    rate: float,
    term: int,
    dti: float,
    loan_type: str,
    debt: Tuple[str, ...],
    expected_return: Optional[float],
    investment_years: Optional[int],
) -> None:
    """Estimate the maximum affordable price for an income and debt profile."""
    result = assess_affordability(
        monthly_income=parse_amount(income),
        monthly_debts=parse_amount(debts),
        down_payment=parse_amount(down_payment),
        annual_rate_percent=rate,
        term_years=term,
        max_dti=dti,
        monthly_expenses=parse_amount(expenses),
        loan_type=LoanType(loan_type),
        current_debts=parse_debt_strings(debt),
        expected_return_percent=expected_return,
        investment_years=investment_years,
    )
    print_affordability(result)


def _scenario_number(kind, token: str, value: str, index: int):
    try:
        return kind(value)
    except ValueError:
        raise click.BadParameter(f"Invalid value for {token} in scenario {index}: {value}")


def parse_scenario_opts(opts: str, index: int) -> Dict[str, Any]:
    """Convert a quoted scenario option string into keyword arguments."""
    tokens = shlex.split(opts)
    params: Dict[str, Any] = {
        "name": f"Scenario {index}",
        "principal": None,
        "rate": None,
        "term": None,
        "repayment_type": RepaymentType.REPAYMENT.value,
        "down_payment": None,
        "extra": None,
    }
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if i + 1 >= len(tokens):
            raise click.BadParameter(f"Missing value for {token} in scenario {index}")
        i += 1
        if token in ("-n", "--name"):
            params["name"] = tokens[i]
        elif token in ("-p", "--principal"):
            params["principal"] = tokens[i]
        elif token in ("-r", "--rate"):
            params["rate"] = _scenario_number(float, token, tokens[i], index)
        elif token in ("-t", "--term"):
            params["term"] = _scenario_number(int, token, tokens[i], index)
        elif token == "--type":
            params["repayment_type"] = tokens[i]
        elif token in ("-d", "--down-payment"):
            params["down_payment"] = tokens[i]
        elif token == "--extra":
            params["extra"] = tokens[i]
        else:
            raise click.BadParameter(f"Unknown option in scenario: {token}")
        i += 1
    for required in ("principal", "rate", "term"):
        if params[required] is None:
            raise click.BadParameter(f"Scenario {index} missing required option {required}")
    return params


@cli.command()
@click.option("--scenario", "scenario", multiple=True, required=True, help="Scenario options quoted string")
def compare(scenario: Tuple[str, ...]) -> None:
    """Compare loan scenarios.

    Scenarios are provided as quoted option strings, for example:

        loanviz compare --scenario "-n A -p 200k -r 3.5 -t 25" --scenario "-n B -p 200k -r 3.2 -t 20 --extra 100"
    """
    scenarios: List[Scenario] = []
    for index, opts in enumerate(scenario, start=1):
        p = parse_scenario_opts(opts, index)
        params = build_params_from_options(p["principal"], p["rate"], p["term"], p["repayment_type"], p["down_payment"])
        extra = to_decimal(parse_amount(p["extra"])) if p["extra"] else to_decimal(0)
        scenarios.append(Scenario(name=p["name"], params=params, extra_payment=extra))
    print_comparison(compare_scenarios(scenarios))


@cli.command()
@click.option("--debt", "debt", multiple=True, required=True, help="Debt as NAME:BALANCE:RATE:MINIMUM")
@click.option("--extra", "extra", default="0", help="Extra monthly payment on top of the minimums")
@click.option("--rate", "-r", "rate", type=float, help="Consolidation loan rate (default: weighted average)")
def consolidate(debt: Tuple[str, ...], extra: str, rate: Optional[float]) -> None:
    """Compare avalanche, snowball and consolidation payoff of existing debts.

    Example:

        loanviz consolidate --debt card:5000:19.9:150 --debt car:8000:6.5:250 --extra 100 -r 9
    """
    debts = parse_debt_strings(debt)
    try:
        comparison = compare_payoff_strategies(debts, parse_amount(extra), rate)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--debt")
    print_payoff_comparison(comparison)


@cli.command(name="stamp-duty")
@click.option("--value", "value", required=True, help="Property price")
@click.option("--region", "region", default="england", show_default=True, help="Tax region")
@click.option("--first-time-buyer", "first_time_buyer", is_flag=True, help="Buyer has never owned a home")
@click.option("--additional-property", "additional_property", is_flag=True, help="Buyer already owns a home")
@click.option("--non-resident", "non_resident", is_flag=True, help="Buyer is not resident")
@click.option("--rates-file", "rates_file", type=click.Path(exists=True, dir_okay=False), help="JSON rate tables")
def stamp_duty(
    value: str,
    region: str,
    first_time_buyer: bool,
    additional_property: bool,
    non_resident: bool,
    rates_file: Optional[str],
) -> None:
    """Compute stamp duty for a property purchase."""
    try:
        tables = load_rate_tables(Path(rates_file)) if rates_file else DEFAULT_RATE_TABLES
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--rates-file")
    try:
        result = calculate_stamp_duty(
            parse_amount(value),
            region=region,
            first_time_buyer=first_time_buyer,
            additional_property=additional_property,
            non_resident=non_resident,
            tables=tables,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--region")
    print_stamp_duty(result)


if __name__ == "__main__":
    cli()
