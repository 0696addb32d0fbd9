"""Output helpers for the loan calculator.

This module provides simple functions to render summaries, amortization
schedules, scenario comparisons, affordability results and stamp duty
breakdowns and debt payoff comparisons in a tabular text format using built-in printing.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .data_models import (
    AffordabilityResult,
    AmortizationRow,
    ConsolidationComparison,
    ExtraPaymentResult,
    LoanSummary,
    ScenarioResult,
    StampDutyResult,
)


def print_summary(summary: LoanSummary, extra: Optional[ExtraPaymentResult] = None) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Principal financed : {summary.principal:.2f}")
    if summary.loan_to_value_ratio is not None:
        print(f"Original amount    : {summary.original_principal:.2f}")
        print(f"Loan to value      : {summary.loan_to_value_ratio:.1f}%")
    print(f"Rate               : {summary.rate:.2f}% ({summary.repayment_type.value})")
    print(f"Term               : {summary.term_years} years")
    print(f"Monthly payment    : {summary.monthly_payment:.2f}")
    if summary.grace_period_interest is not None:
        print(f"Grace period       : {summary.grace_period_months} months")
        print(f"Grace interest     : {summary.grace_period_interest:.2f}")
    print(f"Total interest     : {summary.total_interest:.2f}")
    if summary.total_fees:
        print(f"Total fees         : {summary.total_fees:.2f}")
    print(f"Total repayment    : {summary.total_repayment:.2f}")
    if extra is not None and extra.total_extra_paid:
        print(f"Extra paid         : {extra.total_extra_paid:.2f}")
        print(f"Interest saved     : {extra.interest_saved:.2f}")
        print(f"Term reduction     : {extra.months_saved} months")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationRow]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = ["Month", "Payment", "Principal", "Interest", "Extra", "Balance", "TotalInt", "Grace"]
    print("\t".join(headers))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.month),
                    f"{row.payment:.2f}",
                    f"{row.principal_payment:.2f}",
                    f"{row.interest_payment:.2f}",
                    f"{row.extra_payment:.2f}",
                    f"{row.balance:.2f}",
                    f"{row.total_interest_paid:.2f}",
                    "Yes" if row.is_grace_period else "No",
                ]
            )
        )


def print_comparison(results: Sequence[ScenarioResult]) -> None:
    """Print loan scenarios side by side.

    The difference column compares each scenario with the first one; a
    negative difference means the scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    baseline = next((r for r in results if r.summary is not None), None)
    print(f"{'Scenario':20s} {'Monthly':>12s} {'Interest':>12s} {'Repayment':>12s} {'Difference':>12s}")
    for result in results:
        if result.summary is None:
            print(f"{result.name:20s} error: {result.error}")
            continue
        s = result.summary
        diff = s.total_repayment - baseline.summary.total_repayment
        print(f"{result.name:20s} {s.monthly_payment:12.2f} {s.total_interest:12.2f} {s.total_repayment:12.2f} {diff:12.2f}")
        if result.extra_payment > 0:
            print(
                f"{'':20s} extra {result.extra_payment:.2f}/mo: paid off {result.early_payoff_months} months early, "
                f"saves {result.interest_saved:.2f} interest"
            )
    print("=" * 72)


def print_affordability(result: AffordabilityResult) -> None:
    print("Affordability")
    print("-" * 72)
    print(f"Maximum price        : {result.max_price:.2f}")
    print(f"Conservative price   : {result.conservative_price:.2f}")
    print(f"Maximum loan         : {result.max_loan_amount:.2f}")
    print(f"Conservative loan    : {result.conservative_loan_amount:.2f}")
    print(f"Maximum payment      : {result.max_monthly_payment:.2f} ({result.max_budget_impact}% of income)")
    print(f"Conservative payment : {result.conservative_monthly_payment:.2f} ({result.conservative_budget_impact}% of income)")
    print(f"Payment capacity     : {result.max_affordable_payment:.2f}")
    print(f"Remaining budget     : {result.remaining_budget_max:.2f} / {result.remaining_budget_conservative:.2f}")
    for name, value in result.adjustments.items():
        print(f"{name.replace('_', ' ').capitalize():21s}: {value}")
    if result.fallback_reason is not None:
        print(f"Note: estimate is a fallback ({result.fallback_reason.value})")
    print("-" * 72)


def print_stamp_duty(result: StampDutyResult) -> None:
    print(result.tax_name)
    print("-" * 72)
    print(f"{'Band':28s} {'Rate':>8s} {'Value in band':>16s} {'Tax':>14s}")
    for band in result.bands:
        label = f"{band.start:,.0f} - {band.end:,.0f}" if band.end is not None else f"Over {band.start:,.0f}"
        print(f"{label:28s} {band.rate:7.2f}% {band.value_in_band:16,.2f} {band.tax_in_band:14,.2f}")
    for name, amount in result.surcharges.items():
        print(f"{name.replace('_', ' ').capitalize() + ' surcharge':28s} {'':8s} {'':16s} {amount:14,.2f}")
    print(f"Total tax          : {result.total_tax:,.2f}")
    print(f"Effective rate     : {result.effective_rate:.2f}%")
    print("-" * 72)


def print_payoff_comparison(comparison: ConsolidationComparison) -> None:
    print("Debt payoff strategies")
    print("=" * 72)
    print(f"Total debt         : {comparison.total_debt:,.2f}")
    print(f"Monthly budget     : {comparison.total_minimum_payment + comparison.extra_payment:,.2f}")
    print(f"Consolidation rate : {comparison.consolidation_rate:.2f}%")
    print(f"{'Strategy':16s} {'Months':>8s} {'Interest':>14s} {'Total paid':>14s}")
    for result in comparison.results:
        months = str(result.months_to_payoff) if result.paid_off else f">{result.months_to_payoff}"
        print(f"{result.strategy.value:16s} {months:>8s} {result.total_interest:14,.2f} {result.total_paid:14,.2f}")
        if result.payoff_order:
            print(f"{'':16s} payoff order: {', '.join(result.payoff_order)}")
    print(f"Recommended: {comparison.recommended.strategy.value} (least interest)")
    print("=" * 72)
