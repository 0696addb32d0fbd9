"""Core calculation engine for the loan calculator.

This module implements the fixed-payment formula, the loan summary (down
payment, trade-in, grace period and fee handling) and the month-by-month
amortization schedule. All functions are pure: the same inputs always give
the same ``LoanSummary`` and schedule rows.
"""

from __future__ import annotations

import logging
from decimal import Decimal, getcontext
from typing import List, Mapping, Optional, Tuple

from .config import DEFAULTS, CalculatorDefaults
from .data_models import AmortizationRow, LoanParameters, LoanSummary, RepaymentType
from .utils import Number, clamp, monthly_rate, round_money, round_whole, to_decimal

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def compute_monthly_payment(
    principal: Number,
    annual_rate_percent: Number,
    term_years: int,
    repayment_type: RepaymentType = RepaymentType.REPAYMENT,
) -> Decimal:
    """Return the fixed monthly payment for a loan.

    For amortizing loans the formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``. Interest-only loans pay ``P * i``.
    """
    principal = to_decimal(principal)
    rate_per_month = monthly_rate(to_decimal(annual_rate_percent))
    term = int(term_years) * 12
    if term <= 0:
        raise ValueError("Term must be positive")
    if repayment_type == RepaymentType.INTEREST_ONLY:
        return principal * rate_per_month
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def total_fees(fees: Mapping[str, Number]) -> Decimal:
    """Sum one-time fees. Unparseable or negative amounts count as zero."""
    return sum((max(to_decimal(v, default=ZERO), ZERO) for v in fees.values()), ZERO)


def make_parameters(
    principal: Number,
    annual_rate_percent: Number,
    term_years: int,
    repayment_type: RepaymentType = RepaymentType.REPAYMENT,
    down_payment: Number = 0,
    trade_in_value: Number = 0,
    grace_period_months: int = 0,
    fees: Optional[Mapping[str, Number]] = None,
) -> LoanParameters:
    """Build ``LoanParameters`` from plain numbers or numeric strings."""
    return LoanParameters(
        principal=to_decimal(principal),
        annual_rate_percent=to_decimal(annual_rate_percent),
        term_years=int(term_years),
        repayment_type=RepaymentType(repayment_type),
        down_payment=to_decimal(down_payment),
        trade_in_value=to_decimal(trade_in_value),
        grace_period_months=int(grace_period_months),
        fees={name: to_decimal(amount, default=ZERO) for name, amount in (fees or {}).items()},
    )


def summarize(params: LoanParameters, defaults: CalculatorDefaults = DEFAULTS) -> LoanSummary:
    """Compute the aggregate figures for a loan.

    Out-of-range inputs are clamped rather than rejected. A down payment and
    trade-in that together cover the whole principal leave nothing to finance,
    which yields a zero payment and zero interest.
    """
    original_principal = max(to_decimal(params.principal), ZERO)
    down_payment = max(to_decimal(params.down_payment), ZERO)
    trade_in_value = max(to_decimal(params.trade_in_value), ZERO)
    term_years = int(clamp(Decimal(params.term_years), Decimal(defaults.min_term_years), Decimal(defaults.max_term_years)))
    grace_months = max(int(params.grace_period_months), 0)

    # Financed principal after subtracting down payment and trade-in
    principal = max(original_principal - down_payment - trade_in_value, ZERO)

    # The rate is used exactly as it is displayed
    rate = round_money(clamp(to_decimal(params.annual_rate_percent), ZERO, defaults.max_rate_percent))
    rate_per_month = monthly_rate(rate)
    total_payments = Decimal(term_years * 12)

    payment = compute_monthly_payment(principal, rate, term_years, params.repayment_type)

    # Simple (non-compounding) interest accrued while repayments are deferred
    grace_interest = principal * rate_per_month * grace_months

    if params.repayment_type == RepaymentType.INTEREST_ONLY:
        interest = payment * total_payments + grace_interest
    else:
        interest = payment * total_payments - principal + grace_interest

    fees_total = total_fees(params.fees)

    ltv: Optional[Decimal] = None
    if down_payment > 0 or trade_in_value > 0:
        ltv = principal / original_principal * 100 if original_principal > 0 else ZERO

    summary = LoanSummary(
        principal=principal,
        original_principal=original_principal,
        rate=rate,
        term_years=term_years,
        repayment_type=params.repayment_type,
        monthly_payment=round_money(payment),
        total_interest=round_whole(interest),
        total_fees=fees_total,
        total_repayment=round_whole(principal + interest + fees_total),
        down_payment=down_payment,
        trade_in_value=trade_in_value,
        loan_to_value_ratio=ltv,
        grace_period_months=grace_months,
        grace_period_interest=grace_interest if grace_months > 0 else None,
    )
    logger.debug("Loan summary: %s", summary)
    return summary


def generate_schedule(
    principal: Number,
    annual_rate_percent: Number,
    term_years: int,
    grace_period_months: int = 0,
    repayment_type: RepaymentType = RepaymentType.REPAYMENT,
) -> List[AmortizationRow]:
    """Build the month-by-month amortization schedule.

    Parameters
    ----------
    principal:
        The financed (effective) principal.
    grace_period_months:
        Leading months with no payment. Interest accrues and is counted in
        ``total_interest_paid`` but is not added to the balance.
    repayment_type:
        Interest-only loans get a degenerate schedule: every payment is pure
        interest and the balance stays flat.

    Returns
    -------
    List[AmortizationRow]
        ``term_years * 12 + grace_period_months`` rows. For amortizing loans
        the last row ends with a balance of exactly zero.
    """
    balance = to_decimal(principal)
    rate = to_decimal(annual_rate_percent)
    rate_per_month = monthly_rate(rate)
    grace_months = max(int(grace_period_months), 0)
    total_payments = int(term_years) * 12
    last_month = total_payments + grace_months
    payment = compute_monthly_payment(balance, rate, term_years, repayment_type)

    schedule: List[AmortizationRow] = []
    total_interest_paid = ZERO

    for month in range(1, grace_months + 1):
        interest_payment = balance * rate_per_month
        total_interest_paid += interest_payment
        schedule.append(
            AmortizationRow(
                month=month,
                payment=ZERO,
                principal_payment=ZERO,
                interest_payment=interest_payment,
                balance=balance,
                total_interest_paid=total_interest_paid,
                is_grace_period=True,
            )
        )

    interest_only = repayment_type == RepaymentType.INTEREST_ONLY
    for month in range(grace_months + 1, last_month + 1):
        interest_payment = balance * rate_per_month
        row_payment = payment
        if interest_only:
            principal_payment = ZERO
        else:
            principal_payment = payment - interest_payment
            if month == last_month:
                # Clear the floating residue on the final payment
                principal_payment = balance
                row_payment = principal_payment + interest_payment
        balance -= principal_payment
        total_interest_paid += interest_payment
        schedule.append(
            AmortizationRow(
                month=month,
                payment=row_payment,
                principal_payment=principal_payment,
                interest_payment=interest_payment,
                balance=balance,
                total_interest_paid=total_interest_paid,
            )
        )

    return schedule


def build_loan(params: LoanParameters, defaults: CalculatorDefaults = DEFAULTS) -> Tuple[LoanSummary, List[AmortizationRow]]:
    """Summarize a loan and generate its schedule from the same sanitized inputs."""
    summary = summarize(params, defaults)
    schedule = generate_schedule(
        summary.principal,
        summary.rate,
        summary.term_years,
        summary.grace_period_months,
        summary.repayment_type,
    )
    return summary, schedule
