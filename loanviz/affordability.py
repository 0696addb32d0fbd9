"""Affordability calculations.

Pure math, no I/O. ``solve_affordability`` inverts the annuity formula to
find the highest price a debt-to-income limit supports; ``assess_affordability``
builds the fuller picture shown to a borrower (conservative price, loan
amounts, payments, budget impact and loan-type specific estimates).

Neither function raises for bad inputs: values are clamped into range and
degenerate cases return a fallback estimate tagged with its reason.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Optional, Sequence

from .config import DEFAULTS, CalculatorDefaults
from .data_models import (
    AffordabilityEstimate,
    AffordabilityResult,
    Debt,
    FallbackReason,
    LoanParameters,
    LoanType,
)
from .debt_consolidation import weighted_average_rate
from .engine import summarize
from .utils import Number, clamp, monthly_rate, round_money, round_to, round_whole, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def max_loan_for_payment(
    payment: Decimal, annual_rate_percent: Decimal, term_years: int, defaults: CalculatorDefaults = DEFAULTS
) -> Decimal:
    """Reverse amortization: the principal that ``payment`` repays over the term."""
    rate_per_month = monthly_rate(annual_rate_percent)
    total_payments = term_years * 12
    if rate_per_month < defaults.near_zero_monthly_rate:
        return payment * total_payments
    factor = (1 + rate_per_month) ** total_payments
    return payment * (factor - 1) / (factor * rate_per_month)


def solve_affordability(
    monthly_income: Number,
    monthly_debts: Number,
    down_payment: Number,
    annual_rate_percent: Number,
    term_years: Number,
    max_dti: Number = DEFAULTS.max_dti,
    defaults: CalculatorDefaults = DEFAULTS,
) -> AffordabilityEstimate:
    """Estimate the maximum affordable property price.

    The monthly payment capacity is ``income * max_dti - debts``; the largest
    loan it repays is added to the down payment and capped at
    ``income_cap_multiple`` times annual income plus the down payment.
    """
    income = max(to_decimal(monthly_income, default=ZERO), ZERO)
    debts = max(to_decimal(monthly_debts, default=ZERO), ZERO)
    down = max(to_decimal(down_payment, default=ZERO), ZERO)
    rate = clamp(
        to_decimal(annual_rate_percent, default=Decimal("3.5")),
        defaults.affordability_min_rate,
        defaults.affordability_max_rate,
    )
    term = int(clamp(to_decimal(term_years, default=Decimal("30")), Decimal(defaults.min_term_years), Decimal(defaults.max_term_years)))
    dti = clamp(to_decimal(max_dti, default=defaults.max_dti), defaults.min_dti, defaults.dti_ceiling)

    if income <= 0:
        logger.warning("Affordability calculation: monthly income must be greater than zero")
        return AffordabilityEstimate(down, FallbackReason.NO_INCOME)

    max_allowable_debt = income * dti
    if debts > max_allowable_debt:
        logger.warning("Affordability calculation: current debts exceed the debt-to-income limit")
        return AffordabilityEstimate(down, FallbackReason.DEBT_EXCEEDS_DTI)

    max_payment = max_allowable_debt - debts
    if max_payment <= 0:
        logger.warning("Affordability calculation: no payment capacity left after debts")
        return AffordabilityEstimate(down, FallbackReason.NO_PAYMENT_CAPACITY)

    annual_income = income * 12
    try:
        max_loan = max_loan_for_payment(max_payment, rate, term, defaults)
        price = max_loan + down
        if not price.is_finite():
            raise ArithmeticError(f"non-finite price {price}")
    except ArithmeticError as exc:
        logger.warning("Affordability calculation failed (%s); using income heuristic", exc)
        return AffordabilityEstimate(
            annual_income * defaults.fallback_income_multiple + down,
            FallbackReason.ARITHMETIC_FAILURE,
        )

    ceiling = annual_income * defaults.income_cap_multiple + down
    return AffordabilityEstimate(min(price, ceiling))


def future_value(initial: Decimal, monthly_contribution: Decimal, annual_return_percent: Decimal, years: int) -> Decimal:
    """Value after ``years`` of an initial sum plus monthly contributions, compounded monthly."""
    rate_per_month = monthly_rate(annual_return_percent)
    months = years * 12
    if rate_per_month == 0:
        return initial + monthly_contribution * months
    growth = (1 + rate_per_month) ** months
    return initial * growth + monthly_contribution * (growth - 1) / rate_per_month


def _loan_type_adjustments(
    loan_type: LoanType,
    max_price: Decimal,
    max_payment: Decimal,
    conservative_payment: Decimal,
    income: Decimal,
    debts: Decimal,
    down: Decimal,
    rate: Decimal,
    current_debts: Sequence[Debt],
    expected_return: Decimal,
    investment_years: int,
    defaults: CalculatorDefaults,
) -> Dict[str, Decimal]:
    adjustments: Dict[str, Decimal] = {}
    if loan_type == LoanType.MORTGAGE:
        # Property tax and insurance as a share of the home value per year
        tax_insurance = max_price * defaults.property_tax_insurance_pct / 100 / 12
        adjustments["estimated_tax_insurance"] = round_whole(tax_insurance)
        adjustments["total_monthly_payment_max"] = round_money(max_payment + tax_insurance)
        adjustments["total_monthly_payment_conservative"] = round_money(conservative_payment + tax_insurance)
    elif loan_type == LoanType.AUTO:
        insurance = clamp(max_price * defaults.auto_insurance_factor, defaults.auto_insurance_min, defaults.auto_insurance_max)
        maintenance = clamp(
            max_price * defaults.auto_maintenance_factor, defaults.auto_maintenance_min, defaults.auto_maintenance_max
        )
        adjustments["estimated_insurance"] = round_whole(insurance)
        adjustments["estimated_maintenance"] = round_whole(maintenance)
        adjustments["total_monthly_payment_max"] = round_money(max_payment + insurance + maintenance)
        adjustments["total_monthly_payment_conservative"] = round_money(conservative_payment + insurance + maintenance)
    elif loan_type == LoanType.STUDENT:
        income_driven = income * defaults.income_driven_share
        adjustments["income_driven_payment"] = round_money(income_driven)
        adjustments["standard_payment"] = round_money(max_payment)
        adjustments["payment_difference"] = round_money(max_payment - income_driven)
    elif loan_type == LoanType.PERSONAL:
        dti_after = (debts + max_payment) / income * 100 if income > 0 else ZERO
        adjustments["debt_to_income_after_loan"] = round_to(dti_after, 1)
        recommended = max_price * defaults.personal_recommended_factor if dti_after > defaults.personal_dti_warning_pct else max_price
        adjustments["recommended_maximum"] = round_whole(recommended)
    elif loan_type == LoanType.INVESTMENT:
        # The down payment is invested up front and the payment capacity each month
        value = future_value(down, max_payment, expected_return, investment_years)
        adjustments["future_value"] = round_whole(value)
        adjustments["expected_return"] = expected_return
        adjustments["investment_period"] = Decimal(investment_years)
    elif loan_type == LoanType.DEBT_CONSOLIDATION:
        total_current = sum((d.balance for d in current_debts), ZERO)
        average_rate = weighted_average_rate(current_debts)
        adjustments["total_current_debt"] = total_current
        adjustments["average_interest_rate"] = round_money(average_rate)
        adjustments["new_interest_rate"] = rate
        adjustments["interest_savings"] = round_whole((average_rate - rate) * total_current / 100)
    return adjustments


def assess_affordability(
    monthly_income: Number,
    monthly_debts: Number,
    down_payment: Number,
    annual_rate_percent: Number,
    term_years: Number,
    max_dti: Number = DEFAULTS.max_dti,
    monthly_expenses: Number = 0,
    loan_type: LoanType = LoanType.MORTGAGE,
    current_debts: Optional[Sequence[Debt]] = None,
    expected_return_percent: Optional[Number] = None,
    investment_years: Optional[int] = None,
    defaults: CalculatorDefaults = DEFAULTS,
) -> AffordabilityResult:
    """Full affordability breakdown for the maximum and conservative prices.

    ``current_debts`` feeds the debt-consolidation estimates;
    ``expected_return_percent`` and ``investment_years`` the investment
    projection (defaulting to the values in ``defaults``).
    """
    income = max(to_decimal(monthly_income, default=ZERO), ZERO)
    debts = max(to_decimal(monthly_debts, default=ZERO), ZERO)
    expenses = max(to_decimal(monthly_expenses, default=ZERO), ZERO)
    down = max(to_decimal(down_payment, default=ZERO), ZERO)
    rate = clamp(
        to_decimal(annual_rate_percent, default=Decimal("3.5")),
        defaults.affordability_min_rate,
        defaults.affordability_max_rate,
    )
    term = int(clamp(to_decimal(term_years, default=Decimal("30")), Decimal(defaults.min_term_years), Decimal(defaults.max_term_years)))
    dti = clamp(to_decimal(max_dti, default=defaults.max_dti), defaults.min_dti, defaults.dti_ceiling)
    loan_type = LoanType(loan_type)

    estimate = solve_affordability(income, debts, down, rate, term, dti, defaults)
    max_price = max(estimate.price, down)
    conservative_price = max(max_price * defaults.conservative_factor, down)
    max_loan = max(max_price - down, ZERO)
    conservative_loan = max(conservative_price - down, ZERO)

    def payment_for(loan: Decimal) -> Decimal:
        if loan <= 0:
            return ZERO
        return summarize(LoanParameters(principal=loan, annual_rate_percent=rate, term_years=term), defaults).monthly_payment

    max_payment = payment_for(max_loan)
    conservative_payment = payment_for(conservative_loan)
    capacity = max(income * dti - debts, ZERO)

    if income > 0:
        max_impact = max(max_payment / income * 100, ZERO)
        conservative_impact = max(conservative_payment / income * 100, ZERO)
    else:
        max_impact = conservative_impact = ZERO

    result = AffordabilityResult(
        max_price=round_whole(max_price),
        conservative_price=round_whole(conservative_price),
        max_loan_amount=round_whole(max_loan),
        conservative_loan_amount=round_whole(conservative_loan),
        max_monthly_payment=round_money(max_payment),
        conservative_monthly_payment=round_money(conservative_payment),
        max_affordable_payment=round_money(capacity),
        down_payment=down,
        debt_to_income_ratio=dti,
        max_budget_impact=round_to(max_impact, 1),
        conservative_budget_impact=round_to(conservative_impact, 1),
        remaining_budget_max=round_whole(max(income - expenses - debts - max_payment, ZERO)),
        remaining_budget_conservative=round_whole(max(income - expenses - debts - conservative_payment, ZERO)),
        monthly_income=income,
        monthly_expenses=expenses,
        monthly_debts=debts,
        disposable_income=max(income - expenses, ZERO),
        loan_type=loan_type,
        adjustments=_loan_type_adjustments(
            loan_type,
            max_price,
            max_payment,
            conservative_payment,
            income,
            debts,
            down,
            rate,
            list(current_debts or ()),
            to_decimal(expected_return_percent, default=defaults.investment_expected_return_pct),
            int(investment_years) if investment_years else defaults.investment_years,
            defaults,
        ),
        fallback_reason=estimate.fallback_reason,
    )
    logger.debug("Affordability result: %s", result)
    return result
