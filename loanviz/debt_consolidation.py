"""Debt payoff strategies and consolidation.

Compares three ways of clearing a set of existing debts with the same monthly
budget (the sum of the minimum payments plus any extra):

* avalanche: extra money goes to the highest-rate debt first;
* snowball: extra money goes to the smallest balance first;
* consolidation: all balances are rolled into a single loan.

The minimum payment of a debt that has been cleared stays in the budget and
rolls over to the next debt in priority order.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from .config import DEFAULTS, CalculatorDefaults
from .data_models import ConsolidationComparison, Debt, PayoffResult, PayoffStrategy
from .utils import Number, monthly_rate, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def make_debt(name: str, balance: Number, annual_rate_percent: Number, minimum_payment: Number) -> Debt:
    """Build a ``Debt`` from plain numbers; negative amounts become zero."""
    return Debt(
        name=name,
        balance=max(to_decimal(balance), ZERO),
        annual_rate_percent=max(to_decimal(annual_rate_percent), ZERO),
        minimum_payment=max(to_decimal(minimum_payment), ZERO),
    )


def weighted_average_rate(debts: Sequence[Debt]) -> Decimal:
    """Balance-weighted average annual rate; zero when nothing is owed."""
    total = sum((d.balance for d in debts), ZERO)
    if total <= 0:
        return ZERO
    return sum((d.annual_rate_percent * d.balance for d in debts), ZERO) / total


def _priority(debts: Sequence[Debt], strategy: PayoffStrategy) -> List[Debt]:
    if strategy == PayoffStrategy.AVALANCHE:
        return sorted(debts, key=lambda d: d.annual_rate_percent, reverse=True)
    if strategy == PayoffStrategy.SNOWBALL:
        return sorted(debts, key=lambda d: d.balance)
    raise ValueError(f"{strategy.value} is not a per-debt payoff strategy")


def simulate_payoff(
    debts: Sequence[Debt],
    strategy: PayoffStrategy,
    extra_payment: Number = 0,
    defaults: CalculatorDefaults = DEFAULTS,
) -> PayoffResult:
    """Pay off ``debts`` month by month using the avalanche or snowball order.

    Each month every open debt accrues interest and receives its minimum
    payment (never more than it owes). Whatever is left of the budget is
    applied to the open debts in priority order.
    """
    ordered = _priority([d for d in debts if d.balance > 0], strategy)
    names = [d.name for d in ordered]
    balances = [d.balance for d in ordered]
    rates = [monthly_rate(d.annual_rate_percent) for d in ordered]
    budget = sum((d.minimum_payment for d in ordered), ZERO) + max(to_decimal(extra_payment, default=ZERO), ZERO)

    monthly_payments: List[Decimal] = []
    remaining: List[Decimal] = []
    interest_paid: List[Decimal] = []
    payoff_order: List[str] = []
    total_interest = ZERO
    total_paid = ZERO

    while any(b > 0 for b in balances) and len(monthly_payments) < defaults.max_payoff_months:
        month_paid = ZERO
        month_interest = ZERO
        for i, debt in enumerate(ordered):
            if balances[i] <= 0:
                continue
            interest = balances[i] * rates[i]
            payment = min(debt.minimum_payment, balances[i] + interest)
            balances[i] = max(ZERO, balances[i] + interest - payment)
            month_interest += interest
            month_paid += payment

        available = max(budget - month_paid, ZERO)
        for i in range(len(ordered)):
            if available <= 0:
                break
            if balances[i] <= 0:
                continue
            applied = min(available, balances[i])
            balances[i] -= applied
            available -= applied
            month_paid += applied

        for i, name in enumerate(names):
            if balances[i] <= 0 and name not in payoff_order:
                payoff_order.append(name)

        monthly_payments.append(month_paid)
        remaining.append(sum(balances, ZERO))
        interest_paid.append(month_interest)
        total_interest += month_interest
        total_paid += month_paid

    paid_off = all(b <= 0 for b in balances)
    if not paid_off:
        logger.warning(
            "%s payoff did not clear the debts within %s months", strategy.value, defaults.max_payoff_months
        )
    return PayoffResult(
        strategy=strategy,
        months_to_payoff=len(monthly_payments),
        total_interest=total_interest,
        total_paid=total_paid,
        monthly_payments=tuple(monthly_payments),
        balances=tuple(remaining),
        interest_paid=tuple(interest_paid),
        payoff_order=tuple(payoff_order),
        paid_off=paid_off,
    )


def simulate_consolidation(
    total_debt: Number,
    annual_rate_percent: Number,
    monthly_payment: Number,
    defaults: CalculatorDefaults = DEFAULTS,
) -> PayoffResult:
    """Pay off a single consolidated balance with a fixed monthly payment."""
    balance = max(to_decimal(total_debt), ZERO)
    rate_per_month = monthly_rate(max(to_decimal(annual_rate_percent), ZERO))
    payment_cap = max(to_decimal(monthly_payment), ZERO)

    monthly_payments: List[Decimal] = []
    remaining: List[Decimal] = []
    interest_paid: List[Decimal] = []
    total_interest = ZERO
    total_paid = ZERO

    while balance > 0 and len(monthly_payments) < defaults.max_payoff_months:
        interest = balance * rate_per_month
        payment = min(payment_cap, balance + interest)
        balance = max(ZERO, balance + interest - payment)
        monthly_payments.append(payment)
        remaining.append(balance)
        interest_paid.append(interest)
        total_interest += interest
        total_paid += payment

    if balance > 0:
        logger.warning("Consolidated loan is not repaid within %s months", defaults.max_payoff_months)
    return PayoffResult(
        strategy=PayoffStrategy.CONSOLIDATION,
        months_to_payoff=len(monthly_payments),
        total_interest=total_interest,
        total_paid=total_paid,
        monthly_payments=tuple(monthly_payments),
        balances=tuple(remaining),
        interest_paid=tuple(interest_paid),
        paid_off=balance <= 0,
    )


def compare_payoff_strategies(
    debts: Sequence[Debt],
    extra_payment: Number = 0,
    consolidation_rate: Optional[Number] = None,
    defaults: CalculatorDefaults = DEFAULTS,
) -> ConsolidationComparison:
    """Run avalanche, snowball and consolidation on the same debts and budget.

    The consolidated loan uses ``consolidation_rate`` when given, otherwise the
    balance-weighted average rate of the debts, and is paid with the combined
    minimum payments plus ``extra_payment``.

    Raises
    ------
    ValueError
        If no debt has an outstanding balance.
    """
    open_debts = [d for d in debts if d.balance > 0]
    if not open_debts:
        raise ValueError("At least one debt with a positive balance is required")

    extra = max(to_decimal(extra_payment, default=ZERO), ZERO)
    total_debt = sum((d.balance for d in open_debts), ZERO)
    total_minimum = sum((d.minimum_payment for d in open_debts), ZERO)
    rate = weighted_average_rate(open_debts) if consolidation_rate is None else to_decimal(consolidation_rate)

    comparison = ConsolidationComparison(
        total_debt=total_debt,
        total_minimum_payment=total_minimum,
        extra_payment=extra,
        consolidation_rate=rate,
        avalanche=simulate_payoff(open_debts, PayoffStrategy.AVALANCHE, extra, defaults),
        snowball=simulate_payoff(open_debts, PayoffStrategy.SNOWBALL, extra, defaults),
        consolidation=simulate_consolidation(total_debt, rate, total_minimum + extra, defaults),
    )
    logger.debug("Recommended payoff strategy: %s", comparison.recommended.strategy.value)
    return comparison
