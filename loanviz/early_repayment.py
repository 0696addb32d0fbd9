"""Extra payment (early repayment) re-amortization.

Given an amortization schedule and one or more extra payment plans, rebuild
the schedule with the extra principal applied. The scheduled payment stays
the same, so every extra payment shortens the loan rather than lowering the
instalment. The caller's rows are never modified; new rows are returned.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from .data_models import AmortizationRow, ExtraPayment, ExtraPaymentResult, PaymentFrequency
from .utils import CENT, Number, monthly_rate, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _sum_interest(schedule: Iterable[AmortizationRow]) -> Decimal:
    return sum((row.interest_payment for row in schedule), ZERO)


def implied_monthly_rate(schedule: Sequence[AmortizationRow]) -> Decimal:
    """Reconstruct the monthly rate from the first row of a schedule.

    The first row's interest was charged on the opening balance, which is the
    row's closing balance plus the principal it repaid. A zero opening
    balance carries no rate information and yields zero.
    """
    first = schedule[0]
    opening_balance = first.balance + first.principal_payment - first.extra_payment
    if opening_balance <= 0:
        return ZERO
    return first.interest_payment / opening_balance


def _unchanged(schedule: Sequence[AmortizationRow]) -> ExtraPaymentResult:
    interest = _sum_interest(schedule)
    return ExtraPaymentResult(
        schedule=tuple(schedule),
        original_months=len(schedule),
        months_saved=0,
        original_interest=interest,
        modified_interest=interest,
        interest_saved=ZERO,
    )


def apply_extra_payments(
    schedule: Sequence[AmortizationRow],
    plans: Iterable[ExtraPayment],
    annual_rate_percent: Optional[Number] = None,
) -> ExtraPaymentResult:
    """Re-amortize ``schedule`` with the extra payments described by ``plans``.

    The first row keeps its original interest/principal split. Every later
    row charges interest on the previous (reduced) balance and keeps the
    scheduled payment, so more of it goes to principal. The extras due in a
    month are then added to that month's principal, capped at the remaining
    balance. The schedule is truncated at the month the balance reaches zero.

    Parameters
    ----------
    annual_rate_percent:
        The loan's annual rate. When omitted the monthly rate is
        reconstructed from the first row of ``schedule``.
    """
    plans = [replace(p, amount=to_decimal(p.amount, default=ZERO)) for p in plans]
    plans = [p for p in plans if p.amount > 0]
    if not schedule or not plans:
        return _unchanged(schedule)

    if annual_rate_percent is not None:
        rate_per_month = monthly_rate(to_decimal(annual_rate_percent))
    else:
        rate_per_month = implied_monthly_rate(schedule)

    modified: List[AmortizationRow] = []
    previous_balance = ZERO
    total_interest_paid = ZERO
    total_extra = ZERO
    paid_off = False

    for index, row in enumerate(schedule):
        if index == 0:
            interest_payment = row.interest_payment
            principal_payment = row.principal_payment
            payment = row.payment
            balance = row.balance
        elif row.is_grace_period:
            interest_payment = previous_balance * rate_per_month
            principal_payment = ZERO
            payment = ZERO
            balance = previous_balance
        else:
            interest_payment = previous_balance * rate_per_month
            principal_payment = min(row.payment - interest_payment, previous_balance)
            payment = row.payment
            if principal_payment == previous_balance:
                payment = principal_payment + interest_payment
            balance = max(ZERO, previous_balance - principal_payment)

        extra = min(sum((p.amount_for_month(row.month) for p in plans), ZERO), balance)
        principal_payment += extra
        balance -= extra
        total_extra += extra
        total_interest_paid += interest_payment

        if balance <= 0:
            balance = ZERO
            paid_off = True

        modified.append(
            replace(
                row,
                payment=payment,
                principal_payment=principal_payment,
                interest_payment=interest_payment,
                balance=balance,
                total_interest_paid=total_interest_paid,
                extra_payment=extra,
            )
        )
        if paid_off:
            break
        previous_balance = balance

    last = modified[-1]
    if not paid_off and 0 < last.balance < CENT and not last.is_grace_period:
        # Rounding residue left on the final scheduled payment; a larger balance
        # (interest-only loans) is still owed at the end of the term
        modified[-1] = replace(
            last,
            principal_payment=last.principal_payment + last.balance,
            payment=last.payment + last.balance,
            balance=ZERO,
        )

    original_interest = _sum_interest(schedule)
    modified_interest = _sum_interest(modified)
    result = ExtraPaymentResult(
        schedule=tuple(modified),
        original_months=len(schedule),
        months_saved=len(schedule) - len(modified),
        original_interest=original_interest,
        modified_interest=modified_interest,
        interest_saved=original_interest - modified_interest,
        total_extra_paid=total_extra,
    )
    logger.debug(
        "Extra payments saved %s months and %s interest", result.months_saved, result.interest_saved
    )
    return result


def apply_extra_payment(
    schedule: Sequence[AmortizationRow],
    extra_per_month: Number,
    annual_rate_percent: Optional[Number] = None,
) -> ExtraPaymentResult:
    """Apply the same extra payment every month, starting with the first row.

    Returns the original schedule with zero savings when ``extra_per_month``
    is not positive or the schedule is empty.
    """
    extra = to_decimal(extra_per_month, default=ZERO)
    if extra <= 0 or not schedule:
        return _unchanged(schedule)
    plan = ExtraPayment(amount=extra, frequency=PaymentFrequency.MONTHLY, start_month=schedule[0].month)
    return apply_extra_payments(schedule, [plan], annual_rate_percent)
