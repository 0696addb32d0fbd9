"""Data models for the loan engine.

This module defines dataclasses representing the entities the calculators
exchange: loan parameters, the loan summary, amortization rows, extra
payment plans and the results of re-amortization, affordability, scenario
comparison and stamp duty calculations. Result objects are frozen: a
recalculation always produces a new object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


class RepaymentType(str, Enum):
    REPAYMENT = "repayment"
    INTEREST_ONLY = "interest-only"


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    ONE_TIME = "one-time"


class LoanType(str, Enum):
    MORTGAGE = "mortgage"
    PERSONAL = "personal"
    AUTO = "auto"
    STUDENT = "student"
    INVESTMENT = "investment"
    DEBT_CONSOLIDATION = "debt-consolidation"


class PayoffStrategy(str, Enum):
    AVALANCHE = "avalanche"  # highest rate first
    SNOWBALL = "snowball"  # smallest balance first
    CONSOLIDATION = "consolidation"


class FallbackReason(str, Enum):
    """Why the affordability solver returned a heuristic instead of a solution."""

    NO_INCOME = "no-income"
    DEBT_EXCEEDS_DTI = "debt-exceeds-dti"
    NO_PAYMENT_CAPACITY = "no-payment-capacity"
    ARITHMETIC_FAILURE = "arithmetic-failure"


@dataclass(frozen=True)
class LoanParameters:
    """User inputs for a single loan calculation.

    Attributes
    ----------
    principal:
        Amount requested before down payment and trade-in are applied.
    annual_rate_percent:
        Nominal annual rate in percent (``3.5`` means 3.5 %).
    term_years:
        Repayment term in years, excluding any grace period.
    fees:
        One-time fees keyed by name. They are added to the total repayment
        and never financed into the principal.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    term_years: int
    repayment_type: RepaymentType = RepaymentType.REPAYMENT
    down_payment: Decimal = Decimal("0")
    trade_in_value: Decimal = Decimal("0")
    grace_period_months: int = 0
    fees: Mapping[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class LoanSummary:
    principal: Decimal  # effective (financed) principal
    original_principal: Decimal
    rate: Decimal  # annual rate in percent, rounded to 2 dp
    term_years: int
    repayment_type: RepaymentType
    monthly_payment: Decimal
    total_interest: Decimal
    total_fees: Decimal
    total_repayment: Decimal
    down_payment: Decimal = Decimal("0")
    trade_in_value: Decimal = Decimal("0")
    loan_to_value_ratio: Optional[Decimal] = None
    grace_period_months: int = 0
    grace_period_interest: Optional[Decimal] = None


@dataclass(frozen=True)
class AmortizationRow:
    """One month of an amortization schedule.

    During a grace period ``payment`` and ``principal_payment`` are zero while
    ``interest_payment`` still records the interest that accrued. When an
    extra payment was applied, it is included in ``principal_payment`` and
    also reported separately as ``extra_payment``.
    """

    month: int
    payment: Decimal
    principal_payment: Decimal
    interest_payment: Decimal
    balance: Decimal
    total_interest_paid: Decimal
    is_grace_period: bool = False
    extra_payment: Decimal = Decimal("0")


@dataclass(frozen=True)
class ExtraPayment:
    """An extra principal payment plan.

    ``start_month`` is the 1-indexed schedule month of the first payment.
    Monthly plans repeat every month, quarterly every third month and annual
    plans every twelfth month from there; one-time plans pay once.
    """

    amount: Decimal
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    start_month: int = 1

    def amount_for_month(self, month: int) -> Decimal:
        offset = month - self.start_month
        if offset < 0:
            return Decimal("0")
        if self.frequency == PaymentFrequency.MONTHLY:
            due = True
        elif self.frequency == PaymentFrequency.QUARTERLY:
            due = offset % 3 == 0
        elif self.frequency == PaymentFrequency.ANNUALLY:
            due = offset % 12 == 0
        else:
            due = offset == 0
        return self.amount if due else Decimal("0")


@dataclass(frozen=True)
class ExtraPaymentResult:
    schedule: Tuple[AmortizationRow, ...]
    original_months: int
    months_saved: int
    original_interest: Decimal
    modified_interest: Decimal
    interest_saved: Decimal
    total_extra_paid: Decimal = Decimal("0")

    @property
    def modified_months(self) -> int:
        return len(self.schedule)

    @property
    def return_on_extra(self) -> Decimal:
        """Interest saved per unit of extra principal paid."""
        if self.total_extra_paid <= 0:
            return Decimal("0")
        return self.interest_saved / self.total_extra_paid


@dataclass(frozen=True)
class AffordabilityEstimate:
    """Maximum affordable price, tagged with the reason when it is a fallback."""

    price: Decimal
    fallback_reason: Optional[FallbackReason] = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback_reason is not None


@dataclass(frozen=True)
class AffordabilityResult:
    max_price: Decimal
    conservative_price: Decimal
    max_loan_amount: Decimal
    conservative_loan_amount: Decimal
    max_monthly_payment: Decimal
    conservative_monthly_payment: Decimal
    max_affordable_payment: Decimal
    down_payment: Decimal
    debt_to_income_ratio: Decimal
    max_budget_impact: Decimal
    conservative_budget_impact: Decimal
    remaining_budget_max: Decimal
    remaining_budget_conservative: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_debts: Decimal
    disposable_income: Decimal
    loan_type: LoanType = LoanType.MORTGAGE
    adjustments: Mapping[str, Decimal] = field(default_factory=dict)
    fallback_reason: Optional[FallbackReason] = None


@dataclass(frozen=True)
class Scenario:
    name: str
    params: LoanParameters
    extra_payment: Decimal = Decimal("0")


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    summary: Optional[LoanSummary]
    schedule: Tuple[AmortizationRow, ...] = ()
    extra_payment: Decimal = Decimal("0")
    early_payoff_months: int = 0
    interest_saved: Decimal = Decimal("0")
    error: Optional[str] = None


@dataclass(frozen=True)
class StampDutyBand:
    start: Decimal
    end: Optional[Decimal]  # None for the open top band
    rate: Decimal  # percent
    value_in_band: Decimal
    tax_in_band: Decimal


@dataclass(frozen=True)
class StampDutyResult:
    property_value: Decimal
    region: str
    tax_name: str
    is_first_time_buyer: bool
    is_additional_property: bool
    is_non_resident: bool
    bands: List[StampDutyBand]
    surcharges: Dict[str, Decimal]
    total_tax: Decimal
    effective_rate: Decimal


@dataclass(frozen=True)
class Debt:
    """An existing debt: outstanding balance, annual rate and minimum monthly payment."""

    name: str
    balance: Decimal
    annual_rate_percent: Decimal
    minimum_payment: Decimal


@dataclass(frozen=True)
class PayoffResult:
    """Month-by-month outcome of paying off a set of debts with one strategy.

    ``paid_off`` is False when the payments never clear the debts within the
    month limit (the minimums do not cover the interest).
    """

    strategy: PayoffStrategy
    months_to_payoff: int
    total_interest: Decimal
    total_paid: Decimal
    monthly_payments: Tuple[Decimal, ...] = ()
    balances: Tuple[Decimal, ...] = ()
    interest_paid: Tuple[Decimal, ...] = ()
    payoff_order: Tuple[str, ...] = ()
    paid_off: bool = True


@dataclass(frozen=True)
class ConsolidationComparison:
    total_debt: Decimal
    total_minimum_payment: Decimal
    extra_payment: Decimal
    consolidation_rate: Decimal
    avalanche: PayoffResult
    snowball: PayoffResult
    consolidation: PayoffResult

    @property
    def results(self) -> Tuple[PayoffResult, ...]:
        return (self.avalanche, self.snowball, self.consolidation)

    @property
    def recommended(self) -> PayoffResult:
        """The strategy with the least interest; ties go to the earlier strategy."""
        return min(self.results, key=lambda r: r.total_interest)
