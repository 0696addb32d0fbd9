"""Loan amortization and affordability engine."""

from .affordability import assess_affordability, solve_affordability
from .data_models import (
    AffordabilityEstimate,
    AffordabilityResult,
    AmortizationRow,
    ConsolidationComparison,
    Debt,
    ExtraPayment,
    ExtraPaymentResult,
    FallbackReason,
    LoanParameters,
    LoanSummary,
    LoanType,
    PaymentFrequency,
    PayoffResult,
    PayoffStrategy,
    RepaymentType,
    Scenario,
    ScenarioResult,
)
from .debt_consolidation import compare_payoff_strategies, make_debt
from .early_repayment import apply_extra_payment, apply_extra_payments
from .engine import build_loan, compute_monthly_payment, generate_schedule, make_parameters, summarize

# Keep in sync with the version declared in ``pyproject.toml``
__version__ = "0.1.0"

__all__ = [
    "AffordabilityEstimate",
    "AffordabilityResult",
    "AmortizationRow",
    "ConsolidationComparison",
    "Debt",
    "ExtraPayment",
    "ExtraPaymentResult",
    "FallbackReason",
    "LoanParameters",
    "LoanSummary",
    "LoanType",
    "PaymentFrequency",
    "PayoffResult",
    "PayoffStrategy",
    "RepaymentType",
    "Scenario",
    "ScenarioResult",
    "__version__",
    "apply_extra_payment",
    "apply_extra_payments",
    "assess_affordability",
    "build_loan",
    "compare_payoff_strategies",
    "compute_monthly_payment",
    "generate_schedule",
    "make_debt",
    "make_parameters",
    "solve_affordability",
    "summarize",
]
