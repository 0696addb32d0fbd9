"""Tunable constants used by the calculators.

Every calculator accepts an optional ``defaults`` argument so callers can
override these values without touching module state.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CalculatorDefaults:
    # Loan summary input ranges
    max_rate_percent: Decimal = Decimal("100")
    min_term_years: int = 1
    max_term_years: int = 50

    # Affordability input ranges
    max_dti: Decimal = Decimal("0.36")
    min_dti: Decimal = Decimal("0.1")
    dti_ceiling: Decimal = Decimal("0.5")
    affordability_min_rate: Decimal = Decimal("0.1")
    affordability_max_rate: Decimal = Decimal("30")

    # Below this monthly rate the annuity inversion is replaced by payment * n
    near_zero_monthly_rate: Decimal = Decimal("0.0001")
    income_cap_multiple: Decimal = Decimal("10")
    fallback_income_multiple: Decimal = Decimal("4")
    conservative_factor: Decimal = Decimal("0.9")

    # Loan-type specific estimates
    property_tax_insurance_pct: Decimal = Decimal("1.5")
    auto_insurance_factor: Decimal = Decimal("0.0015")
    auto_insurance_min: Decimal = Decimal("50")
    auto_insurance_max: Decimal = Decimal("500")
    auto_maintenance_factor: Decimal = Decimal("0.001")
    auto_maintenance_min: Decimal = Decimal("30")
    auto_maintenance_max: Decimal = Decimal("300")
    income_driven_share: Decimal = Decimal("0.1")
    personal_dti_warning_pct: Decimal = Decimal("43")
    personal_recommended_factor: Decimal = Decimal("0.8")
    investment_expected_return_pct: Decimal = Decimal("7")
    investment_years: int = 20

    # Debt payoff simulations stop here when the payments never clear the debts
    max_payoff_months: int = 1200


DEFAULTS = CalculatorDefaults()
