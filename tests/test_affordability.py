import logging
from decimal import Decimal

import pytest

from loanviz import affordability
from loanviz.affordability import assess_affordability, max_loan_for_payment, solve_affordability
from loanviz.data_models import FallbackReason, LoanType
from loanviz.debt_consolidation import make_debt


def annuity_principal(payment, rate_pct, years):
    r = rate_pct / 100 / 12
    x = (1 + r) ** (years * 12)
    return payment * (x - 1) / (x * r)


def test_affordability_closed_form():
    estimate = solve_affordability(5000, 500, 20000, 3.5, 25)
    assert not estimate.is_fallback
    assert estimate.fallback_reason is None
    expected = 20000 + annuity_principal(1300, 3.5, 25)
    assert float(estimate.price) == pytest.approx(expected, rel=1e-9)


def test_no_income_falls_back_to_down_payment(caplog):
    with caplog.at_level(logging.WARNING, logger="loanviz.affordability"):
        estimate = solve_affordability(0, 500, 20000, 3.5, 25)
    assert estimate.price == Decimal("20000")
    assert estimate.fallback_reason is FallbackReason.NO_INCOME
    assert "income" in caplog.text


def test_debts_above_limit():
    estimate = solve_affordability(5000, 2000, 15000, 3.5, 25)
    assert estimate.price == Decimal("15000")
    assert estimate.fallback_reason is FallbackReason.DEBT_EXCEEDS_DTI


def test_debts_exactly_at_limit_leave_no_capacity():
    estimate = solve_affordability(5000, 1800, 15000, 3.5, 25)
    assert estimate.price == Decimal("15000")
    assert estimate.fallback_reason is FallbackReason.NO_PAYMENT_CAPACITY


def test_price_capped_by_income_multiple():
    # 0.1 % is below the near-zero threshold, so the loan is payment * n
    estimate = solve_affordability(10000, 0, 5000, 0.1, 50)
    assert estimate.price == Decimal("1205000")
    assert not estimate.is_fallback


def test_arithmetic_failure_uses_income_heuristic(monkeypatch):
    def broken(*args, **kwargs):
        raise ZeroDivisionError("boom")

    monkeypatch.setattr(affordability, "max_loan_for_payment", broken)
    estimate = solve_affordability(5000, 500, 20000, 3.5, 25)
    assert estimate.price == Decimal("260000")
    assert estimate.fallback_reason is FallbackReason.ARITHMETIC_FAILURE


def test_dti_is_clamped():
    assert solve_affordability(4000, 0, 0, 5, 25, max_dti=0.9) == solve_affordability(4000, 0, 0, 5, 25, max_dti=0.5)
    assert solve_affordability(4000, 0, 0, 5, 25, max_dti=0.01) == solve_affordability(4000, 0, 0, 5, 25, max_dti=0.1)


def test_price_monotonic_in_income_and_debts():
    by_income = [solve_affordability(income, 500, 10000, 4, 30).price for income in (2000, 3000, 4000, 6000, 9000)]
    assert by_income == sorted(by_income)
    by_debts = [solve_affordability(6000, debts, 10000, 4, 30).price for debts in (0, 200, 500, 1000, 2000)]
    assert by_debts == sorted(by_debts, reverse=True)
    for price in by_income + by_debts:
        assert price >= 10000


def test_max_loan_for_payment_zero_rate():
    assert max_loan_for_payment(Decimal("500"), Decimal("0"), 10) == Decimal("60000")


def test_assess_affordability_breakdown():
    result = assess_affordability(5000, 500, 20000, 3.5, 25, monthly_expenses=1500)
    assert result.fallback_reason is None
    assert result.max_affordable_payment == Decimal("1300.00")
    assert abs(result.max_monthly_payment - Decimal("1300")) < Decimal("0.02")
    assert result.max_loan_amount == result.max_price - 20000
    assert abs(result.conservative_price - result.max_price * Decimal("0.9")) <= 1
    assert result.conservative_monthly_payment < result.max_monthly_payment
    assert result.max_budget_impact == Decimal("26.0")
    assert result.disposable_income == Decimal("3500")
    assert result.remaining_budget_max == Decimal("1700")
    assert result.loan_type is LoanType.MORTGAGE
    assert set(result.adjustments) == {
        "estimated_tax_insurance",
        "total_monthly_payment_max",
        "total_monthly_payment_conservative",
    }


def test_assess_affordability_without_income():
    result = assess_affordability(0, 0, 25000, 3.5, 25)
    assert result.fallback_reason is FallbackReason.NO_INCOME
    assert result.max_price == Decimal("25000")
    assert result.conservative_price == Decimal("25000")
    assert result.max_loan_amount == 0
    assert result.max_monthly_payment == 0
    assert result.max_budget_impact == 0


def test_student_loan_adjustments():
    result = assess_affordability(5000, 0, 0, 5, 10, loan_type=LoanType.STUDENT)
    assert result.adjustments["income_driven_payment"] == Decimal("500.00")
    assert result.adjustments["standard_payment"] == result.max_monthly_payment


def test_auto_loan_adjustments_are_clamped():
    result = assess_affordability(2000, 0, 0, 6, 5, loan_type="auto")
    insurance = result.adjustments["estimated_insurance"]
    maintenance = result.adjustments["estimated_maintenance"]
    assert Decimal("50") <= insurance <= Decimal("500")
    assert Decimal("30") <= maintenance <= Decimal("300")


def test_personal_loan_recommendation():
    result = assess_affordability(5000, 1000, 0, 8, 5, max_dti=0.5, loan_type=LoanType.PERSONAL)
    # 1000 debts + 1500 payment capacity is 50 % of income, above the 43 % warning level
    assert result.adjustments["debt_to_income_after_loan"] == Decimal("50.0")
    assert abs(result.adjustments["recommended_maximum"] - result.max_price * Decimal("0.8")) <= 1


def test_investment_projection():
    result = assess_affordability(5000, 500, 20000, 3.5, 25, loan_type=LoanType.INVESTMENT)
    r = 7 / 100 / 12
    growth = (1 + r) ** 240
    payment = float(result.max_monthly_payment)
    expected = 20000 * growth + payment * (growth - 1) / r
    assert abs(float(result.adjustments["future_value"]) - expected) <= 1
    assert result.adjustments["expected_return"] == 7
    assert result.adjustments["investment_period"] == 20


def test_investment_projection_without_return():
    result = assess_affordability(
        5000, 500, 20000, 3.5, 25, loan_type="investment", expected_return_percent=0, investment_years=10
    )
    expected = 20000 + result.max_monthly_payment * 120
    assert abs(result.adjustments["future_value"] - expected) <= 1


def test_debt_consolidation_estimates():
    current = [make_debt("card", 1000, 24, 100), make_debt("loan", 500, 6, 50)]
    result = assess_affordability(
        5000, 500, 0, 10, 5, loan_type=LoanType.DEBT_CONSOLIDATION, current_debts=current
    )
    assert result.adjustments["total_current_debt"] == Decimal("1500")
    assert result.adjustments["average_interest_rate"] == Decimal("18.00")
    assert result.adjustments["new_interest_rate"] == Decimal("10")
    assert result.adjustments["interest_savings"] == Decimal("120")


def test_debt_consolidation_without_debts():
    result = assess_affordability(5000, 500, 0, 10, 5, loan_type=LoanType.DEBT_CONSOLIDATION)
    assert result.adjustments["total_current_debt"] == 0
    assert result.adjustments["interest_savings"] == 0
