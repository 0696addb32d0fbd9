from decimal import Decimal

import pytest

from loanviz.data_models import LoanParameters, RepaymentType
from loanviz.engine import build_loan, compute_monthly_payment, generate_schedule, make_parameters, summarize


def annuity(principal, rate_pct, years):
    r = rate_pct / 100 / 12
    n = years * 12
    x = (1 + r) ** n
    return principal * r * x / (x - 1)


def test_monthly_payment_standard_amortization():
    payment = compute_monthly_payment(200000, 3.5, 25)
    assert float(payment) == pytest.approx(annuity(200000, 3.5, 25), rel=1e-9)
    assert 1000 < payment < 1002


def test_monthly_payment_zero_rate():
    payment = compute_monthly_payment(10000, 0, 5)
    assert payment == Decimal(10000) / Decimal(60)
    assert float(payment) == pytest.approx(166.6666667)


def test_monthly_payment_interest_only():
    payment = compute_monthly_payment(120000, 6, 30, RepaymentType.INTEREST_ONLY)
    assert payment == Decimal("600")


def test_monthly_payment_rejects_non_positive_term():
    with pytest.raises(ValueError):
        compute_monthly_payment(10000, 5, 0)


def test_summarize_is_idempotent():
    params = make_parameters(250000, 4.25, 30, down_payment=25000, fees={"arrangement": 999})
    assert summarize(params) == summarize(params)


def test_summarize_totals_are_consistent():
    params = make_parameters(200000, 3.5, 25, fees={"arrangement": 999, "valuation": "250.50"})
    s = summarize(params)
    assert abs(s.monthly_payment - Decimal("1001.25")) < Decimal("0.02")
    assert s.total_fees == Decimal("1249.50")
    assert abs(s.total_repayment - (s.principal + s.total_interest + s.total_fees)) <= 1
    assert s.loan_to_value_ratio is None
    assert s.grace_period_interest is None


def test_summarize_ignores_unparseable_fees():
    params = LoanParameters(
        principal=Decimal("10000"),
        annual_rate_percent=Decimal("5"),
        term_years=5,
        fees={"admin": "n/a", "broker": Decimal("100"), "refund": Decimal("-50")},
    )
    assert summarize(params).total_fees == Decimal("100")


def test_summarize_down_payment_and_trade_in():
    s = summarize(make_parameters(30000, 6, 5, down_payment=5000, trade_in_value=1000))
    assert s.principal == Decimal("24000")
    assert s.original_principal == Decimal("30000")
    assert s.loan_to_value_ratio == Decimal("80")


def test_summarize_fully_offset_principal():
    s = summarize(make_parameters(20000, 7, 5, down_payment=15000, trade_in_value=10000))
    assert s.principal == 0
    assert s.monthly_payment == 0
    assert s.total_interest == 0
    assert s.total_repayment == 0
    assert s.loan_to_value_ratio == 0


def test_summarize_grace_period_interest():
    s = summarize(make_parameters(10000, 6, 10, grace_period_months=6))
    assert s.grace_period_interest == Decimal("300")
    payment = compute_monthly_payment(10000, 6, 10)
    expected = payment * 120 - 10000 + 300
    assert abs(s.total_interest - expected) <= Decimal("0.5")


def test_summarize_interest_only_totals():
    s = summarize(make_parameters(100000, 6, 10, repayment_type=RepaymentType.INTEREST_ONLY, fees={"fee": 500}))
    assert s.monthly_payment == Decimal("500.00")
    assert s.total_interest == Decimal("60000")
    assert s.total_repayment == Decimal("160500")


def test_summarize_rounds_rate_and_clamps_inputs():
    s = summarize(make_parameters(10000, 3.456, 0))
    assert s.rate == Decimal("3.46")
    assert s.term_years == 1
    assert summarize(make_parameters(10000, -2, 100)).rate == 0
    assert summarize(make_parameters(10000, -2, 100)).term_years == 50


def test_schedule_length_and_final_balance():
    rows = generate_schedule(200000, 3.5, 25)
    assert len(rows) == 300
    assert rows[-1].balance == 0
    assert [r.month for r in rows] == list(range(1, 301))


def test_schedule_balance_invariants():
    rows = generate_schedule(50000, 5, 10)
    previous = Decimal("50000")
    for row in rows:
        assert row.balance == previous - row.principal_payment
        assert 0 <= row.balance <= previous
        assert abs(row.payment - (row.principal_payment + row.interest_payment)) < Decimal("1e-9")
        previous = row.balance
    total_principal = sum(r.principal_payment for r in rows)
    assert total_principal == pytest.approx(Decimal("50000"))
    assert rows[-1].total_interest_paid == sum(r.interest_payment for r in rows)


def test_schedule_zero_rate():
    rows = generate_schedule(10000, 0, 5)
    assert all(r.interest_payment == 0 for r in rows)
    assert rows[0].payment == Decimal(10000) / Decimal(60)
    assert rows[-1].balance == 0


def test_schedule_grace_period_rows():
    rows = generate_schedule(10000, 6, 5, grace_period_months=6)
    assert len(rows) == 66
    grace = rows[:6]
    assert all(r.is_grace_period for r in grace)
    assert all(r.payment == 0 and r.principal_payment == 0 for r in grace)
    assert all(r.interest_payment == Decimal("50") for r in grace)
    # Deferred interest is not capitalized
    assert all(r.balance == Decimal("10000") for r in grace)
    assert grace[-1].total_interest_paid == Decimal("300")
    assert not rows[6].is_grace_period
    assert rows[6].payment == compute_monthly_payment(10000, 6, 5)
    assert rows[-1].balance == 0


def test_schedule_interest_only_is_flat():
    rows = generate_schedule(120000, 6, 2, repayment_type=RepaymentType.INTEREST_ONLY)
    assert len(rows) == 24
    assert all(r.payment == Decimal("600") for r in rows)
    assert all(r.principal_payment == 0 for r in rows)
    assert all(r.balance == Decimal("120000") for r in rows)


def test_build_loan_uses_effective_principal():
    summary, rows = build_loan(make_parameters(30000, 6, 5, down_payment=5000))
    assert summary.principal == Decimal("25000")
    assert len(rows) == 60
    assert rows[0].payment == compute_monthly_payment(25000, 6, 5)
