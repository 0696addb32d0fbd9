from decimal import Decimal

import pytest

from loanviz.config import CalculatorDefaults
from loanviz.data_models import PayoffStrategy
from loanviz.debt_consolidation import (
    compare_payoff_strategies,
    make_debt,
    simulate_consolidation,
    simulate_payoff,
    weighted_average_rate,
)


@pytest.fixture
def debts():
    return [
        make_debt("card", 1000, 24, 100),
        make_debt("loan", 500, 6, 50),
    ]


def test_weighted_average_rate(debts):
    assert weighted_average_rate(debts) == Decimal("18")
    assert weighted_average_rate([]) == 0


def test_single_interest_free_debt():
    result = simulate_payoff([make_debt("a", 1000, 0, 100)], PayoffStrategy.AVALANCHE)
    assert result.months_to_payoff == 10
    assert result.total_interest == 0
    assert result.total_paid == Decimal("1000")
    assert result.balances[-1] == 0
    assert result.paid_off


def test_cleared_minimums_roll_over():
    debts = [make_debt("small", 100, 0, 100), make_debt("large", 1000, 0, 100)]
    for strategy in (PayoffStrategy.AVALANCHE, PayoffStrategy.SNOWBALL):
        result = simulate_payoff(debts, strategy)
        # 200 a month once the small debt is gone: 900 left after month 1
        assert result.months_to_payoff == 6
        assert result.total_paid == Decimal("1100")
        assert result.payoff_order == ("small", "large")


def test_avalanche_and_snowball_order(debts):
    avalanche = simulate_payoff(debts, PayoffStrategy.AVALANCHE, 50)
    snowball = simulate_payoff(debts, PayoffStrategy.SNOWBALL, 50)
    assert avalanche.payoff_order == ("card", "loan")
    assert snowball.payoff_order == ("loan", "card")
    assert avalanche.total_interest < snowball.total_interest
    for result in (avalanche, snowball):
        assert abs(result.total_paid - result.total_interest - Decimal("1500")) < Decimal("1e-6")
        assert result.monthly_payments[0] == Decimal("200")
        assert len(result.monthly_payments) == result.months_to_payoff


def test_consolidation_schedule():
    result = simulate_consolidation(1200, 0, 200)
    assert result.strategy is PayoffStrategy.CONSOLIDATION
    assert result.months_to_payoff == 6
    assert result.total_paid == Decimal("1200")
    assert list(result.balances) == [Decimal(v) for v in (1000, 800, 600, 400, 200, 0)]


def test_compare_uses_average_rate_and_budget(debts):
    comparison = compare_payoff_strategies(debts, extra_payment=50)
    assert comparison.consolidation_rate == Decimal("18")
    assert comparison.total_debt == Decimal("1500")
    assert comparison.total_minimum_payment == Decimal("150")
    assert comparison.consolidation.monthly_payments[0] == Decimal("200")
    least = min(r.total_interest for r in comparison.results)
    assert comparison.recommended.total_interest == least


def test_cheap_consolidation_is_recommended(debts):
    comparison = compare_payoff_strategies(debts, extra_payment=50, consolidation_rate=5)
    assert comparison.recommended.strategy is PayoffStrategy.CONSOLIDATION


def test_payments_that_never_clear_the_debt():
    defaults = CalculatorDefaults(max_payoff_months=24)
    debts = [make_debt("card", 10000, 24, 100)]
    comparison = compare_payoff_strategies(debts, defaults=defaults)
    for result in comparison.results:
        assert not result.paid_off
        assert result.months_to_payoff == 24
        assert result.balances[-1] > Decimal("10000")


def test_compare_requires_an_outstanding_debt():
    with pytest.raises(ValueError):
        compare_payoff_strategies([])
    with pytest.raises(ValueError):
        compare_payoff_strategies([make_debt("settled", 0, 10, 50)])


def test_make_debt_clamps_negative_values():
    debt = make_debt("odd", "-5", -1, "1,000")
    assert debt.balance == 0
    assert debt.annual_rate_percent == 0
    assert debt.minimum_payment == Decimal("1000")
