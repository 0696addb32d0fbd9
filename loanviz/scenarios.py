"""Side-by-side evaluation of loan scenarios.

Each scenario is summarized, scheduled and, when it carries a monthly extra
payment, re-amortized to show how much earlier it is paid off. Scenarios are
evaluated independently; one with unusable inputs is reported with an error
instead of stopping the comparison.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from .config import DEFAULTS, CalculatorDefaults
from .data_models import Scenario, ScenarioResult
from .early_repayment import apply_extra_payment
from .engine import build_loan
from .utils import to_decimal

logger = logging.getLogger(__name__)

METRICS = ("total_interest", "monthly_payment", "total_repayment")


def evaluate_scenario(scenario: Scenario, defaults: CalculatorDefaults = DEFAULTS) -> ScenarioResult:
    try:
        summary, schedule = build_loan(scenario.params, defaults)
        extra = to_decimal(scenario.extra_payment, default=Decimal("0"))
    except ValueError as exc:
        logger.warning("Error calculating scenario %s: %s", scenario.name, exc)
        return ScenarioResult(name=scenario.name, summary=None, error=str(exc))

    early_payoff_months = 0
    interest_saved = Decimal("0")
    if extra > 0:
        outcome = apply_extra_payment(schedule, extra, summary.rate)
        early_payoff_months = outcome.months_saved
        interest_saved = outcome.interest_saved

    return ScenarioResult(
        name=scenario.name,
        summary=summary,
        schedule=tuple(schedule),
        extra_payment=extra,
        early_payoff_months=early_payoff_months,
        interest_saved=interest_saved,
    )


def compare_scenarios(scenarios: Iterable[Scenario], defaults: CalculatorDefaults = DEFAULTS) -> List[ScenarioResult]:
    return [evaluate_scenario(s, defaults) for s in scenarios]


def best_scenario(results: Iterable[ScenarioResult], metric: str = "total_interest") -> Optional[ScenarioResult]:
    """Return the successful result with the lowest ``metric``.

    Interest saved through extra payments is deducted when ranking by total
    interest or total repayment.
    """
    if metric not in METRICS:
        raise ValueError(f"Unknown metric {metric}; expected one of {', '.join(METRICS)}")

    def score(result: ScenarioResult) -> Decimal:
        value = getattr(result.summary, metric)
        if metric != "monthly_payment":
            value -= result.interest_saved
        return value

    candidates = [r for r in results if r.summary is not None]
    if not candidates:
        return None
    return min(candidates, key=score)
