"""Budget overlap between a household's budget range and a provider's quoted rate.

The criterion is binary: a rate at or below the budget's upper bound is a
full match (100), anything above is no match (0). Missing data on either
side imposes no constraint.
"""

import math
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from carematch.core.rounding import round_half_up
from carematch.core.schemas import BudgetCard, BudgetRange, RateCard

RateType = Literal["monthly", "hourly", "daily"]

# Evaluation order of find_best_rate_match; earlier wins ties.
RATE_TYPES: tuple[RateType, ...] = ("monthly", "hourly", "daily")


class BudgetStatus(str, Enum):
    WITHIN_BUDGET = "within_budget"
    BELOW_BUDGET = "below_budget"
    # Never produced: over-budget rates report NO_MATCH. Kept for callers
    # that still compare against it.
    ABOVE_BUDGET = "above_budget"
    NO_MATCH = "no_match"
    NO_RATE = "no_rate"
    NO_BUDGET = "no_budget"


class BudgetOverlapResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overlap_percentage: int
    is_within_budget: bool
    difference: float | None = None
    difference_percentage: int | None = None
    status: BudgetStatus


class RateMatch(BaseModel):
    """Best rate granularity found for a household/provider pair."""

    model_config = ConfigDict(frozen=True)

    rate_type: RateType | None = None
    result: BudgetOverlapResult


def _unconstrained(status: BudgetStatus) -> BudgetOverlapResult:
    return BudgetOverlapResult(overlap_percentage=100, is_within_budget=True, status=status)


def calculate_budget_overlap(
    budget: BudgetRange | None,
    rate: float | None,
) -> BudgetOverlapResult:
    """Classify a quoted rate against a budget range.

    Args:
        budget: The household's budget range; bounds are inclusive.
        rate: The provider's quoted rate in the same unit as the budget.

    Returns:
        BudgetOverlapResult. ``difference`` is ``rate - min`` below the range,
        0 inside it and ``rate - max`` above it.
    """
    if rate is None:
        return _unconstrained(BudgetStatus.NO_RATE)
    if budget is None or (budget.min is None and budget.max is None):
        return _unconstrained(BudgetStatus.NO_BUDGET)

    low = budget.min if budget.min is not None else 0.0
    high = budget.max if budget.max is not None else math.inf

    if rate < low:
        difference = rate - low
        return BudgetOverlapResult(
            overlap_percentage=100,
            is_within_budget=True,
            difference=difference,
            difference_percentage=round_half_up(difference / low * 100) if low > 0 else 0,
            status=BudgetStatus.BELOW_BUDGET,
        )

    if rate <= high:
        return BudgetOverlapResult(
            overlap_percentage=100,
            is_within_budget=True,
            difference=0.0,
            difference_percentage=0,
            status=BudgetStatus.WITHIN_BUDGET,
        )

    difference = rate - high
    return BudgetOverlapResult(
        overlap_percentage=0,
        is_within_budget=False,
        difference=difference,
        difference_percentage=round_half_up(difference / high * 100) if high > 0 else 100,
        status=BudgetStatus.NO_MATCH,
    )


def calculate_monthly_budget_overlap(
    budget: BudgetRange | None, monthly_rate: float | None
) -> BudgetOverlapResult:
    return calculate_budget_overlap(budget, monthly_rate)


def calculate_hourly_budget_overlap(
    budget: BudgetRange | None, hourly_rate: float | None
) -> BudgetOverlapResult:
    return calculate_budget_overlap(budget, hourly_rate)


def calculate_daily_budget_overlap(
    budget: BudgetRange | None, daily_rate: float | None
) -> BudgetOverlapResult:
    return calculate_budget_overlap(budget, daily_rate)


def is_budget_compatible(
    budget: BudgetRange | None,
    rate: float | None,
    threshold: int = 50,
) -> bool:
    return calculate_budget_overlap(budget, rate).overlap_percentage >= threshold


def find_best_rate_match(
    budgets: BudgetCard | None,
    rates: RateCard | None,
) -> RateMatch:
    """Evaluate every rate granularity both sides expose and keep the best.

    Granularities are tried monthly, hourly, daily; the first one reaching
    the highest overlap wins. With nothing in common the pair is
    unconstrained (``no_budget``).
    """
    best: RateMatch | None = None
    if budgets is not None and rates is not None:
        for rate_type in RATE_TYPES:
            budget = getattr(budgets, rate_type)
            rate = getattr(rates, rate_type)
            if budget is None or rate is None:
                continue
            candidate = RateMatch(
                rate_type=rate_type, result=calculate_budget_overlap(budget, rate)
            )
            if best is None or (
                candidate.result.overlap_percentage > best.result.overlap_percentage
            ):
                best = candidate

    if best is None:
        return RateMatch(rate_type=None, result=_unconstrained(BudgetStatus.NO_BUDGET))
    return best


def format_budget_overlap_summary(
    result: BudgetOverlapResult,
    rate_type: RateType = "monthly",
) -> str:
    """One-line human-readable summary of a budget result."""
    if result.status is BudgetStatus.WITHIN_BUDGET:
        return "Rate within budget"
    if result.status is BudgetStatus.BELOW_BUDGET:
        return "Rate below budget"
    if result.status in (BudgetStatus.ABOVE_BUDGET, BudgetStatus.NO_MATCH):
        return f"Rate {result.difference_percentage}% above budget"
    if result.status is BudgetStatus.NO_RATE:
        return f"No {rate_type} rate quoted"
    return "No budget defined"
