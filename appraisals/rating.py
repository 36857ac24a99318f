"""
Overall appraisal rating.

Pure derivation over an appraisal's manual rating, goal ratings and KPI
results. Nothing here reads or writes the database; the value is computed
whenever it is needed and never stored.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple, Optional

MIN_RATING = 1
MAX_RATING = 5


class GoalScore(NamedTuple):
    rating: Optional[float]
    weightage: Optional[float]


class KPIScore(NamedTuple):
    actual: Optional[float]
    target: Optional[float]


def _round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def calculate_overall_rating(
    manual_rating: Optional[float],
    goals: Iterable = (),
    kpis: Iterable = (),
) -> Optional[float]:
    """
    Weighted overall rating on the 1-5 scale.

    A manual rating wins outright. Otherwise every goal with both a rating
    and a weightage contributes ``rating * weightage / 100``. When goal
    weightage totals less than 100 the remainder is split evenly across
    all KPIs; a KPI with an actual value and a positive target contributes
    ``min(actual / target * 5, 5)`` times its share.

    Args:
        manual_rating: Rating set by the reviewer, if any.
        goals: Objects with ``rating`` and ``weightage`` attributes.
        kpis: Objects with ``actual`` and ``target`` attributes.

    Returns:
        The rating rounded to two decimals, or None when nothing
        contributes.
    """
    if manual_rating:
        return manual_rating

    total_weight = 0.0
    weighted_sum = 0.0

    for goal in goals:
        if goal.rating and goal.weightage:
            rating = min(max(float(goal.rating), MIN_RATING), MAX_RATING)
            weighted_sum += rating * (float(goal.weightage) / 100)
            total_weight += float(goal.weightage)

    kpis = list(kpis)
    if total_weight < 100 and kpis:
        kpi_weight = (100 - total_weight) / len(kpis)
        for kpi in kpis:
            if kpi.actual and kpi.target and float(kpi.target) > 0:
                kpi_rating = min(float(kpi.actual) / float(kpi.target) * MAX_RATING, MAX_RATING)
                weighted_sum += kpi_rating * (kpi_weight / 100)

    if weighted_sum > 0:
        return _round2(weighted_sum)
    return None
