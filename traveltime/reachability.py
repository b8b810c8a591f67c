"""Reachability admission rule."""

from models.building import Building
from models.criterion import Criterion


def is_within_budget(duration: int, criterion: Criterion) -> bool:
    """Inclusive: a duration exactly at the budget is reachable."""
    return duration <= criterion.budget_seconds


def admit(building: Building, criterion: Criterion, duration: int) -> bool:
    """
    Record ``duration`` on the building if it is within the criterion's budget.

    Returns:
        True if the building was admitted under the criterion
    """
    if not is_within_budget(duration, criterion):
        return False
    building.times[criterion.id] = (criterion, duration)
    return True
