"""Building and apartment data models."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .criterion import Criterion


@dataclass
class Apartment:
    """A single unit listed inside a building. Carried through unchanged."""

    id: int
    rent: str
    kind: str
    area: str
    plan: str
    url: str
    fees: Optional[str] = None
    deposit: Optional[str] = None
    key_money: Optional[str] = None


@dataclass
class Building:
    """
    A listed building and its reachability results.

    ``times`` maps a criterion id to the criterion snapshot and the travel
    duration in seconds. Only criteria under which the building was
    admitted appear in it.
    """

    name: str
    address: str
    coordinates: Optional[Tuple[float, float]] = None  # (lng, lat)
    times: Dict[str, Tuple[Criterion, int]] = field(default_factory=dict)
    apartments: List[Apartment] = field(default_factory=list)

    def is_reachable(self, criteria: Iterable[Criterion]) -> bool:
        """True if admitted under every criterion of the active set."""
        return all(criterion.id in self.times for criterion in criteria)

    def duration_for(self, criterion: Criterion) -> Optional[int]:
        entry = self.times.get(criterion.id)
        return entry[1] if entry else None


def reachable_buildings(
    buildings: Iterable[Building], criteria: List[Criterion]
) -> List[Building]:
    """Filter buildings down to the ones reachable under all criteria."""
    return [b for b in buildings if b.is_reachable(criteria)]
