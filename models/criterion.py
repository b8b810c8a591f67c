"""Reachability criterion data model."""

import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .constants import TransportationMode


def random_color() -> str:
    """Return a random hex color like ``#3fa2c4``."""
    return "#{:06x}".format(random.randint(0, 0xFFFFFF))


def new_criterion_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Criterion:
    """
    A travel-time requirement entered by the user.

    A building is reachable under a criterion when the travel duration
    between the building and ``address`` using ``mode`` does not exceed
    ``time`` minutes.
    """

    mode: TransportationMode
    address: str
    time: int
    color: str = field(default_factory=random_color)
    id: str = field(default_factory=new_criterion_id)

    # Resolved (lng, lat); recomputed on every run and never persisted
    location: Optional[Tuple[float, float]] = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self):
        if not isinstance(self.mode, TransportationMode):
            self.mode = TransportationMode.parse(self.mode)
        self.time = int(self.time)
        if self.time <= 0:
            raise ValueError(f"Time budget must be positive, got {self.time}")

    @property
    def budget_seconds(self) -> int:
        return self.time * 60

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for persistence (location excluded)."""
        return {
            "id": self.id,
            "mode": self.mode.value,
            "address": self.address,
            "time": self.time,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Criterion":
        """Create instance from a stored or configured dictionary."""
        kwargs: Dict[str, Any] = {
            "mode": TransportationMode.parse(data["mode"]),
            "address": str(data["address"]).strip(),
            "time": data["time"],
        }
        if data.get("color"):
            kwargs["color"] = data["color"]
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)
