"""Data models for buildings, criteria and credentials."""

from .building import Apartment, Building, reachable_buildings
from .constants import BATCH_LIMITS, PROVIDER_MODES, TransportationMode
from .credentials import Credentials
from .criterion import Criterion, random_color

__all__ = [
    "Apartment",
    "Building",
    "Credentials",
    "Criterion",
    "TransportationMode",
    "BATCH_LIMITS",
    "PROVIDER_MODES",
    "random_color",
    "reachable_buildings",
]
