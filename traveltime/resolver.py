"""Travel-time resolution across all criteria and buildings."""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from models.building import Building
from models.criterion import Criterion
from traveltime.errors import PartialResultError, ResolutionError, TravelTimeError
from traveltime.geocoder import Geocoder
from traveltime.matrix import MatrixBatcher
from traveltime.reachability import admit

logger = logging.getLogger(__name__)


class TravelTimeResolver:
    """
    Decides, per criterion, which buildings are reachable.

    Criteria are processed one after another in the order given. Results are
    keyed by criterion id, so reordering criteria between runs does not
    reinterpret earlier results.
    """

    def __init__(self, geocoder: Geocoder, batcher: MatrixBatcher, strict: bool = True):
        """
        Args:
            geocoder: Resolves criterion (and missing building) addresses
            batcher: Resolves durations to buildings
            strict: Stop at the first failing criterion. When False every
                criterion is attempted and the first error is raised at the end.
        """
        self.geocoder = geocoder
        self.batcher = batcher
        self.strict = strict

    async def resolve(
        self, criteria: Sequence[Criterion], buildings: Sequence[Building]
    ) -> List[Building]:
        """
        Resolve reachability of every building under every criterion.

        Args:
            criteria: Active criteria in user order
            buildings: Scraped buildings; left unmodified

        Returns:
            Copies of the buildings with ``times`` populated

        Raises:
            ResolutionError: A criterion failed. ``buildings`` on the error
                holds the copies with every result admitted so far.
        """
        resolved = [
            replace(b, times=dict(b.times), apartments=list(b.apartments))
            for b in buildings
        ]
        errors: List[Tuple[Criterion, TravelTimeError]] = []

        try:
            await self._locate_buildings(resolved)
        except TravelTimeError as e:
            raise ResolutionError(
                f"Failed to locate buildings: {e}", buildings=resolved
            ) from e

        for position, criterion in enumerate(criteria, 1):
            try:
                await self._resolve_criterion(position, len(criteria), criterion, resolved)
            except TravelTimeError as e:
                logger.error(
                    f"Criterion {position}/{len(criteria)} ({criterion.address}) failed: {e}"
                )
                if self.strict:
                    raise ResolutionError(
                        f"Resolution stopped at criterion {position} "
                        f"({criterion.address}): {e}",
                        buildings=resolved,
                        criterion=criterion,
                    ) from e
                errors.append((criterion, e))

        if errors:
            criterion, error = errors[0]
            raise ResolutionError(
                f"{len(errors)} of {len(criteria)} criteria failed; "
                f"first: {criterion.address}: {error}",
                buildings=resolved,
                criterion=criterion,
            ) from error

        reachable = sum(1 for b in resolved if b.is_reachable(criteria))
        logger.info(
            f"Resolution complete: {reachable}/{len(resolved)} buildings reachable "
            f"under all {len(criteria)} criteria"
        )
        return resolved

    async def _locate_buildings(self, buildings: List[Building]) -> None:
        """
        Geocode buildings the listing source delivered without coordinates.

        Buildings whose address cannot be geocoded stay without coordinates
        and are never admitted under any criterion.
        """
        missing = [b for b in buildings if b.coordinates is None]
        if not missing:
            return
        logger.info(f"Geocoding {len(missing)} buildings without coordinates")
        coords = await self.geocoder.resolve_many(b.address for b in missing)
        for building in missing:
            building.coordinates = coords.get(building.address)
            if building.coordinates is None:
                logger.warning(f"Dropping {building.name}: address could not be geocoded")

    async def _resolve_criterion(
        self,
        position: int,
        total: int,
        criterion: Criterion,
        buildings: List[Building],
    ) -> None:
        criterion.location = await self.geocoder.resolve(criterion.address)

        pending = [b for b in buildings if criterion.id not in b.times]
        try:
            durations = await self.batcher.resolve_durations(criterion, pending)
        except PartialResultError as e:
            # Results from chunks that succeeded stay valid
            self._apply(criterion, pending, e.durations)
            raise

        admitted = self._apply(criterion, pending, durations)
        logger.info(
            f"Criterion {position}/{total} ({criterion.mode.label}, {criterion.time} min, "
            f"{criterion.address}): {admitted}/{len(pending)} buildings reachable"
        )

    @staticmethod
    def _apply(
        criterion: Criterion, buildings: List[Building], durations: Dict[str, int]
    ) -> int:
        admitted = 0
        for building in buildings:
            duration: Optional[int] = durations.get(building.address)
            if duration is not None and admit(building, criterion, duration):
                admitted += 1
        return admitted
