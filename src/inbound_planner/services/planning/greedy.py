"""Greedy single-pass trip packing under the first-stop and return SLA windows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Sequence

from ...exceptions import PlanningPreconditionError
from ...models.domain import Address
from ..geospatial import distance_km, estimate_travel_minutes, has_valid_coordinates
from .base import SlaLimits, TripPackingStrategy
from .models import DraftTrip, PlannedStop, Stop

logger = logging.getLogger(__name__)

TravelEstimator = Callable[[Address, Address], int]


@dataclass(slots=True)
class RouteSimulation:
    """Timing of one candidate route, base -> stops in order -> base."""

    stops: list[PlannedStop]
    first_stop_minutes: int
    total_minutes: int
    distance_km: float


class GreedyTripPacker(TripPackingStrategy):
    """Nearest-first greedy packing without backtracking.

    Each stop is tried at the end of the running trip. If the extended route
    breaks either SLA window, the running trip is closed and a new one starts
    with that stop alone, timed from the base at shift start again. A stop that
    misses the SLA even on its own still gets its own trip; stops are never
    dropped.
    """

    def __init__(
        self,
        limits: SlaLimits | None = None,
        travel_minutes: TravelEstimator = estimate_travel_minutes,
    ) -> None:
        self.limits = limits or SlaLimits()
        self.travel_minutes = travel_minutes

    def simulate(self, stops: Sequence[Stop], base: Address, shift_start: datetime) -> RouteSimulation:
        elapsed = 0
        distance = 0.0
        first_stop_minutes = 0
        last = base
        planned: list[PlannedStop] = []

        for index, stop in enumerate(stops):
            elapsed += self.travel_minutes(last, stop.address)
            distance += distance_km(last, stop.address)
            if index == 0:
                first_stop_minutes = elapsed
            planned.append(
                PlannedStop(
                    stop=stop,
                    sequence=index,
                    minutes_from_start=elapsed,
                    planned_at=shift_start + timedelta(minutes=elapsed),
                )
            )
            last = stop.address

        elapsed += self.travel_minutes(last, base)
        distance += distance_km(last, base)
        return RouteSimulation(
            stops=planned,
            first_stop_minutes=first_stop_minutes,
            total_minutes=elapsed,
            distance_km=distance,
        )

    def violates(self, simulation: RouteSimulation) -> bool:
        return (
            simulation.first_stop_minutes > self.limits.max_minutes_to_first_stop
            or simulation.total_minutes > self.limits.max_minutes_to_return
        )

    def _check_preconditions(self, stops: Sequence[Stop], base: Address) -> None:
        if not has_valid_coordinates(base):
            raise PlanningPreconditionError(
                "Base location has invalid coordinates",
                details={"longitude": base.longitude, "latitude": base.latitude},
            )
        previous = None
        for index, stop in enumerate(stops):
            if not has_valid_coordinates(stop.address):
                raise PlanningPreconditionError(
                    f"Stop {index} has invalid coordinates",
                    details={"label": stop.address.label},
                )
            minutes = self.travel_minutes(base, stop.address)
            if previous is not None and minutes < previous:
                raise PlanningPreconditionError(
                    "Stops must be sorted nearest-first from the base",
                    details={"index": index, "minutes": minutes, "previous_minutes": previous},
                )
            previous = minutes

    def _finalize(self, simulation: RouteSimulation, shift_start: datetime) -> DraftTrip:
        return DraftTrip(
            stops=simulation.stops,
            planned_start_at=shift_start,
            planned_end_at=shift_start + timedelta(minutes=simulation.total_minutes),
            first_stop_minutes=simulation.first_stop_minutes,
            total_minutes=simulation.total_minutes,
            distance_km=simulation.distance_km,
        )

    def pack(self, stops: Sequence[Stop], base: Address, shift_start: datetime) -> list[DraftTrip]:
        self._check_preconditions(stops, base)

        trips: list[DraftTrip] = []
        current: list[Stop] = []
        current_simulation: RouteSimulation | None = None

        for stop in stops:
            candidate = self.simulate([*current, stop], base, shift_start)
            if self.violates(candidate):
                if current_simulation is not None:
                    trips.append(self._finalize(current_simulation, shift_start))
                # new trip, clock restarts at shift start from the base
                current = [stop]
                current_simulation = self.simulate(current, base, shift_start)
                if self.violates(current_simulation):
                    logger.warning(
                        f"Stop '{stop.address.label}' misses the SLA on its own "
                        f"(first stop {current_simulation.first_stop_minutes} min, "
                        f"return {current_simulation.total_minutes} min); planning it as a single-stop trip"
                    )
            else:
                current = [*current, stop]
                current_simulation = candidate

        if current_simulation is not None:
            trips.append(self._finalize(current_simulation, shift_start))

        logger.info(f"Packed {len(stops)} stops into {len(trips)} trips")
        return trips
