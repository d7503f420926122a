"""Base classes for trip packing strategy implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from ...config import settings
from ...models.domain import Address
from ..geospatial import estimate_travel_minutes
from .models import DraftTrip, Stop


@dataclass(slots=True, frozen=True)
class SlaLimits:
    max_minutes_to_first_stop: int = settings.max_minutes_to_first_stop
    max_minutes_to_return: int = settings.max_minutes_to_return


class TripPackingStrategy(ABC):
    """Contract for turning nearest-first stops into trips.

    ``travel_minutes`` is the estimator that defines "nearest-first"; callers
    order stops with it before calling ``pack``.
    """

    travel_minutes = staticmethod(estimate_travel_minutes)

    @abstractmethod
    def pack(
        self,
        stops: Sequence[Stop],
        base: Address,
        shift_start: datetime,
    ) -> list[DraftTrip]:
        raise NotImplementedError
