"""Planning domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from ...models.domain import Address


@dataclass(slots=True)
class Stop:
    """A physical pickup location aggregating one or more farmer orders."""

    address: Address
    farmer_id: str
    farmer_name: str
    farm_name: str
    farmer_order_ids: List[str] = field(default_factory=list)
    expected_containers: int = 0
    expected_weight_kg: float = 0.0


@dataclass(slots=True)
class PlannedStop:
    stop: Stop
    sequence: int
    minutes_from_start: int
    planned_at: datetime


@dataclass(slots=True)
class DraftTrip:
    stops: List[PlannedStop]
    planned_start_at: datetime
    planned_end_at: datetime
    first_stop_minutes: int
    total_minutes: int
    distance_km: float
