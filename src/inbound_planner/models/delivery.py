"""Farmer delivery (inbound trip) entity and its embedded records."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .domain import Address


class StopStatus(str, enum.Enum):
    """Per-stop lifecycle status."""

    PLANNED = "planned"
    ON_ROUTE = "on_route"
    ARRIVED = "arrived"
    LOADING = "loading"
    LOADED = "loaded"
    SKIPPED = "skipped"
    PROBLEM = "problem"


class TripStage(str, enum.Enum):
    """Trip-level stage keys, in their natural order."""

    PLANNED = "planned"
    ASSIGNED = "assigned"
    EN_ROUTE_TO_FARMS = "en_route_to_farms"
    RETURNING = "returning"
    COMPLETED = "completed"
    PROBLEM = "problem"


class StageStatus(str, enum.Enum):
    PENDING = "pending"
    CURRENT = "current"
    DONE = "done"


@dataclass(slots=True, frozen=True)
class AuditEntry:
    user_id: str
    action: str
    timestamp: datetime
    note: str = ""
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Stage:
    key: str
    label: str
    status: StageStatus = StageStatus.PENDING
    expected_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    timestamp: Optional[datetime] = None
    note: str = ""


@dataclass(slots=True, frozen=True)
class StageTimeline:
    """Ordered stages of one entity. At most one stage may be current."""

    stages: tuple[Stage, ...]

    def __post_init__(self) -> None:
        current = [stage.key for stage in self.stages if stage.status is StageStatus.CURRENT]
        if len(current) > 1:
            raise ValueError(f"Only one stage may be current, got {current}")

    @property
    def current_key(self) -> Optional[str]:
        for stage in self.stages:
            if stage.status is StageStatus.CURRENT:
                return stage.key
        return None

    def get(self, key: str) -> Optional[Stage]:
        for stage in self.stages:
            if stage.key == key:
                return stage
        return None


@dataclass(slots=True, frozen=True)
class StopScan:
    """One container scanned onto the truck at a stop."""

    container_id: str
    qr_url: str
    farmer_order_id: str
    timestamp: datetime
    weight_kg: float = 0.0
    note: str = ""


@dataclass(slots=True, frozen=True)
class TripTotals:
    expected_containers: int = 0
    loaded_containers: int = 0
    expected_weight_kg: float = 0.0
    loaded_weight_kg: float = 0.0


@dataclass(slots=True)
class TripStop:
    sequence: int
    address: Address
    farmer_id: str
    farmer_name: str
    farm_name: str
    farmer_order_ids: list[str]
    planned_at: datetime
    expected_containers: int = 0
    expected_weight_kg: float = 0.0
    label: str = ""
    type: str = "pickup"
    status: StopStatus = StopStatus.PLANNED
    scans: list[StopScan] = field(default_factory=list)
    loaded_containers_count: int = 0
    loaded_weight_kg: float = 0.0
    arrived_at: Optional[datetime] = None
    departed_at: Optional[datetime] = None
    loading_started_at: Optional[datetime] = None
    loading_finished_at: Optional[datetime] = None
    note: str = ""


@dataclass(slots=True)
class FarmerDelivery:
    """One inbound vehicle trip for a center, date and shift."""

    id: str
    logistic_center_id: str
    pickup_date: str
    shift: str
    trip_index: int
    shift_start_at: datetime
    stops: list[TripStop]
    stages: StageTimeline
    stage_key: str = TripStage.PLANNED.value
    planned_start_at: Optional[datetime] = None
    planned_end_at: Optional[datetime] = None
    actual_start_at: Optional[datetime] = None
    actual_end_at: Optional[datetime] = None
    deliverer_id: Optional[str] = None
    totals: TripTotals = field(default_factory=TripTotals)
    distance_km_planned: Optional[float] = None
    history_audit_trail: list[AuditEntry] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.logistic_center_id, self.pickup_date, self.shift)
