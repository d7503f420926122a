"""Farmer delivery lifecycle: construction, stage changes, stop progress and totals."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from ...exceptions import InvalidTransitionError
from ...models.delivery import (
    AuditEntry,
    FarmerDelivery,
    StopScan,
    StopStatus,
    TripStage,
    TripStop,
    TripTotals,
)
from ..planning.models import DraftTrip
from .stages import StageTransition, build_timeline, mark_stage_done, set_stage_current

logger = logging.getLogger(__name__)

TRIP_STAGE_KEYS: tuple[str, ...] = tuple(stage.value for stage in TripStage)

STOP_TRANSITIONS: dict[StopStatus, frozenset[StopStatus]] = {
    StopStatus.PLANNED: frozenset({StopStatus.ON_ROUTE, StopStatus.ARRIVED, StopStatus.SKIPPED, StopStatus.PROBLEM}),
    StopStatus.ON_ROUTE: frozenset({StopStatus.ARRIVED, StopStatus.SKIPPED, StopStatus.PROBLEM}),
    StopStatus.ARRIVED: frozenset({StopStatus.LOADING, StopStatus.SKIPPED, StopStatus.PROBLEM}),
    StopStatus.LOADING: frozenset({StopStatus.LOADED, StopStatus.PROBLEM}),
    StopStatus.PROBLEM: frozenset(
        {StopStatus.PLANNED, StopStatus.ON_ROUTE, StopStatus.ARRIVED, StopStatus.LOADING, StopStatus.SKIPPED}
    ),
    StopStatus.LOADED: frozenset(),
    StopStatus.SKIPPED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_totals(stops: Sequence[TripStop]) -> TripTotals:
    """Sum expected and loaded figures over the given stops."""

    return TripTotals(
        expected_containers=sum(stop.expected_containers or 0 for stop in stops),
        loaded_containers=sum(stop.loaded_containers_count or 0 for stop in stops),
        expected_weight_kg=sum(stop.expected_weight_kg or 0.0 for stop in stops),
        loaded_weight_kg=sum(stop.loaded_weight_kg or 0.0 for stop in stops),
    )


def refresh_totals(delivery: FarmerDelivery) -> TripTotals:
    delivery.totals = compute_totals(delivery.stops)
    return delivery.totals


def add_audit(
    delivery: FarmerDelivery,
    user_id: str,
    action: str,
    *,
    note: str = "",
    meta: Optional[dict[str, Any]] = None,
    at: Optional[datetime] = None,
) -> AuditEntry:
    entry = AuditEntry(user_id=user_id, action=action, timestamp=at or _utcnow(), note=note, meta=meta or {})
    delivery.history_audit_trail.append(entry)
    return entry


def _apply(delivery: FarmerDelivery, transition: StageTransition) -> None:
    delivery.stages = transition.timeline
    delivery.stage_key = transition.timeline.current_key or delivery.stage_key
    delivery.history_audit_trail.extend(transition.events)


def build_delivery(
    draft: DraftTrip,
    *,
    logistic_center_id: str,
    pickup_date: str,
    shift: str,
    trip_index: int,
    shift_start_at: datetime,
    created_by: str,
    now: Optional[datetime] = None,
) -> FarmerDelivery:
    """Turn a packed draft into a planned delivery with default stages and a planning audit entry."""

    now = now or _utcnow()
    stops = [
        TripStop(
            sequence=planned.sequence,
            address=planned.stop.address,
            farmer_id=planned.stop.farmer_id,
            farmer_name=planned.stop.farmer_name,
            farm_name=planned.stop.farm_name,
            label=planned.stop.farm_name,
            farmer_order_ids=list(planned.stop.farmer_order_ids),
            planned_at=planned.planned_at,
            expected_containers=planned.stop.expected_containers,
            expected_weight_kg=planned.stop.expected_weight_kg,
        )
        for planned in draft.stops
    ]
    delivery = FarmerDelivery(
        id=uuid.uuid4().hex,
        logistic_center_id=logistic_center_id,
        pickup_date=pickup_date,
        shift=shift,
        trip_index=trip_index,
        shift_start_at=shift_start_at,
        stops=stops,
        stages=build_timeline(TRIP_STAGE_KEYS, initial=TripStage.PLANNED.value, at=now),
        stage_key=TripStage.PLANNED.value,
        planned_start_at=draft.planned_start_at,
        planned_end_at=draft.planned_end_at,
        distance_km_planned=round(draft.distance_km, 3),
        created_at=now,
    )
    refresh_totals(delivery)
    add_audit(
        delivery,
        created_by,
        "TRIP_PLANNED",
        note="Auto-planned inbound route",
        meta={"pickup_date": pickup_date, "shift": shift},
        at=now,
    )
    return delivery


def set_trip_stage(
    delivery: FarmerDelivery,
    stage: TripStage | str,
    user_id: str,
    *,
    note: str = "",
    expected_at: Optional[datetime] = None,
    at: Optional[datetime] = None,
) -> FarmerDelivery:
    key = stage.value if isinstance(stage, TripStage) else stage
    transition = set_stage_current(
        delivery.stages,
        key,
        actor=user_id,
        at=at or _utcnow(),
        allowed_keys=TRIP_STAGE_KEYS,
        note=note,
        expected_at=expected_at,
    )
    _apply(delivery, transition)
    return delivery


def mark_trip_stage_done(
    delivery: FarmerDelivery,
    stage: TripStage | str,
    user_id: str,
    *,
    note: str = "",
    at: Optional[datetime] = None,
) -> FarmerDelivery:
    """Close ``stage``. ``stage_key`` keeps naming it until the caller sets the next stage."""
    key = stage.value if isinstance(stage, TripStage) else stage
    _apply(delivery, mark_stage_done(delivery.stages, key, actor=user_id, at=at or _utcnow(), note=note))
    return delivery


def assign_deliverer(
    delivery: FarmerDelivery,
    deliverer_id: str,
    user_id: str,
    *,
    at: Optional[datetime] = None,
) -> FarmerDelivery:
    at = at or _utcnow()
    delivery.deliverer_id = deliverer_id
    add_audit(delivery, user_id, "DELIVERER_ASSIGNED", meta={"deliverer_id": deliverer_id}, at=at)
    return set_trip_stage(delivery, TripStage.ASSIGNED, user_id, at=at)


def _find_stop(delivery: FarmerDelivery, sequence: int) -> TripStop:
    for stop in delivery.stops:
        if stop.sequence == sequence:
            return stop
    raise InvalidTransitionError(
        f"Stop {sequence} not found on delivery {delivery.id}",
        details={"delivery_id": delivery.id, "sequence": sequence},
    )


def transition_stop(
    delivery: FarmerDelivery,
    sequence: int,
    status: StopStatus | str,
    user_id: str,
    *,
    note: str = "",
    at: Optional[datetime] = None,
) -> TripStop:
    at = at or _utcnow()
    target = StopStatus(status)
    stop = _find_stop(delivery, sequence)

    if target not in STOP_TRANSITIONS[stop.status]:
        raise InvalidTransitionError(
            f"Cannot move stop {sequence} from '{stop.status.value}' to '{target.value}'",
            details={"delivery_id": delivery.id, "sequence": sequence, "from": stop.status.value, "to": target.value},
        )

    previous = stop.status
    stop.status = target
    if target is StopStatus.ARRIVED:
        stop.arrived_at = stop.arrived_at or at
    elif target is StopStatus.LOADING:
        stop.loading_started_at = stop.loading_started_at or at
    elif target is StopStatus.LOADED:
        stop.loading_finished_at = at
        stop.departed_at = at
    elif target is StopStatus.SKIPPED:
        stop.departed_at = at
    if note:
        stop.note = note

    refresh_totals(delivery)
    add_audit(
        delivery,
        user_id,
        "STOP_STATUS_CHANGED",
        note=note,
        meta={"sequence": sequence, "from": previous.value, "to": target.value},
        at=at,
    )
    return stop


def record_stop_scan(
    delivery: FarmerDelivery,
    sequence: int,
    scan: StopScan,
    user_id: str,
) -> TripStop:
    """Register a container loaded at a stop and refresh the trip totals."""

    stop = _find_stop(delivery, sequence)
    if stop.status not in (StopStatus.ARRIVED, StopStatus.LOADING):
        raise InvalidTransitionError(
            f"Stop {sequence} is '{stop.status.value}', scans are accepted while arrived or loading",
            details={"delivery_id": delivery.id, "sequence": sequence},
        )
    if scan.farmer_order_id not in stop.farmer_order_ids:
        logger.warning(
            f"Scan {scan.container_id} references farmer order {scan.farmer_order_id} "
            f"which is not part of stop {sequence}"
        )

    stop.scans.append(scan)
    stop.loaded_containers_count = len(stop.scans)
    stop.loaded_weight_kg = sum(item.weight_kg for item in stop.scans)
    if stop.status is StopStatus.ARRIVED:
        stop.status = StopStatus.LOADING
        stop.loading_started_at = stop.loading_started_at or scan.timestamp

    refresh_totals(delivery)
    add_audit(
        delivery,
        user_id,
        "STOP_CONTAINER_SCANNED",
        meta={"sequence": sequence, "container_id": scan.container_id, "weight_kg": scan.weight_kg},
        at=scan.timestamp,
    )
    return stop
