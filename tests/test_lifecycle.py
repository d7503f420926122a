from datetime import datetime, timedelta, timezone

import pytest

from inbound_planner.exceptions import InvalidTransitionError
from inbound_planner.models.delivery import Stage, StageStatus, StageTimeline, StopScan, StopStatus, TripStage
from inbound_planner.models.domain import Address
from inbound_planner.services.lifecycle import (
    assign_deliverer,
    build_delivery,
    build_timeline,
    compute_totals,
    mark_trip_stage_done,
    record_stop_scan,
    set_stage_current,
    set_trip_stage,
    transition_stop,
)
from inbound_planner.services.planning.models import DraftTrip, PlannedStop, Stop

SHIFT_START = datetime(2025, 3, 2, 4, 0, tzinfo=timezone.utc)
NOW = datetime(2025, 3, 1, 18, 0, tzinfo=timezone.utc)


def _draft(*weights: float) -> DraftTrip:
    planned = []
    for index, weight in enumerate(weights):
        address = Address(longitude=35.0 + index / 100, latitude=32.0, label=f"farm-{index}")
        stop = Stop(
            address=address,
            farmer_id=f"F{index}",
            farmer_name=f"Farmer {index}",
            farm_name=f"Farm {index}",
            farmer_order_ids=[f"o{index}"],
            expected_containers=index + 1,
            expected_weight_kg=weight,
        )
        planned.append(
            PlannedStop(
                stop=stop,
                sequence=index,
                minutes_from_start=10 * (index + 1),
                planned_at=SHIFT_START + timedelta(minutes=10 * (index + 1)),
            )
        )
    return DraftTrip(
        stops=planned,
        planned_start_at=SHIFT_START,
        planned_end_at=SHIFT_START + timedelta(minutes=60),
        first_stop_minutes=10,
        total_minutes=60,
        distance_km=12.3456,
    )


def _delivery(*weights: float):
    return build_delivery(
        _draft(*weights) if weights else _draft(10.0, 20.0),
        logistic_center_id="LC1",
        pickup_date="2025-03-02",
        shift="morning",
        trip_index=0,
        shift_start_at=SHIFT_START,
        created_by="planner@lc1",
        now=NOW,
    )


def _scan(container_id: str, order_id: str = "o0", weight: float = 5.0) -> StopScan:
    return StopScan(
        container_id=container_id,
        qr_url=f"https://qr.example/{container_id}",
        farmer_order_id=order_id,
        weight_kg=weight,
        timestamp=NOW,
    )


def test_build_delivery_defaults():
    delivery = _delivery()

    assert delivery.stage_key == "planned"
    assert delivery.stages.current_key == "planned"
    assert [stage.key for stage in delivery.stages.stages] == [stage.value for stage in TripStage]
    assert [stop.status for stop in delivery.stops] == [StopStatus.PLANNED, StopStatus.PLANNED]
    assert delivery.totals.expected_containers == 3
    assert delivery.totals.expected_weight_kg == 30.0
    assert delivery.distance_km_planned == 12.346
    assert delivery.planned_start_at == SHIFT_START

    (entry,) = delivery.history_audit_trail
    assert entry.action == "TRIP_PLANNED"
    assert entry.user_id == "planner@lc1"
    assert entry.meta == {"pickup_date": "2025-03-02", "shift": "morning"}


def test_stage_change_closes_previous_stage():
    delivery = _delivery()

    set_trip_stage(delivery, TripStage.EN_ROUTE_TO_FARMS, "driver-1", at=NOW)

    planned = delivery.stages.get("planned")
    assert planned.status is StageStatus.DONE
    assert planned.completed_at == NOW
    assert delivery.stage_key == "en_route_to_farms"
    assert delivery.history_audit_trail[-1].action == "STAGE_SET_CURRENT"


def test_unknown_stage_key_is_rejected():
    delivery = _delivery()
    with pytest.raises(InvalidTransitionError):
        set_trip_stage(delivery, "teleporting", "driver-1")


def test_mark_stage_done():
    delivery = _delivery()

    mark_trip_stage_done(delivery, "planned", "ops", at=NOW)

    assert delivery.stages.current_key is None
    assert delivery.stage_key == "planned"
    assert delivery.stages.get("planned").status is StageStatus.DONE
    assert delivery.history_audit_trail[-1].action == "STAGE_MARK_DONE"


def test_timeline_rejects_two_current_stages():
    with pytest.raises(ValueError):
        StageTimeline(
            stages=(
                Stage(key="a", label="a", status=StageStatus.CURRENT),
                Stage(key="b", label="b", status=StageStatus.CURRENT),
            )
        )


def test_generic_stage_tracker_is_pure():
    timeline = build_timeline(["received", "packed", "shipped"], initial="received", at=NOW)

    transition = set_stage_current(timeline, "packed", actor="ops", at=NOW)

    assert timeline.current_key == "received"
    assert transition.timeline.current_key == "packed"
    assert [event.action for event in transition.events] == ["STAGE_SET_CURRENT"]


def test_assign_deliverer():
    delivery = _delivery()

    assign_deliverer(delivery, "driver-7", "dispatcher", at=NOW)

    assert delivery.deliverer_id == "driver-7"
    assert delivery.stage_key == "assigned"
    assert [entry.action for entry in delivery.history_audit_trail][-2:] == ["DELIVERER_ASSIGNED", "STAGE_SET_CURRENT"]


@pytest.mark.parametrize(
    "path",
    [
        ["on_route", "arrived", "loading", "loaded"],
        ["arrived", "skipped"],
        ["problem", "planned", "on_route"],
        ["on_route", "problem", "loading", "loaded"],
    ],
)
def test_allowed_stop_paths(path: list[str]):
    delivery = _delivery()
    for status in path:
        transition_stop(delivery, 0, status, "driver-1", at=NOW)
    assert delivery.stops[0].status.value == path[-1]


@pytest.mark.parametrize(
    "path",
    [
        ["loading"],
        ["on_route", "loaded"],
        ["arrived", "loading", "skipped"],
        ["arrived", "skipped", "planned"],
        ["on_route", "arrived", "loading", "loaded", "problem"],
    ],
)
def test_rejected_stop_paths(path: list[str]):
    delivery = _delivery()
    *allowed, rejected = path
    for status in allowed:
        transition_stop(delivery, 0, status, "driver-1", at=NOW)
    with pytest.raises(InvalidTransitionError):
        transition_stop(delivery, 0, rejected, "driver-1", at=NOW)


def test_stop_timestamps_and_audit():
    delivery = _delivery()
    arrived_at = NOW + timedelta(minutes=15)
    loaded_at = NOW + timedelta(minutes=40)

    transition_stop(delivery, 0, StopStatus.ARRIVED, "driver-1", at=arrived_at)
    transition_stop(delivery, 0, StopStatus.LOADING, "driver-1", at=arrived_at)
    transition_stop(delivery, 0, StopStatus.LOADED, "driver-1", at=loaded_at)

    stop = delivery.stops[0]
    assert stop.arrived_at == arrived_at
    assert stop.loading_started_at == arrived_at
    assert stop.loading_finished_at == loaded_at
    assert stop.departed_at == loaded_at
    assert delivery.history_audit_trail[-1].meta == {"sequence": 0, "from": "loading", "to": "loaded"}


def test_unknown_stop_sequence():
    with pytest.raises(InvalidTransitionError):
        transition_stop(_delivery(), 9, "arrived", "driver-1")


def test_scans_update_totals():
    delivery = _delivery()
    transition_stop(delivery, 0, "arrived", "driver-1", at=NOW)

    record_stop_scan(delivery, 0, _scan("c1", weight=4.5), "driver-1")
    record_stop_scan(delivery, 0, _scan("c2", weight=5.5), "driver-1")

    stop = delivery.stops[0]
    assert stop.status is StopStatus.LOADING
    assert stop.loaded_containers_count == 2
    assert stop.loaded_weight_kg == 10.0
    assert delivery.totals == compute_totals(delivery.stops)
    assert delivery.totals.loaded_containers == 2
    assert delivery.history_audit_trail[-1].action == "STOP_CONTAINER_SCANNED"


def test_scan_requires_stop_on_site():
    delivery = _delivery()
    with pytest.raises(InvalidTransitionError):
        record_stop_scan(delivery, 0, _scan("c1"), "driver-1")


def test_totals_follow_stop_list_changes():
    delivery = _delivery(10.0, 20.0, 30.0)
    delivery.stops.pop()

    transition_stop(delivery, 0, "skipped", "ops", at=NOW)

    assert delivery.totals.expected_weight_kg == 30.0
    assert delivery.totals.expected_containers == 3
