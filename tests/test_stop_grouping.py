import math

import pytest

from inbound_planner.models.domain import Address, ContainerSize, ItemInfo, PickupRequest
from inbound_planner.services.planning.stops import (
    expected_containers_for_request,
    group_into_stops,
    resolve_quantity_kg,
)

CRATES = [ContainerSize(key="crate", usable_liters=60, max_weight_kg=25)]
ITEMS = {"tomato": ItemInfo(id="tomato", name="Tomato", category="vegetable", type="tomato")}


def _request(
    rid: str,
    address: Address | None,
    farmer_id: str = "F1",
    item_id: str = "tomato",
    final: float | None = None,
    forecast: float | None = None,
    ordered: float | None = 10.0,
) -> PickupRequest:
    return PickupRequest(
        id=rid,
        logistic_center_id="LC1",
        pickup_date="2025-03-02",
        shift="morning",
        farmer_id=farmer_id,
        farmer_name=f"Farmer {farmer_id}",
        farm_name=f"Farm {farmer_id}",
        item_id=item_id,
        pickup_address=address,
        final_quantity_kg=final,
        forecasted_quantity_kg=forecast,
        sum_ordered_quantity_kg=ordered,
    )


FARM_A = Address(longitude=34.90, latitude=32.10, label="Moshav A")
FARM_B = Address(longitude=35.00, latitude=32.20, label="Kibbutz B")


def test_quantity_prefers_final_then_forecast_then_ordered():
    assert resolve_quantity_kg(_request("1", FARM_A, final=30, forecast=20, ordered=10)) == 30
    assert resolve_quantity_kg(_request("2", FARM_A, final=None, forecast=20, ordered=10)) == 20
    assert resolve_quantity_kg(_request("3", FARM_A, final=float("nan"), forecast=None, ordered=10)) == 10
    assert resolve_quantity_kg(_request("4", FARM_A, ordered=None)) == 0
    assert resolve_quantity_kg(_request("5", FARM_A, final=-4)) == 0


def test_expected_containers_zero_without_item_or_catalog():
    request = _request("1", FARM_A, ordered=60)
    assert expected_containers_for_request(request, None, CRATES) == 0
    assert expected_containers_for_request(request, ITEMS["tomato"], []) == 0
    assert expected_containers_for_request(request, ITEMS["tomato"], CRATES) == 3


def test_groups_identical_locations_in_first_seen_order():
    requests = [
        _request("o1", FARM_B, ordered=10),
        _request("o2", FARM_A, ordered=25),
        _request("o3", FARM_B, ordered=40),
    ]

    stops = group_into_stops(requests, ITEMS, CRATES)

    assert [stop.address.label for stop in stops] == ["Kibbutz B", "Moshav A"]
    assert stops[0].farmer_order_ids == ["o1", "o3"]
    assert stops[0].expected_weight_kg == 50
    # 10 kg -> 1 crate, 40 kg -> 2 crates, counted per order
    assert stops[0].expected_containers == 3
    assert stops[1].expected_containers == 1


def test_different_farmers_at_same_location_share_a_stop():
    requests = [
        _request("o1", FARM_A, farmer_id="F1"),
        _request("o2", FARM_A, farmer_id="F2"),
    ]

    stops = group_into_stops(requests, ITEMS, CRATES)

    assert len(stops) == 1
    assert stops[0].farmer_id == "F1"
    assert stops[0].farmer_order_ids == ["o1", "o2"]


def test_label_or_coordinate_difference_splits_stops():
    relabelled = Address(longitude=FARM_A.longitude, latitude=FARM_A.latitude, label="Moshav A, gate 2")
    moved = Address(longitude=FARM_A.longitude + 1e-6, latitude=FARM_A.latitude, label=FARM_A.label)

    stops = group_into_stops(
        [_request("o1", FARM_A), _request("o2", relabelled), _request("o3", moved)], ITEMS, CRATES
    )

    assert len(stops) == 3


def test_requests_without_usable_address_are_skipped(caplog: pytest.LogCaptureFixture):
    broken = Address(longitude=math.nan, latitude=32.0, label="broken")
    requests = [_request("o1", None), _request("o2", broken), _request("o3", FARM_A)]

    with caplog.at_level("WARNING"):
        stops = group_into_stops(requests, ITEMS, CRATES)

    assert [stop.farmer_order_ids for stop in stops] == [["o3"]]
    assert "o1" in caplog.text and "o2" in caplog.text


def test_unknown_item_counts_weight_but_no_containers():
    stops = group_into_stops([_request("o1", FARM_A, item_id="unknown", ordered=12)], ITEMS, CRATES)

    assert stops[0].expected_containers == 0
    assert stops[0].expected_weight_kg == 12


def test_stop_count_matches_distinct_locations():
    locations = [FARM_A, FARM_B, FARM_A, FARM_B, FARM_B, None]
    requests = [_request(f"o{i}", address, ordered=1.0) for i, address in enumerate(locations)]

    stops = group_into_stops(requests, ITEMS, CRATES)

    assert len(stops) == 2
    assert sum(len(stop.farmer_order_ids) for stop in stops) == 5
    assert sum(stop.expected_weight_kg for stop in stops) == 5.0


def test_custom_estimator_is_used():
    calls = []

    def fake_estimator(item, quantity_kg, containers):
        calls.append(quantity_kg)
        return 7

    stops = group_into_stops([_request("o1", FARM_A, ordered=3)], ITEMS, CRATES, estimator=fake_estimator)

    assert stops[0].expected_containers == 7
    assert calls == [3]
