"""Grouping of farmer orders into physical pickup stops."""

from __future__ import annotations

import logging
import math
from typing import Callable, Mapping, Optional, Sequence

from ...models.domain import Address, ContainerSize, ItemInfo, PickupRequest
from ..geospatial import has_valid_coordinates
from ..packing.containers import estimate_containers
from .models import Stop

logger = logging.getLogger(__name__)

ContainerEstimator = Callable[[Optional[ItemInfo], float, Sequence[ContainerSize]], int]


def _as_quantity(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def resolve_quantity_kg(request: PickupRequest) -> float:
    """Pick final, then forecasted, then summed ordered weight; 0 if none is usable."""

    for candidate in (
        request.final_quantity_kg,
        request.forecasted_quantity_kg,
        request.sum_ordered_quantity_kg,
    ):
        quantity = _as_quantity(candidate)
        if quantity is not None:
            return max(0.0, quantity)
    return 0.0


def expected_containers_for_request(
    request: PickupRequest,
    item: Optional[ItemInfo],
    containers: Sequence[ContainerSize],
    estimator: ContainerEstimator = estimate_containers,
) -> int:
    if item is None or not containers:
        return 0
    quantity_kg = resolve_quantity_kg(request)
    if quantity_kg <= 0:
        return 0
    return max(0, int(estimator(item, quantity_kg, containers)))


def stop_key(address: Address) -> tuple[str, float, float]:
    # exact match on label and coordinates, no proximity merge
    return (address.label, address.longitude, address.latitude)


def group_into_stops(
    requests: Sequence[PickupRequest],
    items_by_id: Mapping[str, ItemInfo],
    containers: Sequence[ContainerSize],
    estimator: ContainerEstimator = estimate_containers,
) -> list[Stop]:
    """Group farmer orders sharing an identical pickup address into stops.

    Stops come back in first-seen order. Orders without a usable pickup address
    cannot be routed and are skipped. The first order seen at a location
    provides the farmer identity shown for the stop.
    """

    stops: dict[tuple[str, float, float], Stop] = {}
    skipped = 0

    for request in requests:
        address = request.pickup_address
        if address is None or not has_valid_coordinates(address):
            skipped += 1
            logger.warning(f"Farmer order {request.id} has no usable pickup address, skipping")
            continue

        item = items_by_id.get(str(request.item_id))
        if item is None:
            logger.warning(f"Item {request.item_id} not found for farmer order {request.id}; counting zero containers")

        containers_needed = expected_containers_for_request(request, item, containers, estimator)
        weight_kg = resolve_quantity_kg(request)

        key = stop_key(address)
        stop = stops.get(key)
        if stop is None:
            stops[key] = Stop(
                address=address,
                farmer_id=request.farmer_id,
                farmer_name=request.farmer_name,
                farm_name=request.farm_name,
                farmer_order_ids=[request.id],
                expected_containers=containers_needed,
                expected_weight_kg=weight_kg,
            )
        else:
            stop.farmer_order_ids.append(request.id)
            stop.expected_containers += containers_needed
            stop.expected_weight_kg += weight_kg

    if skipped:
        logger.info(f"Skipped {skipped} of {len(requests)} farmer orders without a pickup address")
    return list(stops.values())
