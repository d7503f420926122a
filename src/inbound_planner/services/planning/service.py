"""Trip planning orchestration and shift-level queries."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from ...config import settings
from ...data.centers_repository import resolve_center
from ...exceptions import DuplicatePlanError, ResourceNotFoundError
from ...models.delivery import FarmerDelivery
from ...models.domain import Address, LogisticCenter, PickupRequest
from ...persistence.filesystem import FileStorage
from ...persistence.repository import CatalogRepository, OrderRepository, ShiftConfigRepository
from ..lifecycle.trip import build_delivery
from ..packing.containers import estimate_containers
from ..shifts import get_shift_start, next_available_shifts
from .base import TripPackingStrategy
from .dispatcher import get_strategy
from .stops import group_into_stops

logger = logging.getLogger(__name__)

CenterResolver = Callable[[str], Optional[LogisticCenter]]


@dataclass(slots=True)
class PlanResult:
    created: bool
    deliveries: list[FarmerDelivery] = field(default_factory=list)


@dataclass(slots=True)
class OrderContainerEstimate:
    farmer_order_id: str
    farmer_id: str
    item_id: str
    estimated_containers: int
    currently_estimated_containers: int


@dataclass(slots=True)
class ContainerEstimates:
    orders: list[OrderContainerEstimate]
    total_estimated_containers: int
    total_currently_estimated_containers: int


@dataclass(slots=True)
class ShiftSummary:
    date: str
    shift: str
    farmer_order_count: int
    delivery_count: int
    has_plan: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _preload_catalog(catalog: CatalogRepository, requests: Sequence[PickupRequest]):
    item_ids = sorted({str(request.item_id) for request in requests})
    with ThreadPoolExecutor(max_workers=2) as executor:
        items_future = executor.submit(catalog.load_items, item_ids)
        containers_future = executor.submit(catalog.load_container_sizes)
        return items_future.result(), containers_future.result()


def plan_trips(
    center_id: str,
    pickup_date: str,
    shift: str,
    base: Address,
    requested_by: str,
    *,
    orders: OrderRepository,
    catalog: CatalogRepository,
    shifts: ShiftConfigRepository,
    strategy: TripPackingStrategy | None = None,
    now: datetime | None = None,
) -> PlanResult:
    """Plan and persist the inbound trips of one shift, unless they already exist.

    Existing trips are returned untouched with ``created=False``. Storage and
    catalog failures propagate and leave nothing saved. A concurrent planner
    that stored the same shift first is detected through ``DuplicatePlanError``
    and its trips are returned instead.
    """

    existing = orders.find_existing_trips(center_id, pickup_date, shift)
    if existing:
        logger.info(f"Trips already planned for {center_id}/{pickup_date}/{shift}: {len(existing)}")
        return PlanResult(created=False, deliveries=existing)

    requests = orders.find_eligible_pickup_requests(center_id, pickup_date, shift)
    if not requests:
        logger.info(f"No eligible farmer orders for {center_id}/{pickup_date}/{shift}")
        return PlanResult(created=False, deliveries=[])

    config = shifts.get_shift_config(center_id, shift)
    if config is None:
        raise ResourceNotFoundError("Shift configuration", f"{center_id}/{shift}")
    shift_start = get_shift_start(config, pickup_date)

    items_by_id, containers = _preload_catalog(catalog, requests)

    packer = strategy or get_strategy(settings.packing_strategy)
    stops = group_into_stops(requests, items_by_id, containers)
    stops.sort(key=lambda stop: packer.travel_minutes(base, stop.address))

    drafts = packer.pack(stops, base, shift_start)
    if not drafts:
        return PlanResult(created=False, deliveries=[])

    created_at = now or _utcnow()
    deliveries = [
        build_delivery(
            draft,
            logistic_center_id=center_id,
            pickup_date=pickup_date,
            shift=shift,
            trip_index=index,
            shift_start_at=shift_start,
            created_by=requested_by,
            now=created_at,
        )
        for index, draft in enumerate(drafts)
    ]

    try:
        saved = orders.save_trips(deliveries)
    except DuplicatePlanError:
        logger.warning(f"Concurrent plan detected for {center_id}/{pickup_date}/{shift}; returning stored trips")
        return PlanResult(created=False, deliveries=orders.find_existing_trips(center_id, pickup_date, shift))

    logger.info(
        f"Planned {len(saved)} trips with {len(stops)} stops from {len(requests)} farmer orders "
        f"for {center_id}/{pickup_date}/{shift}"
    )
    return PlanResult(created=True, deliveries=saved)


def ensure_plan_for_shift(
    center_id: str,
    pickup_date: str,
    shift: str,
    requested_by: str,
    *,
    orders: OrderRepository,
    catalog: CatalogRepository,
    shifts: ShiftConfigRepository,
    centers: CenterResolver = resolve_center,
    storage: FileStorage | None = None,
    now: datetime | None = None,
) -> PlanResult:
    center = centers(center_id)
    if center is None:
        raise ResourceNotFoundError("Logistic center", center_id)

    result = plan_trips(
        center.id,
        pickup_date,
        shift,
        center.address,
        requested_by,
        orders=orders,
        catalog=catalog,
        shifts=shifts,
        now=now,
    )
    if storage is not None and result.created:
        run_dir = storage.export_plan(
            result.deliveries,
            {"logistic_center_id": center.id, "pickup_date": pickup_date, "shift": shift, "requested_by": requested_by},
        )
        logger.info(f"Exported plan to {run_dir}")
    return result


def get_deliveries_for_shift(
    center_id: str,
    pickup_date: str,
    shift: str,
    *,
    orders: OrderRepository,
) -> list[FarmerDelivery]:
    return orders.find_existing_trips(center_id, pickup_date, shift)


def _first_finite(*values: Optional[float]) -> float:
    for value in values:
        if value is not None and math.isfinite(value):
            return max(0.0, value)
    return 0.0


def compute_container_estimates(
    center_id: str,
    pickup_date: str,
    shift: str,
    *,
    orders: OrderRepository,
    catalog: CatalogRepository,
) -> ContainerEstimates:
    """Container needs per farmer order, from the forecast and from the latest known quantity."""

    requests = orders.find_eligible_pickup_requests(center_id, pickup_date, shift)
    if not requests:
        return ContainerEstimates(orders=[], total_estimated_containers=0, total_currently_estimated_containers=0)

    items_by_id, containers = _preload_catalog(catalog, requests)
    estimates: list[OrderContainerEstimate] = []
    for request in requests:
        item = items_by_id.get(str(request.item_id))
        forecast_kg = _first_finite(request.forecasted_quantity_kg, request.sum_ordered_quantity_kg)
        current_kg = _first_finite(request.final_quantity_kg, request.sum_ordered_quantity_kg)
        estimates.append(
            OrderContainerEstimate(
                farmer_order_id=request.id,
                farmer_id=request.farmer_id,
                item_id=str(request.item_id),
                estimated_containers=estimate_containers(item, forecast_kg, containers),
                currently_estimated_containers=estimate_containers(item, current_kg, containers),
            )
        )
    return ContainerEstimates(
        orders=estimates,
        total_estimated_containers=sum(e.estimated_containers for e in estimates),
        total_currently_estimated_containers=sum(e.currently_estimated_containers for e in estimates),
    )


def summarize_upcoming_shifts(
    center_id: str,
    *,
    orders: OrderRepository,
    shifts: ShiftConfigRepository,
    count: int | None = None,
    now: datetime | None = None,
) -> list[ShiftSummary]:
    configs = shifts.list_shift_configs(center_id)
    upcoming = next_available_shifts(configs, count or settings.summary_shift_count, now=now)

    summaries: list[ShiftSummary] = []
    for entry in upcoming:
        deliveries = orders.find_existing_trips(center_id, entry.date, entry.shift)
        summaries.append(
            ShiftSummary(
                date=entry.date,
                shift=entry.shift,
                farmer_order_count=orders.count_pickup_requests(center_id, entry.date, entry.shift),
                delivery_count=len(deliveries),
                has_plan=bool(deliveries),
            )
        )
    return summaries
