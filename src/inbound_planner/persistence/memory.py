"""Process-local store used when Supabase is not configured."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Iterable, Sequence

from ..config import settings
from ..exceptions import DuplicatePlanError
from ..models.delivery import FarmerDelivery
from ..models.domain import ContainerSize, ItemInfo, PickupRequest, ShiftConfig

logger = logging.getLogger(__name__)


class MemoryStore:
    """Order, catalog and shift-config storage kept in memory.

    Deliveries are unique per (center, date, shift, trip_index), checked and
    inserted under one lock so a batch is stored completely or not at all.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: list[PickupRequest] = []
        self._items: dict[str, ItemInfo] = {}
        self._containers: list[ContainerSize] = []
        self._shift_configs: dict[tuple[str, str], ShiftConfig] = {}
        self._deliveries: dict[tuple[str, str, str, int], FarmerDelivery] = {}

    # seeding
    def add_pickup_requests(self, requests: Iterable[PickupRequest]) -> None:
        with self._lock:
            self._requests.extend(copy.deepcopy(list(requests)))

    def add_items(self, items: Iterable[ItemInfo]) -> None:
        with self._lock:
            for item in items:
                self._items[str(item.id)] = copy.deepcopy(item)

    def add_container_sizes(self, containers: Iterable[ContainerSize]) -> None:
        with self._lock:
            self._containers.extend(copy.deepcopy(list(containers)))

    def add_shift_configs(self, configs: Iterable[ShiftConfig]) -> None:
        with self._lock:
            for config in configs:
                self._shift_configs[(config.logistic_center_id, config.name)] = copy.deepcopy(config)

    # OrderRepository
    def find_eligible_pickup_requests(self, logistic_center_id: str, pickup_date: str, shift: str) -> list[PickupRequest]:
        with self._lock:
            return [
                copy.deepcopy(request)
                for request in self._requests
                if request.logistic_center_id == logistic_center_id
                and request.pickup_date == pickup_date
                and request.shift == shift
                and request.farmer_status == settings.eligible_farmer_status
            ]

    def count_pickup_requests(self, logistic_center_id: str, pickup_date: str, shift: str) -> int:
        with self._lock:
            return sum(
                1
                for request in self._requests
                if request.logistic_center_id == logistic_center_id
                and request.pickup_date == pickup_date
                and request.shift == shift
            )

    def find_existing_trips(self, logistic_center_id: str, pickup_date: str, shift: str) -> list[FarmerDelivery]:
        with self._lock:
            matches = [
                delivery
                for key, delivery in self._deliveries.items()
                if key[:3] == (logistic_center_id, pickup_date, shift)
            ]
            return [copy.deepcopy(delivery) for delivery in sorted(matches, key=lambda d: d.trip_index)]

    def save_trips(self, deliveries: Sequence[FarmerDelivery]) -> list[FarmerDelivery]:
        with self._lock:
            keys = [(*delivery.key, delivery.trip_index) for delivery in deliveries]
            for key in keys:
                if key in self._deliveries or keys.count(key) > 1:
                    raise DuplicatePlanError(*key[:3])
            for key, delivery in zip(keys, deliveries):
                self._deliveries[key] = copy.deepcopy(delivery)
            logger.info(f"Stored {len(deliveries)} deliveries in memory")
            return [copy.deepcopy(delivery) for delivery in deliveries]

    # CatalogRepository
    def load_items(self, item_ids: Iterable[str]) -> dict[str, ItemInfo]:
        wanted = {str(item_id) for item_id in item_ids}
        with self._lock:
            return {item_id: copy.deepcopy(item) for item_id, item in self._items.items() if item_id in wanted}

    def load_container_sizes(self) -> list[ContainerSize]:
        with self._lock:
            return copy.deepcopy(self._containers)

    # ShiftConfigRepository
    def get_shift_config(self, logistic_center_id: str, shift: str) -> ShiftConfig | None:
        with self._lock:
            config = self._shift_configs.get((logistic_center_id, shift))
            return copy.deepcopy(config) if config else None

    def list_shift_configs(self, logistic_center_id: str) -> list[ShiftConfig]:
        with self._lock:
            return [
                copy.deepcopy(config)
                for (center_id, _), config in self._shift_configs.items()
                if center_id == logistic_center_id
            ]
