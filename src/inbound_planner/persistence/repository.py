"""Storage contracts consumed by the planner."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from ..models.delivery import FarmerDelivery
from ..models.domain import ContainerSize, ItemInfo, PickupRequest, ShiftConfig


class OrderRepository(Protocol):
    def find_eligible_pickup_requests(
        self, logistic_center_id: str, pickup_date: str, shift: str
    ) -> list[PickupRequest]: ...

    def count_pickup_requests(self, logistic_center_id: str, pickup_date: str, shift: str) -> int: ...

    def find_existing_trips(
        self, logistic_center_id: str, pickup_date: str, shift: str
    ) -> list[FarmerDelivery]: ...

    def save_trips(self, deliveries: Sequence[FarmerDelivery]) -> list[FarmerDelivery]:
        """Insert all deliveries or none.

        Raises ``DuplicatePlanError`` when a delivery with the same
        (center, date, shift, trip_index) already exists.
        """
        ...


class CatalogRepository(Protocol):
    def load_items(self, item_ids: Iterable[str]) -> dict[str, ItemInfo]: ...

    def load_container_sizes(self) -> list[ContainerSize]: ...


class ShiftConfigRepository(Protocol):
    def get_shift_config(self, logistic_center_id: str, shift: str) -> ShiftConfig | None: ...

    def list_shift_configs(self, logistic_center_id: str) -> list[ShiftConfig]: ...
