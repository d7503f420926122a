"""Supabase-backed repositories for orders, catalog, shift configs and deliveries."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from postgrest.exceptions import APIError
from supabase import Client

from ..config import settings
from ..exceptions import DuplicatePlanError
from ..models.delivery import FarmerDelivery
from ..models.domain import ContainerSize, ItemInfo, PickupRequest, ShiftConfig
from ..services.outputs.delivery_formatter import address_from_json, delivery_from_json, delivery_to_json

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _row_to_pickup_request(row: dict[str, Any]) -> PickupRequest:
    return PickupRequest(
        id=str(row["id"]),
        logistic_center_id=str(row["logistic_center_id"]),
        pickup_date=str(row["pickup_date"]),
        shift=str(row["shift"]),
        farmer_id=str(row["farmer_id"]),
        farmer_name=row.get("farmer_name") or "",
        farm_name=row.get("farm_name") or "",
        item_id=str(row["item_id"]),
        pickup_address=address_from_json(row.get("pickup_address")),
        farmer_status=row.get("farmer_status") or "",
        final_quantity_kg=_optional_float(row.get("final_quantity_kg")),
        forecasted_quantity_kg=_optional_float(row.get("forecasted_quantity_kg")),
        sum_ordered_quantity_kg=_optional_float(row.get("sum_ordered_quantity_kg")),
    )


def _row_to_item(row: dict[str, Any]) -> ItemInfo:
    return ItemInfo(
        id=str(row["id"]),
        name=row.get("name") or "",
        category=row.get("category"),
        type=row.get("type"),
        variety=row.get("variety"),
        avg_weight_per_unit_gr=_optional_float(row.get("avg_weight_per_unit_gr")),
    )


def _row_to_container(row: dict[str, Any]) -> ContainerSize:
    return ContainerSize(
        key=str(row["key"]),
        name=row.get("name"),
        usable_liters=float(row["usable_liters"]),
        max_weight_kg=float(row["max_weight_kg"]),
        vented=bool(row.get("vented", False)),
    )


def _row_to_shift_config(row: dict[str, Any]) -> ShiftConfig:
    return ShiftConfig(
        logistic_center_id=str(row["logistic_center_id"]),
        name=str(row["name"]),
        timezone=row.get("timezone") or settings.default_timezone,
        general_start_min=int(row["general_start_min"]),
        general_end_min=int(row["general_end_min"]),
        industrial_deliverer_start_min=int(row["industrial_deliverer_start_min"]),
        industrial_deliverer_end_min=int(row["industrial_deliverer_end_min"]),
    )


class SupabaseStore:
    """Repository implementation over the Supabase tables described in ``db/schema.sql``.

    ``farmer_deliveries`` carries a unique index on
    (logistic_center_id, pickup_date, shift, trip_index). A batch insert is a
    single statement, so a conflicting row rejects the whole batch.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    # OrderRepository
    def find_eligible_pickup_requests(self, logistic_center_id: str, pickup_date: str, shift: str) -> list[PickupRequest]:
        response = (
            self.client.table("farmer_orders")
            .select("*")
            .eq("logistic_center_id", logistic_center_id)
            .eq("pickup_date", pickup_date)
            .eq("shift", shift)
            .eq("farmer_status", settings.eligible_farmer_status)
            .execute()
        )
        requests: list[PickupRequest] = []
        for row in response.data or []:
            try:
                requests.append(_row_to_pickup_request(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid farmer order row {row.get('id')}: {e}")
        return requests

    def count_pickup_requests(self, logistic_center_id: str, pickup_date: str, shift: str) -> int:
        response = (
            self.client.table("farmer_orders")
            .select("id", count="exact")
            .eq("logistic_center_id", logistic_center_id)
            .eq("pickup_date", pickup_date)
            .eq("shift", shift)
            .execute()
        )
        return int(response.count or 0)

    def find_existing_trips(self, logistic_center_id: str, pickup_date: str, shift: str) -> list[FarmerDelivery]:
        response = (
            self.client.table("farmer_deliveries")
            .select("*")
            .eq("logistic_center_id", logistic_center_id)
            .eq("pickup_date", pickup_date)
            .eq("shift", shift)
            .order("trip_index")
            .execute()
        )
        return [delivery_from_json(row) for row in response.data or []]

    def save_trips(self, deliveries: Sequence[FarmerDelivery]) -> list[FarmerDelivery]:
        if not deliveries:
            return []
        rows = [delivery_to_json(delivery) for delivery in deliveries]
        try:
            response = self.client.table("farmer_deliveries").insert(rows).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicatePlanError(*deliveries[0].key) from e
            raise
        logger.info(f"Saved {len(rows)} farmer deliveries to database")
        return [delivery_from_json(row) for row in response.data or rows]

    # CatalogRepository
    def load_items(self, item_ids: Iterable[str]) -> dict[str, ItemInfo]:
        wanted = sorted({str(item_id) for item_id in item_ids})
        if not wanted:
            return {}
        response = self.client.table("items").select("*").in_("id", wanted).execute()
        return {str(row["id"]): _row_to_item(row) for row in response.data or []}

    def load_container_sizes(self) -> list[ContainerSize]:
        response = self.client.table("container_sizes").select("*").execute()
        return [_row_to_container(row) for row in response.data or []]

    # ShiftConfigRepository
    def get_shift_config(self, logistic_center_id: str, shift: str) -> ShiftConfig | None:
        response = (
            self.client.table("shift_configs")
            .select("*")
            .eq("logistic_center_id", logistic_center_id)
            .eq("name", shift)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return _row_to_shift_config(rows[0]) if rows else None

    def list_shift_configs(self, logistic_center_id: str) -> list[ShiftConfig]:
        response = (
            self.client.table("shift_configs")
            .select("*")
            .eq("logistic_center_id", logistic_center_id)
            .execute()
        )
        return [_row_to_shift_config(row) for row in response.data or []]
