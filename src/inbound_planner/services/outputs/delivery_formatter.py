"""Serializers for farmer delivery outputs."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any, Optional, Sequence

from ...models.delivery import (
    AuditEntry,
    FarmerDelivery,
    Stage,
    StageStatus,
    StageTimeline,
    StopScan,
    StopStatus,
    TripStop,
    TripTotals,
)
from ...models.domain import Address


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def address_to_json(address: Address) -> dict:
    return {
        "longitude": address.longitude,
        "latitude": address.latitude,
        "label": address.label,
        "note": address.note,
    }


def address_from_json(data: dict | None) -> Address | None:
    if not data:
        return None
    return Address(
        longitude=float(data["longitude"]),
        latitude=float(data["latitude"]),
        label=str(data.get("label") or ""),
        note=str(data.get("note") or ""),
    )


def _stop_to_json(stop: TripStop) -> dict:
    return {
        "sequence": stop.sequence,
        "type": stop.type,
        "label": stop.label,
        "address": address_to_json(stop.address),
        "farmer_id": stop.farmer_id,
        "farmer_name": stop.farmer_name,
        "farm_name": stop.farm_name,
        "farmer_order_ids": list(stop.farmer_order_ids),
        "expected_containers": stop.expected_containers,
        "expected_weight_kg": stop.expected_weight_kg,
        "status": stop.status.value,
        "scans": [
            {
                "container_id": scan.container_id,
                "qr_url": scan.qr_url,
                "farmer_order_id": scan.farmer_order_id,
                "weight_kg": scan.weight_kg,
                "timestamp": _iso(scan.timestamp),
                "note": scan.note,
            }
            for scan in stop.scans
        ],
        "loaded_containers_count": stop.loaded_containers_count,
        "loaded_weight_kg": stop.loaded_weight_kg,
        "planned_at": _iso(stop.planned_at),
        "arrived_at": _iso(stop.arrived_at),
        "departed_at": _iso(stop.departed_at),
        "loading_started_at": _iso(stop.loading_started_at),
        "loading_finished_at": _iso(stop.loading_finished_at),
        "note": stop.note,
    }


def _stop_from_json(data: dict) -> TripStop:
    return TripStop(
        sequence=int(data["sequence"]),
        type=data.get("type", "pickup"),
        label=data.get("label", ""),
        address=address_from_json(data["address"]),
        farmer_id=str(data["farmer_id"]),
        farmer_name=data.get("farmer_name", ""),
        farm_name=data.get("farm_name", ""),
        farmer_order_ids=[str(value) for value in data.get("farmer_order_ids", [])],
        expected_containers=int(data.get("expected_containers") or 0),
        expected_weight_kg=float(data.get("expected_weight_kg") or 0.0),
        status=StopStatus(data.get("status", StopStatus.PLANNED.value)),
        scans=[
            StopScan(
                container_id=scan["container_id"],
                qr_url=scan["qr_url"],
                farmer_order_id=str(scan["farmer_order_id"]),
                weight_kg=float(scan.get("weight_kg") or 0.0),
                timestamp=_parse_dt(scan["timestamp"]),
                note=scan.get("note", ""),
            )
            for scan in data.get("scans", [])
        ],
        loaded_containers_count=int(data.get("loaded_containers_count") or 0),
        loaded_weight_kg=float(data.get("loaded_weight_kg") or 0.0),
        planned_at=_parse_dt(data["planned_at"]),
        arrived_at=_parse_dt(data.get("arrived_at")),
        departed_at=_parse_dt(data.get("departed_at")),
        loading_started_at=_parse_dt(data.get("loading_started_at")),
        loading_finished_at=_parse_dt(data.get("loading_finished_at")),
        note=data.get("note", ""),
    )


def delivery_to_json(delivery: FarmerDelivery) -> dict:
    return {
        "id": delivery.id,
        "logistic_center_id": delivery.logistic_center_id,
        "pickup_date": delivery.pickup_date,
        "shift": delivery.shift,
        "trip_index": delivery.trip_index,
        "shift_start_at": _iso(delivery.shift_start_at),
        "deliverer_id": delivery.deliverer_id,
        "stage_key": delivery.stage_key,
        "stages": [
            {
                "key": stage.key,
                "label": stage.label,
                "status": stage.status.value,
                "expected_at": _iso(stage.expected_at),
                "started_at": _iso(stage.started_at),
                "completed_at": _iso(stage.completed_at),
                "timestamp": _iso(stage.timestamp),
                "note": stage.note,
            }
            for stage in delivery.stages.stages
        ],
        "stops": [_stop_to_json(stop) for stop in delivery.stops],
        "planned_start_at": _iso(delivery.planned_start_at),
        "planned_end_at": _iso(delivery.planned_end_at),
        "actual_start_at": _iso(delivery.actual_start_at),
        "actual_end_at": _iso(delivery.actual_end_at),
        "total_expected_containers": delivery.totals.expected_containers,
        "total_loaded_containers": delivery.totals.loaded_containers,
        "total_expected_weight_kg": delivery.totals.expected_weight_kg,
        "total_loaded_weight_kg": delivery.totals.loaded_weight_kg,
        "distance_km_planned": delivery.distance_km_planned,
        "history_audit_trail": [
            {
                "user_id": entry.user_id,
                "action": entry.action,
                "note": entry.note,
                "meta": entry.meta,
                "timestamp": _iso(entry.timestamp),
            }
            for entry in delivery.history_audit_trail
        ],
        "created_at": _iso(delivery.created_at),
    }


def delivery_from_json(data: dict) -> FarmerDelivery:
    """Rebuild a delivery from ``delivery_to_json`` output or a stored row."""

    return FarmerDelivery(
        id=str(data["id"]),
        logistic_center_id=str(data["logistic_center_id"]),
        pickup_date=str(data["pickup_date"]),
        shift=str(data["shift"]),
        trip_index=int(data.get("trip_index") or 0),
        shift_start_at=_parse_dt(data["shift_start_at"]),
        deliverer_id=data.get("deliverer_id"),
        stage_key=data.get("stage_key", "planned"),
        stages=StageTimeline(
            stages=tuple(
                Stage(
                    key=stage["key"],
                    label=stage.get("label", stage["key"]),
                    status=StageStatus(stage.get("status", StageStatus.PENDING.value)),
                    expected_at=_parse_dt(stage.get("expected_at")),
                    started_at=_parse_dt(stage.get("started_at")),
                    completed_at=_parse_dt(stage.get("completed_at")),
                    timestamp=_parse_dt(stage.get("timestamp")),
                    note=stage.get("note", ""),
                )
                for stage in data.get("stages", [])
            )
        ),
        stops=[_stop_from_json(stop) for stop in data.get("stops", [])],
        planned_start_at=_parse_dt(data.get("planned_start_at")),
        planned_end_at=_parse_dt(data.get("planned_end_at")),
        actual_start_at=_parse_dt(data.get("actual_start_at")),
        actual_end_at=_parse_dt(data.get("actual_end_at")),
        totals=TripTotals(
            expected_containers=int(data.get("total_expected_containers") or 0),
            loaded_containers=int(data.get("total_loaded_containers") or 0),
            expected_weight_kg=float(data.get("total_expected_weight_kg") or 0.0),
            loaded_weight_kg=float(data.get("total_loaded_weight_kg") or 0.0),
        ),
        distance_km_planned=data.get("distance_km_planned"),
        history_audit_trail=[
            AuditEntry(
                user_id=str(entry["user_id"]),
                action=entry["action"],
                note=entry.get("note", ""),
                meta=entry.get("meta") or {},
                timestamp=_parse_dt(entry["timestamp"]),
            )
            for entry in data.get("history_audit_trail", [])
        ],
        created_at=_parse_dt(data.get("created_at")),
    )


def deliveries_to_csv(deliveries: Sequence[FarmerDelivery]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "delivery_id",
        "trip_index",
        "sequence",
        "farm_name",
        "farmer_name",
        "address",
        "longitude",
        "latitude",
        "planned_at",
        "expected_containers",
        "expected_weight_kg",
        "farmer_order_ids",
        "status",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for delivery in deliveries:
        for stop in delivery.stops:
            writer.writerow(
                {
                    "delivery_id": delivery.id,
                    "trip_index": delivery.trip_index,
                    "sequence": stop.sequence,
                    "farm_name": stop.farm_name,
                    "farmer_name": stop.farmer_name,
                    "address": stop.address.label,
                    "longitude": stop.address.longitude,
                    "latitude": stop.address.latitude,
                    "planned_at": _iso(stop.planned_at),
                    "expected_containers": stop.expected_containers,
                    "expected_weight_kg": stop.expected_weight_kg,
                    "farmer_order_ids": ";".join(stop.farmer_order_ids),
                    "status": stop.status.value,
                }
            )
    return buffer.getvalue()
