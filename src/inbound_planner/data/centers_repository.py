"""Logistic center loader with database-first approach, falling back to an Excel file."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from openpyxl import load_workbook

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import Address, LogisticCenter

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"Center", "Latitude", "Longitude"}


def _normalize_center_id(value: object) -> str:
    return str(value).strip()


def _load_centers_from_database() -> tuple[LogisticCenter, ...] | None:
    """Load centers from Supabase. Returns None if the database is not available or empty."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = supabase.table("logistic_centers").select("*").execute()
    except Exception as e:
        logger.debug(f"Database query failed, falling back to file: {e}")
        return None
    if not response.data:
        return None

    centers: list[LogisticCenter] = []
    for row in response.data:
        try:
            center_id = _normalize_center_id(row["id"])
            centers.append(
                LogisticCenter(
                    id=center_id,
                    address=Address(
                        longitude=float(row["longitude"]),
                        latitude=float(row["latitude"]),
                        label=row.get("address") or row.get("name") or center_id,
                    ),
                    timezone=row.get("timezone"),
                )
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid logistic center row: {e}")
    return tuple(centers) if centers else None


def _load_centers_from_file(source: Path | None = None) -> tuple[LogisticCenter, ...]:
    workbook_path = source or settings.centers_file
    if not workbook_path.exists():
        raise FileNotFoundError(f"Logistic center workbook not found: {workbook_path}")

    wb = load_workbook(workbook_path, data_only=True, read_only=True)
    try:
        rows = wb.active.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"Logistic center workbook '{workbook_path}' is empty.")

        header_map = {name: idx for idx, name in enumerate(header) if name}
        missing_columns = REQUIRED_COLUMNS - set(header_map)
        if missing_columns:
            raise ValueError(f"Logistic center workbook missing columns: {', '.join(sorted(missing_columns))}")

        address_idx = header_map.get("Address")
        timezone_idx = header_map.get("Timezone")
        centers: list[LogisticCenter] = []
        for row in rows:
            center_value = row[header_map["Center"]]
            if not center_value:
                continue
            center_id = _normalize_center_id(center_value)
            label = row[address_idx] if address_idx is not None else None
            tz = row[timezone_idx] if timezone_idx is not None else None
            centers.append(
                LogisticCenter(
                    id=center_id,
                    address=Address(
                        longitude=float(row[header_map["Longitude"]]),
                        latitude=float(row[header_map["Latitude"]]),
                        label=str(label) if label else center_id,
                    ),
                    timezone=str(tz) if tz else None,
                )
            )
    finally:
        wb.close()
    return tuple(centers)


def get_centers(source: Path | None = None) -> tuple[LogisticCenter, ...]:
    """Get logistic centers from the database first, fall back to the Excel file."""
    db_centers = _load_centers_from_database()
    if db_centers:
        return db_centers
    return _load_centers_from_file(source)


@lru_cache(maxsize=1)
def _center_lookup() -> dict[str, LogisticCenter]:
    return {center.id.upper(): center for center in get_centers()}


def clear_center_cache() -> None:
    _center_lookup.cache_clear()


def resolve_center(center_id: str) -> LogisticCenter | None:
    """Look up a center, reloading the sources once when the id is not cached yet."""
    if not center_id:
        return None
    key = _normalize_center_id(center_id).upper()
    center = _center_lookup().get(key)
    if center is None:
        clear_center_cache()
        center = _center_lookup().get(key)
    return center
