"""Shift window helpers: planning baseline instants and upcoming shifts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ..config import settings
from ..models.domain import ShiftConfig


@dataclass(slots=True, frozen=True)
class UpcomingShift:
    date: str
    shift: str


def _zone(config: ShiftConfig) -> ZoneInfo:
    return ZoneInfo(config.timezone or settings.default_timezone)


def get_shift_start(config: ShiftConfig, pickup_date: str | date) -> datetime:
    """Start of the industrial deliverer window for ``pickup_date``, as a UTC instant.

    Minutes are counted as elapsed time from local midnight, so a DST change
    during the night shifts the wall-clock result rather than the duration.
    """

    day = pickup_date if isinstance(pickup_date, date) else date.fromisoformat(pickup_date)
    local_midnight = datetime.combine(day, time(0, 0), tzinfo=_zone(config))
    return local_midnight.astimezone(timezone.utc) + timedelta(minutes=config.industrial_deliverer_start_min)


def next_available_shifts(
    configs: Sequence[ShiftConfig],
    count: int = 5,
    now: Optional[datetime] = None,
) -> list[UpcomingShift]:
    """List the next ``count`` (date, shift) pairs starting after ``now``."""

    if not configs or count <= 0:
        return []

    ordered = sorted(configs, key=lambda cfg: cfg.general_start_min)
    tz = _zone(ordered[0])
    local_now = (now or datetime.now(timezone.utc)).astimezone(tz)
    minutes_since_midnight = local_now.hour * 60 + local_now.minute

    day = local_now.date()
    index = next(
        (i for i, cfg in enumerate(ordered) if cfg.general_start_min > minutes_since_midnight),
        None,
    )
    if index is None:
        day += timedelta(days=1)
        index = 0

    upcoming: list[UpcomingShift] = []
    while len(upcoming) < count:
        upcoming.append(UpcomingShift(date=day.isoformat(), shift=ordered[index].name))
        index += 1
        if index >= len(ordered):
            index = 0
            day += timedelta(days=1)
    return upcoming
