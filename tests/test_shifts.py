from datetime import datetime, timezone

from inbound_planner.models.domain import ShiftConfig
from inbound_planner.services.shifts import UpcomingShift, get_shift_start, next_available_shifts


def _config(name: str, start_min: int, industrial_start_min: int | None = None, tz: str = "Asia/Jerusalem") -> ShiftConfig:
    return ShiftConfig(
        logistic_center_id="LC1",
        name=name,
        timezone=tz,
        general_start_min=start_min,
        general_end_min=start_min + 360,
        industrial_deliverer_start_min=industrial_start_min if industrial_start_min is not None else start_min,
        industrial_deliverer_end_min=start_min + 300,
    )


CONFIGS = [_config("night", 1200), _config("morning", 360), _config("afternoon", 840)]


def test_shift_start_uses_center_timezone_in_winter():
    start = get_shift_start(_config("morning", 360), "2025-03-02")
    assert start == datetime(2025, 3, 2, 4, 0, tzinfo=timezone.utc)


def test_shift_start_uses_center_timezone_in_summer():
    start = get_shift_start(_config("morning", 360), "2025-07-01")
    assert start == datetime(2025, 7, 1, 3, 0, tzinfo=timezone.utc)


def test_shift_start_uses_industrial_deliverer_window():
    start = get_shift_start(_config("morning", 360, industrial_start_min=300, tz="UTC"), "2025-03-02")
    assert start == datetime(2025, 3, 2, 5, 0, tzinfo=timezone.utc)


def test_next_shifts_start_after_now():
    now = datetime(2025, 3, 2, 8, 0, tzinfo=timezone.utc)  # 10:00 local

    upcoming = next_available_shifts(CONFIGS, count=4, now=now)

    assert upcoming == [
        UpcomingShift(date="2025-03-02", shift="afternoon"),
        UpcomingShift(date="2025-03-02", shift="night"),
        UpcomingShift(date="2025-03-03", shift="morning"),
        UpcomingShift(date="2025-03-03", shift="afternoon"),
    ]


def test_next_shifts_roll_to_tomorrow_late_in_the_day():
    now = datetime(2025, 3, 2, 20, 30, tzinfo=timezone.utc)  # 22:30 local

    upcoming = next_available_shifts(CONFIGS, count=2, now=now)

    assert upcoming == [
        UpcomingShift(date="2025-03-03", shift="morning"),
        UpcomingShift(date="2025-03-03", shift="afternoon"),
    ]


def test_next_shifts_without_configs():
    assert next_available_shifts([], count=3) == []
