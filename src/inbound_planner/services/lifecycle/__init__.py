"""Trip lifecycle helpers."""

from .stages import StageTransition, build_timeline, mark_stage_done, set_stage_current
from .trip import (
    add_audit,
    assign_deliverer,
    build_delivery,
    compute_totals,
    mark_trip_stage_done,
    record_stop_scan,
    refresh_totals,
    set_trip_stage,
    transition_stop,
)

__all__ = [
    "StageTransition",
    "build_timeline",
    "set_stage_current",
    "mark_stage_done",
    "build_delivery",
    "set_trip_stage",
    "mark_trip_stage_done",
    "assign_deliverer",
    "transition_stop",
    "record_stop_scan",
    "compute_totals",
    "refresh_totals",
    "add_audit",
]
