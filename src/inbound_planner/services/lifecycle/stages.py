"""Generic stage tracking: one current stage and an append-only audit trail.

Transitions are pure: each takes a ``StageTimeline`` and returns a new timeline
together with the audit entries describing the change. Callers decide where
the entries are stored.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ...exceptions import InvalidTransitionError
from ...models.delivery import AuditEntry, Stage, StageStatus, StageTimeline


@dataclass(slots=True, frozen=True)
class StageTransition:
    timeline: StageTimeline
    events: tuple[AuditEntry, ...]


def build_timeline(keys: Sequence[str], *, initial: Optional[str] = None, at: Optional[datetime] = None) -> StageTimeline:
    """Create a timeline with every key pending except ``initial``, which is current."""

    stages = []
    for key in keys:
        if key == initial:
            stages.append(Stage(key=key, label=key, status=StageStatus.CURRENT, started_at=at, timestamp=at))
        else:
            stages.append(Stage(key=key, label=key))
    return StageTimeline(stages=tuple(stages))


def _close_current(stages: Iterable[Stage], at: datetime) -> list[Stage]:
    closed = []
    for stage in stages:
        if stage.status is StageStatus.CURRENT:
            stage = replace(stage, status=StageStatus.DONE, completed_at=at, timestamp=at)
        closed.append(stage)
    return closed


def set_stage_current(
    timeline: StageTimeline,
    key: str,
    *,
    actor: str,
    at: datetime,
    allowed_keys: Optional[Sequence[str]] = None,
    note: str = "",
    expected_at: Optional[datetime] = None,
) -> StageTransition:
    if allowed_keys is not None and key not in allowed_keys:
        raise InvalidTransitionError(f"Invalid stage key: {key}", details={"key": key})

    stages = _close_current(timeline.stages, at)
    for index, stage in enumerate(stages):
        if stage.key == key:
            stages[index] = replace(
                stage,
                status=StageStatus.CURRENT,
                started_at=stage.started_at or at,
                completed_at=None,
                timestamp=at,
                note=note or stage.note,
                expected_at=expected_at if expected_at is not None else stage.expected_at,
            )
            break
    else:
        stages.append(
            Stage(
                key=key,
                label=key,
                status=StageStatus.CURRENT,
                expected_at=expected_at,
                started_at=at,
                timestamp=at,
                note=note,
            )
        )

    event = AuditEntry(
        user_id=actor,
        action="STAGE_SET_CURRENT",
        timestamp=at,
        note=note,
        meta={"key": key, "expected_at": expected_at.isoformat() if expected_at else None},
    )
    return StageTransition(timeline=StageTimeline(stages=tuple(stages)), events=(event,))


def mark_stage_done(
    timeline: StageTimeline,
    key: str,
    *,
    actor: str,
    at: datetime,
    note: str = "",
) -> StageTransition:
    if timeline.get(key) is None:
        raise InvalidTransitionError(f"Stage not found: {key}", details={"key": key})

    stages = [
        replace(stage, status=StageStatus.DONE, completed_at=at, timestamp=at, note=note or stage.note)
        if stage.key == key
        else stage
        for stage in timeline.stages
    ]
    event = AuditEntry(user_id=actor, action="STAGE_MARK_DONE", timestamp=at, note=note, meta={"key": key})
    return StageTransition(timeline=StageTimeline(stages=tuple(stages)), events=(event,))
