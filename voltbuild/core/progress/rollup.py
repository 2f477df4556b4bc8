"""Derived progress for phases and projects.

Everything here is pure: callers pass plain status values or percentages and
decide what to persist. ``None`` means "nothing to aggregate, leave the stored
value alone".
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from voltbuild.common.enums import PhaseStatus, TaskStatus


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (0.5 -> 1, 2.5 -> 3)."""
    return math.floor(value + 0.5)


class StatusCounts(BaseModel):
    total: int = 0
    not_started: int = 0
    in_progress: int = 0
    blocked: int = 0
    complete: int = 0

    @property
    def incomplete(self) -> int:
        return self.total - self.complete


def count_statuses(statuses: Iterable[str | TaskStatus]) -> StatusCounts:
    counts = {s: 0 for s in TaskStatus}
    for raw in statuses:
        counts[TaskStatus(raw)] += 1
    return StatusCounts(
        total=sum(counts.values()),
        not_started=counts[TaskStatus.NOT_STARTED],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        blocked=counts[TaskStatus.BLOCKED],
        complete=counts[TaskStatus.COMPLETE],
    )


def phase_progress(task_statuses: Sequence[str | TaskStatus]) -> int | None:
    counts = count_statuses(task_statuses)
    if counts.total == 0:
        return None
    return round_half_up(100 * counts.complete / counts.total)


def phase_status(task_statuses: Sequence[str | TaskStatus]) -> PhaseStatus | None:
    """Derive a phase status from its tasks; first matching rule wins.

    1. every task complete -> complete
    2. any task blocked -> blocked
    3. any task in progress or complete -> in progress
    4. otherwise -> not started
    """
    counts = count_statuses(task_statuses)
    if counts.total == 0:
        return None
    if counts.complete == counts.total:
        return PhaseStatus.COMPLETE
    if counts.blocked > 0:
        return PhaseStatus.BLOCKED
    if counts.in_progress > 0 or counts.complete > 0:
        return PhaseStatus.IN_PROGRESS
    return PhaseStatus.NOT_STARTED


def project_progress(phase_percentages: Sequence[int]) -> int | None:
    """Unweighted mean of phase percentages. Phase size is deliberately ignored."""
    if not phase_percentages:
        return None
    return round_half_up(sum(phase_percentages) / len(phase_percentages))
