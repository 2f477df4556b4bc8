"""Gantt-style timeline assembled from phases and tasks.

Dates missing from the plan are estimated here and returned alongside the
real ones; nothing is written back to the database.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date, timedelta

from pydantic import BaseModel

from voltbuild.common.enums import TaskStatus
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.task import Task

DEFAULT_PHASE_DAYS = 14


class TimelineTask(BaseModel):
    id: uuid.UUID
    name: str
    status: str
    start_date: date
    end_date: date
    estimated: bool
    is_critical_path: bool
    depends_on: list[str]


class TimelinePhase(BaseModel):
    id: uuid.UUID
    name: str
    status: str
    progress: int
    start_date: date
    end_date: date
    estimated: bool
    tasks: list[TimelineTask]


class Milestone(BaseModel):
    date: date | None
    name: str
    status: str  # "pending", "reached", "overdue"


class Timeline(BaseModel):
    overall_start: date | None
    overall_end: date | None
    phases: list[TimelinePhase]
    critical_path: list[str]
    milestones: list[Milestone]


def phase_duration(tasks: Sequence[Task]) -> int:
    """Days allotted to an undated phase: the task estimates, at least two weeks."""
    estimated = sum(t.estimated_duration_days or 0 for t in tasks)
    return max(DEFAULT_PHASE_DAYS, estimated)


def schedule_phases(
    phases: Sequence[Phase],
    tasks_by_phase: dict[uuid.UUID, list[Task]],
    today: date,
) -> dict[uuid.UUID, tuple[date, date, bool]]:
    """Chain phases back to back from the earliest known start.

    Returns ``phase_id -> (start, end, estimated)``.
    """
    known_starts = [p.planned_start_date for p in phases if p.planned_start_date is not None]
    cursor = min(known_starts) if known_starts else today

    windows: dict[uuid.UUID, tuple[date, date, bool]] = {}
    for phase in phases:
        start = phase.planned_start_date
        end = phase.planned_end_date
        if start is None:
            start = cursor if end is None else min(cursor, end)
        if end is None:
            end = start + timedelta(days=phase_duration(tasks_by_phase.get(phase.id, [])))
        estimated = phase.planned_start_date is None or phase.planned_end_date is None
        windows[phase.id] = (start, end, estimated)
        cursor = end + timedelta(days=1)
    return windows


def spread_tasks(
    tasks: Sequence[Task], phase_start: date, phase_end: date
) -> list[tuple[date, date, bool]]:
    """Give each task a slot of equal width inside the phase window.

    Tasks carrying both planned dates keep them.
    """
    if not tasks:
        return []

    total_days = max((phase_end - phase_start).days, 1)
    slot_days = max(total_days // len(tasks), 1)

    slots = []
    for idx, task in enumerate(tasks):
        if task.planned_start_date and task.planned_end_date:
            slots.append((task.planned_start_date, task.planned_end_date, False))
            continue
        start = phase_start + timedelta(days=idx * slot_days)
        end = min(start + timedelta(days=max(slot_days - 1, 1)), phase_end)
        slots.append((min(start, end), end, True))
    return slots


def _milestone_status(tasks: Sequence[Task], when: date | None, today: date) -> str:
    if tasks and all(t.status == TaskStatus.COMPLETE.value for t in tasks):
        return "reached"
    if when is not None and when < today:
        return "overdue"
    return "pending"


def build_milestones(
    phases: Sequence[Phase],
    tasks_by_phase: dict[uuid.UUID, list[Task]],
    windows: dict[uuid.UUID, tuple[date, date, bool]],
    today: date,
) -> list[Milestone]:
    milestones = []
    for phase in phases:
        end = windows[phase.id][1]
        milestones.append(Milestone(
            date=end,
            name=f"{phase.name} Complete",
            status=_milestone_status(tasks_by_phase.get(phase.id, []), end, today),
        ))

    if phases:
        project_end = max(w[1] for w in windows.values())
        all_tasks = [t for p in phases for t in tasks_by_phase.get(p.id, [])]
        milestones.append(Milestone(
            date=project_end,
            name="Project Complete",
            status=_milestone_status(all_tasks, project_end, today),
        ))
    return milestones


def group_tasks(tasks: Sequence[Task]) -> dict[uuid.UUID, list[Task]]:
    grouped: dict[uuid.UUID, list[Task]] = {}
    for t in tasks:
        grouped.setdefault(t.phase_id, []).append(t)
    return grouped


def build_timeline(phases: Sequence[Phase], tasks: Sequence[Task], today: date) -> Timeline:
    """Phases must be in plan order and tasks in phase/task order."""
    tasks_by_phase = group_tasks(tasks)
    windows = schedule_phases(phases, tasks_by_phase, today)

    timeline_phases = []
    for phase in phases:
        start, end, estimated = windows[phase.id]
        phase_tasks = tasks_by_phase.get(phase.id, [])
        timeline_tasks = [
            TimelineTask(
                id=t.id,
                name=t.name,
                status=t.status,
                start_date=t_start,
                end_date=t_end,
                estimated=t_estimated,
                is_critical_path=t.is_critical_path,
                depends_on=[str(d) for d in (t.depends_on or [])],
            )
            for t, (t_start, t_end, t_estimated) in zip(
                phase_tasks, spread_tasks(phase_tasks, start, end)
            )
        ]
        timeline_phases.append(TimelinePhase(
            id=phase.id,
            name=phase.name,
            status=phase.status,
            progress=phase.progress,
            start_date=start,
            end_date=end,
            estimated=estimated,
            tasks=timeline_tasks,
        ))

    return Timeline(
        overall_start=min((w[0] for w in windows.values()), default=None),
        overall_end=max((w[1] for w in windows.values()), default=None),
        phases=timeline_phases,
        critical_path=[str(t.id) for t in tasks if t.is_critical_path],
        milestones=build_milestones(phases, tasks_by_phase, windows, today),
    )
