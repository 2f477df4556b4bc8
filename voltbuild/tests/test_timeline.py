import uuid
from datetime import date

import pytest

from voltbuild.core.timeline.builder import (
    DEFAULT_PHASE_DAYS,
    build_timeline,
    phase_duration,
    spread_tasks,
)
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.task import Task

TODAY = date(2025, 3, 1)


def _phase(name, order, start=None, end=None) -> Phase:
    return Phase(
        id=uuid.uuid4(), project_id=uuid.uuid4(), name=name, order_index=order,
        status="not_started", progress=0, planned_start_date=start, planned_end_date=end,
    )


def _task(phase, name, days=None, status="not_started", critical=False, start=None, end=None) -> Task:
    return Task(
        id=uuid.uuid4(), phase_id=phase.id, name=name, status=status,
        estimated_duration_days=days, is_critical_path=critical, depends_on=[],
        planned_start_date=start, planned_end_date=end,
    )


def test_phase_duration_has_two_week_floor():
    phase = _phase("Civil", 0)
    assert phase_duration([]) == DEFAULT_PHASE_DAYS
    assert phase_duration([_task(phase, "a", 3), _task(phase, "b", 4)]) == 14
    assert phase_duration([_task(phase, "a", 20), _task(phase, "b", None)]) == 20


def test_phases_chain_from_earliest_known_start():
    civil = _phase("Civil", 0, start=date(2025, 1, 6))
    electrical = _phase("Electrical", 1)
    tasks = [_task(civil, "Grade", 10), _task(electrical, "Switchgear", 30)]

    timeline = build_timeline([civil, electrical], tasks, TODAY)
    first, second = timeline.phases
    assert first.start_date == date(2025, 1, 6)
    assert first.end_date == date(2025, 1, 20)
    assert first.estimated
    assert second.start_date == date(2025, 1, 21)
    assert second.end_date == date(2025, 2, 20)
    assert timeline.overall_start == date(2025, 1, 6)
    assert timeline.overall_end == date(2025, 2, 20)


def test_undated_plan_starts_today():
    civil = _phase("Civil", 0)
    timeline = build_timeline([civil], [], TODAY)
    assert timeline.phases[0].start_date == TODAY
    assert timeline.phases[0].tasks == []


def test_planned_dates_are_kept():
    civil = _phase("Civil", 0, start=date(2025, 2, 1), end=date(2025, 2, 28))
    kept = _task(civil, "Survey", start=date(2025, 2, 3), end=date(2025, 2, 5))
    timeline = build_timeline([civil], [kept], TODAY)

    phase = timeline.phases[0]
    assert not phase.estimated
    assert phase.tasks[0].start_date == date(2025, 2, 3)
    assert not phase.tasks[0].estimated


def test_end_only_phase_never_starts_after_its_end():
    energize = _phase("Energize", 0, start=date(2025, 1, 1), end=date(2025, 3, 1))
    permit = _phase("Permit", 1, end=date(2025, 2, 1))
    tasks = [_task(permit, "File"), _task(permit, "Approve")]

    timeline = build_timeline([energize, permit], tasks, TODAY)
    window = timeline.phases[1]
    assert window.start_date == date(2025, 2, 1)
    assert window.end_date == date(2025, 2, 1)
    assert window.estimated
    for task in window.tasks:
        assert window.start_date <= task.start_date <= task.end_date <= window.end_date


def test_spread_tasks_stays_inside_phase():
    civil = _phase("Civil", 0)
    tasks = [_task(civil, str(i)) for i in range(4)]
    slots = spread_tasks(tasks, date(2025, 1, 1), date(2025, 1, 21))
    assert [s[0] for s in slots] == [
        date(2025, 1, 1), date(2025, 1, 6), date(2025, 1, 11), date(2025, 1, 16)
    ]
    assert all(end <= date(2025, 1, 21) for _, end, _ in slots)
    assert all(estimated for _, _, estimated in slots)


def test_milestones_and_critical_path():
    civil = _phase("Civil", 0, start=date(2025, 1, 1), end=date(2025, 1, 31))
    electrical = _phase("Electrical", 1, start=date(2025, 2, 1), end=date(2025, 4, 30))
    done = _task(civil, "Grade", status="complete", critical=True)
    open_task = _task(electrical, "Switchgear", critical=True)

    timeline = build_timeline([civil, electrical], [done, open_task], TODAY)
    assert [(m.name, m.status) for m in timeline.milestones] == [
        ("Civil Complete", "reached"),
        ("Electrical Complete", "pending"),
        ("Project Complete", "pending"),
    ]
    assert timeline.critical_path == [str(done.id), str(open_task.id)]


def test_missed_milestone_is_overdue():
    civil = _phase("Civil", 0, start=date(2025, 1, 1), end=date(2025, 1, 31))
    timeline = build_timeline([civil], [_task(civil, "Grade")], TODAY)
    assert timeline.milestones[0].status == "overdue"


def test_builder_does_not_touch_models():
    civil = _phase("Civil", 0)
    task = _task(civil, "Grade", 5)
    build_timeline([civil], [task], TODAY)
    assert civil.planned_start_date is None
    assert task.planned_start_date is None


@pytest.mark.asyncio
async def test_timeline_endpoint(client, auth_headers, project):
    resp = await client.get(f"/api/v1/projects/{project['id']}/timeline", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["project_name"] == project["name"]
    assert len(data["phases"]) == 6
    assert data["milestones"][-1]["name"] == "Project Complete"
    assert data["critical_path"]

    phases = data["phases"]
    for earlier, later in zip(phases, phases[1:]):
        assert earlier["end_date"] < later["start_date"]


@pytest.mark.asyncio
async def test_milestones_endpoint(client, auth_headers, project):
    resp = await client.get(
        f"/api/v1/projects/{project['id']}/timeline/milestones", headers=auth_headers
    )
    assert resp.status_code == 200
    names = [m["name"] for m in resp.json()["milestones"]]
    assert names[0] == "Site Preparation Complete"
    assert len(names) == 7
