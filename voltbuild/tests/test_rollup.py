import pytest

from voltbuild.common.enums import PhaseStatus
from voltbuild.core.progress.rollup import (
    count_statuses,
    phase_progress,
    phase_status,
    project_progress,
    round_half_up,
)


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(66.666) == 67
    assert round_half_up(33.4) == 33


def test_phase_progress_is_rounded_completion_ratio():
    assert phase_progress(["complete", "complete", "not_started"]) == 67
    assert phase_progress(["complete", "not_started", "not_started", "not_started"]) == 25
    assert phase_progress(["in_progress", "blocked"]) == 0


def test_phase_without_tasks_yields_nothing():
    assert phase_progress([]) is None
    assert phase_status([]) is None


def test_blocked_takes_precedence_until_everything_is_complete():
    assert phase_status(["complete", "complete", "complete", "blocked"]) == PhaseStatus.BLOCKED
    assert phase_status(["complete", "complete", "blocked"]) == PhaseStatus.BLOCKED
    assert phase_status(["complete", "complete"]) == PhaseStatus.COMPLETE


def test_phase_status_progression():
    assert phase_status(["not_started", "not_started"]) == PhaseStatus.NOT_STARTED
    assert phase_status(["not_started", "in_progress"]) == PhaseStatus.IN_PROGRESS
    assert phase_status(["not_started", "complete"]) == PhaseStatus.IN_PROGRESS


def test_two_of_three_complete_with_one_blocked():
    statuses = ["complete", "complete", "blocked"]
    assert phase_progress(statuses) == 67
    assert phase_status(statuses) == PhaseStatus.BLOCKED


def test_project_progress_is_unweighted_mean():
    assert project_progress([0, 100]) == 50
    assert project_progress([67, 0]) == 34
    assert project_progress([]) is None


def test_unknown_status_raises():
    with pytest.raises(ValueError):
        count_statuses(["complete", "done"])


def test_status_counts():
    counts = count_statuses(["complete", "blocked", "complete", "not_started"])
    assert counts.model_dump() == {
        "total": 4, "not_started": 1, "in_progress": 0, "blocked": 1, "complete": 2,
    }
    assert counts.incomplete == 2
