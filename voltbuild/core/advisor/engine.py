"""Rule-based project health advisor."""

from __future__ import annotations

from collections.abc import Sequence

from voltbuild.common.enums import ActionPriority, HealthLabel, RiskSeverity, TaskStatus
from voltbuild.core.advisor.schemas import (
    AdvisorAction,
    AdvisorReport,
    AdvisorRisk,
    AdvisorTaskInput,
    CriticalPathItem,
)
from voltbuild.core.progress.rollup import count_statuses, round_half_up

BLOCKED_PENALTY = 5
CRITICAL_PATH_EXCERPT = 5
MAX_ITEMS = 3
LOW_PROGRESS_PCT = 25

_RISK_DAYS = {
    TaskStatus.BLOCKED: 10,
    TaskStatus.NOT_STARTED: 5,
    TaskStatus.IN_PROGRESS: 0,
    TaskStatus.COMPLETE: 0,
}


def health_score(total: int, completed: int, blocked: int) -> int:
    completion = round_half_up(100 * completed / total) if total else 0
    return max(0, min(100, completion - BLOCKED_PENALTY * blocked))


def status_label(score: int, blocked: int) -> HealthLabel:
    if score < 50 or blocked > 2:
        return HealthLabel.DELAYED
    if score < 75 or blocked > 0:
        return HealthLabel.AT_RISK
    return HealthLabel.ON_TRACK


def critical_path_excerpt(tasks: Sequence[AdvisorTaskInput]) -> list[CriticalPathItem]:
    """First few flagged tasks in plan order. The flag is taken as given."""
    flagged = [t for t in tasks if t.is_critical_path][:CRITICAL_PATH_EXCERPT]
    return [
        CriticalPathItem(
            task_id=str(t.id),
            name=t.name,
            phase_name=t.phase_name,
            status=t.status,
            risk_days=_RISK_DAYS[TaskStatus(t.status)],
        )
        for t in flagged
    ]


def build_advice(tasks: Sequence[AdvisorTaskInput], project_progress: int) -> AdvisorReport:
    counts = count_statuses(t.status for t in tasks)
    score = health_score(counts.total, counts.complete, counts.blocked)
    critical_not_started = [
        t for t in tasks if t.is_critical_path and t.status == TaskStatus.NOT_STARTED
    ]

    actions: list[AdvisorAction] = []
    risks: list[AdvisorRisk] = []

    if counts.blocked > 0:
        actions.append(AdvisorAction(
            title="Clear blocked tasks",
            detail=f"{counts.blocked} task(s) are blocked; escalate with the responsible party",
            priority=ActionPriority.HIGH,
        ))
        risks.append(AdvisorRisk(
            title="Blocked work",
            detail=f"Each blocked task adds schedule exposure ({counts.blocked} blocked)",
            severity=RiskSeverity.HIGH if counts.blocked > 2 else RiskSeverity.MEDIUM,
        ))

    if counts.in_progress == 0 and counts.incomplete > 0:
        actions.append(AdvisorAction(
            title="Restart active work",
            detail="No tasks are in progress while work remains",
            priority=ActionPriority.HIGH,
        ))
        risks.append(AdvisorRisk(
            title="Stalled project",
            detail="Nothing is moving; the schedule slips every idle day",
            severity=RiskSeverity.MEDIUM,
        ))

    if critical_not_started:
        actions.append(AdvisorAction(
            title="Kick off critical-path tasks",
            detail=f"{len(critical_not_started)} critical-path task(s) have not started",
            priority=ActionPriority.MEDIUM,
        ))
        risks.append(AdvisorRisk(
            title="Critical path exposure",
            detail=f"Unstarted critical tasks put up to {len(critical_not_started) * 5} days at risk",
            severity=RiskSeverity.MEDIUM,
        ))

    if project_progress < LOW_PROGRESS_PCT:
        actions.append(AdvisorAction(
            title="Confirm early-phase resourcing",
            detail=f"Project is only {project_progress}% complete",
            priority=ActionPriority.LOW,
        ))
        risks.append(AdvisorRisk(
            title="Early-stage uncertainty",
            detail="Forecasts carry wide error bars below 25% progress",
            severity=RiskSeverity.LOW,
        ))

    return AdvisorReport(
        health_score=score,
        status_label=status_label(score, counts.blocked),
        progress=project_progress,
        total_tasks=counts.total,
        completed_tasks=counts.complete,
        blocked_tasks=counts.blocked,
        in_progress_tasks=counts.in_progress,
        critical_path=critical_path_excerpt(tasks),
        top_actions=actions[:MAX_ITEMS],
        top_risks=risks[:MAX_ITEMS],
    )
