import uuid

from pydantic import BaseModel

from voltbuild.common.enums import ActionPriority, HealthLabel, RiskSeverity, TaskStatus


class AdvisorTaskInput(BaseModel):
    id: uuid.UUID | str
    name: str
    status: TaskStatus
    is_critical_path: bool = False
    phase_name: str | None = None


class CriticalPathItem(BaseModel):
    task_id: str
    name: str
    phase_name: str | None
    status: TaskStatus
    risk_days: int


class AdvisorAction(BaseModel):
    title: str
    detail: str
    priority: ActionPriority


class AdvisorRisk(BaseModel):
    title: str
    detail: str
    severity: RiskSeverity


class AdvisorReport(BaseModel):
    health_score: int
    status_label: HealthLabel
    progress: int
    total_tasks: int
    completed_tasks: int
    blocked_tasks: int
    in_progress_tasks: int
    critical_path: list[CriticalPathItem]
    top_actions: list[AdvisorAction]
    top_risks: list[AdvisorRisk]
