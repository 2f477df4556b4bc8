from pydantic import BaseModel


class ReportKPIs(BaseModel):
    completion_percentage: int
    tasks_completed: int
    tasks_total: int
    open_blockers: int
    open_risks: int
    open_punch_items: int
    open_rfis: int
    overdue_rfis: int
    labor_hours: float
    safety_incidents: int
    days_to_rfs: int | None
    capex_budget: float | None
    projected_capex: float | None
