"""Commissioning checklist templates, checklist status, and energization gates.

A gate stays blocked until every checklist it depends on is complete.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from voltbuild.common.enums import CommissioningStatus, GateStatus
from voltbuild.core.progress.rollup import round_half_up
from voltbuild.db.models.commissioning import CommissioningChecklist


class ChecklistItem(BaseModel):
    description: str
    required: bool = True
    requires_evidence: bool = False
    completed: bool = False
    evidence_url: str | None = None


class ChecklistTemplate(BaseModel):
    checklist_type: str
    name: str
    items: list[ChecklistItem]


class CommissioningStats(BaseModel):
    total: int
    not_started: int
    in_progress: int
    complete: int


class GateDetail(BaseModel):
    required: int
    complete: int
    outstanding: list[str]
    missing_checklist_ids: list[str]
    status: GateStatus


def _item(description: str, evidence: bool = True, required: bool = True) -> ChecklistItem:
    return ChecklistItem(description=description, required=required, requires_evidence=evidence)


CHECKLIST_TEMPLATES: tuple[ChecklistTemplate, ...] = (
    ChecklistTemplate(
        checklist_type="electrical",
        name="Electrical Pre-Energization Checklist",
        items=[
            _item("Verify all cable terminations are complete and torqued"),
            _item("Confirm grounding system is connected and tested"),
            _item("Check all breakers in OFF position", evidence=False),
            _item("Verify protective relay settings"),
            _item("Complete insulation resistance testing"),
            _item("Remove all construction debris from electrical rooms", evidence=False),
            _item("Confirm fire suppression system is operational"),
        ],
    ),
    ChecklistTemplate(
        checklist_type="mechanical",
        name="Mechanical Commissioning Checklist",
        items=[
            _item("Verify all HVAC equipment is installed per specifications"),
            _item("Confirm cooling system leak tests completed"),
            _item("Check all valves and dampers for proper operation", evidence=False),
            _item("Verify BMS integration and control sequences"),
            _item("Complete air balancing and document CFM readings"),
        ],
    ),
    ChecklistTemplate(
        checklist_type="it",
        name="IT/Network Verification Checklist",
        items=[
            _item("Verify fiber connectivity to all cabinets"),
            _item("Test network switch operation"),
            _item("Confirm DCIM integration"),
            _item("Verify remote access and monitoring", evidence=False),
            _item("Document IP addressing scheme", evidence=False, required=False),
        ],
    ),
    ChecklistTemplate(
        checklist_type="safety",
        name="Safety Inspection Checklist",
        items=[
            _item("Emergency exits clearly marked and unobstructed"),
            _item("Fire extinguishers in place and inspected"),
            _item("First aid kits stocked and accessible", evidence=False),
            _item("PPE requirements posted", evidence=False),
            _item("Emergency contact information displayed", evidence=False),
        ],
    ),
    ChecklistTemplate(
        checklist_type="final",
        name="Final Walkthrough Checklist",
        items=[
            _item("All punch list items completed"),
            _item("As-built drawings delivered"),
            _item("O&M manuals delivered", evidence=False),
            _item("Training completed for operations staff"),
            _item("Warranty documentation received", evidence=False),
            _item("Final cleaning completed", evidence=False),
        ],
    ),
)


def get_template(checklist_type: str) -> ChecklistTemplate | None:
    for template in CHECKLIST_TEMPLATES:
        if template.checklist_type == checklist_type:
            return template
    return None


def checklist_progress(items: Sequence[ChecklistItem]) -> int:
    if not items:
        return 0
    done = sum(1 for i in items if i.completed)
    return round_half_up(100 * done / len(items))


def checklist_status(items: Sequence[ChecklistItem]) -> CommissioningStatus:
    """Complete once every required item is done; optional items never hold it back.

    A checklist made only of optional items needs all of them.
    """
    if not any(i.completed for i in items):
        return CommissioningStatus.NOT_STARTED
    required = [i for i in items if i.required] or list(items)
    if all(i.completed for i in required):
        return CommissioningStatus.COMPLETE
    return CommissioningStatus.IN_PROGRESS


def commissioning_stats(checklists: Iterable[CommissioningChecklist]) -> CommissioningStats:
    by_status = {s: 0 for s in CommissioningStatus}
    total = 0
    for checklist in checklists:
        by_status[CommissioningStatus(checklist.status)] += 1
        total += 1
    return CommissioningStats(
        total=total,
        not_started=by_status[CommissioningStatus.NOT_STARTED],
        in_progress=by_status[CommissioningStatus.IN_PROGRESS],
        complete=by_status[CommissioningStatus.COMPLETE],
    )


def gate_detail(
    required_ids: Sequence[str], checklists: dict[uuid.UUID, CommissioningChecklist]
) -> GateDetail:
    """Evaluate a gate against the project's live checklists.

    A required checklist that has since been deleted counts as missing and
    keeps the gate blocked.
    """
    complete = 0
    outstanding: list[str] = []
    missing: list[str] = []
    for raw_id in required_ids:
        checklist = checklists.get(uuid.UUID(str(raw_id)))
        if checklist is None:
            missing.append(str(raw_id))
        elif checklist.status == CommissioningStatus.COMPLETE.value:
            complete += 1
        else:
            outstanding.append(checklist.name)

    ready = bool(required_ids) and not outstanding and not missing
    return GateDetail(
        required=len(required_ids),
        complete=complete,
        outstanding=outstanding,
        missing_checklist_ids=missing,
        status=GateStatus.READY if ready else GateStatus.BLOCKED,
    )
