"""
Seed script for VoltBuild.

Creates demo users and one mining facility project with the default plan,
partial progress, risks, field records and a first forecast snapshot.

Usage:
    python -m voltbuild.scripts.seed
"""

import asyncio
import uuid
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select

from voltbuild.api.v1.projects import seed_default_plan
from voltbuild.common.enums import (
    CoolingType,
    Discipline,
    ProjectStatus,
    PunchPriority,
    PunchStatus,
    RFIPriority,
    RFIStatus,
    RiskSeverity,
    RiskStatus,
    SubcontractorStatus,
    TaskStatus,
    UserRole,
    UtilityMilestoneStatus,
)
from voltbuild.common.logging import setup_logging
from voltbuild.common.security import get_password_hash
from voltbuild.core.forecasting.service import ForecastingService
from voltbuild.core.progress.service import ProgressService
from voltbuild.core.projects.queries import get_project_tasks
from voltbuild.db.models import (
    RFI,
    Project,
    PunchItem,
    Risk,
    Subcontractor,
    User,
    UtilityStatusUpdate,
)
from voltbuild.db.session import async_session_factory, create_all


async def main() -> None:
    setup_logging()
    await create_all()

    async with async_session_factory() as session:
        # Guard: skip if already seeded
        result = await session.execute(select(User).where(User.email == "admin@voltbuild.io"))
        if result.scalar_one_or_none() is not None:
            print("Database already seeded -- skipping.")
            return

        # ==================================================================
        # USERS
        # ==================================================================
        hashed = get_password_hash("voltbuild123")
        owner = User(
            id=uuid.uuid4(),
            email="owner@voltbuild.io",
            hashed_password=hashed,
            full_name="Dana Whitfield",
            company="Northern Hash Capital",
            role=UserRole.OWNER.value,
        )
        engineer = User(
            id=uuid.uuid4(),
            email="engineer@voltbuild.io",
            hashed_password=hashed,
            full_name="Priya Natarajan",
            company="Gridline Engineering",
            role=UserRole.ENGINEER.value,
        )
        contractor = User(
            id=uuid.uuid4(),
            email="contractor@voltbuild.io",
            hashed_password=hashed,
            full_name="Luis Ortega",
            company="Prairie Electrical Contractors",
            role=UserRole.CONTRACTOR.value,
        )
        admin = User(
            id=uuid.uuid4(),
            email="admin@voltbuild.io",
            hashed_password=hashed,
            full_name="Admin User",
            role=UserRole.ADMIN.value,
        )
        session.add_all([owner, engineer, contractor, admin])

        # ==================================================================
        # PROJECT + DEFAULT PLAN
        # ==================================================================
        today = date.today()
        project = Project(
            id=uuid.uuid4(),
            owner_id=owner.id,
            name="Lakeland 50 MW",
            description="Hydro-cooled mining facility next to the Lakeland substation",
            target_capacity_mw=50,
            cooling_type=CoolingType.HYDRO.value,
            utility="AltaLink",
            location="Lakeland County, Alberta",
            planned_start_date=today - timedelta(days=60),
            planned_end_date=today + timedelta(days=150),
            actual_start_date=today - timedelta(days=58),
            capex_budget=Decimal("42000000.00"),
            status=ProjectStatus.IN_PROGRESS.value,
        )
        session.add(project)
        phases = seed_default_plan(project, session)
        await session.flush()

        # Site preparation done, interconnection under way with one blocker
        tasks = await get_project_tasks(project.id, session)
        for task in tasks:
            if task.phase_id == phases[0].id:
                task.status = TaskStatus.COMPLETE.value
                task.actual_start_date = today - timedelta(days=55)
                task.actual_end_date = today - timedelta(days=30)
        interconnection = [t for t in tasks if t.phase_id == phases[1].id]
        interconnection[0].status = TaskStatus.COMPLETE.value
        interconnection[1].status = TaskStatus.IN_PROGRESS.value
        interconnection[1].actual_start_date = today - timedelta(days=20)
        interconnection[2].status = TaskStatus.BLOCKED.value
        interconnection[2].notes = "Waiting on utility facility study"
        await session.flush()

        await ProgressService().recalculate_all_phases(project.id, session)

        # ==================================================================
        # RISKS + FIELD RECORDS
        # ==================================================================
        session.add_all([
            Risk(
                project_id=project.id,
                phase_id=phases[1].id,
                title="Facility study delay",
                description="Utility has not confirmed the facility study start date",
                severity=RiskSeverity.HIGH.value,
                status=RiskStatus.OPEN.value,
                mitigation_plan="Weekly escalation call with the utility account manager",
                owner="Dana Whitfield",
            ),
            Risk(
                project_id=project.id,
                title="Transformer lead time",
                description="2500 kVA pad-mount transformers quoted at 40+ weeks",
                severity=RiskSeverity.MEDIUM.value,
                status=RiskStatus.OPEN.value,
                owner="Priya Natarajan",
            ),
            PunchItem(
                project_id=project.id,
                phase_id=phases[0].id,
                item_number="PL-001",
                description="Regrade drainage swale on the east pad",
                location="East pad",
                responsible_party="Prairie Earthworks",
                priority=PunchPriority.B.value,
                status=PunchStatus.OPEN.value,
                identified_date=today - timedelta(days=10),
                due_date=today + timedelta(days=7),
            ),
            RFI(
                project_id=project.id,
                phase_id=phases[1].id,
                rfi_number="RFI-001",
                subject="Metering point location",
                question="Confirm revenue metering on the high side of the main transformer.",
                submitted_by="Priya Natarajan",
                submitted_date=today - timedelta(days=12),
                assigned_to="AltaLink",
                due_date=today - timedelta(days=2),
                status=RFIStatus.OPEN.value,
                priority=RFIPriority.HIGH.value,
                discipline=Discipline.ELECTRICAL.value,
            ),
            Subcontractor(
                project_id=project.id,
                company_name="Prairie Electrical Contractors",
                trade="electrical",
                contact_name="Luis Ortega",
                contact_email="contractor@voltbuild.io",
                status=SubcontractorStatus.ACTIVE.value,
                contract_value=Decimal("6400000.00"),
                contract_date=today - timedelta(days=45),
                insurance_expiry=today + timedelta(days=20),
                wcb_expiry=today + timedelta(days=200),
                safety_rating=4,
                performance_rating=4,
            ),
            UtilityStatusUpdate(
                project_id=project.id,
                utility="AltaLink",
                milestone="System impact study",
                status=UtilityMilestoneStatus.COMPLETE.value,
                last_update_date=today - timedelta(days=25),
            ),
            UtilityStatusUpdate(
                project_id=project.id,
                utility="AltaLink",
                milestone="Facility study",
                status=UtilityMilestoneStatus.DELAYED.value,
                last_update_date=today - timedelta(days=3),
            ),
        ])
        await session.flush()

        await ForecastingService().create_snapshot(project, session, today=today)
        await session.commit()

        print(f"Seeded: 4 users, 1 project, {len(phases)} phases, {len(tasks)} tasks")


if __name__ == "__main__":
    asyncio.run(main())
