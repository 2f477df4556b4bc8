import uuid

from voltbuild.common.enums import ReportType
from voltbuild.common.logging import get_logger
from voltbuild.tasks.celery_app import app
from voltbuild.tasks.common import run_async, active_project_ids

logger = get_logger("tasks.report")


@app.task(name="voltbuild.tasks.report_tasks.generate_report")
def generate_report(project_id: str, report_type: str = ReportType.WEEKLY.value):
    logger.info("Generating %s report for project %s", report_type, project_id)

    async def _generate():
        from voltbuild.core.reporting.service import ReportingService
        from voltbuild.db.session import async_session_factory

        async with async_session_factory() as db:
            try:
                report = await ReportingService().generate_report(
                    uuid.UUID(project_id), db, report_type=ReportType(report_type)
                )
                await db.commit()
                return str(report.id)
            except Exception as e:
                await db.rollback()
                logger.error("Report generation failed for project %s: %s", project_id, e)
                raise

    return run_async(_generate())


@app.task(name="voltbuild.tasks.report_tasks.generate_all_weekly_reports")
def generate_all_weekly_reports():
    """Celery Beat task: weekly reports for all active projects."""

    async def _queue_all():
        from voltbuild.db.session import async_session_factory

        async with async_session_factory() as db:
            project_ids = await active_project_ids(db)
        for project_id in project_ids:
            generate_report.delay(project_id, ReportType.WEEKLY.value)
        logger.info("Queued weekly reports for %d active projects", len(project_ids))
        return len(project_ids)

    return run_async(_queue_all())
