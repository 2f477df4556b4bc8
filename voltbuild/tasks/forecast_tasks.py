import uuid

from voltbuild.common.logging import get_logger
from voltbuild.tasks.celery_app import app
from voltbuild.tasks.common import run_async, active_project_ids

logger = get_logger("tasks.forecast")


@app.task(name="voltbuild.tasks.forecast_tasks.snapshot_forecast")
def snapshot_forecast(project_id: str):
    logger.info("Generating forecast snapshot for project %s", project_id)

    async def _generate():
        from sqlalchemy import select

        from voltbuild.core.forecasting.service import ForecastingService
        from voltbuild.db.models.project import Project
        from voltbuild.db.session import async_session_factory

        async with async_session_factory() as db:
            try:
                result = await db.execute(
                    select(Project).where(
                        Project.id == uuid.UUID(project_id), Project.is_deleted.is_(False)
                    )
                )
                project = result.scalar_one_or_none()
                if project is None:
                    logger.warning("Project %s not found, skipping forecast", project_id)
                    return None
                snapshot = await ForecastingService().create_snapshot(project, db)
                await db.commit()
                return str(snapshot.id)
            except Exception as e:
                await db.rollback()
                logger.error("Forecast failed for project %s: %s", project_id, e)
                raise

    return run_async(_generate())


@app.task(name="voltbuild.tasks.forecast_tasks.snapshot_all_forecasts")
def snapshot_all_forecasts():
    """Celery Beat task: one forecast snapshot per active project."""

    async def _queue_all():
        from voltbuild.db.session import async_session_factory

        async with async_session_factory() as db:
            project_ids = await active_project_ids(db)
        for project_id in project_ids:
            snapshot_forecast.delay(project_id)
        logger.info("Queued forecasts for %d active projects", len(project_ids))
        return len(project_ids)

    return run_async(_queue_all())


@app.task(name="voltbuild.tasks.forecast_tasks.refresh_exchange_rate")
def refresh_exchange_rate():
    from voltbuild.integrations.exchange_rate import ExchangeRateClient

    rate = run_async(ExchangeRateClient().get_cad_usd_rate())
    logger.info("CAD->USD rate %.4f from %s", rate.rate, rate.source)
    return {"rate": rate.rate, "source": rate.source}
