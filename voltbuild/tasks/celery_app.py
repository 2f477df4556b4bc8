from celery import Celery
from celery.schedules import crontab

from voltbuild.config import settings

app = Celery(
    "voltbuild",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "voltbuild.tasks.forecast_tasks.*": {"queue": "forecasts"},
        "voltbuild.tasks.report_tasks.*": {"queue": "reports"},
    },
    beat_schedule={
        "snapshot-nightly-forecasts": {
            "task": "voltbuild.tasks.forecast_tasks.snapshot_all_forecasts",
            "schedule": crontab(hour=2, minute=0),
        },
        "generate-weekly-reports": {
            "task": "voltbuild.tasks.report_tasks.generate_all_weekly_reports",
            "schedule": crontab(hour=6, minute=30, day_of_week="mon"),
        },
        "refresh-exchange-rate": {
            "task": "voltbuild.tasks.forecast_tasks.refresh_exchange_rate",
            "schedule": crontab(minute=0, hour="*/6"),
        },
    },
)

app.autodiscover_tasks(
    [
        "voltbuild.tasks.forecast_tasks",
        "voltbuild.tasks.report_tasks",
    ]
)
