"""Celery worker and beat configuration for background asset maintenance.

Run a worker with beat embedded:

    celery -A src.celery_app worker --beat --loglevel=info
"""

from celery import Celery

from src.config import get_settings

settings = get_settings()

app = Celery(
    "recipe_import",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["src.tasks.asset_cleanup"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "sweep-orphaned-assets": {
            "task": "tasks.sweep_orphaned_assets",
            "schedule": float(settings.orphan_sweep_interval_seconds),
            # A sweep still queued when the next one is due is dropped
            "options": {"expires": settings.orphan_sweep_interval_seconds},
        },
    },
)
