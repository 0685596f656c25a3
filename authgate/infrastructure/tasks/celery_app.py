"""Celery application configuration for background tasks."""

from celery import Celery
from celery.signals import setup_logging

from authgate.config import get_settings

settings = get_settings()

celery_app = Celery(
    "authgate",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "authgate.infrastructure.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_routes={
        "authgate.infrastructure.tasks.maintenance_tasks.*": {"queue": "maintenance"},
    },

    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,

    result_expires=3600,  # 1 hour

    task_default_retry_delay=60,  # 1 minute
    task_max_retries=3,

    beat_schedule={
        "sweep-expired-auth-state": {
            "task": "authgate.infrastructure.tasks.maintenance_tasks.sweep_expired_auth_state",
            "schedule": float(settings.sweep_interval_seconds),
        },
    },
)


@setup_logging.connect
def config_loggers(*args, **kwargs):
    """Configure Celery logging."""
    from logging.config import dictConfig
    from authgate.utils.logging import get_logging_config

    dictConfig(get_logging_config())

