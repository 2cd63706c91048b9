# app/config/celery_config.py
"""Celery application factory and beat schedule"""
from celery import Celery
from celery.schedules import crontab

from app.config.settings import get_settings

settings = get_settings()

TASK_MODULES = [
    "app.tasks.session_tasks",
]


def create_celery_app() -> Celery:
    """Create and configure the Celery application"""
    app = Celery(
        "campus_scheduling",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=TASK_MODULES,
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        result_expires=3600,
    )

    # Reminders go out once an hour for sessions 23-25h away
    app.conf.beat_schedule = {
        "send-session-reminders": {
            "task": "app.tasks.session_tasks.send_session_reminders",
            "schedule": crontab(minute=0),
        },
    }

    return app


celery_app = create_celery_app()
