"""Celery app for the email worker; notifications are published to the email queue"""

from celery import Celery
from kombu import Exchange, Queue

from storefront.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "storefront",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "storefront.tasks.email_tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,

    # Task routing
    task_routes={
        "storefront.tasks.email_tasks.*": {"queue": "email"},
    },

    # Retries for tasks without their own policy
    task_default_retry_delay=60,
    task_max_retries=3,

    result_expires=3600,
)

# Queues the worker consumes
celery_app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("email", Exchange("email"), routing_key="email"),
)
