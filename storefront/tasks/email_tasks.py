"""Email background tasks"""

from celery import Task
from celery.utils.log import get_task_logger
from typing import Dict, Any

from storefront.core.celery_app import celery_app
from storefront.services.email import EmailService

logger = get_task_logger(__name__)


class EmailTask(Task):
    """Base email task with retry logic"""
    autoretry_for = (OSError,)
    retry_kwargs = {"max_retries": 3}
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True


@celery_app.task(base=EmailTask, name="storefront.tasks.email_tasks.send_notification_email")
def send_notification_email(to_email: str, event: str, context: Dict[str, Any]):
    """Render and send the email for a notification event"""
    if not to_email:
        logger.warning(f"No recipient for {event} email, skipping")
        return {"success": False, "error": "No recipient"}

    try:
        email_service = EmailService()
        subject, html_content = email_service.render(event, context)
    except KeyError:
        logger.error(f"No email template for event {event}")
        return {"success": False, "error": f"Unknown event {event}"}

    sent = email_service.send_email(to_email, subject, html_content)
    if sent:
        logger.info(f"{event} email sent to {to_email}")

    return {"success": sent}
