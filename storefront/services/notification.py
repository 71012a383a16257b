"""
Notification service for order and account events

Delivery is fire-and-forget: notify() returns immediately and the work
happens on a background task. Failures are logged and never reach the caller.
"""

from typing import Any, Callable, Dict, Optional, Set
import asyncio
import logging

logger = logging.getLogger(__name__)

Dispatcher = Callable[[int, str, Dict[str, Any]], Any]


def enqueue_email(user_id: int, event: str, payload: Dict[str, Any]) -> Any:
    """Hand the notification to the Celery email queue"""
    from storefront.tasks.email_tasks import send_notification_email

    return send_notification_email.apply_async(
        kwargs={
            "to_email": payload.get("email"),
            "event": event,
            "context": payload,
        },
        queue="email",
    )


class NotificationService:
    """Dispatches notifications without blocking or failing the caller"""

    def __init__(self, dispatcher: Optional[Dispatcher] = None):
        self.dispatcher = dispatcher or enqueue_email
        self._pending: Set[asyncio.Task] = set()

    def notify(self, user_id: int, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        """Schedule delivery of an event notification for a user"""
        try:
            loop = asyncio.get_running_loop()
            task = loop.create_task(self._deliver(user_id, event, dict(payload or {})))
        except Exception as e:
            logger.error(f"Could not schedule {event} notification for user {user_id}: {str(e)}")
            return

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, user_id: int, event: str, payload: Dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
            # Broker publishing is blocking I/O
            await loop.run_in_executor(None, self.dispatcher, user_id, event, payload)
            logger.info(f"Notification {event} dispatched for user {user_id}")
        except Exception as e:
            logger.error(f"Failed to dispatch {event} notification for user {user_id}: {str(e)}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries to finish"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
