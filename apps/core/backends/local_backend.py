"""
Local Task Backend - Synchronous execution for development.

This backend executes tasks immediately in the same process.
No Redis, SQS, or external dependencies required.

Usage:
    Set TASK_BACKEND=local in your .env file.
"""

import uuid
import logging
from typing import Any, Dict
from apps.core.task_service import PROCESS_UPLOAD, TaskServiceInterface

logger = logging.getLogger(__name__)


# Task handler registry - maps task names to handler functions
TASK_HANDLERS = {}


def register_handler(task_name: str):
    """Decorator to register a task handler."""
    def decorator(func):
        TASK_HANDLERS[task_name] = func
        return func
    return decorator


class LocalTaskService(TaskServiceInterface):
    """
    Execute tasks synchronously in the same process.

    This is ideal for:
    - Local development without Docker/Redis
    - Unit testing with immediate execution
    - Debugging task logic

    Note: Redelivered uploads run immediately and recursively, so the
    backoff delay is not honoured. The ingestion attempt budget still
    bounds the recursion.
    """

    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """Execute task synchronously."""
        task_id = str(uuid.uuid4())

        logger.info(f"[LOCAL] Executing task {task_name} (id={task_id})")

        if delay_seconds > 0:
            logger.debug(
                f"[LOCAL] delay_seconds={delay_seconds} ignored in local backend"
            )

        handler = TASK_HANDLERS.get(task_name)
        if handler is None:
            raise ValueError(f"No handler registered for task: {task_name}")

        try:
            result = handler(**payload)
            logger.info(f"[LOCAL] Task {task_name} completed: {result}")
        except Exception as e:
            logger.exception(f"[LOCAL] Task {task_name} failed: {e}")
            raise

        return task_id


# =============================================================================
# Task Handlers - Import and register actual task implementations
# =============================================================================

@register_handler(PROCESS_UPLOAD)
def handle_process_upload(notification: Dict[str, str], attempt: int = 1):
    """Run one ingestion attempt for a redelivered upload notification."""
    from apps.ingestion.dtos import UploadNotification
    from apps.ingestion.services import handle_notification

    outcome = handle_notification(
        UploadNotification.from_payload(notification),
        attempt=attempt,
    )
    return outcome.value
