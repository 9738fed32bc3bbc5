"""
Celery Task Backend - Async execution via Celery + Redis.

Serves as a fallback option if Lambda doesn't meet requirements.

Usage:
    Set TASK_BACKEND=celery in your .env file.
    Requires Redis and a Celery worker (celery -A config worker).
"""

import uuid
import logging
from typing import Any, Dict

from apps.core.task_service import PROCESS_UPLOAD, TaskServiceInterface

logger = logging.getLogger(__name__)

# Map task names to registered Celery task names
CELERY_TASKS = {
    PROCESS_UPLOAD: "apps.ingestion.tasks.process_upload_notification",
}


def _get_celery_task_name(task_name: str) -> str:
    """Get the registered Celery task name for a task name."""
    task_path = CELERY_TASKS.get(task_name)
    if not task_path:
        raise ValueError(f"No Celery task mapped for: {task_name}")
    return task_path


class CeleryTaskService(TaskServiceInterface):
    """
    Execute tasks via Celery + Redis.

    Tasks are sent by name, so the sending process does not need the
    worker's task modules loaded. The backoff delay becomes the countdown.
    """

    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """Queue task via Celery."""
        from config.celery import app

        task_id = str(uuid.uuid4())
        task_path = _get_celery_task_name(task_name)

        logger.info(f"[CELERY] Queueing task {task_name} (id={task_id}, countdown={delay_seconds}s)")

        app.send_task(
            task_path,
            kwargs=payload,
            countdown=delay_seconds if delay_seconds > 0 else None,
            task_id=task_id,
        )
        return task_id
