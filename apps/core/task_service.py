"""
TaskService - Abstraction layer for async task execution.

This module provides a platform-agnostic interface for executing background
tasks. The upload ingestion pipeline uses it to redeliver a notification
after a transient failure.

Usage:
    from apps.core.task_service import TaskService

    TaskService.redeliver_upload(notification.to_payload(), attempt=2, delay_seconds=4)

Environment Configuration:
    TASK_BACKEND=local   # Sync execution (development/tests)
    TASK_BACKEND=lambda  # AWS Lambda + SQS (production)
    TASK_BACKEND=celery  # Celery + Redis (fallback)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

from django.conf import settings

logger = logging.getLogger(__name__)

PROCESS_UPLOAD = "process_upload"


class TaskServiceInterface(ABC):
    """
    Abstract interface for async task execution.

    Implementations:
    - LocalTaskService: Sync execution for development/testing
    - LambdaTaskService: AWS Lambda + SQS for production
    - CeleryTaskService: Celery + Redis as fallback
    """

    @abstractmethod
    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """
        Queue a task for async execution.

        Args:
            task_name: Identifier for the task handler
            payload: Data to pass to the task
            delay_seconds: Delay before execution (0 = immediate)

        Returns:
            Task ID for tracking
        """


def _get_backend() -> TaskServiceInterface:
    """Get the configured task backend based on the TASK_BACKEND setting."""
    backend = getattr(settings, 'TASK_BACKEND', 'local')

    if backend == 'local':
        from apps.core.backends.local_backend import LocalTaskService
        return LocalTaskService()
    elif backend == 'lambda':
        from apps.core.backends.lambda_backend import LambdaTaskService
        return LambdaTaskService()
    elif backend == 'celery':
        from apps.core.backends.celery_backend import CeleryTaskService
        return CeleryTaskService()
    else:
        raise ValueError(f"Unknown TASK_BACKEND: {backend}")


class TaskService:
    """
    Facade for sending async tasks.

    This class provides static methods for each task type,
    delegating to the configured backend.
    """

    @staticmethod
    def redeliver_upload(
        notification: Dict[str, str],
        attempt: int,
        delay_seconds: int = 0,
    ) -> str:
        """
        Queue another ingestion attempt for an upload notification.

        Used by: ingestion retry policy after StoreUnavailable or
        InferenceUnavailable. The whole notification is replayed from
        step one; every step is an idempotent field overwrite.
        """
        logger.info(
            f"Queueing {PROCESS_UPLOAD} attempt {attempt} for "
            f"{notification.get('containerName')}/{notification.get('objectKey')} "
            f"in {delay_seconds}s"
        )
        return _get_backend().send_task(
            task_name=PROCESS_UPLOAD,
            payload={"notification": notification, "attempt": attempt},
            delay_seconds=delay_seconds,
        )
