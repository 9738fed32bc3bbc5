"""
Dead-letter sinks for upload notifications the pipeline gave up on.

    DEAD_LETTER_BACKEND=database  # FailedNotification rows, visible in admin
    DEAD_LETTER_BACKEND=sqs       # JSON message on DEAD_LETTER_QUEUE_URL

A failing sink raises: the notification must not disappear silently, so the
invoking platform gets the error and redelivers.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from django.conf import settings

from apps.core.errors import PipelineError

from .dtos import UploadNotification
from .models import FailedNotification

logger = logging.getLogger(__name__)


def _failed_step(error: PipelineError) -> str:
    step = getattr(error, 'step', None)
    return step.value if step is not None else ''


class DeadLetterSinkInterface(ABC):
    """
    Abstract interface for the operator-visible failure sink.

    Implementations:
    - DatabaseDeadLetterSink: FailedNotification model
    - SQSDeadLetterSink: SQS dead-letter queue
    """

    @abstractmethod
    def send(self, notification: UploadNotification, error: PipelineError, attempts: int) -> str:
        """
        Record a failed notification.

        Returns:
            Identifier of the dead-letter entry
        """


class DatabaseDeadLetterSink(DeadLetterSinkInterface):

    def send(self, notification: UploadNotification, error: PipelineError, attempts: int) -> str:
        failed = FailedNotification.objects.create(
            container=notification.container,
            object_key=notification.object_key,
            error_code=error.code,
            error_message=error.message,
            failed_step=_failed_step(error),
            attempts=attempts,
        )
        logger.error(
            f"[DLQ] s3://{notification.container}/{notification.object_key} "
            f"dead-lettered as {failed.id}: {error.code} after {attempts} attempt(s)"
        )
        return str(failed.id)


class SQSDeadLetterSink(DeadLetterSinkInterface):

    def __init__(self, sqs_client=None, queue_url: Optional[str] = None):
        self._sqs_client = sqs_client
        self._queue_url = queue_url or getattr(settings, 'DEAD_LETTER_QUEUE_URL', None)

    @property
    def sqs_client(self):
        """Lazy initialization of SQS client."""
        if self._sqs_client is None:
            from apps.core.aws import create_boto3_client
            self._sqs_client = create_boto3_client('sqs')
        return self._sqs_client

    def send(self, notification: UploadNotification, error: PipelineError, attempts: int) -> str:
        if not self._queue_url:
            raise RuntimeError("DEAD_LETTER_QUEUE_URL is not configured.")

        body = json.dumps({
            "notification": notification.to_payload(),
            "error_code": error.code,
            "error_message": error.message,
            "failed_step": _failed_step(error),
            "attempts": attempts,
            "failed_at": datetime.now(timezone.utc).isoformat(),
        })
        response = self.sqs_client.send_message(
            QueueUrl=self._queue_url,
            MessageBody=body,
            MessageAttributes={
                'ErrorCode': {
                    'DataType': 'String',
                    'StringValue': error.code,
                },
            },
        )
        logger.error(
            f"[DLQ] s3://{notification.container}/{notification.object_key} "
            f"dead-lettered to SQS ({response['MessageId']}): {error.code} after {attempts} attempt(s)"
        )
        return response['MessageId']


def get_dead_letter_sink() -> DeadLetterSinkInterface:
    """Get the configured sink based on the DEAD_LETTER_BACKEND setting."""
    backend = getattr(settings, 'DEAD_LETTER_BACKEND', 'database')

    if backend == 'database':
        return DatabaseDeadLetterSink()
    elif backend == 'sqs':
        return SQSDeadLetterSink()
    else:
        raise ValueError(f"Unknown DEAD_LETTER_BACKEND: {backend}")
