"""
Lambda Task Backend - redelivery through an SQS queue consumed by Lambda.

Each task becomes one message on TASK_QUEUE_URL; lambda_handlers.sqs_task_handler
picks it up and runs the registered handler. The ingestion backoff travels
as the message's DelaySeconds, so no worker sleeps while waiting.

Settings:
    TASK_BACKEND=lambda
    TASK_QUEUE_URL: queue the sqs_task_handler function is subscribed to
    AWS_REGION, AWS_CONNECT_TIMEOUT, AWS_READ_TIMEOUT: see apps.core.aws
"""

import json
import uuid
import logging
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from apps.core.task_service import TaskServiceInterface

logger = logging.getLogger(__name__)

# SQS refuses DelaySeconds above 15 minutes
SQS_MAX_DELAY_SECONDS = 900


def _string_attribute(value: Any) -> Dict[str, str]:
    return {'DataType': 'String', 'StringValue': str(value)}


class LambdaTaskService(TaskServiceInterface):
    """Queue tasks on SQS for the task-processing Lambda."""

    def __init__(self, sqs_client=None, queue_url: Optional[str] = None):
        self._sqs_client = sqs_client
        self._queue_url = queue_url or getattr(settings, 'TASK_QUEUE_URL', None)

        if not self._queue_url:
            logger.warning("[LAMBDA] TASK_QUEUE_URL not set; send_task will fail.")

    @property
    def sqs_client(self):
        """Lazy initialization of SQS client."""
        if self._sqs_client is None:
            from apps.core.aws import create_boto3_client
            self._sqs_client = create_boto3_client('sqs')
        return self._sqs_client

    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """
        Send one task message.

        Raises:
            RuntimeError: no queue configured
            ClientError / BotoCoreError: SQS refused or could not be reached;
                the caller's own delivery is then retried by its platform
        """
        if not self._queue_url:
            raise RuntimeError("TASK_QUEUE_URL is not configured.")

        task_id = str(uuid.uuid4())
        delay = max(0, min(delay_seconds, SQS_MAX_DELAY_SECONDS))
        if delay != delay_seconds:
            logger.warning(f"[LAMBDA] Delay {delay_seconds}s for {task_name} clamped to {delay}s")

        attributes = {
            'TaskName': _string_attribute(task_name),
            'TaskId': _string_attribute(task_id),
        }
        if 'attempt' in payload:
            attributes['Attempt'] = {'DataType': 'Number', 'StringValue': str(payload['attempt'])}

        try:
            response = self.sqs_client.send_message(
                QueueUrl=self._queue_url,
                MessageBody=json.dumps({
                    "task_id": task_id,
                    "task_name": task_name,
                    "payload": payload,
                }),
                DelaySeconds=delay,
                MessageAttributes=attributes,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"[LAMBDA] Could not queue {task_name} (id={task_id}): {e}")
            raise

        logger.info(
            f"[LAMBDA] Queued {task_name} (id={task_id}, delay={delay}s, "
            f"MessageId={response['MessageId']})"
        )
        return task_id
