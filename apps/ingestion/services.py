"""
Ingestion services - retry policy and event adapters around the pipeline.

Retry policy:
- RetriableError (StoreUnavailable, InferenceUnavailable): the whole
  notification is redelivered through TaskService with exponential backoff,
  up to INGESTION_MAX_ATTEMPTS attempts; the last failing attempt is
  dead-lettered.
- TerminalError (MalformedKey, RecordNotFound, InferenceRejected):
  dead-lettered at once, never retried.

Any other exception is a bug, not a classified failure, and propagates to
the invoking platform.
"""
import logging
from typing import Any, Dict, List

from django.conf import settings
from django.utils import timezone

from apps.core.errors import PipelineError, RetriableError
from apps.core.task_service import TaskService

from . import runtime
from .dtos import Outcome, UploadNotification
from .models import FailedNotification, FailedNotificationStatus

logger = logging.getLogger(__name__)

OBJECT_CREATED_PREFIX = 'ObjectCreated'


def backoff_delay(attempt: int) -> int:
    """
    Seconds to wait before attempt `attempt + 1`.

    base * 2**(attempt - 1), capped at INGESTION_BACKOFF_MAX_SECONDS.
    """
    base = settings.INGESTION_BACKOFF_BASE_SECONDS
    cap = settings.INGESTION_BACKOFF_MAX_SECONDS
    return int(min(base * (2 ** max(attempt - 1, 0)), cap))


def handle_notification(notification: UploadNotification, attempt: int = 1) -> Outcome:
    """
    Run one ingestion attempt and route its failure, if any.

    Args:
        notification: The landing-zone notification
        attempt: 1 for the first delivery, incremented on every redelivery

    Returns:
        COMPLETED, RETRY_SCHEDULED or DEAD_LETTERED
    """
    pipeline = runtime.get_pipeline()

    try:
        result = pipeline.run(notification)
    except PipelineError as e:
        return _route_failure(notification, e, attempt)

    logger.info(
        f"Ingested s3://{notification.container}/{notification.object_key} "
        f"into task {result.owner}/{result.task_id} on attempt {attempt}: {result.labels}"
    )
    return Outcome.COMPLETED


def _route_failure(notification: UploadNotification, error: PipelineError, attempt: int) -> Outcome:
    max_attempts = settings.INGESTION_MAX_ATTEMPTS

    if isinstance(error, RetriableError) and attempt < max_attempts:
        delay = backoff_delay(attempt)
        logger.warning(
            f"Attempt {attempt}/{max_attempts} for s3://{notification.container}/"
            f"{notification.object_key} failed with {error.code}; retrying in {delay}s"
        )
        TaskService.redeliver_upload(
            notification.to_payload(),
            attempt=attempt + 1,
            delay_seconds=delay,
        )
        return Outcome.RETRY_SCHEDULED

    if isinstance(error, RetriableError):
        logger.error(
            f"Giving up on s3://{notification.container}/{notification.object_key} "
            f"after {attempt} attempts: {error.code}"
        )

    runtime.get_dead_letter_sink().send(notification, error, attempts=attempt)
    return Outcome.DEAD_LETTERED


def notifications_from_s3_event(event: Dict[str, Any]) -> List[UploadNotification]:
    """
    Extract upload notifications from an S3 event.

    Every ObjectCreated record is returned; other event types (removals,
    the s3:TestEvent sent on configuration) are skipped.
    """
    notifications = []
    for record in event.get('Records', []):
        if 's3' not in record:
            logger.warning(f"Skipping non-S3 record: {record.get('eventSource')}")
            continue
        event_name = record.get('eventName', OBJECT_CREATED_PREFIX)
        if not event_name.startswith(OBJECT_CREATED_PREFIX):
            logger.info(f"Skipping S3 event {event_name}")
            continue
        notifications.append(UploadNotification.from_s3_record(record))
    return notifications


def replay_failed_notification(failed: FailedNotification) -> Outcome:
    """
    Run a dead-lettered notification again from its first attempt.

    The dead-letter row is marked REPLAYED whatever the outcome; a new
    failure produces a new row.
    """
    notification = UploadNotification(container=failed.container, object_key=failed.object_key)
    logger.info(f"Replaying dead letter {failed.id} ({failed.error_code})")

    outcome = handle_notification(notification, attempt=1)

    failed.status = FailedNotificationStatus.REPLAYED
    failed.replay_outcome = outcome.value
    failed.replayed_at = timezone.now()
    failed.save(update_fields=['status', 'replay_outcome', 'replayed_at'])
    return outcome
