"""Celery tasks for Ingestion app."""
from celery import shared_task

from .dtos import UploadNotification
from .services import handle_notification


@shared_task(acks_late=True)
def process_upload_notification(notification, attempt=1):
    """
    Run one ingestion attempt for a redelivered upload notification.

    Queued by CeleryTaskService with the backoff as countdown.
    """
    outcome = handle_notification(UploadNotification.from_payload(notification), attempt=attempt)
    return outcome.value
