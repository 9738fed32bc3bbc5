import uuid
from django.db import models


class FailureCode(models.TextChoices):
    MALFORMED_KEY = 'MALFORMED_KEY', 'Malformed Key'
    RECORD_NOT_FOUND = 'RECORD_NOT_FOUND', 'Record Not Found'
    INFERENCE_REJECTED = 'INFERENCE_REJECTED', 'Inference Rejected'
    STORE_UNAVAILABLE = 'STORE_UNAVAILABLE', 'Store Unavailable'
    INFERENCE_UNAVAILABLE = 'INFERENCE_UNAVAILABLE', 'Inference Unavailable'
    STORE_REJECTED = 'STORE_REJECTED', 'Store Rejected'


class FailedNotificationStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    REPLAYED = 'REPLAYED', 'Replayed'


class FailedNotification(models.Model):
    """
    Dead-letter record of an upload notification the pipeline gave up on.

    Terminal failures land here after one attempt; transient failures after
    the attempt budget is spent. Operators review them in the admin and can
    replay them with `manage.py replay_failed_uploads`.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    container = models.CharField(max_length=255)
    object_key = models.TextField(help_text="Key as delivered (URL-encoded)")

    error_code = models.CharField(max_length=30, choices=FailureCode.choices)
    error_message = models.TextField(blank=True)
    failed_step = models.CharField(max_length=30, blank=True)
    attempts = models.PositiveIntegerField(default=1)

    status = models.CharField(
        max_length=20,
        choices=FailedNotificationStatus.choices,
        default=FailedNotificationStatus.PENDING,
    )
    replay_outcome = models.CharField(max_length=30, blank=True)
    replayed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Failed Notification"
        verbose_name_plural = "Failed Notifications"

    def __str__(self):
        return f"{self.error_code}: s3://{self.container}/{self.object_key}"
