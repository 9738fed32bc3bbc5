import uuid
from django.db import models


class Task(models.Model):
    """
    A to-do item owned by one principal.

    Identified by (owner, task_id). `upload` and `labels` are written only by
    the upload ingestion pipeline, in that order.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.CharField(max_length=255, db_index=True, help_text="Principal from the bearer token")
    task_id = models.CharField(max_length=255)

    title = models.CharField(max_length=255)
    body = models.TextField(blank=True, null=True)
    due_date = models.DateTimeField(null=True, blank=True)

    # Annotation written by the ingestion pipeline
    upload = models.TextField(null=True, blank=True, help_text="s3://bucket/key of the uploaded image")
    labels = models.JSONField(null=True, blank=True, help_text="Detected labels, in detection order")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        unique_together = ['owner', 'task_id']

    def __str__(self):
        return f"{self.owner}/{self.task_id} - {self.title}"
