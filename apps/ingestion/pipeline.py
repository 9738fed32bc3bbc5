"""
Upload ingestion pipeline.

Turns one landing-zone notification into two task mutations:

1. parse the object key into (owner, task_id)
2. record the upload reference on the task
3. detect labels of the uploaded image
4. record the labels on the task

Steps run strictly in order and each blocks on its outcome; a failing step
stops the run. Steps 2 and 4 are single-field overwrites computed from the
notification alone, so a run can be repeated from step 1 at any time.
"""
import logging

from apps.core.errors import PipelineError
from apps.intelligence.services import LabelInferenceInterface
from apps.todos.task_store import LABELS_FIELD, UPLOAD_FIELD, TaskStoreInterface
from apps.uploads.keys import compose_upload_uri, decode_event_key, parse_object_key

from .dtos import PipelineResult, PipelineStep, UploadNotification

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """
    Runs the ingestion steps against explicit collaborators.

    The store and the label client are constructed by the hosting runtime
    (see apps.ingestion.runtime) and reused across invocations.
    """

    def __init__(self, store: TaskStoreInterface, label_client: LabelInferenceInterface):
        self.store = store
        self.label_client = label_client

    def run(self, notification: UploadNotification) -> PipelineResult:
        """
        Process one notification.

        Raises:
            PipelineError subclass, with `step` set to the failing PipelineStep.
        """
        step = PipelineStep.PARSE_KEY
        try:
            key = decode_event_key(notification.object_key)
            location = parse_object_key(key)
            owner, task_id = location.owner, location.task_id
            upload = compose_upload_uri(notification.container, key)

            step = PipelineStep.RECORD_UPLOAD
            logger.info(f"Saving upload for task {owner}/{task_id}: {upload}")
            self.store.update_field(owner, task_id, UPLOAD_FIELD, upload)

            step = PipelineStep.DETECT_LABELS
            labels = self.label_client.detect_labels(notification.container, key)

            step = PipelineStep.RECORD_LABELS
            logger.info(f"Saving {len(labels)} labels for task {owner}/{task_id}")
            self.store.update_field(owner, task_id, LABELS_FIELD, labels)
        except PipelineError as e:
            e.step = step
            logger.warning(
                f"Ingestion of s3://{notification.container}/{notification.object_key} "
                f"failed at {step.value}: {e.code} {e.message}"
            )
            raise

        return PipelineResult(owner=owner, task_id=task_id, upload=upload, labels=list(labels))
