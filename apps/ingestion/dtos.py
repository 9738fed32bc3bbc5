"""DTOs for Ingestion app."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List


@dataclass(frozen=True)
class UploadNotification:
    """
    One object-creation notification from the landing zone.

    `object_key` is kept exactly as delivered (URL-encoded, `+` for space);
    the pipeline decodes it on every attempt.
    """
    container: str
    object_key: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "UploadNotification":
        """Build from the {containerName, objectKey} wire form."""
        try:
            return cls(container=payload['containerName'], object_key=payload['objectKey'])
        except KeyError as e:
            raise ValueError(f"Notification payload missing {e.args[0]}") from e

    @classmethod
    def from_s3_record(cls, record: Dict[str, Any]) -> "UploadNotification":
        """Build from one record of an S3 event notification."""
        s3 = record['s3']
        return cls(container=s3['bucket']['name'], object_key=s3['object']['key'])

    def to_payload(self) -> Dict[str, str]:
        return {'containerName': self.container, 'objectKey': self.object_key}


class PipelineStep(str, Enum):
    PARSE_KEY = 'PARSE_KEY'
    RECORD_UPLOAD = 'RECORD_UPLOAD'
    DETECT_LABELS = 'DETECT_LABELS'
    RECORD_LABELS = 'RECORD_LABELS'


class Outcome(str, Enum):
    COMPLETED = 'COMPLETED'
    RETRY_SCHEDULED = 'RETRY_SCHEDULED'
    DEAD_LETTERED = 'DEAD_LETTERED'


@dataclass(frozen=True)
class PipelineResult:
    owner: str
    task_id: str
    upload: str
    labels: List[str]
