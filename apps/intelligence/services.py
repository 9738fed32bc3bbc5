"""
Label inference - image labels for uploaded objects.

One object maps to exactly one DetectLabels call; results are neither
cached nor batched. The backend is chosen by LABEL_BACKEND:

    LABEL_BACKEND=rekognition  # Amazon Rekognition DetectLabels
    LABEL_BACKEND=static       # fixed STATIC_LABELS list (local development)

Failures are classified here, at the client boundary:
- InferenceRejected: the service refuses this object, or the request
  for it is invalid (e.g. a key over the length limit); retrying is pointless
- InferenceUnavailable: throttling, service errors, timeouts; retriable
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError
from django.conf import settings

from apps.core.errors import InferenceRejected, InferenceUnavailable

logger = logging.getLogger(__name__)

# Rekognition error codes caused by the object itself
REJECTED_ERROR_CODES = frozenset({
    'InvalidImageFormatException',
    'ImageTooLargeException',
    'InvalidS3ObjectException',
    'InvalidParameterException',
})


class LabelInferenceInterface(ABC):
    """
    Abstract interface for label detection.

    Implementations:
    - RekognitionLabelClient: Amazon Rekognition
    - StaticLabelClient: fixed labels for development and tests
    """

    @abstractmethod
    def detect_labels(self, container: str, key: str) -> List[str]:
        """
        Detect labels of the object `key` in bucket `container`.

        Returns:
            Label names in the order the service reported them; duplicates
            are kept.
        """


class RekognitionLabelClient(LabelInferenceInterface):
    """Label detection via Amazon Rekognition DetectLabels."""

    def __init__(
        self,
        rekognition_client=None,
        max_labels: Optional[int] = None,
        min_confidence: Optional[float] = None,
    ):
        self._client = rekognition_client
        self.max_labels = max_labels
        self.min_confidence = min_confidence

    @property
    def client(self):
        """Lazy initialization of Rekognition client."""
        if self._client is None:
            from apps.core.aws import create_boto3_client
            self._client = create_boto3_client('rekognition')
        return self._client

    def detect_labels(self, container: str, key: str) -> List[str]:
        params = {
            'Image': {
                'S3Object': {
                    'Bucket': container,
                    'Name': key,
                },
            },
        }
        if self.max_labels is not None:
            params['MaxLabels'] = self.max_labels
        if self.min_confidence is not None:
            params['MinConfidence'] = self.min_confidence

        logger.info(f"Detecting labels for s3://{container}/{key}")
        try:
            response = self.client.detect_labels(**params)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            if code in REJECTED_ERROR_CODES:
                logger.warning(f"Rekognition rejected s3://{container}/{key}: {code}")
                raise InferenceRejected(f"Rekognition rejected the image: {code}") from e
            logger.warning(f"Rekognition failed for s3://{container}/{key}: {code}")
            raise InferenceUnavailable(f"Rekognition error: {code}") from e
        except ParamValidationError as e:
            logger.warning(f"Rekognition request for s3://{container}/{key} is invalid: {e}")
            raise InferenceRejected(f"Invalid DetectLabels request: {e}") from e
        except BotoCoreError as e:
            logger.warning(f"Rekognition unreachable for s3://{container}/{key}: {e}")
            raise InferenceUnavailable(f"Rekognition unreachable: {e}") from e

        labels = [label['Name'] for label in response.get('Labels', [])]
        logger.info(f"Detected {len(labels)} labels for s3://{container}/{key}")
        return labels


class StaticLabelClient(LabelInferenceInterface):
    """Returns the same labels for every object."""

    def __init__(self, labels: Sequence[str] = ()):
        self.labels = list(labels)

    def detect_labels(self, container: str, key: str) -> List[str]:
        logger.info(f"[STATIC] Labels for s3://{container}/{key}: {self.labels}")
        return list(self.labels)


def get_label_client() -> LabelInferenceInterface:
    """Get the configured label client based on the LABEL_BACKEND setting."""
    backend = getattr(settings, 'LABEL_BACKEND', 'static')

    if backend == 'rekognition':
        return RekognitionLabelClient(
            max_labels=settings.LABEL_MAX_LABELS,
            min_confidence=settings.LABEL_MIN_CONFIDENCE,
        )
    elif backend == 'static':
        return StaticLabelClient(settings.STATIC_LABELS)
    else:
        raise ValueError(f"Unknown LABEL_BACKEND: {backend}")
