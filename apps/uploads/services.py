"""
Upload service - pre-signed PUT URLs into the landing zone.

The browser uploads the image straight to S3; the resulting ObjectCreated
notification drives apps.ingestion.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from .keys import build_object_key

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = 'image'


@dataclass(frozen=True)
class SignedUploadDTO:
    url: str
    bucket: str
    key: str
    expires_in: int


class UploadUrlError(Exception):
    """The landing zone could not sign an upload URL."""


def _s3_client():
    from apps.core.aws import create_boto3_client
    return create_boto3_client('s3', signature_version='s3v4')


def create_upload_url(
    owner: str,
    task_id: str,
    file_name: Optional[str] = None,
    content_type: Optional[str] = None,
    s3_client=None,
) -> SignedUploadDTO:
    """
    Sign a PUT URL for the image of one task.

    Args:
        owner: Principal owning the task
        task_id: Task the image belongs to
        file_name: Last key segment; defaults to "image"
        content_type: If given, the upload must send the same Content-Type

    Raises:
        ValueError: owner / task_id cannot form a valid key
        UploadUrlError: signing failed
    """
    key = build_object_key(owner, task_id, file_name or DEFAULT_FILE_NAME)
    bucket = settings.UPLOAD_BUCKET
    expires_in = settings.SIGNED_URL_EXPIRE_SECONDS

    params = {'Bucket': bucket, 'Key': key}
    if content_type:
        params['ContentType'] = content_type

    client = s3_client or _s3_client()
    try:
        url = client.generate_presigned_url(
            'put_object',
            Params=params,
            ExpiresIn=expires_in,
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Failed to sign upload URL for s3://{bucket}/{key}: {e}")
        raise UploadUrlError(str(e)) from e

    logger.info(f"Signed upload URL for s3://{bucket}/{key} ({expires_in}s)")
    return SignedUploadDTO(url=url, bucket=bucket, key=key, expires_in=expires_in)
