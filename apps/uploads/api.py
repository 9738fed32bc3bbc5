"""Uploads API endpoints."""
from typing import Optional

from django.http import HttpRequest
from ninja import Router, Schema
from ninja.errors import HttpError

from apps.core.errors import StoreUnavailable
from apps.identity.api import BearerAuth, get_owner
from apps.todos.services import get_task

from .services import UploadUrlError, create_upload_url

router = Router(tags=["Uploads"], auth=BearerAuth())


class SignedUrlOut(Schema):
    url: str
    bucket: str
    key: str
    expires_in: int


@router.get("/signedUrl", response=SignedUrlOut)
def signed_url(
    request: HttpRequest,
    task_id: str,
    file_name: Optional[str] = None,
    content_type: Optional[str] = None,
):
    """
    Get a pre-signed PUT URL for a task image.

    Only the task owner can upload; the key encodes owner and task id so the
    ingestion pipeline can find the task again.
    """
    owner = get_owner(request)
    try:
        task = get_task(owner, task_id)
    except StoreUnavailable:
        raise HttpError(503, "Task store unavailable")
    if not task:
        raise HttpError(404, "Task not found")

    try:
        signed = create_upload_url(owner, task_id, file_name=file_name, content_type=content_type)
    except ValueError as e:
        raise HttpError(400, str(e))
    except UploadUrlError:
        raise HttpError(503, "Could not sign upload URL")
    return SignedUrlOut(**signed.__dict__)
