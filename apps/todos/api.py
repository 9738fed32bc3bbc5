"""
Todos API endpoints.

All routes require a bearer token; the token principal is the task owner,
so a caller only ever sees its own tasks.
"""
from typing import List

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.errors import StoreRejected, StoreUnavailable
from apps.identity.api import BearerAuth, get_owner

from . import services
from .dtos import TaskIn, TaskOut

router = Router(tags=["Tasks"], auth=BearerAuth())


def _out(task) -> TaskOut:
    return TaskOut(**task.__dict__)


@router.post("", response=TaskOut)
def create_task(request: HttpRequest, payload: TaskIn):
    """Create a task owned by the caller."""
    owner = get_owner(request)
    try:
        task = services.create_task(
            owner,
            payload.title,
            body=payload.body,
            due_date=payload.due_date,
        )
    except (ValueError, StoreRejected) as e:
        raise HttpError(400, str(e))
    except StoreUnavailable:
        raise HttpError(503, "Task store unavailable")
    return _out(task)


@router.get("", response=List[TaskOut])
def list_tasks(request: HttpRequest):
    """List the caller's tasks, newest first."""
    owner = get_owner(request)
    try:
        return [_out(task) for task in services.list_tasks(owner)]
    except StoreUnavailable:
        raise HttpError(503, "Task store unavailable")


@router.get("/{task_id}", response=TaskOut)
def get_task(request: HttpRequest, task_id: str):
    """
    Get one task.

    `labels` is null while detection is pending or after it failed.
    """
    owner = get_owner(request)
    try:
        task = services.get_task(owner, task_id)
    except StoreUnavailable:
        raise HttpError(503, "Task store unavailable")
    if not task:
        raise HttpError(404, "Task not found")
    return _out(task)


@router.delete("/{task_id}", response={204: None})
def delete_task(request: HttpRequest, task_id: str):
    """Delete one task."""
    owner = get_owner(request)
    try:
        deleted = services.delete_task(owner, task_id)
    except StoreUnavailable:
        raise HttpError(503, "Task store unavailable")
    if not deleted:
        raise HttpError(404, "Task not found")
    return 204, None
