"""Services for Todos app."""
from datetime import datetime
from typing import List, Optional

from .dtos import TaskDTO
from .task_store import TaskStoreInterface, get_task_store


def _store(store: Optional[TaskStoreInterface]) -> TaskStoreInterface:
    return store if store is not None else get_task_store()


def create_task(
    owner: str,
    title: str,
    body: Optional[str] = None,
    due_date: Optional[datetime] = None,
    store: Optional[TaskStoreInterface] = None,
) -> TaskDTO:
    """Create a task for owner. Upload and labels start absent."""
    if not title or not title.strip():
        raise ValueError("Title is required")
    return _store(store).create(owner, title.strip(), body=body, due_date=due_date)


def get_task(owner: str, task_id: str, store: Optional[TaskStoreInterface] = None) -> Optional[TaskDTO]:
    return _store(store).get(owner, task_id)


def list_tasks(owner: str, store: Optional[TaskStoreInterface] = None) -> List[TaskDTO]:
    return _store(store).query(owner)


def delete_task(owner: str, task_id: str, store: Optional[TaskStoreInterface] = None) -> bool:
    """
    Delete a task.

    An upload notification arriving after this is dead-lettered as
    RecordNotFound; the task is not recreated.
    """
    return _store(store).delete(owner, task_id)
