"""
Task store - key-value access to tasks keyed by (owner, task_id).

The ingestion pipeline only ever calls update_field(); the API handlers use
the whole-record operations. The backend is chosen by TASK_STORE_BACKEND:

    TASK_STORE_BACKEND=database  # Django ORM (SQLite / PostgreSQL)
    TASK_STORE_BACKEND=dynamodb  # DynamoDB table TASKS_TABLE
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.conf import settings

from .dtos import TaskDTO

logger = logging.getLogger(__name__)

UPLOAD_FIELD = 'upload'
LABELS_FIELD = 'labels'

# Fields the pipeline may write. Anything else goes through create/delete.
UPDATABLE_FIELDS = (UPLOAD_FIELD, LABELS_FIELD)


def check_updatable_field(field: str) -> None:
    if field not in UPDATABLE_FIELDS:
        raise ValueError(f"Field {field!r} is not updatable; expected one of {UPDATABLE_FIELDS}")


class TaskStoreInterface(ABC):
    """
    Abstract interface for the task store.

    Implementations:
    - DatabaseTaskStore: Django ORM model Task
    - DynamoDBTaskStore: DynamoDB table with owner / task_id keys

    Errors:
    - RecordNotFound: update_field() on a missing task, or a labels write
      on a task that has no upload yet
    - StoreUnavailable: any transient failure or timeout of the store
    - StoreRejected: the store refused the value itself (size, constraint);
      retrying the same write cannot succeed
    """

    @abstractmethod
    def update_field(self, owner: str, task_id: str, field: str, value: Any) -> Dict[str, Any]:
        """
        Overwrite a single field of an existing task.

        Never touches other fields, never creates a task.

        Returns:
            {field: new_value} (UPDATED_NEW semantics)
        """

    @abstractmethod
    def create(
        self,
        owner: str,
        title: str,
        body: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> TaskDTO:
        """Create a task with a fresh task_id; upload and labels absent."""

    @abstractmethod
    def get(self, owner: str, task_id: str) -> Optional[TaskDTO]:
        """Return the task, or None if it does not exist."""

    @abstractmethod
    def query(self, owner: str) -> List[TaskDTO]:
        """Return all tasks of an owner, newest first."""

    @abstractmethod
    def delete(self, owner: str, task_id: str) -> bool:
        """Delete the task. Returns False if it did not exist."""


def get_task_store() -> TaskStoreInterface:
    """Get the configured task store based on the TASK_STORE_BACKEND setting."""
    backend = getattr(settings, 'TASK_STORE_BACKEND', 'database')

    if backend == 'database':
        from apps.todos.backends.database_backend import DatabaseTaskStore
        return DatabaseTaskStore()
    elif backend == 'dynamodb':
        from apps.todos.backends.dynamodb_backend import DynamoDBTaskStore
        return DynamoDBTaskStore()
    else:
        raise ValueError(f"Unknown TASK_STORE_BACKEND: {backend}")
