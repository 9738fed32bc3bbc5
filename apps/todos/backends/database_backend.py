"""
Database Task Store - tasks as rows of the Django model Task.

Single-field updates go through QuerySet.update(), which issues one
UPDATE ... SET <field> = ... WHERE owner = ... AND task_id = ... statement.
It never reads the row first, so a concurrent write from an API handler to
another field is never overwritten.
"""
import uuid
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.db import DataError, DatabaseError, IntegrityError

from apps.core.errors import RecordNotFound, StoreRejected, StoreUnavailable
from apps.todos.dtos import TaskDTO
from apps.todos.models import Task
from apps.todos.task_store import LABELS_FIELD, TaskStoreInterface, check_updatable_field

logger = logging.getLogger(__name__)


def _to_dto(task: Task) -> TaskDTO:
    return TaskDTO(
        owner=task.owner,
        task_id=task.task_id,
        title=task.title,
        body=task.body,
        due_date=task.due_date,
        created_at=task.created_at,
        upload=task.upload,
        labels=list(task.labels) if task.labels is not None else None,
    )


class DatabaseTaskStore(TaskStoreInterface):
    """Task store backed by the Django database."""

    def update_field(self, owner: str, task_id: str, field: str, value: Any) -> Dict[str, Any]:
        check_updatable_field(field)
        if field == LABELS_FIELD:
            value = list(value)

        queryset = Task.objects.filter(owner=owner, task_id=task_id)
        if field == LABELS_FIELD:
            # labels never land on a task without an upload
            queryset = queryset.filter(upload__isnull=False)

        try:
            updated = queryset.update(**{field: value})
        except (DataError, IntegrityError) as e:
            logger.warning(f"[DB] {field} for {owner}/{task_id} refused: {e}")
            raise StoreRejected(f"Task store refused {field}: {e}") from e
        except DatabaseError as e:
            logger.warning(f"[DB] Update of {field} for {owner}/{task_id} failed: {e}")
            raise StoreUnavailable(f"Task store update failed: {e}") from e

        if not updated:
            raise RecordNotFound(f"Task {owner}/{task_id} not found")

        logger.info(f"[DB] Updated {field} for task {owner}/{task_id}")
        return {field: value}

    def create(
        self,
        owner: str,
        title: str,
        body: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> TaskDTO:
        try:
            task = Task.objects.create(
                owner=owner,
                task_id=str(uuid.uuid4()),
                title=title,
                body=body,
                due_date=due_date,
            )
        except (DataError, IntegrityError) as e:
            raise StoreRejected(f"Task store refused the task: {e}") from e
        except DatabaseError as e:
            raise StoreUnavailable(f"Task store insert failed: {e}") from e
        return _to_dto(task)

    def get(self, owner: str, task_id: str) -> Optional[TaskDTO]:
        try:
            task = Task.objects.get(owner=owner, task_id=task_id)
        except Task.DoesNotExist:
            return None
        except DatabaseError as e:
            raise StoreUnavailable(f"Task store read failed: {e}") from e
        return _to_dto(task)

    def query(self, owner: str) -> List[TaskDTO]:
        try:
            return [_to_dto(task) for task in Task.objects.filter(owner=owner).order_by('-created_at')]
        except DatabaseError as e:
            raise StoreUnavailable(f"Task store query failed: {e}") from e

    def delete(self, owner: str, task_id: str) -> bool:
        try:
            deleted, _ = Task.objects.filter(owner=owner, task_id=task_id).delete()
        except DatabaseError as e:
            raise StoreUnavailable(f"Task store delete failed: {e}") from e
        return deleted > 0
