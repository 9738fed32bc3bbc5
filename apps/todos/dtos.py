"""DTOs for Todos app."""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ninja import Schema


@dataclass(frozen=True)
class TaskDTO:
    owner: str
    task_id: str
    title: str
    body: Optional[str]
    due_date: Optional[datetime]
    created_at: datetime
    upload: Optional[str] = None
    labels: Optional[List[str]] = None


class TaskIn(Schema):
    title: str
    body: Optional[str] = None
    due_date: Optional[datetime] = None


class TaskOut(Schema):
    """
    Task as returned by the API.

    `labels` is null until label detection has finished (or when it failed);
    clients should treat it as "not available yet", never as an error.
    """
    task_id: str
    owner: str
    title: str
    body: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime
    upload: Optional[str] = None
    labels: Optional[List[str]] = None
