"""
DynamoDB Task Store - tasks as items of the TASKS_TABLE table.

Table layout:
    partition key: owner   (S)
    sort key:      task_id (S)

Every operation keys items by owner / task_id; timestamps are stored as
ISO-8601 strings. Field updates are conditional UpdateItem calls, so a
deleted task is never recreated by a late pipeline write.
"""
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError
from django.conf import settings

from apps.core.errors import RecordNotFound, StoreRejected, StoreUnavailable
from apps.todos.dtos import TaskDTO
from apps.todos.task_store import LABELS_FIELD, TaskStoreInterface, check_updatable_field

logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'
# Item or key exceeds a DynamoDB limit, or is otherwise invalid
VALIDATION_ERROR = 'ValidationException'

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _to_dto(item: Dict[str, Any]) -> TaskDTO:
    data = {name: _deserializer.deserialize(value) for name, value in item.items()}
    labels = data.get('labels')
    return TaskDTO(
        owner=data['owner'],
        task_id=data['task_id'],
        title=data.get('title', ''),
        body=data.get('body'),
        due_date=_parse_timestamp(data.get('due_date')),
        created_at=_parse_timestamp(data['created_at']),
        upload=data.get('upload'),
        labels=list(labels) if labels is not None else None,
    )


class DynamoDBTaskStore(TaskStoreInterface):
    """Task store backed by a DynamoDB table."""

    def __init__(self, dynamodb_client=None, table_name: Optional[str] = None):
        self._client = dynamodb_client
        self._table_name = table_name or settings.TASKS_TABLE

    @property
    def client(self):
        """Lazy initialization of DynamoDB client."""
        if self._client is None:
            from apps.core.aws import create_boto3_client
            self._client = create_boto3_client('dynamodb')
        return self._client

    @staticmethod
    def _key(owner: str, task_id: str) -> Dict[str, Any]:
        return {'owner': {'S': owner}, 'task_id': {'S': task_id}}

    def update_field(self, owner: str, task_id: str, field: str, value: Any) -> Dict[str, Any]:
        check_updatable_field(field)

        condition = 'attribute_exists(#task_id)'
        names = {'#field': field, '#task_id': 'task_id'}
        if field == LABELS_FIELD:
            value = list(value)
            condition += ' AND attribute_exists(#upload)'
            names['#upload'] = 'upload'

        try:
            response = self.client.update_item(
                TableName=self._table_name,
                Key=self._key(owner, task_id),
                UpdateExpression='SET #field = :value',
                ConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues={':value': _serializer.serialize(value)},
                ReturnValues='UPDATED_NEW',
            )
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code')
            if code == CONDITIONAL_CHECK_FAILED:
                raise RecordNotFound(f"Task {owner}/{task_id} not found") from e
            if code == VALIDATION_ERROR:
                logger.warning(f"[DYNAMODB] {field} for {owner}/{task_id} refused: {e}")
                raise StoreRejected(f"DynamoDB refused {field}: {e}") from e
            logger.warning(f"[DYNAMODB] UpdateItem {field} for {owner}/{task_id} failed: {code}")
            raise StoreUnavailable(f"DynamoDB UpdateItem failed: {code}") from e
        except ParamValidationError as e:
            raise StoreRejected(f"Invalid UpdateItem parameters: {e}") from e
        except BotoCoreError as e:
            logger.warning(f"[DYNAMODB] UpdateItem {field} for {owner}/{task_id} failed: {e}")
            raise StoreUnavailable(f"DynamoDB unreachable: {e}") from e

        logger.info(f"[DYNAMODB] Updated {field} for task {owner}/{task_id}")
        return {
            name: _deserializer.deserialize(attr)
            for name, attr in response.get('Attributes', {}).items()
        }

    def create(
        self,
        owner: str,
        title: str,
        body: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> TaskDTO:
        task = TaskDTO(
            owner=owner,
            task_id=str(uuid.uuid4()),
            title=title,
            body=body,
            due_date=due_date,
            created_at=datetime.now(timezone.utc),
        )
        item = {
            'owner': task.owner,
            'task_id': task.task_id,
            'title': task.title,
            'created_at': task.created_at.isoformat(),
        }
        if body is not None:
            item['body'] = body
        if due_date is not None:
            item['due_date'] = due_date.isoformat()

        self._call(
            'put_item',
            TableName=self._table_name,
            Item={name: _serializer.serialize(value) for name, value in item.items()},
            ConditionExpression='attribute_not_exists(#task_id)',
            ExpressionAttributeNames={'#task_id': 'task_id'},
        )
        return task

    def get(self, owner: str, task_id: str) -> Optional[TaskDTO]:
        response = self._call(
            'get_item',
            TableName=self._table_name,
            Key=self._key(owner, task_id),
            ConsistentRead=True,
        )
        item = response.get('Item')
        return _to_dto(item) if item else None

    def query(self, owner: str) -> List[TaskDTO]:
        paginator = self.client.get_paginator('query')
        tasks = []
        try:
            for page in paginator.paginate(
                TableName=self._table_name,
                KeyConditionExpression='#owner = :owner',
                ExpressionAttributeNames={'#owner': 'owner'},
                ExpressionAttributeValues={':owner': {'S': owner}},
            ):
                tasks.extend(_to_dto(item) for item in page.get('Items', []))
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailable(f"DynamoDB Query failed: {e}") from e

        tasks.sort(key=lambda t: t.created_at, reverse=True)
        return tasks

    def delete(self, owner: str, task_id: str) -> bool:
        response = self._call(
            'delete_item',
            TableName=self._table_name,
            Key=self._key(owner, task_id),
            ReturnValues='ALL_OLD',
        )
        return bool(response.get('Attributes'))

    def _call(self, operation: str, **params) -> Dict[str, Any]:
        try:
            return getattr(self.client, operation)(**params)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"[DYNAMODB] {operation} failed: {e}")
            raise StoreUnavailable(f"DynamoDB {operation} failed: {e}") from e
