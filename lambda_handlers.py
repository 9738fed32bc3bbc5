"""
Lambda Handlers - Entry points for AWS Lambda functions.

This module provides Lambda handlers for:
1. S3 Upload Notifications - ObjectCreated events from the landing zone
2. SQS Task Processing - redelivered uploads and other queued tasks
3. API Gateway Authorizer - bearer token to IAM policy
4. Django API (via Mangum) - HTTP requests through API Gateway

Django is set up once per container; the ingestion pipeline and its
clients are built on the first event and reused for every later one.
"""

import os
import json
import logging

# Configure Django before importing any models
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

import django
django.setup()

from django.db import close_old_connections

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Sent once by S3 when a bucket notification to SQS is configured
S3_TEST_EVENT = 's3:TestEvent'


def s3_upload_handler(event, context):
    """
    AWS Lambda handler for S3 ObjectCreated notifications.

    Every record is ingested independently. Transient failures are
    rescheduled through the task queue and terminal ones dead-lettered, so
    the handler only raises for unexpected errors, which lets Lambda's own
    async retry take over.

    No HTTP request cycle runs here, so stale or broken database
    connections are closed around each record; the next query reconnects.

    Event structure:
    {
        "Records": [
            {
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "bucket": {"name": "..."},
                    "object": {"key": "alice/1234/photo.jpg"}
                }
            }
        ]
    }
    """
    from apps.ingestion.services import handle_notification, notifications_from_s3_event

    outcomes = {}
    for notification in notifications_from_s3_event(event):
        logger.info(
            f"Received upload s3://{notification.container}/{notification.object_key}"
        )
        close_old_connections()
        try:
            outcome = handle_notification(notification, attempt=1)
        finally:
            close_old_connections()
        outcomes[outcome.value] = outcomes.get(outcome.value, 0) + 1

    return {
        'statusCode': 200,
        'body': json.dumps(outcomes),
    }


def sqs_task_handler(event, context):
    """
    AWS Lambda handler for SQS task messages.

    Processes messages from the task queue and dispatches
    to the appropriate task handler. S3 event notifications routed
    through SQS are ingested as well.

    Event structure:
    {
        "Records": [
            {
                "body": "{\"task_id\": \"...\", \"task_name\": \"process_upload\", \"payload\": {...}}"
            }
        ]
    }
    """
    from apps.core.backends.local_backend import TASK_HANDLERS

    processed = 0

    for record in event.get('Records', []):
        try:
            message = json.loads(record['body'])

            if 'Records' in message:
                s3_upload_handler(message, context)
                processed += 1
                continue

            if message.get('Event') == S3_TEST_EVENT:
                logger.info(f"Skipping {S3_TEST_EVENT} for bucket {message.get('Bucket')}")
                continue

            task_id = message.get('task_id', 'unknown')
            task_name = message['task_name']
            payload = message.get('payload', {})

            logger.info(f"Processing task {task_name} (id={task_id})")

            handler = TASK_HANDLERS.get(task_name)
            if handler is None:
                raise ValueError(f"No handler for task: {task_name}")

            close_old_connections()
            try:
                result = handler(**payload)
            finally:
                close_old_connections()
            logger.info(f"Task {task_name} completed: {result}")
            processed += 1

        except Exception as e:
            logger.exception(f"Failed to process message: {e}")
            # Let the message go to the queue's DLQ
            raise

    return {
        'statusCode': 200,
        'body': json.dumps({
            'processed': processed,
        })
    }


def authorizer_handler(event, context):
    """
    API Gateway Lambda authorizer (TOKEN or REQUEST type).

    Returns an Allow or Deny policy; raises Unauthorized (401) when no
    bearer credential is present.
    """
    from apps.identity.authorizer import authorize

    authorization = event.get('authorizationToken')
    if authorization is None:
        headers = event.get('headers') or {}
        authorization = headers.get('Authorization') or headers.get('authorization')

    result = authorize(authorization, event['methodArn'])
    logger.info(f"Authorizer result for {result.principal_id}: {result.effect.value}")
    return result.to_policy()


# =============================================================================
# Django API Handler (Mangum)
# =============================================================================

_asgi_handler = None


def api_handler(event, context):
    """
    AWS Lambda handler for HTTP requests via API Gateway.

    Uses Mangum to wrap Django's ASGI application.
    """
    global _asgi_handler

    if _asgi_handler is None:
        from mangum import Mangum
        from config.asgi import application
        _asgi_handler = Mangum(application, lifespan="off")

    return _asgi_handler(event, context)
