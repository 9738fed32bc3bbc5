"""
AWS configuration for the to-do service.

Collects the landing-zone bucket, task table, queues and client timeouts
from the environment. Local development works without any AWS resources:
the task store falls back to the database backend and label detection
to a static label list.
"""
import os


def _int_or_none(name: str):
    value = os.getenv(name)
    return int(value) if value else None


def _float_or_none(name: str):
    value = os.getenv(name)
    return float(value) if value else None


def get_aws_settings() -> dict:
    """
    Returns AWS-related settings based on environment configuration.

    Returns:
        Dictionary of settings to be merged into Django settings
    """
    return {
        'AWS_REGION': os.getenv('AWS_REGION', 'us-west-2'),

        # Timeouts applied to every boto3 client (seconds)
        'AWS_CONNECT_TIMEOUT': float(os.getenv('AWS_CONNECT_TIMEOUT', '3')),
        'AWS_READ_TIMEOUT': float(os.getenv('AWS_READ_TIMEOUT', '10')),
        'AWS_MAX_ATTEMPTS': int(os.getenv('AWS_MAX_ATTEMPTS', '2')),

        # Object landing zone (S3)
        'UPLOAD_BUCKET': os.getenv('UPLOAD_BUCKET', 'todo-labels-uploads'),
        'SIGNED_URL_EXPIRE_SECONDS': int(os.getenv('SIGNED_URL_EXPIRE_SECONDS', '300')),

        # Task store: database | dynamodb
        'TASK_STORE_BACKEND': os.getenv('TASK_STORE_BACKEND', 'database'),
        'TASKS_TABLE': os.getenv('TASKS_TABLE', 'tasks'),

        # Label inference: rekognition | static
        'LABEL_BACKEND': os.getenv('LABEL_BACKEND', 'static'),
        'LABEL_MAX_LABELS': _int_or_none('LABEL_MAX_LABELS'),
        'LABEL_MIN_CONFIDENCE': _float_or_none('LABEL_MIN_CONFIDENCE'),
        'STATIC_LABELS': [
            label.strip()
            for label in os.getenv('STATIC_LABELS', '').split(',')
            if label.strip()
        ],

        # Task execution: local | lambda | celery
        'TASK_BACKEND': os.getenv('TASK_BACKEND', 'local'),
        'TASK_QUEUE_URL': os.getenv('TASK_QUEUE_URL'),

        # Upload ingestion retry policy
        'INGESTION_MAX_ATTEMPTS': int(os.getenv('INGESTION_MAX_ATTEMPTS', '5')),
        'INGESTION_BACKOFF_BASE_SECONDS': int(os.getenv('INGESTION_BACKOFF_BASE_SECONDS', '2')),
        'INGESTION_BACKOFF_MAX_SECONDS': min(
            int(os.getenv('INGESTION_BACKOFF_MAX_SECONDS', '900')), 900
        ),

        # Dead-letter sink: database | sqs
        'DEAD_LETTER_BACKEND': os.getenv('DEAD_LETTER_BACKEND', 'database'),
        'DEAD_LETTER_QUEUE_URL': os.getenv('DEAD_LETTER_QUEUE_URL'),
    }
