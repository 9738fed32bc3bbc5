"""
boto3 client construction.

Clients are built once per worker and handed to the services that need
them; every client carries the connect/read timeouts from settings so a
hung AWS call surfaces as an error instead of stalling the invocation.
"""
import logging

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from django.conf import settings

logger = logging.getLogger(__name__)


def client_config(**overrides) -> Config:
    """botocore Config with the project's timeouts and retry budget."""
    options = {
        'connect_timeout': settings.AWS_CONNECT_TIMEOUT,
        'read_timeout': settings.AWS_READ_TIMEOUT,
        'retries': {'max_attempts': settings.AWS_MAX_ATTEMPTS, 'mode': 'standard'},
    }
    options.update(overrides)
    return Config(**options)


def create_boto3_client(service_name: str, **config_overrides) -> BaseClient:
    """Create a boto3 client for `service_name` in the configured region."""
    logger.debug(f"Creating boto3 client for {service_name} in {settings.AWS_REGION}")
    return boto3.client(
        service_name,
        region_name=settings.AWS_REGION,
        config=client_config(**config_overrides),
    )
