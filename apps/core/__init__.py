"""
Core app - Shared abstractions and utilities.

This app provides platform-agnostic pieces used by every other app:
- Task execution (TaskService) with local / lambda / celery backends
- The ingestion error taxonomy (errors)
- boto3 client construction with bounded timeouts (aws)
"""
