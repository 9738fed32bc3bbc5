"""
Worker-scoped ingestion collaborators.

A Lambda container, Celery worker or local process builds the pipeline and
the dead-letter sink once, on first use, and reuses them for every
invocation it serves. configure() lets the hosting runtime (or a test)
install its own instances.
"""
import logging
from typing import Optional

from apps.intelligence.services import get_label_client
from apps.todos.task_store import get_task_store

from .dead_letter import DeadLetterSinkInterface, get_dead_letter_sink as build_dead_letter_sink
from .pipeline import IngestionPipeline

logger = logging.getLogger(__name__)

_pipeline: Optional[IngestionPipeline] = None
_dead_letter_sink: Optional[DeadLetterSinkInterface] = None


def build_pipeline() -> IngestionPipeline:
    """Construct a pipeline from the configured store and label backends."""
    store = get_task_store()
    label_client = get_label_client()
    logger.info(
        f"Built ingestion pipeline (store={type(store).__name__}, "
        f"labels={type(label_client).__name__})"
    )
    return IngestionPipeline(store=store, label_client=label_client)


def get_pipeline() -> IngestionPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline


def get_dead_letter_sink() -> DeadLetterSinkInterface:
    global _dead_letter_sink
    if _dead_letter_sink is None:
        _dead_letter_sink = build_dead_letter_sink()
    return _dead_letter_sink


def configure(
    pipeline: Optional[IngestionPipeline] = None,
    dead_letter_sink: Optional[DeadLetterSinkInterface] = None,
) -> None:
    """Install collaborators for this worker."""
    global _pipeline, _dead_letter_sink
    if pipeline is not None:
        _pipeline = pipeline
    if dead_letter_sink is not None:
        _dead_letter_sink = dead_letter_sink


def reset() -> None:
    """Drop the cached collaborators; the next call rebuilds them from settings."""
    global _pipeline, _dead_letter_sink
    _pipeline = None
    _dead_letter_sink = None
