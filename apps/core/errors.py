"""
Error taxonomy for upload ingestion.

Every failure of an external call (task store, label inference) is
classified at the client boundary into one of two families:

RetriableError : transient infrastructure failure; the whole notification
                 is redelivered with backoff
TerminalError  : the input can never succeed; routed to the dead-letter
                 sink without retrying
"""


class PipelineError(Exception):
    """Base class for upload ingestion failures."""

    code = "PIPELINE_ERROR"
    retriable = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class RetriableError(PipelineError):
    retriable = True


class TerminalError(PipelineError):
    retriable = False


class MalformedKey(TerminalError):
    """Object key does not follow <owner>/<task_id>[/<suffix>]."""
    code = "MALFORMED_KEY"


class RecordNotFound(TerminalError):
    """The referenced task does not exist (or is not ready for the write)."""
    code = "RECORD_NOT_FOUND"


class StoreUnavailable(RetriableError):
    """Task store call failed or timed out."""
    code = "STORE_UNAVAILABLE"


class InferenceUnavailable(RetriableError):
    """Label inference call failed or timed out."""
    code = "INFERENCE_UNAVAILABLE"


class InferenceRejected(TerminalError):
    """The vision service refused the object (format, size, missing object)."""
    code = "INFERENCE_REJECTED"


class StoreRejected(TerminalError):
    """The task store refused the value itself (too long, constraint violated)."""
    code = "STORE_REJECTED"
