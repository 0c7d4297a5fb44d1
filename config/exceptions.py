"""Custom exception hierarchy for the generation core."""

from typing import Optional


class InkflowError(Exception):
    """Base exception for all inkflow errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- LLM Errors ----

class LLMError(InkflowError):
    """Base exception for model provider errors."""


class ClassifiedError(LLMError):
    """A provider failure normalized into a tagged diagnostic.

    Produced once, at the boundary where the provider is invoked, so callers
    only ever see ``kind``/``retryable``/``raw_detail`` instead of whatever
    shape the provider raised.
    """

    def __init__(self, kind, retryable: bool, raw_detail: str, message: str = ""):
        self.kind = kind
        self.retryable = retryable
        self.raw_detail = raw_detail
        super().__init__(message or raw_detail[:300])

    def __str__(self) -> str:
        return self.message


class LLMResponseParseError(ClassifiedError):
    """Sanitized model output still failed to parse as JSON."""

    def __init__(self, message: str = "Failed to parse LLM response", raw_response: str = ""):
        from models.enums import ErrorKind

        self.raw_response = raw_response
        super().__init__(
            ErrorKind.MALFORMED_RESPONSE,
            False,
            f"json parse error: {message} | {raw_response[:200]}".lower(),
            message,
        )
        if raw_response:
            self.details = {"raw_response": raw_response[:200]}

    def __str__(self) -> str:
        return InkflowError.__str__(self)


# ---- Backend Errors ----

class BackendError(InkflowError):
    """Base exception for the remote task-queue path.

    Carries an ``ErrorKind`` like ClassifiedError does. Never retried in place.
    """

    kind_value = "remote_unavailable"
    retryable = False

    @property
    def kind(self):
        from models.enums import ErrorKind

        return ErrorKind(self.kind_value)


class BackendAPIError(BackendError):
    """HTTP request to the task-queue backend failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        details = {"status_code": status_code} if status_code is not None else {}
        super().__init__(message, details)
        self.status_code = status_code


class RemoteTaskError(BackendError):
    """A remote task did not produce a result."""

    def __init__(self, message: str, task_id: str = ""):
        super().__init__(message, {"task_id": task_id} if task_id else {})
        self.task_id = task_id


class RemoteTaskFailedError(RemoteTaskError):
    """Remote task reached the ``failed`` state."""


class RemoteTaskCancelledError(RemoteTaskError):
    """Remote task reached the ``cancelled`` state."""


class TaskPollTimeoutError(RemoteTaskError):
    """Polling attempts were exhausted before the task finished."""

    kind_value = "exhausted"


# ---- Workflow Errors ----

class WorkflowError(InkflowError):
    """Base exception for execution routing errors."""


class WorkflowStateError(WorkflowError):
    """Invalid route state transition."""


# ---- Validation Errors ----

class ValidationError(InkflowError):
    """Input validation failed."""


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""
