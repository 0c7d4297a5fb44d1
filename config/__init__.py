"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    InkflowError,
    LLMError,
    ClassifiedError,
    LLMResponseParseError,
    BackendError,
    BackendAPIError,
    RemoteTaskError,
    RemoteTaskFailedError,
    RemoteTaskCancelledError,
    TaskPollTimeoutError,
    WorkflowError,
    WorkflowStateError,
    ValidationError,
    InvalidConfigError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "InkflowError",
    "LLMError",
    "ClassifiedError",
    "LLMResponseParseError",
    "BackendError",
    "BackendAPIError",
    "RemoteTaskError",
    "RemoteTaskFailedError",
    "RemoteTaskCancelledError",
    "TaskPollTimeoutError",
    "WorkflowError",
    "WorkflowStateError",
    "ValidationError",
    "InvalidConfigError",
]
