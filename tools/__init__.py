"""Tools package: provider invocation, retry, polling, and response helpers."""

from tools.backend_client import BackendClient
from tools.cache_service import ContextCache, CacheEntry
from tools.error_classifier import (
    classify_error,
    format_user_error,
    is_rate_limited,
    is_retryable,
    normalize_error,
)
from tools.model_health import ModelHealthResult, check_model_health
from tools.model_invoker import InvocationResult, ModelInvoker
from tools.response_sanitizer import parse_json_response, sanitize_json_text, truncate_context
from tools.retry import compute_backoff_delay, retry_with_backoff
from tools.task_poller import poll_task_result

__all__ = [
    "BackendClient",
    "ContextCache",
    "CacheEntry",
    "classify_error",
    "format_user_error",
    "is_rate_limited",
    "is_retryable",
    "normalize_error",
    "ModelHealthResult",
    "check_model_health",
    "InvocationResult",
    "ModelInvoker",
    "parse_json_response",
    "sanitize_json_text",
    "truncate_context",
    "compute_backoff_delay",
    "retry_with_backoff",
    "poll_task_result",
]
