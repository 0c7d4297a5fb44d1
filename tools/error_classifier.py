"""Error classification for provider and transport failures.

Caught errors arrive in whatever shape the provider raised them: exception
objects (sometimes with a JSON body as the message), plain dicts mirroring a
provider error payload, or strings. Everything is first reduced to a single
lowercase diagnostic string, and all decisions are substring matches on it.
"""

import json
import logging
import traceback
from typing import Any

from config.exceptions import BackendError, ClassifiedError
from models.enums import ErrorKind

logger = logging.getLogger(__name__)

RETRYABLE_MARKERS = (
    "429",
    "resource_exhausted",
    "quota",
    "503",
    "504",
    "500",
    "overloaded",
    "fetch failed",
    "timeout",
    "network",
    "econnreset",
)
RATE_LIMIT_MARKERS = ("429", "quota", "resource_exhausted")

# Checked in order, first match wins
_KIND_RULES: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (ErrorKind.RATE_LIMITED, ("quota", "resource_exhausted", "429")),
    (ErrorKind.TRANSIENT, ("timeout", "network", "fetch")),
    (ErrorKind.CONTENT_FILTERED, ("safety", "blocked", "finishreason")),
    (ErrorKind.MALFORMED_RESPONSE, ("json",)),
)

USER_MESSAGES = {
    ErrorKind.RATE_LIMITED: "API quota exceeded. Please wait a moment and try again.",
    ErrorKind.TRANSIENT: "Network connection problem. Check your connection and try again.",
    ErrorKind.CONTENT_FILTERED: "The request was blocked by the provider's content filter.",
    ErrorKind.MALFORMED_RESPONSE: "The model returned data that could not be parsed.",
    ErrorKind.REMOTE_UNAVAILABLE: "The generation server is unavailable.",
    ErrorKind.EXHAUSTED: "The operation timed out after repeated attempts.",
    ErrorKind.UNKNOWN: "An unknown error occurred during generation.",
}

DETAIL_LIMIT = 300


def _chain_text(error: BaseException) -> str:
    """Type and message of the exception and everything it was raised from."""
    parts = []
    seen = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append("".join(traceback.format_exception_only(type(current), current)).strip())
        current = current.__cause__ or current.__context__
    return "\n".join(parts)


def _normalize_exception(error: BaseException) -> str:
    message = str(error)
    try:
        parsed = json.loads(message)
    except (TypeError, ValueError):
        parsed = None

    parts = []
    if isinstance(parsed, (dict, list)):
        parts.append(json.dumps(parsed, ensure_ascii=False, default=str))
    else:
        parts.append(message)

    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, (int, str)) and value != "":
            parts.append(f"{attr}={value}")

    parts.append(_chain_text(error))
    return "\n".join(p for p in parts if p)


def normalize_error(error: Any) -> str:
    """Reduce any caught error value to a lowercase diagnostic string. Never raises."""
    try:
        if isinstance(error, ClassifiedError):
            return error.raw_detail
        if isinstance(error, str):
            return error.lower()
        if isinstance(error, BaseException):
            return _normalize_exception(error).lower()
        try:
            return json.dumps(error, ensure_ascii=False, default=str).lower()
        except (TypeError, ValueError, RecursionError):
            return str(error).lower()
    except Exception:
        try:
            return repr(error).lower()
        except Exception:
            return "<unrepresentable error>"


# Errors that already carry a kind and retryable flag
_TAGGED = (ClassifiedError, BackendError)


def is_retryable(error: Any) -> bool:
    if isinstance(error, _TAGGED):
        return error.retryable
    text = normalize_error(error)
    return any(marker in text for marker in RETRYABLE_MARKERS)


def is_rate_limited(error: Any) -> bool:
    if isinstance(error, _TAGGED):
        return error.kind == ErrorKind.RATE_LIMITED
    text = normalize_error(error)
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


def error_kind(error: Any) -> ErrorKind:
    """Categorize an error; the order mirrors the user-message mapping."""
    if isinstance(error, _TAGGED):
        return error.kind
    text = normalize_error(error)
    for kind, markers in _KIND_RULES:
        if any(marker in text for marker in markers):
            return kind
    if any(marker in text for marker in RETRYABLE_MARKERS):
        return ErrorKind.TRANSIENT
    return ErrorKind.UNKNOWN


def user_message(kind: ErrorKind) -> str:
    return USER_MESSAGES.get(kind, USER_MESSAGES[ErrorKind.UNKNOWN])


def format_user_error(error: Any, kind: ErrorKind | None = None) -> str:
    """Single human-readable string: categorized message plus a diagnostic tail."""
    detail = normalize_error(error)
    kind = kind or error_kind(error)
    return f"{user_message(kind)}\n\n[detail]: {detail[:DETAIL_LIMIT]}..."


def classify_error(error: Any) -> ClassifiedError:
    """Turn a raw caught error into a ClassifiedError (idempotent)."""
    if isinstance(error, ClassifiedError):
        return error
    detail = normalize_error(error)
    if isinstance(error, BackendError):
        return ClassifiedError(error.kind, error.retryable, detail, format_user_error(detail, error.kind))
    kind = error_kind(detail)
    retryable = any(marker in detail for marker in RETRYABLE_MARKERS)
    logger.debug("Classified error as %s (retryable=%s): %s", kind.value, retryable, detail[:200])
    return ClassifiedError(kind, retryable, detail, format_user_error(detail, kind))


def surface_error(error: Any) -> ClassifiedError:
    """Classified error whose message is the final user-facing string."""
    classified = classify_error(error)
    return ClassifiedError(
        classified.kind,
        classified.retryable,
        classified.raw_detail,
        format_user_error(classified.raw_detail, classified.kind),
    )
