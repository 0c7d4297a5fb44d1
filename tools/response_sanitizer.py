"""Best-effort JSON extraction from free-form model output."""

import json
import re
from typing import Any

from config.exceptions import LLMResponseParseError

# Fence markers: an opening ```json (case-insensitive) or any bare ``` with surrounding whitespace
_FENCE_RE = re.compile(r"```json\s*|\s*```", re.IGNORECASE)

# Lenient decoder that allows control characters (raw newlines, tabs) inside
# JSON strings; models frequently produce these instead of proper \n escapes.
_LENIENT_DECODER = json.JSONDecoder(strict=False)

TRUNCATION_MARKER = "...[truncated]"


def sanitize_json_text(raw: str) -> str:
    """Strip code fences and slice from the first opening to the last closing bracket.

    Pure and total: never raises, returns ``"{}"`` for empty input. This is a
    heuristic, not a parser; callers still have to ``json.loads`` the result.
    """
    if not raw or not raw.strip():
        return "{}"

    cleaned = _FENCE_RE.sub("", raw)

    starts = [i for i in (cleaned.find("{"), cleaned.find("[")) if i != -1]
    if starts:
        start = min(starts)
        end = max(cleaned.rfind("}"), cleaned.rfind("]"))
        if end > start:
            cleaned = cleaned[start:end + 1]

    cleaned = cleaned.strip()
    return cleaned or "{}"


def _try_loads(text: str) -> Any:
    """Try parsing JSON, first strictly then leniently."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    return _LENIENT_DECODER.decode(text)


def parse_json_response(text: str) -> Any:
    """Sanitize model output and parse it as JSON.

    Raises:
        LLMResponseParseError: If the sanitized text is still not valid JSON.
    """
    cleaned = sanitize_json_text(text)
    try:
        return _try_loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMResponseParseError(
            f"Failed to parse JSON from model response: {e.msg}",
            raw_response=text or "",
        ) from e


def truncate_context(text: str, max_length: int = 50000) -> str:
    """Cut overly long prompt context, marking the cut."""
    if not text or len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER
