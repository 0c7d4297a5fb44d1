"""Tests for error normalization and classification."""

import json

import pytest

from config.exceptions import (
    BackendAPIError,
    ClassifiedError,
    LLMResponseParseError,
    RemoteTaskCancelledError,
    RemoteTaskFailedError,
    TaskPollTimeoutError,
)
from models.enums import ErrorKind
from tools.error_classifier import (
    RETRYABLE_MARKERS,
    USER_MESSAGES,
    classify_error,
    error_kind,
    format_user_error,
    is_rate_limited,
    is_retryable,
    normalize_error,
    surface_error,
)


class ProviderError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class Unserializable:
    def __repr__(self):
        return "<Unserializable>"

    def __str__(self):
        raise RuntimeError("no str")


class TestNormalizeError:
    def test_string_is_lowercased(self):
        assert normalize_error("Quota EXCEEDED") == "quota exceeded"

    def test_exception_message_and_type(self):
        text = normalize_error(RuntimeError("Connection RESET"))
        assert "connection reset" in text
        assert "runtimeerror" in text

    def test_json_message_recovers_nested_code(self):
        body = json.dumps({"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}})
        text = normalize_error(Exception(body))
        assert "429" in text
        assert "resource_exhausted" in text

    def test_status_code_attribute_included(self):
        text = normalize_error(ProviderError("Service down", status_code=503))
        assert "status_code=503" in text

    def test_chained_cause_included(self):
        try:
            try:
                raise TimeoutError("read timed out")
            except TimeoutError as inner:
                raise RuntimeError("request failed") from inner
        except RuntimeError as e:
            text = normalize_error(e)
        assert "request failed" in text
        assert "read timed out" in text

    def test_dict_is_serialized(self):
        text = normalize_error({"error": {"message": "Blocked by SAFETY"}})
        assert "blocked by safety" in text

    def test_never_raises(self):
        text = normalize_error(Unserializable())
        assert isinstance(text, str)
        assert text

    def test_none(self):
        assert normalize_error(None) == "null"


class TestRetryable:
    @pytest.mark.parametrize("marker", RETRYABLE_MARKERS)
    def test_each_marker_is_retryable(self, marker):
        assert is_retryable(f"upstream said {marker}")

    def test_non_retryable(self):
        assert not is_retryable("invalid api key")
        assert not is_retryable(ValueError("bad argument"))

    def test_rate_limit_subset(self):
        assert is_rate_limited("HTTP 429 Too Many Requests")
        assert is_rate_limited("Quota exceeded for project")
        assert is_rate_limited("RESOURCE_EXHAUSTED")
        assert not is_rate_limited("503 service unavailable")

    def test_classified_error_uses_its_flags(self):
        err = ClassifiedError(ErrorKind.RATE_LIMITED, True, "anything")
        assert is_retryable(err)
        assert is_rate_limited(err)

        err = ClassifiedError(ErrorKind.UNKNOWN, False, "503 but tagged permanent")
        assert not is_retryable(err)


class TestErrorKind:
    def test_first_match_wins(self):
        # quota is checked before timeout
        assert error_kind("quota exceeded after timeout") == ErrorKind.RATE_LIMITED

    def test_connectivity(self):
        assert error_kind("fetch failed") == ErrorKind.TRANSIENT
        assert error_kind("network unreachable") == ErrorKind.TRANSIENT

    def test_content_filter(self):
        assert error_kind("response blocked: finishReason SAFETY") == ErrorKind.CONTENT_FILTERED

    def test_json(self):
        assert error_kind("Unexpected token in JSON at position 0") == ErrorKind.MALFORMED_RESPONSE

    def test_retryable_server_error_is_transient(self):
        assert error_kind("503 overloaded") == ErrorKind.TRANSIENT

    def test_unknown(self):
        assert error_kind("something odd") == ErrorKind.UNKNOWN


class TestFormatting:
    def test_format_user_error_shape(self):
        text = format_user_error("Quota exceeded")
        message, detail = text.split("\n\n", 1)
        assert message == USER_MESSAGES[ErrorKind.RATE_LIMITED]
        assert detail == "[detail]: quota exceeded..."

    def test_detail_truncated_to_300_chars(self):
        text = format_user_error("x" * 1000)
        detail = text.split("[detail]: ", 1)[1]
        assert detail == "x" * 300 + "..."

    def test_classify_error(self):
        err = classify_error(ProviderError("Too many requests", status_code=429))
        assert isinstance(err, ClassifiedError)
        assert err.kind == ErrorKind.RATE_LIMITED
        assert err.retryable is True
        assert "status_code=429" in err.raw_detail

    def test_classify_is_idempotent(self):
        err = classify_error("timeout")
        assert classify_error(err) is err

    def test_surface_error_message(self):
        err = surface_error(RuntimeError("socket timeout"))
        assert str(err).startswith(USER_MESSAGES[ErrorKind.TRANSIENT])
        assert "[detail]: " in str(err)
        assert err.kind == ErrorKind.TRANSIENT


class TestRemoteErrorKinds:
    def test_poll_timeout_is_exhausted(self):
        err = classify_error(TaskPollTimeoutError("Task timed out: no terminal state after 60 polls", "t1"))
        assert err.kind == ErrorKind.EXHAUSTED
        assert err.retryable is False
        assert str(err).startswith(USER_MESSAGES[ErrorKind.EXHAUSTED])

    @pytest.mark.parametrize("error", [
        RemoteTaskFailedError("model crashed", "t1"),
        RemoteTaskCancelledError("Remote task was cancelled", "t1"),
        BackendAPIError("HTTP 503: Service Unavailable", status_code=503),
    ])
    def test_remote_failures_are_remote_unavailable(self, error):
        assert error_kind(error) == ErrorKind.REMOTE_UNAVAILABLE
        assert is_retryable(error) is False
        assert is_rate_limited(error) is False
        err = classify_error(error)
        assert err.kind == ErrorKind.REMOTE_UNAVAILABLE
        assert err.retryable is False

    def test_surface_remote_error(self):
        err = surface_error(RemoteTaskFailedError("Model Crashed", "t1"))
        assert str(err).startswith(USER_MESSAGES[ErrorKind.REMOTE_UNAVAILABLE])
        assert "model crashed" in str(err)


class TestParseErrorDetail:
    def test_raw_detail_is_lowercase(self):
        err = LLMResponseParseError("Bad", raw_response="Hello QUOTA World")
        assert normalize_error(err) == "json parse error: bad | hello quota world"
        # original text stays available for debugging
        assert err.raw_response == "Hello QUOTA World"
