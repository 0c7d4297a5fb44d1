"""Tests for JSON extraction from model output."""

import pytest

from config.exceptions import LLMResponseParseError
from models.enums import ErrorKind
from tools.response_sanitizer import (
    TRUNCATION_MARKER,
    parse_json_response,
    sanitize_json_text,
    truncate_context,
)


class TestSanitizeJsonText:
    def test_fenced_object(self):
        assert sanitize_json_text('```json\n{"a":1}\n```') == '{"a":1}'

    def test_prose_around_array(self):
        assert sanitize_json_text('Here you go: [1,2] thanks') == "[1,2]"

    def test_no_brackets_returns_trimmed_text(self):
        assert sanitize_json_text("no json here") == "no json here"

    def test_empty_input(self):
        assert sanitize_json_text("") == "{}"
        assert sanitize_json_text("   \n ") == "{}"

    def test_bare_fence(self):
        assert sanitize_json_text('```\n{"key": "value"}\n```') == '{"key": "value"}'

    def test_uppercase_fence_tag(self):
        assert sanitize_json_text('```JSON\n{"k": 1}\n```') == '{"k": 1}'

    def test_earliest_open_latest_close(self):
        text = 'note [x] then {"a": [1, 2]} end'
        assert sanitize_json_text(text) == '[x] then {"a": [1, 2]}'

    def test_close_before_open_left_alone(self):
        assert sanitize_json_text("} oops {") == "} oops {"

    @pytest.mark.parametrize("raw", [
        '```json\n{"a":1}\n```',
        "Here you go: [1,2] thanks",
        "no json here",
        "",
        '  {"nested": {"list": [1, {"b": 2}]}}  ',
        "} oops {",
    ])
    def test_idempotent(self, raw):
        once = sanitize_json_text(raw)
        assert sanitize_json_text(once) == once


class TestParseJsonResponse:
    def test_direct_json(self):
        assert parse_json_response('{"key": "value", "num": 42}') == {"key": "value", "num": 42}

    def test_json_embedded_in_prose(self):
        result = parse_json_response('以下是结果：{"score": 8.5, "passed": true}，供参考。')
        assert result["score"] == 8.5
        assert result["passed"] is True

    def test_raw_newline_in_string_is_tolerated(self):
        result = parse_json_response('{"content": "line one\nline two"}')
        assert result["content"] == "line one\nline two"

    def test_empty_input_parses_to_empty_object(self):
        assert parse_json_response("") == {}

    def test_invalid_raises_parse_error(self):
        with pytest.raises(LLMResponseParseError, match="Failed to parse") as exc_info:
            parse_json_response("这根本不是JSON格式的内容abc")
        assert exc_info.value.kind == ErrorKind.MALFORMED_RESPONSE
        assert exc_info.value.retryable is False


class TestTruncateContext:
    def test_short_text_unchanged(self):
        assert truncate_context("abc", 10) == "abc"

    def test_long_text_cut_and_marked(self):
        result = truncate_context("x" * 20, 10)
        assert result == "x" * 10 + TRUNCATION_MARKER

    def test_empty(self):
        assert truncate_context("", 10) == ""
