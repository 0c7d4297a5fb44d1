"""Tests for the model health check."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from config.exceptions import ClassifiedError
from models.enums import ErrorKind, HealthStatus
from tools.model_health import HEALTH_PROMPT, check_model_health

from conftest import invocation


class TestCheckModelHealth:
    @pytest.mark.asyncio
    async def test_healthy(self, mock_invoker):
        mock_invoker.invoke.return_value = invocation(text="I am a helpful model." * 10)
        result = await check_model_health(mock_invoker, "claude-haiku")

        assert result.model_id == "claude-haiku"
        assert result.status == HealthStatus.HEALTHY
        assert result.latency_ms == 40
        assert len(result.response_preview) == 100
        assert result.error is None
        request, prompt = mock_invoker.invoke.call_args.args
        assert request.model == "claude-haiku"
        assert prompt == HEALTH_PROMPT

    @pytest.mark.asyncio
    async def test_unhealthy_never_raises(self):
        invoker = MagicMock()
        invoker.invoke = AsyncMock(side_effect=ClassifiedError(ErrorKind.TRANSIENT, True, "503 overloaded"))
        result = await check_model_health(invoker, "claude-opus")

        assert result.status == HealthStatus.UNHEALTHY
        assert "503 overloaded" in result.error
        assert result.latency_ms >= 0
        assert invoker.invoke.await_count == 1

    @pytest.mark.asyncio
    async def test_plain_exception(self):
        invoker = MagicMock()
        invoker.invoke = AsyncMock(side_effect=RuntimeError("connection reset"))
        result = await check_model_health(invoker, "m")
        assert result.status == HealthStatus.UNHEALTHY
        assert "connection reset" in result.error
