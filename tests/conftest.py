"""Shared pytest fixtures for the inkflow test suite."""

import json
import types

import httpx
import pytest
from unittest.mock import MagicMock, AsyncMock

from claude_agent_sdk import ResultMessage, AssistantMessage, TextBlock


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with fast retries/polls and logs under tmp_path."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        log_dir=tmp_path / "logs",
        backend_url="http://backend.test",
        poll_max_attempts=5,
        poll_interval_seconds=0.01,
        retry_max_attempts=2,
        retry_base_delay_ms=10,
        retry_max_delay_ms=1000,
        retry_jitter_ms=0,
        cache_min_chars=100,
    )


@pytest.fixture
def local_settings(settings):
    """Settings with the backend disabled."""
    return settings.model_copy(update={"use_backend": False})


# ---------------------------------------------------------------------------
# Sleep / clock fakes
# ---------------------------------------------------------------------------

class FakeSleep:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ---------------------------------------------------------------------------
# Claude Agent SDK message helpers
# ---------------------------------------------------------------------------

def make_result_message(
    result_text: str | None,
    usage: dict | None = None,
    is_error: bool = False,
    structured_output=None,
) -> ResultMessage:
    """Create a ResultMessage with required fields."""
    return ResultMessage(
        subtype="error_during_execution" if is_error else "success",
        duration_ms=100,
        duration_api_ms=80,
        is_error=is_error,
        num_turns=1,
        session_id="test-session",
        total_cost_usd=0.001,
        usage=usage if usage is not None else {"input_tokens": 10, "output_tokens": 20},
        result=result_text,
        structured_output=structured_output,
    )


def make_assistant_message(text: str) -> AssistantMessage:
    """Create an AssistantMessage with a single text block."""
    return AssistantMessage(
        content=[TextBlock(text=text)],
        model="claude-sonnet-4-5",
        parent_tool_use_id=None,
        error=None,
    )


def query_yielding(*messages):
    """Build a replacement for ``query`` that yields the given messages."""

    async def mock_query(*args, **kwargs):
        for message in messages:
            yield message

    return mock_query


# ---------------------------------------------------------------------------
# Model invoker mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_invoker():
    """AsyncMock replacing ModelInvoker; ``invoke`` returns plain text by default."""
    from models.usage import UsageMetrics
    from tools.model_invoker import InvocationResult, ModelInvoker

    invoker = MagicMock()
    invoker.invoke = AsyncMock(return_value=InvocationResult(
        text="这是一段测试内容。",
        usage=UsageMetrics(model="test-model", input_tokens=10, output_tokens=20, total_tokens=30, latency_ms=50),
    ))
    # Real JSON handling on top of the mocked ``invoke``
    invoker.invoke_json = types.MethodType(ModelInvoker.invoke_json, invoker)
    invoker.get_usage_summary.return_value = {"total_calls": 1}
    return invoker


def invocation(text: str = "", structured=None, model: str = "test-model"):
    from models.usage import UsageMetrics
    from tools.model_invoker import InvocationResult

    return InvocationResult(
        text=text,
        usage=UsageMetrics(model=model, input_tokens=5, output_tokens=7, total_tokens=12, latency_ms=40),
        structured=structured,
    )


# ---------------------------------------------------------------------------
# Fake task-queue backend (httpx.MockTransport)
# ---------------------------------------------------------------------------

class FakeBackend:
    """In-memory task queue speaking the backend's JSON envelope.

    ``snapshots`` is the sequence of task states returned by successive
    ``GET /api/tasks/<id>`` calls; the last one repeats.
    """

    def __init__(self, snapshots=None, task_id: str = "task-1"):
        self.task_id = task_id
        self.snapshots = list(snapshots or [{"status": "completed", "progress": 100, "result": "ok"}])
        self.requests: list[httpx.Request] = []
        self.submit_status = 200
        self.submit_error: str | None = None
        self.polls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.startswith("/api/generate/"):
            if self.submit_error:
                return httpx.Response(self.submit_status, json={"success": False, "error": self.submit_error})
            return httpx.Response(200, json={
                "success": True,
                "data": {"taskId": self.task_id, "status": "pending"},
            })

        if path == f"/api/tasks/{self.task_id}" and request.method == "GET":
            snapshot = self.snapshots[min(self.polls, len(self.snapshots) - 1)]
            self.polls += 1
            return httpx.Response(200, json={"success": True, "data": {"id": self.task_id, **snapshot}})

        if path == f"/api/tasks/{self.task_id}" and request.method == "DELETE":
            return httpx.Response(200, json={"success": True, "message": "Task cancelled"})

        return httpx.Response(404, json={"success": False, "error": f"Not found: {path}"})

    def client(self):
        from tools.backend_client import BackendClient
        return BackendClient("http://backend.test", transport=httpx.MockTransport(self.handler))

    def submitted_body(self, index: int = 0) -> dict:
        submits = [r for r in self.requests if r.url.path.startswith("/api/generate/")]
        return json.loads(submits[index].content)


@pytest.fixture
def fake_backend():
    return FakeBackend()


class RecordingCallback:
    """Progress callback that records every call."""

    def __init__(self):
        self.events: list[tuple] = []

    def __call__(self, stage, percent, log=None, metrics=None, debug_info=None):
        self.events.append((stage, percent, log, metrics))

    @property
    def percents(self) -> list[float]:
        return [e[1] for e in self.events]

    @property
    def logs(self) -> list[str]:
        return [e[2] for e in self.events if e[2]]


@pytest.fixture
def recorder():
    return RecordingCallback()
