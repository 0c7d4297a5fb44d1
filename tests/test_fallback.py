"""Tests for remote-then-local fallback and route states."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from config.exceptions import RemoteTaskFailedError, WorkflowStateError
from workflow.fallback import RouteTracker, run_with_fallback
from workflow.state import RouteState


class TestRunWithFallback:
    @pytest.mark.asyncio
    async def test_remote_success_skips_local(self):
        remote = AsyncMock(return_value="remote")
        local = AsyncMock(return_value="local")
        assert await run_with_fallback(remote, local) == "remote"
        local.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remote_failure_runs_local_once(self):
        remote = AsyncMock(side_effect=RemoteTaskFailedError("model crashed", "t1"))
        local = AsyncMock(return_value="local")
        assert await run_with_fallback(remote, local) == "local"
        assert local.await_count == 1

    @pytest.mark.asyncio
    async def test_any_exception_triggers_fallback(self):
        remote = AsyncMock(side_effect=KeyError("weird"))
        local = AsyncMock(return_value="local")
        assert await run_with_fallback(remote, local) == "local"

    @pytest.mark.asyncio
    async def test_local_error_surfaces_not_remote_error(self):
        remote = AsyncMock(side_effect=RemoteTaskFailedError("remote boom", "t1"))
        local = AsyncMock(side_effect=ValueError("local boom"))
        with pytest.raises(ValueError, match="local boom"):
            await run_with_fallback(remote, local)

    @pytest.mark.asyncio
    async def test_local_only_mode(self):
        remote = AsyncMock(return_value="remote")
        local = AsyncMock(return_value="local")
        assert await run_with_fallback(remote, local, use_remote=False) == "local"
        remote.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_not_swallowed(self):
        remote = AsyncMock(side_effect=asyncio.CancelledError())
        local = AsyncMock(return_value="local")
        with pytest.raises(asyncio.CancelledError):
            await run_with_fallback(remote, local)
        local.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transitions_reported(self):
        seen = []
        remote = AsyncMock(side_effect=RuntimeError("503 from backend"))
        local = AsyncMock(return_value="ok")
        tracker = RouteTracker("test", on_transition=lambda state, detail: seen.append((state, detail)))
        await run_with_fallback(remote, local, tracker=tracker)

        assert [s for s, _ in seen] == [
            RouteState.REMOTE_ATTEMPT,
            RouteState.REMOTE_FAILED,
            RouteState.LOCAL_ATTEMPT,
            RouteState.LOCAL_SUCCESS,
        ]
        assert seen[1][1] == "503 from backend"
        assert tracker.state.is_terminal
        assert tracker.history[0] == RouteState.IDLE

    @pytest.mark.asyncio
    async def test_local_failure_state(self):
        tracker = RouteTracker()
        with pytest.raises(RuntimeError):
            await run_with_fallback(
                None, AsyncMock(side_effect=RuntimeError("x")), tracker=tracker
            )
        assert tracker.state == RouteState.LOCAL_FAILED


class TestRouteTracker:
    def test_invalid_transition_raises(self):
        tracker = RouteTracker("op")
        with pytest.raises(WorkflowStateError):
            tracker.move(RouteState.REMOTE_SUCCESS)

    def test_terminal_states_have_no_exits(self):
        tracker = RouteTracker()
        tracker.move(RouteState.LOCAL_ATTEMPT)
        tracker.move(RouteState.LOCAL_SUCCESS)
        with pytest.raises(WorkflowStateError):
            tracker.move(RouteState.LOCAL_ATTEMPT)

    def test_state_percents_leave_poll_window(self):
        assert RouteState.REMOTE_ATTEMPT.percent < 20
        assert RouteState.REMOTE_SUCCESS.percent >= 90
        assert RouteState.LOCAL_FAILED.percent is None
