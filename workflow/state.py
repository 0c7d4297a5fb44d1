"""Execution route states for a single logical operation."""

from enum import Enum
from typing import Optional


class RouteState(str, Enum):
    """Idle -> RemoteAttempt -> {RemoteSuccess | RemoteFailed -> LocalAttempt} -> {LocalSuccess | LocalFailed}."""

    IDLE = "idle"
    REMOTE_ATTEMPT = "remote_attempt"
    REMOTE_SUCCESS = "remote_success"
    REMOTE_FAILED = "remote_failed"
    LOCAL_ATTEMPT = "local_attempt"
    LOCAL_SUCCESS = "local_success"
    LOCAL_FAILED = "local_failed"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def percent(self) -> Optional[float]:
        """Progress to report on entering this state; None keeps the last value."""
        return _PERCENTS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (RouteState.REMOTE_SUCCESS, RouteState.LOCAL_SUCCESS, RouteState.LOCAL_FAILED)


_LABELS = {
    RouteState.IDLE: "Waiting",
    RouteState.REMOTE_ATTEMPT: "Connecting to generation server...",
    RouteState.REMOTE_SUCCESS: "Server generation finished",
    RouteState.REMOTE_FAILED: "Server unavailable, switching to local generation",
    RouteState.LOCAL_ATTEMPT: "Generating locally...",
    RouteState.LOCAL_SUCCESS: "Local generation finished",
    RouteState.LOCAL_FAILED: "Generation failed",
}

_PERCENTS = {
    RouteState.IDLE: 0,
    RouteState.REMOTE_ATTEMPT: 5,
    RouteState.REMOTE_SUCCESS: 90,
    RouteState.REMOTE_FAILED: 10,
    RouteState.LOCAL_ATTEMPT: 10,
    RouteState.LOCAL_SUCCESS: 95,
    RouteState.LOCAL_FAILED: None,
}

# Allowed transitions; anything else is a programming error
TRANSITIONS = {
    RouteState.IDLE: {RouteState.REMOTE_ATTEMPT, RouteState.LOCAL_ATTEMPT},
    RouteState.REMOTE_ATTEMPT: {RouteState.REMOTE_SUCCESS, RouteState.REMOTE_FAILED},
    RouteState.REMOTE_FAILED: {RouteState.LOCAL_ATTEMPT},
    RouteState.LOCAL_ATTEMPT: {RouteState.LOCAL_SUCCESS, RouteState.LOCAL_FAILED},
    RouteState.REMOTE_SUCCESS: set(),
    RouteState.LOCAL_SUCCESS: set(),
    RouteState.LOCAL_FAILED: set(),
}
