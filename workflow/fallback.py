"""Remote-then-local execution with automatic fallback."""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from config.exceptions import WorkflowStateError
from workflow.state import TRANSITIONS, RouteState

logger = logging.getLogger(__name__)

T = TypeVar("T")

TransitionHook = Callable[[RouteState, Optional[str]], None]


class RouteTracker:
    """Records the route state of one operation and reports each transition."""

    def __init__(self, label: str = "", on_transition: Optional[TransitionHook] = None):
        self.label = label
        self.state = RouteState.IDLE
        self.history: list[RouteState] = [RouteState.IDLE]
        self._on_transition = on_transition

    def move(self, new_state: RouteState, detail: Optional[str] = None) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise WorkflowStateError(
                f"Invalid route transition {self.state.value} -> {new_state.value}",
                {"operation": self.label},
            )
        logger.debug("Route[%s]: %s -> %s", self.label, self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)
        if self._on_transition:
            self._on_transition(new_state, detail)


async def run_with_fallback(
    remote: Optional[Callable[[], Awaitable[T]]],
    local: Callable[[], Awaitable[T]],
    *,
    use_remote: bool = True,
    label: str = "",
    on_transition: Optional[TransitionHook] = None,
    tracker: Optional[RouteTracker] = None,
) -> T:
    """Try ``remote()``; on any exception run ``local()`` exactly once.

    Remote failures are logged and never reach the caller. Local failures
    propagate unchanged; there is no further tier.
    """
    tracker = tracker or RouteTracker(label, on_transition)

    if use_remote and remote is not None:
        tracker.move(RouteState.REMOTE_ATTEMPT)
        try:
            result = await remote()
        except Exception as e:
            logger.warning("Remote path failed for %s, falling back to local: %s", label or "operation", e)
            tracker.move(RouteState.REMOTE_FAILED, str(e))
        else:
            tracker.move(RouteState.REMOTE_SUCCESS)
            return result

    tracker.move(RouteState.LOCAL_ATTEMPT)
    try:
        result = await local()
    except Exception as e:
        tracker.move(RouteState.LOCAL_FAILED, str(e))
        raise
    tracker.move(RouteState.LOCAL_SUCCESS)
    return result
