"""Fixed-interval polling of a remote task until it finishes."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from config.exceptions import (
    RemoteTaskCancelledError,
    RemoteTaskFailedError,
    TaskPollTimeoutError,
)
from models.enums import TaskStatus
from models.task import RemoteTask

logger = logging.getLogger(__name__)


async def poll_task_result(
    client,
    task_id: str,
    on_progress: Optional[Callable[[RemoteTask], None]] = None,
    max_attempts: int = 60,
    interval_seconds: float = 2.0,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Any:
    """Poll ``client.get_task(task_id)`` until the task reaches a terminal state.

    Args:
        client: Anything with an async ``get_task(task_id) -> RemoteTask``.
        task_id: Remote task id.
        on_progress: Called with every fetched snapshot, before status handling.
        max_attempts: Maximum number of fetches.
        interval_seconds: Sleep between non-terminal fetches.

    Returns:
        ``task.result`` of the first snapshot observed as completed.

    Raises:
        RemoteTaskFailedError: Task reported ``failed``.
        RemoteTaskCancelledError: Task reported ``cancelled``.
        TaskPollTimeoutError: ``max_attempts`` fetches without a terminal state.
    """
    for attempt in range(1, max_attempts + 1):
        task = await client.get_task(task_id)

        if on_progress:
            on_progress(task)

        if task.status == TaskStatus.COMPLETED:
            logger.debug("Task %s completed after %d poll(s)", task_id, attempt)
            return task.result

        if task.status == TaskStatus.FAILED:
            raise RemoteTaskFailedError(task.error or "Remote task failed", task_id)

        if task.status == TaskStatus.CANCELLED:
            raise RemoteTaskCancelledError("Remote task was cancelled", task_id)

        logger.debug(
            "Task %s %s (%.0f%%), poll %d/%d",
            task_id,
            task.status.value,
            task.progress,
            attempt,
            max_attempts,
        )
        if attempt < max_attempts:
            await sleep(interval_seconds)

    raise TaskPollTimeoutError(
        f"Task timed out: no terminal state after {max_attempts} polls", task_id
    )
