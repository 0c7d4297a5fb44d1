"""Remote execution path: submit a task to the backend queue and poll it."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from config.settings import Settings
from models.enums import TaskStatus
from models.request import GenerationRequest
from models.task import RemoteTask
from tools.backend_client import BackendClient
from tools.task_poller import poll_task_result
from workflow.callbacks import ProgressReporter

logger = logging.getLogger(__name__)

# Remote polling occupies this slice of the reported progress range
POLL_PROGRESS_START = 20
POLL_PROGRESS_SPAN = 70


def remap_task_progress(task_progress: float) -> float:
    """Map a task's own 0..100 progress onto 20..90."""
    return POLL_PROGRESS_START + (task_progress or 0) * POLL_PROGRESS_SPAN / 100


class RemoteExecutor:
    """Runs a GenerationRequest on the backend task queue."""

    def __init__(
        self,
        backend: BackendClient,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.backend = backend
        self.settings = settings or Settings()
        self._sleep = sleep

    async def run(self, request: GenerationRequest, reporter: ProgressReporter) -> Any:
        """Submit the task, poll until it finishes and return its raw result."""
        reporter("Connecting to generation server...", 10)
        task_id = await self.backend.submit_generation(request.kind, request.remote_params())
        reporter("Task created, waiting for execution...", POLL_PROGRESS_START, f"Task id: {task_id}")

        def on_task(task: RemoteTask) -> None:
            stage = "Generating..." if task.status == TaskStatus.RUNNING else "Processing..."
            reporter(stage, remap_task_progress(task.progress), f"Status: {task.status.value}")

        result = await poll_task_result(
            self.backend,
            task_id,
            on_task,
            max_attempts=self.settings.poll_max_attempts,
            interval_seconds=self.settings.poll_interval_seconds,
            sleep=self._sleep,
        )
        logger.info("Remote %s task %s completed", request.kind.value, task_id)
        return result
