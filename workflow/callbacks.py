"""Progress callbacks for monitoring generation operations."""

import logging
from typing import Any, Optional, Protocol, runtime_checkable

from models.usage import UsageMetrics

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressCallback(Protocol):
    """Protocol for generation progress callbacks.

    Called zero or more times per operation; the final call of a successful
    operation always carries ``percent == 100``.
    """

    def __call__(
        self,
        stage: str,
        percent: float,
        log: Optional[str] = None,
        metrics: Optional[UsageMetrics] = None,
        debug_info: Optional[dict] = None,
    ) -> None:
        ...


class NullProgressCallback:
    """Discards all progress events."""

    def __call__(self, stage, percent, log=None, metrics=None, debug_info=None) -> None:
        return None


class LoggingProgressCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def __call__(self, stage, percent, log=None, metrics=None, debug_info=None) -> None:
        logger.info("[%3.0f%%] %s%s", percent, stage, f" | {log}" if log else "")
        if metrics is not None:
            logger.info(
                "Usage: model=%s in=%d out=%d total=%d latency=%dms",
                metrics.model,
                metrics.input_tokens,
                metrics.output_tokens,
                metrics.total_tokens,
                metrics.latency_ms,
            )
        if debug_info:
            logger.debug("Debug info: %s", debug_info)


class RichProgressCallback:
    """Progress callback that renders a Rich live progress bar in the terminal."""

    def __init__(self, console=None, description: str = "Generating"):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
            description: Label shown before the first stage arrives.
        """
        self._console = console
        self._description = description
        self._progress = None
        self._task_id = None
        self.last_metrics: Optional[UsageMetrics] = None

    def start(self):
        """Start the progress display. Call before running the operation."""
        from rich.console import Console
        from rich.progress import (
            Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn,
        )

        console = self._console or Console()
        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(self._description, total=100)

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def __enter__(self) -> "RichProgressCallback":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def __call__(self, stage, percent, log=None, metrics=None, debug_info=None) -> None:
        if metrics is not None:
            self.last_metrics = metrics
        if not self._progress:
            return
        self._progress.update(self._task_id, completed=percent, description=stage)
        if log:
            self._progress.console.print(f"  [dim]--[/] {log}")


class ProgressReporter:
    """Wraps a callback: clamps percent to 0..100 and remembers the last value."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback or NullProgressCallback()
        self.last_percent: float = 0.0

    def __call__(
        self,
        stage: str,
        percent: Optional[float] = None,
        log: Optional[str] = None,
        metrics: Optional[UsageMetrics] = None,
        debug_info: Optional[dict[str, Any]] = None,
    ) -> None:
        if percent is None:
            percent = self.last_percent
        percent = min(max(float(percent), 0.0), 100.0)
        self.last_percent = percent
        self._callback(stage, percent, log, metrics, debug_info)
