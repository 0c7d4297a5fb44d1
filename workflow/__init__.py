"""Workflow package: execution routing, fallback, callbacks and prompts."""

from workflow.callbacks import (
    LoggingProgressCallback,
    NullProgressCallback,
    ProgressCallback,
    ProgressReporter,
    RichProgressCallback,
)
from workflow.fallback import RouteTracker, run_with_fallback
from workflow.local import LocalGenerator
from workflow.remote import RemoteExecutor, remap_task_progress
from workflow.router import GenerationRouter
from workflow.state import RouteState

__all__ = [
    "GenerationRouter",
    "LocalGenerator",
    "RemoteExecutor",
    "remap_task_progress",
    "RouteState",
    "RouteTracker",
    "run_with_fallback",
    "ProgressCallback",
    "ProgressReporter",
    "NullProgressCallback",
    "LoggingProgressCallback",
    "RichProgressCallback",
]
