"""Read-only snapshot of a task owned by the remote task queue."""

from dataclasses import dataclass
from typing import Any, Optional

from models.enums import TaskStatus


@dataclass
class RemoteTask:
    """Last-seen state of a backend task."""
    id: str
    status: TaskStatus = TaskStatus.PENDING
    progress: float = 0
    result: Any = None
    error: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteTask":
        try:
            status = TaskStatus(str(data.get("status") or "pending").lower())
        except ValueError:
            status = TaskStatus.RUNNING
        progress = data.get("progress") or 0
        try:
            progress = min(max(float(progress), 0.0), 100.0)
        except (TypeError, ValueError):
            progress = 0.0
        return cls(
            id=str(data.get("id") or data.get("taskId") or ""),
            status=status,
            progress=progress,
            result=data.get("result"),
            error=data.get("error"),
            type=data.get("type"),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
