"""Enumerations for generation requests, remote tasks and error kinds."""

from enum import Enum


class OperationKind(str, Enum):
    DAILY_STORIES = "daily_stories"
    NOVEL_ARCHITECTURE = "novel_architecture"
    CHAPTER_CONTENT = "chapter_content"
    REGENERATE_MAP = "regenerate_map"
    EXPAND_NODE = "expand_node"
    MANIPULATE_TEXT = "manipulate_text"
    REWRITE_CHAPTER = "rewrite_chapter"
    ANALYZE_TREND = "analyze_trend"

    @property
    def endpoint(self) -> str:
        """Path segment under ``/api/generate/`` on the task backend."""
        return self.value.replace("_", "-")


class TaskStatus(str, Enum):
    PENDING = "pending"
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED)


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    CONTENT_FILTERED = "content_filtered"
    MALFORMED_RESPONSE = "malformed_response"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    EXHAUSTED = "exhausted"
    UNKNOWN = "unknown"


class NodeType(str, Enum):
    BOOK = "book"
    ACT = "act"
    CHAPTER = "chapter"
    SCENE = "scene"
    CHARACTER = "character"
    SETTING = "setting"
    ITEM = "item"
    EVENT = "event"
    OTHER = "other"

    @classmethod
    def parse(cls, value) -> "NodeType":
        """Map free-form model output onto a known node type."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER


class TextMode(str, Enum):
    CONTINUE = "continue"
    REWRITE = "rewrite"
    POLISH = "polish"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"
