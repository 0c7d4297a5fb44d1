"""Models package: request, task, usage and outline value objects."""

from models.enums import (
    OperationKind,
    TaskStatus,
    ErrorKind,
    NodeType,
    TextMode,
    HealthStatus,
)
from models.outline import OutlineNode, assign_node_ids, assign_ids_to_list
from models.request import GenerationRequest, RetryPolicy
from models.task import RemoteTask
from models.usage import UsageMetrics

__all__ = [
    "GenerationRequest",
    "RetryPolicy",
    "RemoteTask",
    "UsageMetrics",
    "OutlineNode",
    "assign_node_ids",
    "assign_ids_to_list",
    "OperationKind",
    "TaskStatus",
    "ErrorKind",
    "NodeType",
    "TextMode",
    "HealthStatus",
]
