"""Generation request and retry policy value objects."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from config.exceptions import InvalidConfigError
from models.enums import OperationKind


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class GenerationRequest:
    """One logical generation call, created per user action."""
    kind: OperationKind
    model: str
    lang: str = "zh"
    system_instruction: Optional[str] = None
    payload: Mapping[str, Any] = field(default_factory=dict)
    response_schema: Optional[dict] = None
    context: str = ""  # Large shared context, eligible for provider-side caching

    def __post_init__(self):
        if not self.model:
            raise InvalidConfigError("GenerationRequest.model must not be empty")
        object.__setattr__(self, "kind", OperationKind(self.kind))
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @property
    def structured(self) -> bool:
        return self.response_schema is not None

    def remote_params(self) -> dict:
        """Request body for ``POST /api/generate/<operation>`` (camelCase keys)."""
        params = {_camel(k): v for k, v in self.payload.items()}
        params["lang"] = self.lang
        params["model"] = self.model
        if self.system_instruction:
            params["systemInstruction"] = self.system_instruction
        if self.context and "context" not in params:
            params["context"] = self.context
        return params


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff configuration, consumed by a single retry invocation."""
    max_attempts: int = 3
    base_delay_ms: int = 3000
    backoff_multiplier: float = 2.0
    rate_limit_multiplier: float = 2.0
    max_delay_ms: Optional[int] = None
    jitter_ms: int = 1000

    def __post_init__(self):
        if self.max_attempts < 0:
            raise InvalidConfigError("max_attempts must be >= 0", {"max_attempts": self.max_attempts})
        if self.base_delay_ms <= 0:
            raise InvalidConfigError("base_delay_ms must be > 0", {"base_delay_ms": self.base_delay_ms})
        if self.backoff_multiplier < 1 or self.rate_limit_multiplier < 1:
            raise InvalidConfigError("Backoff multipliers must be >= 1")
        if self.max_delay_ms is not None and self.max_delay_ms <= 0:
            raise InvalidConfigError("max_delay_ms must be > 0 when set")
        if self.jitter_ms < 0:
            raise InvalidConfigError("jitter_ms must be >= 0")
