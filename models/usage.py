"""Usage metrics attached to a successful model call."""

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional


def _count(usage: Mapping[str, Any], *keys: str) -> int:
    for key in keys:
        value = usage.get(key)
        if value is None:
            continue
        try:
            return max(int(value), 0)
        except (TypeError, ValueError):
            continue
    return 0


@dataclass(frozen=True)
class UsageMetrics:
    """Token counters and latency for one provider call."""
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    latency_ms: int = 0
    cached_input_tokens: int = 0

    @classmethod
    def from_usage(
        cls,
        model: str,
        usage: Optional[Mapping[str, Any]],
        latency_ms: float,
    ) -> "UsageMetrics":
        """Build metrics from a provider usage dict, missing counters become zero.

        Accepts both Anthropic-style (``input_tokens``) and Gemini-style
        (``promptTokenCount``) keys.
        """
        usage = usage or {}
        input_tokens = _count(usage, "input_tokens", "promptTokenCount", "prompt_token_count")
        output_tokens = _count(
            usage, "output_tokens", "candidatesTokenCount", "candidates_token_count"
        )
        total_tokens = _count(usage, "total_tokens", "totalTokenCount", "total_token_count")
        return cls(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total_tokens or input_tokens + output_tokens,
            latency_ms=max(int(latency_ms), 0),
            cached_input_tokens=_count(
                usage, "cache_read_input_tokens", "cachedContentTokenCount"
            ),
        )

    def to_dict(self) -> dict:
        return asdict(self)
