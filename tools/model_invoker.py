"""Single-call model invocation on top of the Claude Agent SDK."""

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
)

from config.settings import Settings
from models.request import GenerationRequest
from models.usage import UsageMetrics
from tools.cache_service import CacheEntry, ContextCache, compute_hash
from tools.error_classifier import classify_error
from tools.response_sanitizer import parse_json_response

logger = logging.getLogger(__name__)

# Allow launching Agent SDK even when running inside a Claude Code session.
# The SDK checks for this env var and refuses to start if set.
os.environ.pop("CLAUDECODE", None)


@dataclass
class InvocationResult:
    """Text (and parsed structured output, if requested) plus usage metrics."""
    text: str
    usage: UsageMetrics
    structured: Any = None
    cache_entry: Optional[CacheEntry] = None


class ModelInvoker:
    """Issues exactly one generation request per call; never retries.

    Every provider failure leaves this class as a ClassifiedError, so callers
    (the retrier in particular) never see raw SDK exceptions.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[ContextCache] = None,
    ):
        self.settings = settings or Settings()
        self.cache = cache
        self.total_calls = 0
        self.total_input_tokens = 0
        self.total_output_tokens = 0

    def _build_options(self, request: GenerationRequest) -> ClaudeAgentOptions:
        options_kwargs = {
            "model": request.model,
            "max_turns": 1,
        }
        if request.system_instruction:
            options_kwargs["system_prompt"] = request.system_instruction
        if request.response_schema is not None:
            options_kwargs["output_format"] = {
                "type": "json_schema",
                "schema": request.response_schema,
            }
        return ClaudeAgentOptions(**options_kwargs)

    async def invoke(
        self,
        request: GenerationRequest,
        prompt: str,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> InvocationResult:
        """Send one request and return the final text with usage metrics.

        Args:
            request: The logical request (model, system instruction, schema).
            prompt: Fully rendered user prompt.
            on_chunk: Optional callback fired with each streamed text block.

        Raises:
            ClassifiedError: On any provider, transport or policy failure.
        """
        self.total_calls += 1
        cache_entry = None
        if self.cache is not None and request.context:
            cache_entry = self.cache.lookup(request.context, request.model)

        logger.debug(
            "Model call: op=%s model=%s structured=%s cached_context=%s",
            request.kind.value,
            request.model,
            request.structured,
            cache_entry is not None,
        )

        result_message: Optional[ResultMessage] = None
        streamed: list[str] = []
        started = time.monotonic()
        try:
            # Do NOT return/break early from inside the async for loop: the
            # query() generator uses anyio cancel scopes and must be exhausted.
            async for message in query(prompt=prompt, options=self._build_options(request)):
                if isinstance(message, ResultMessage):
                    result_message = message
                elif isinstance(message, AssistantMessage):
                    for block in message.content:
                        text = getattr(block, "text", None)
                        if text:
                            streamed.append(text)
                            if on_chunk:
                                on_chunk(text)
        except Exception as e:
            raise classify_error(e) from e
        latency_ms = (time.monotonic() - started) * 1000

        if result_message is not None and result_message.is_error:
            raise classify_error(
                f"provider error result ({result_message.subtype}): {result_message.result or ''}"
            )

        text = (result_message.result if result_message else None) or "".join(streamed)
        structured = getattr(result_message, "structured_output", None) if result_message else None
        if structured is not None and not text:
            text = json.dumps(structured, ensure_ascii=False)

        raw_usage = (result_message.usage if result_message else None) or {}
        usage = UsageMetrics.from_usage(request.model, raw_usage, latency_ms)
        self.total_input_tokens += usage.input_tokens
        self.total_output_tokens += usage.output_tokens

        if not text:
            logger.warning("Model returned no content: op=%s model=%s", request.kind.value, request.model)

        cache_entry = self._record_cache(request, raw_usage) or cache_entry

        logger.debug(
            "Model result: %d chars, tokens in=%d out=%d, %dms",
            len(text),
            usage.input_tokens,
            usage.output_tokens,
            usage.latency_ms,
        )
        return InvocationResult(text=text, usage=usage, structured=structured, cache_entry=cache_entry)

    def _record_cache(self, request: GenerationRequest, raw_usage: dict) -> Optional[CacheEntry]:
        """Register the request context when the provider reports prompt-cache activity."""
        if self.cache is None or not request.context:
            return None
        created = int(raw_usage.get("cache_creation_input_tokens") or 0)
        read = int(raw_usage.get("cache_read_input_tokens") or 0)
        if created <= 0 and read <= 0:
            return None
        resource = f"prompt-cache/{compute_hash(request.context)[:16]}"
        return self.cache.register(request.context, request.model, resource, created + read)

    async def invoke_json(
        self,
        request: GenerationRequest,
        prompt: str,
    ) -> tuple[Any, UsageMetrics]:
        """Invoke and return parsed JSON, preferring the SDK's structured output.

        Raises:
            LLMResponseParseError: If the response cannot be parsed as JSON.
        """
        result = await self.invoke(request, prompt)
        if result.structured is not None:
            return result.structured, result.usage
        return parse_json_response(result.text), result.usage

    def get_usage_summary(self) -> dict:
        """Return call count and token statistics."""
        return {
            "total_calls": self.total_calls,
            "input_tokens": self.total_input_tokens,
            "output_tokens": self.total_output_tokens,
        }

