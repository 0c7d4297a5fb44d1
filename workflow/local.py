"""Local execution path: render the prompt and call the model in-process."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from config.settings import Settings
from models.enums import OperationKind, TextMode
from models.request import GenerationRequest
from models.usage import UsageMetrics
from tools.error_classifier import surface_error
from tools.model_invoker import ModelInvoker
from tools.response_sanitizer import truncate_context
from tools.retry import retry_with_backoff
from workflow import prompts
from workflow.callbacks import ProgressReporter
from workflow.results import normalize_result

logger = logging.getLogger(__name__)


def _style_line(payload) -> str:
    return prompts.optional_line("Style requirements", payload.get("style"))


def _daily_stories_prompt(request: GenerationRequest, context: str) -> str:
    p = request.payload
    sources = p.get("sources") or []
    if sources:
        source_instruction = "Only use trends from these platforms: " + ", ".join(sources) + "."
    else:
        source_instruction = "Use trending topics from major web novel and social media platforms."
    rules = p.get("custom_rules") or {}
    custom_rules = "".join(
        prompts.optional_line(f"Rule for {field}", rules.get(field))
        for field in ("title", "synopsis", "coolPoint", "burstPoint")
    )
    audience = prompts.AUDIENCES.get(p.get("target_audience") or "male", p.get("target_audience"))
    return prompts.render_prompt(
        "daily_stories",
        request.lang,
        trend_focus=p.get("trend_focus") or "current viral hot spots",
        audience=audience,
        source_instruction=source_instruction,
        custom_rules=custom_rules,
    )


def _architecture_prompt(request: GenerationRequest, context: str) -> str:
    return prompts.render_prompt("novel_architecture", request.lang, idea=request.payload.get("idea", ""))


def _chapter_prompt(request: GenerationRequest, context: str) -> str:
    p = request.payload
    next_chapter = p.get("next_chapter") or {}
    next_text = ""
    if next_chapter:
        next_text = prompts.optional_line(
            "Next chapter (lead into it, do not write it)",
            " - ".join(str(v) for v in next_chapter.values() if v),
        )
    return prompts.render_prompt(
        "chapter_content",
        request.lang,
        title=p.get("title", ""),
        outline=p.get("outline") or "none",
        word_count=p.get("word_count") or 2000,
        style_instruction=_style_line(p),
        context=context or "none",
        previous_instruction=prompts.optional_line(
            "Previous chapter ending (continue seamlessly)", (p.get("previous_content") or "")[-2000:]
        ),
        next_instruction=next_text,
    )


def _regenerate_map_prompt(request: GenerationRequest, context: str) -> str:
    p = request.payload
    return prompts.render_prompt(
        "regenerate_map",
        request.lang,
        map_type=p.get("map_type", ""),
        idea=p.get("idea") or "Improve this map based on the context",
        context=context or "none",
        style_instruction=_style_line(p),
        requirements_instruction=prompts.optional_line("Mandatory requirements", p.get("requirements")),
    )


def _expand_node_prompt(request: GenerationRequest, context: str) -> str:
    node = request.payload.get("node") or {}
    return prompts.render_prompt(
        "expand_node",
        request.lang,
        node_name=node.get("name", ""),
        description=node.get("description", ""),
        context=context or "none",
        style_instruction=_style_line(request.payload),
    )


def _manipulate_text_prompt(request: GenerationRequest, context: str) -> str:
    mode = TextMode(request.payload.get("mode") or TextMode.POLISH)
    return prompts.render_prompt(
        "manipulate_text",
        request.lang,
        instruction=prompts.TEXT_MODE_INSTRUCTIONS[mode.value],
        text=request.payload.get("text", ""),
    )


def _rewrite_chapter_prompt(request: GenerationRequest, context: str) -> str:
    return prompts.render_prompt(
        "rewrite_chapter",
        request.lang,
        context=context or "none",
        style_instruction=_style_line(request.payload),
        content=request.payload.get("content", ""),
    )


def _analyze_trend_prompt(request: GenerationRequest, context: str) -> str:
    p = request.payload
    return prompts.render_prompt(
        "analyze_trend",
        request.lang,
        sources=", ".join(p.get("sources") or []) or "major web novel platforms",
        audience=prompts.AUDIENCES.get(p.get("target_audience") or "male", p.get("target_audience")),
    )


# kind -> (prompt builder, expects JSON, stage label)
_OPERATIONS: dict[OperationKind, tuple[Callable[[GenerationRequest, str], str], bool, str]] = {
    OperationKind.DAILY_STORIES: (_daily_stories_prompt, True, "Generating story ideas..."),
    OperationKind.NOVEL_ARCHITECTURE: (_architecture_prompt, True, "Building novel architecture..."),
    OperationKind.CHAPTER_CONTENT: (_chapter_prompt, False, "Writing chapter..."),
    OperationKind.REGENERATE_MAP: (_regenerate_map_prompt, True, "Redrawing map..."),
    OperationKind.EXPAND_NODE: (_expand_node_prompt, True, "Expanding node..."),
    OperationKind.MANIPULATE_TEXT: (_manipulate_text_prompt, False, "Processing text..."),
    OperationKind.REWRITE_CHAPTER: (_rewrite_chapter_prompt, False, "Rewriting chapter..."),
    OperationKind.ANALYZE_TREND: (_analyze_trend_prompt, False, "Analyzing trends..."),
}


class LocalGenerator:
    """Runs a GenerationRequest through ModelInvoker wrapped in the retrier."""

    def __init__(
        self,
        invoker: ModelInvoker,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.invoker = invoker
        self.settings = settings or Settings()
        self.policy = self.settings.retry_policy()
        self._sleep = sleep

    def build_prompt(self, request: GenerationRequest) -> str:
        builder, _, _ = _OPERATIONS[request.kind]
        context = truncate_context(request.context, self.settings.context_max_chars)
        return builder(request, context)

    async def run(
        self,
        request: GenerationRequest,
        reporter: ProgressReporter,
    ) -> tuple[Any, UsageMetrics]:
        """Generate, parse and normalize the result for ``request``.

        Raises:
            ClassifiedError: With the user-facing message, once retries are spent
                or on the first non-retryable failure.
        """
        _, expects_json, stage = _OPERATIONS[request.kind]

        received = [0]

        def on_chunk(text: str) -> None:
            received[0] += len(text)
            reporter(stage, 60, f"Received {received[0]} chars")

        async def attempt(prompt: str) -> tuple[Any, UsageMetrics]:
            if expects_json:
                data, usage = await self.invoker.invoke_json(request, prompt)
            else:
                result = await self.invoker.invoke(request, prompt, on_chunk)
                data, usage = result.text, result.usage
            return normalize_result(request, data), usage

        def on_retry(remaining: int, delay_ms: float, error: Exception) -> None:
            reporter(stage, None, f"Retrying in {delay_ms / 1000:.1f}s ({remaining} attempts left)")

        try:
            prompt = self.build_prompt(request)
            reporter(stage, 30)
            value, usage = await retry_with_backoff(
                lambda: attempt(prompt), policy=self.policy, sleep=self._sleep, on_retry=on_retry
            )
        except Exception as e:
            error = surface_error(e)
            logger.error("Local %s failed (%s): %s", request.kind.value, error.kind.value, error.raw_detail[:200])
            raise error from e

        reporter("Parsing result...", 90, metrics=usage)
        return value, usage
