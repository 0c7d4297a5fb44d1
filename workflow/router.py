"""Execution router: one entry point per logical generation operation.

Each operation builds a GenerationRequest and runs it through
``run_with_fallback``: the backend task queue first (unless local-only mode
is configured), the in-process model call if the remote path fails.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from config.settings import Settings, get_settings
from models.enums import OperationKind, TextMode
from models.outline import OutlineNode
from models.request import GenerationRequest
from tools.backend_client import BackendClient
from tools.cache_service import ContextCache
from tools.model_invoker import ModelInvoker
from workflow import prompts
from workflow.callbacks import ProgressCallback, ProgressReporter
from workflow.fallback import run_with_fallback
from workflow.local import LocalGenerator
from workflow.remote import RemoteExecutor
from workflow.results import normalize_result
from workflow.state import RouteState

logger = logging.getLogger(__name__)


class GenerationRouter:
    """Routes generation operations between the backend queue and local calls."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        invoker: Optional[ModelInvoker] = None,
        backend: Optional[BackendClient] = None,
        callback: Optional[ProgressCallback] = None,
        cache: Optional[ContextCache] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.cache = cache or ContextCache.from_settings(self.settings)
        self.invoker = invoker or ModelInvoker(self.settings, self.cache)
        self.use_backend = self.settings.use_backend
        self._owns_backend = backend is None and self.use_backend
        if self._owns_backend:
            backend = BackendClient.from_settings(self.settings)
        self.backend = backend
        self.callback = callback
        self.remote = RemoteExecutor(backend, self.settings, sleep) if backend is not None else None
        self.local = LocalGenerator(self.invoker, self.settings, sleep)
        logger.info("GenerationRouter mode: %s", "backend" if self.remote else "local only")

    async def __aenter__(self) -> "GenerationRouter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_backend and self.backend is not None:
            await self.backend.aclose()

    async def run(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Any:
        """Execute ``request`` via remote-then-local fallback and return the normalized result."""
        reporter = ProgressReporter(on_progress or self.callback)

        async def remote():
            raw = await self.remote.run(request, reporter)
            return normalize_result(request, raw), None

        async def local():
            return await self.local.run(request, reporter)

        def on_transition(state: RouteState, detail: Optional[str]) -> None:
            reporter(state.label, state.percent, detail)

        result, usage = await run_with_fallback(
            remote if self.remote is not None else None,
            local,
            use_remote=self.use_backend,
            label=request.kind.value,
            on_transition=on_transition,
        )
        reporter("Generation complete", 100, metrics=usage)
        return result

    def _request(
        self,
        kind: OperationKind,
        model: Optional[str],
        default_model: str,
        lang: Optional[str],
        system_instruction: Optional[str],
        payload: dict,
        context: str = "",
        response_schema: Optional[dict] = None,
    ) -> GenerationRequest:
        lang = lang or self.settings.default_lang
        return GenerationRequest(
            kind=kind,
            model=model or default_model,
            lang=lang,
            system_instruction=system_instruction or prompts.system_instruction(lang),
            payload={k: v for k, v in payload.items() if v is not None},
            response_schema=response_schema,
            context=context or "",
        )

    # ---- Operations ----

    async def generate_daily_stories(
        self,
        trend_focus: str,
        target_audience: str = "male",
        sources: Iterable[str] = (),
        custom_rules: Optional[dict] = None,
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[dict]:
        request = self._request(
            OperationKind.DAILY_STORIES, model, self.settings.model_ideas, lang, system_instruction,
            {
                "trend_focus": trend_focus,
                "target_audience": target_audience,
                "sources": list(sources),
                "custom_rules": custom_rules,
            },
            response_schema=prompts.DAILY_STORIES_SCHEMA,
        )
        return await self.run(request, on_progress)

    async def generate_novel_architecture(
        self,
        idea: str,
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> dict:
        request = self._request(
            OperationKind.NOVEL_ARCHITECTURE, model, self.settings.model_architecture, lang,
            system_instruction, {"idea": idea},
        )
        return await self.run(request, on_progress)

    async def generate_chapter_content(
        self,
        node: OutlineNode,
        context: str = "",
        word_count: int = 2000,
        style: Optional[str] = None,
        previous_content: Optional[str] = None,
        next_chapter: Optional[dict] = None,
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        request = self._request(
            OperationKind.CHAPTER_CONTENT, model, self.settings.model_writing, lang, system_instruction,
            {
                "title": node.name,
                "outline": node.description,
                "word_count": word_count,
                "style": style,
                "previous_content": previous_content,
                "next_chapter": next_chapter,
            },
            context=context,
        )
        return await self.run(request, on_progress)

    async def regenerate_map(
        self,
        map_type: str,
        idea: str,
        context: str = "",
        style: Optional[str] = None,
        requirements: Optional[str] = None,
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> OutlineNode:
        request = self._request(
            OperationKind.REGENERATE_MAP, model, self.settings.model_architecture, lang,
            system_instruction,
            {"map_type": map_type, "idea": idea, "style": style, "requirements": requirements},
            context=context,
            response_schema=prompts.outline_node_schema(),
        )
        return await self.run(request, on_progress)

    async def expand_node(
        self,
        node: OutlineNode,
        context: str = "",
        style: Optional[str] = None,
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[OutlineNode]:
        request = self._request(
            OperationKind.EXPAND_NODE, model, self.settings.model_architecture, lang, system_instruction,
            {"node": node.to_dict(), "style": style},
            context=context,
        )
        return await self.run(request, on_progress)

    async def manipulate_text(
        self,
        text: str,
        mode: TextMode | str = TextMode.POLISH,
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        request = self._request(
            OperationKind.MANIPULATE_TEXT, model, self.settings.model_editing, lang, system_instruction,
            {"text": text, "mode": TextMode(mode).value},
        )
        return await self.run(request, on_progress)

    async def rewrite_chapter(
        self,
        content: str,
        context: str = "",
        style: Optional[str] = None,
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        request = self._request(
            OperationKind.REWRITE_CHAPTER, model, self.settings.model_writing, lang, system_instruction,
            {"content": content, "style": style},
            context=context,
        )
        return await self.run(request, on_progress)

    async def analyze_trend(
        self,
        sources: Iterable[str],
        target_audience: str = "male",
        lang: Optional[str] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        request = self._request(
            OperationKind.ANALYZE_TREND, model, self.settings.model_ideas, lang, system_instruction,
            {"sources": list(sources), "target_audience": target_audience},
        )
        return await self.run(request, on_progress)
