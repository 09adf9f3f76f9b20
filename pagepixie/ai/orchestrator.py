"""
Capture Orchestrator - Runs the page capture pipeline as a state machine

Start -> LanguageNormalize -> Classify -> Condense -> ResetForSummarize
      -> AttachImageContext -> Summarize -> Done

Every stage except Summarize recovers from its own failures and records a
diagnostic; a Summarize failure propagates since no usable result exists.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from ..models.page import (
    CaptureResult, CondensedPageContent, ContentType, PageContent, SummaryResponse
)
from ..utils.async_helpers import notify
from .engine import PixieAI

logger = logging.getLogger(__name__)


class CaptureStage(str, Enum):
    """Pipeline stages in execution order"""
    START = "start"
    LANGUAGE_NORMALIZE = "language_normalize"
    CLASSIFY = "classify"
    CONDENSE = "condense"
    RESET_FOR_SUMMARIZE = "reset_for_summarize"
    ATTACH_IMAGE_CONTEXT = "attach_image_context"
    SUMMARIZE = "summarize"
    DONE = "done"


_NEXT_STAGE = {
    CaptureStage.START: CaptureStage.LANGUAGE_NORMALIZE,
    CaptureStage.LANGUAGE_NORMALIZE: CaptureStage.CLASSIFY,
    CaptureStage.CLASSIFY: CaptureStage.CONDENSE,
    CaptureStage.CONDENSE: CaptureStage.RESET_FOR_SUMMARIZE,
    CaptureStage.RESET_FOR_SUMMARIZE: CaptureStage.ATTACH_IMAGE_CONTEXT,
    CaptureStage.ATTACH_IMAGE_CONTEXT: CaptureStage.SUMMARIZE,
    CaptureStage.SUMMARIZE: CaptureStage.DONE,
}


@dataclass
class CaptureCallbacks:
    """Progress callbacks; each may be a plain function or a coroutine function"""
    on_condense_progress: Optional[Callable[[int, int], Any]] = None
    on_summarize_progress: Optional[Callable[[int, int], Any]] = None
    on_translation_start: Optional[Callable[[str], Any]] = None
    on_translation_complete: Optional[Callable[[], Any]] = None
    on_translation_error: Optional[Callable[[Exception], Any]] = None
    on_stage: Optional[Callable[[CaptureStage], Any]] = None


@dataclass(frozen=True)
class CaptureState:
    """
    Snapshot of one pipeline run

    The stage tag says which fields are populated: condensed from
    RESET_FOR_SUMMARIZE on, summary once DONE.
    """
    stage: CaptureStage
    page: PageContent
    condensed: Optional[CondensedPageContent] = None
    summary: Optional[SummaryResponse] = None
    diagnostics: Tuple[str, ...] = ()

    def advance(self, **changes: Any) -> 'CaptureState':
        """Move to the next stage with the given fields replaced"""
        return replace(self, stage=_NEXT_STAGE[self.stage], **changes)

    def with_diagnostic(self, message: str) -> 'CaptureState':
        return replace(self, diagnostics=self.diagnostics + (message,))


class CaptureOrchestrator:
    """
    Sequences the capture stages over a PixieAI instance

    Progress callbacks are passed into each stage call, so the condense and
    summarize callbacks are bound only after the preceding session reset.
    """

    def __init__(self, ai: PixieAI):
        self.ai = ai
        self.config = ai.config
        self._handlers: Dict[CaptureStage, Callable[[CaptureState, CaptureCallbacks], Awaitable[CaptureState]]] = {
            CaptureStage.START: self._start,
            CaptureStage.LANGUAGE_NORMALIZE: self._normalize_language,
            CaptureStage.CLASSIFY: self._classify,
            CaptureStage.CONDENSE: self._condense,
            CaptureStage.RESET_FOR_SUMMARIZE: self._reset_for_summarize,
            CaptureStage.ATTACH_IMAGE_CONTEXT: self._attach_image_context,
            CaptureStage.SUMMARIZE: self._summarize,
        }

    async def execute(
        self,
        page: PageContent,
        callbacks: Optional[CaptureCallbacks] = None
    ) -> CaptureResult:
        """
        Run the complete capture pipeline

        Raises:
            SummarizationError: If the model service rejects summarization
        """
        return await self.resume(CaptureState(stage=CaptureStage.START, page=page), callbacks)

    async def resume(
        self,
        state: CaptureState,
        callbacks: Optional[CaptureCallbacks] = None
    ) -> CaptureResult:
        """Run the pipeline from the given state to completion"""
        callbacks = callbacks or CaptureCallbacks()

        while state.stage != CaptureStage.DONE:
            state = await self.step(state, callbacks)

        for diagnostic in state.diagnostics:
            logger.warning(f"Capture degraded: {diagnostic}")

        return CaptureResult(
            processed_page_content=state.page,
            condensed_content=state.condensed,
            summary=state.summary.summary,
            structured_data=state.summary.structured_data,
            diagnostics=list(state.diagnostics),
        )

    async def step(self, state: CaptureState, callbacks: Optional[CaptureCallbacks] = None) -> CaptureState:
        """Execute exactly one stage"""
        if state.stage == CaptureStage.DONE:
            return state

        callbacks = callbacks or CaptureCallbacks()
        logger.info(f"Capture stage: {state.stage.value}")
        await notify(callbacks.on_stage, state.stage)

        return await self._handlers[state.stage](state, callbacks)

    async def _start(self, state: CaptureState, callbacks: CaptureCallbacks) -> CaptureState:
        return state.advance()

    async def _normalize_language(self, state: CaptureState, callbacks: CaptureCallbacks) -> CaptureState:
        page = state.page

        try:
            source = (page.full_text or page.metadata.description or "").strip()
            if not source:
                return state.advance()

            results = await self.ai.detect_language(source[:self.config.language_sample_chars])
            if not results:
                return state.advance()

            top = results[0]
            if self.is_english(top.detected_language) or top.confidence < self.config.translation_min_confidence:
                return state.advance()

            language = top.detected_language
            target = self.config.translation_target_language
            logger.info(f"Detected {language} (confidence: {top.confidence}). Translating...")
            await notify(callbacks.on_translation_start, language)

            translated_text, translated_description = await asyncio.gather(
                self._translate(page.full_text, language, target),
                self._translate(page.metadata.description, language, target),
            )

            await notify(callbacks.on_translation_complete)

            translated = page.with_changes(
                full_text=translated_text if translated_text is not None else page.full_text,
                metadata=replace(
                    page.metadata,
                    description=translated_description,
                    extra={
                        **page.metadata.extra,
                        "originalLanguage": language,
                        "languageDetectionConfidence": top.confidence,
                    },
                ),
            )
            return state.advance(page=translated)

        except Exception as e:
            logger.warning(f"Language preprocessing failed, using original content: {e}")
            await self._notify_quietly(callbacks.on_translation_error, e)
            return state.with_diagnostic(f"translation skipped: {e}").advance()

    async def _classify(self, state: CaptureState, callbacks: CaptureCallbacks) -> CaptureState:
        page = state.page
        hint = page.metadata.content_type

        # Specialized extractors are authoritative about their content type
        if hint != ContentType.GENERIC.value:
            logger.info(f"Using extractor's content type: {hint}")
            return state.advance()

        try:
            content_type = await self.ai.classify_content_type(page)
        except Exception as e:
            logger.warning(f"Content type classification failed, using extractor hint: {e}")
            return state.with_diagnostic(f"classification failed: {e}").advance()

        if content_type == hint:
            return state.advance()

        return state.advance(page=page.with_metadata(content_type=content_type))

    async def _condense(self, state: CaptureState, callbacks: CaptureCallbacks) -> CaptureState:
        try:
            condensed = await self.ai.condense(state.page, callbacks.on_condense_progress)
        except Exception as e:
            logger.error(f"Condensing failed, truncating content: {e}")
            return state.with_diagnostic(f"condensing failed: {e}").advance(
                condensed=self.ai.condenser.fallback(state.page)
            )

        return state.advance(condensed=condensed)

    async def _reset_for_summarize(self, state: CaptureState, callbacks: CaptureCallbacks) -> CaptureState:
        try:
            await self.ai.reset()
        except Exception as e:
            logger.warning(f"Session reset before summarization failed: {e}")
            return state.with_diagnostic(f"session reset failed: {e}").advance()

        return state.advance()

    async def _attach_image_context(self, state: CaptureState, callbacks: CaptureCallbacks) -> CaptureState:
        try:
            await self.ai.append_image_context(state.page)
        except Exception as e:
            logger.warning(f"Failed to attach image context: {e}")
            return state.with_diagnostic(f"image context skipped: {e}").advance()

        return state.advance()

    async def _summarize(self, state: CaptureState, callbacks: CaptureCallbacks) -> CaptureState:
        summary = await self.ai.summarize(state.condensed, callbacks.on_summarize_progress)

        if not summary.summary.strip():
            fallback = state.condensed.metadata.description or state.condensed.condensed_content[:500]
            state = state.with_diagnostic("model returned an empty summary")
            summary = SummaryResponse(summary=fallback, structured_data=summary.structured_data)

        return state.advance(summary=summary)

    def is_english(self, language_code: str) -> bool:
        """Whether a language code names one of the configured English variants"""
        code = (language_code or "").lower()
        return any(code == en or code.startswith(f"{en}-") for en in self.config.english_language_codes)

    async def _translate(self, text: Optional[str], source: str, target: str) -> Optional[str]:
        if not text or not text.strip():
            return text
        return await self.ai.translate_streaming(text, source, target)

    @staticmethod
    async def _notify_quietly(callback: Optional[Callable[..., Any]], *args: Any) -> None:
        try:
            await notify(callback, *args)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
