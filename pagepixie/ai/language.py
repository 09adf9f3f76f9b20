"""
Language detection and translation services

Both keep their own model sessions so they never add history to the
pipeline's main session.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from ..core.config import PagePixieConfig
from ..exceptions import (
    LanguageDetectionError, TranslationError, PagePixieError
)
from ..models.session import LanguageDetectionResult, SessionOptions
from ..providers.base import BaseModelSession, ProviderError
from ..session.manager import SessionManager
from .prompts import (
    SYSTEM_LANGUAGE_DETECTOR, SYSTEM_TRANSLATOR, LANGUAGE_DETECTION_PROMPT, TRANSLATION_PROMPT
)

logger = logging.getLogger(__name__)

LANGUAGE_DETECTION_SCHEMA = {
    "type": "object",
    "properties": {
        "languages": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "detectedLanguage": {"type": "string"},
                    "confidence": {"type": "number"},
                },
                "required": ["detectedLanguage", "confidence"],
            },
        }
    },
    "required": ["languages"],
}


class LanguageDetector:
    """
    Model-driven language detector

    A template session is created lazily and cloned for every detection,
    so detections never see each other's history.
    """

    def __init__(self, manager: SessionManager, config: Optional[PagePixieConfig] = None):
        self.manager = manager
        self.config = config or manager.config
        self._template: Optional[BaseModelSession] = None
        self._lock = asyncio.Lock()

    async def detect(self, text: str) -> List[LanguageDetectionResult]:
        """
        Detect likely languages for text, most likely first

        Returns an empty list for blank text.

        Raises:
            LanguageDetectionError: If the model call fails or returns garbage
        """
        trimmed = text.strip()
        if not trimmed:
            return []

        template = await self._ensure_template()
        session = await template.clone()

        try:
            result = await self.manager.prompt_constrained(
                session,
                LANGUAGE_DETECTION_PROMPT.format(text=trimmed),
                LANGUAGE_DETECTION_SCHEMA,
            )
            return self._parse_results(result["languages"])
        except (ProviderError, PagePixieError) as e:
            raise LanguageDetectionError(f"Language detection failed: {e}") from e
        finally:
            session.destroy()

    def reset(self) -> None:
        """Release the template session; the next detection recreates it"""
        if self._template is not None:
            self._template.destroy()
            self._template = None

    async def _ensure_template(self) -> BaseModelSession:
        async with self._lock:
            if self._template is None or self._template.is_destroyed:
                try:
                    self._template = await self.manager.create_session(
                        SessionOptions(temperature=0.0, top_k=1, system_prompt=SYSTEM_LANGUAGE_DETECTOR)
                    )
                except (ProviderError, PagePixieError) as e:
                    raise LanguageDetectionError(f"Language detector unavailable: {e}") from e
            return self._template

    @staticmethod
    def _parse_results(candidates: list) -> List[LanguageDetectionResult]:
        results = []
        for candidate in candidates:
            try:
                confidence = min(1.0, max(0.0, float(candidate["confidence"])))
                code = str(candidate["detectedLanguage"]).strip()
            except (KeyError, TypeError, ValueError):
                logger.debug(f"Skipping malformed language candidate: {candidate}")
                continue
            if code:
                results.append(LanguageDetectionResult(detected_language=code, confidence=confidence))

        results.sort(key=lambda r: r.confidence, reverse=True)
        return results


class Translator:
    """
    Streaming translator with one cached template session per language pair

    Every call works on a clone of the pair's template, so concurrent
    translations never share history.
    """

    def __init__(self, manager: SessionManager, config: Optional[PagePixieConfig] = None):
        self.manager = manager
        self.config = config or manager.config
        self._templates: Dict[str, BaseModelSession] = {}
        self._lock = asyncio.Lock()

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        """Translate text and return the full result"""
        return await self.translate_streaming(text, source_language, target_language)

    async def translate_streaming(
        self,
        text: str,
        source_language: str,
        target_language: str,
        on_chunk: Optional[Callable[[str], None]] = None
    ) -> str:
        """
        Translate text, forwarding streamed fragments to on_chunk

        Raises:
            TranslationError: If the language pair is missing or the model call fails
        """
        if not source_language or not target_language:
            raise TranslationError("Both source_language and target_language are required")

        template = await self._ensure_template(source_language, target_language)
        session = await template.clone()

        try:
            translated = await self.manager.prompt_streaming(
                session,
                TRANSLATION_PROMPT.format(
                    source_language=source_language,
                    target_language=target_language,
                    text=text,
                ),
                on_chunk or (lambda chunk: None),
            )
        except (ProviderError, PagePixieError) as e:
            raise TranslationError(f"Translation {source_language}->{target_language} failed: {e}") from e
        finally:
            session.destroy()

        return translated.strip()

    def reset(self) -> None:
        """Release every cached translator session"""
        for key, template in self._templates.items():
            template.destroy()
            logger.debug(f"Released translator {key}")
        self._templates.clear()

    async def _ensure_template(self, source_language: str, target_language: str) -> BaseModelSession:
        key = f"{source_language.lower()}->{target_language.lower()}"

        async with self._lock:
            template = self._templates.get(key)
            if template is not None and not template.is_destroyed:
                return template

            try:
                template = await self.manager.create_session(
                    SessionOptions(
                        temperature=0.0,
                        top_k=1,
                        system_prompt=SYSTEM_TRANSLATOR.format(
                            source_language=source_language,
                            target_language=target_language,
                        ),
                    )
                )
            except (ProviderError, PagePixieError) as e:
                raise TranslationError(
                    f"Translator {source_language}->{target_language} unavailable: {e}"
                ) from e

            self._templates[key] = template
            return template
