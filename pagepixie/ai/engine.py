"""
PixieAI - Session-owning facade over the pipeline's model services
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..core.config import PagePixieConfig
from ..exceptions import InvalidSessionError
from ..models.page import ChatResponse, CondensedPageContent, PageContent, SummaryResponse
from ..models.session import LanguageDetectionResult, SessionOptions, SessionUsage
from ..processors.image import ImageContextBuilder
from ..providers.base import BaseModelSession
from ..session.manager import SessionManager
from .chat import ChatService
from .classifier import ContentTypeClassifier
from .condenser import CondenseService
from .language import LanguageDetector, Translator
from .summarizer import SummarizeService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Any]


class PixieAI:
    """
    Holds the pipeline's main model session and the services that use it

    Resetting replaces the held session with a clone, so services always
    go through this object rather than keeping the session themselves.
    Language detection and translation run on their own sessions.
    """

    def __init__(
        self,
        manager: SessionManager,
        session: BaseModelSession,
        config: Optional[PagePixieConfig] = None,
        image_builder: Optional[ImageContextBuilder] = None,
        language_detector: Optional[LanguageDetector] = None,
        translator: Optional[Translator] = None
    ):
        self.manager = manager
        self.config = config or manager.config
        self._session: Optional[BaseModelSession] = session

        # Helpers passed in are shared and stay alive after destroy()
        self._owns_language_services = language_detector is None and translator is None
        self.image_builder = image_builder or ImageContextBuilder(self.config)
        self.language_detector = language_detector or LanguageDetector(manager, self.config)
        self.translator = translator or Translator(manager, self.config)

        self.classifier = ContentTypeClassifier(self)
        self.condenser = CondenseService(self)
        self.summarizer = SummarizeService(self)
        self.chat_service = ChatService(self)

    @classmethod
    async def create(
        cls,
        manager: SessionManager,
        options: Optional[SessionOptions] = None,
        **kwargs: Any
    ) -> 'PixieAI':
        """Create a facade around a freshly created session"""
        session = await manager.create_session(options)
        return cls(manager, session, **kwargs)

    @property
    def session(self) -> BaseModelSession:
        if self._session is None:
            raise InvalidSessionError("PixieAI no longer holds a model session")
        return self._session

    async def prompt(self, text: str) -> str:
        """Send a prompt and get the complete response"""
        return await self.session.prompt(text)

    async def prompt_streaming(self, text: str, on_chunk: Callable[[str], Any]) -> str:
        """Send a prompt, forwarding streamed fragments to on_chunk"""
        return await self.manager.prompt_streaming(self.session, text, on_chunk)

    async def prompt_structured(self, text: str, schema: dict) -> Any:
        """Send a schema-constrained prompt and return the parsed JSON"""
        return await self.manager.prompt_constrained(self.session, text, schema)

    def usage(self) -> SessionUsage:
        return self.manager.usage(self.session)

    async def reset(self) -> None:
        """Clear conversation history by swapping in a clone of the session"""
        self._session = await self.manager.reset_context(self.session)

    def detach(self) -> BaseModelSession:
        """Hand the held session to the caller; this facade can no longer prompt"""
        session = self.session
        self._session = None
        return session

    def destroy(self) -> None:
        """Release the held session and any language services this facade created"""
        if self._session is not None:
            self._session.destroy()
            self._session = None

        if self._owns_language_services:
            self.language_detector.reset()
            self.translator.reset()

    async def append_image_context(self, page: PageContent) -> int:
        """Attach the page's images to the session; returns the number attached"""
        return await self.image_builder.attach(self.session, page)

    async def condense(
        self,
        page: PageContent,
        on_progress: Optional[ProgressCallback] = None
    ) -> CondensedPageContent:
        return await self.condenser.condense(page, on_progress)

    async def summarize(
        self,
        condensed: CondensedPageContent,
        on_progress: Optional[ProgressCallback] = None
    ) -> SummaryResponse:
        return await self.summarizer.summarize(condensed, on_progress)

    async def chat(
        self,
        condensed: CondensedPageContent,
        current_summary: str,
        current_structured_data: Dict[str, Any],
        user_message: str
    ) -> ChatResponse:
        return await self.chat_service.chat(condensed, current_summary, current_structured_data, user_message)

    async def detect_language(self, text: str) -> List[LanguageDetectionResult]:
        return await self.language_detector.detect(text)

    async def translate_streaming(
        self,
        text: str,
        source_language: str,
        target_language: str,
        on_chunk: Optional[Callable[[str], None]] = None
    ) -> str:
        return await self.translator.translate_streaming(text, source_language, target_language, on_chunk)

    async def classify_content_type(self, page: PageContent) -> str:
        return await self.classifier.classify(page)
