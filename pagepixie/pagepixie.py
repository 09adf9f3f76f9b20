"""
Main PagePixie API class
Turns extracted web page content into a summary and structured data
"""

from typing import Optional, List, Dict, Any, Union, Callable
import logging

import httpx

from .models.page import PageContent, CaptureResult, ChatResponse, CondensedPageContent, CondensedMetadata
from .models.record import CaptureRecord
from .models.session import ModelAvailability
from .core.config import PagePixieConfig
from .session import SessionManager, SessionPool
from .storage.base import BaseStorage
from .storage.memory import InMemoryStorage
from .processors.image import ImageContextBuilder, BlobResolver
from .providers import BaseModelService, create_model_service
from .ai.engine import PixieAI
from .ai.language import LanguageDetector, Translator
from .ai.orchestrator import CaptureOrchestrator, CaptureCallbacks
from .utils.async_helpers import sync_wrapper

logger = logging.getLogger(__name__)


class PagePixie:
    """
    Main PagePixie API class

    Each capture checks a model session out of a bounded pool, runs the
    capture pipeline on it and releases it afterwards. Sessions that fail
    mid-pipeline are destroyed rather than returned to the pool.
    """

    def __init__(
        self,
        config: Optional[PagePixieConfig] = None,
        storage: Optional[BaseStorage] = None,
        service: Optional[BaseModelService] = None,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        blob_resolver: Optional[BlobResolver] = None
    ):
        """
        Initialize PagePixie

        Args:
            config: Configuration object (uses defaults if None)
            storage: Record storage backend (in-memory if None)
            service: Host model service (built from config if None)
            api_key: API key for the configured provider (can also use env vars)
            http_client: HTTP client used to fetch page images
            blob_resolver: Resolver for ephemeral "blob:" image references
        """
        if config is None:
            config = PagePixieConfig()

        # Override API key if provided
        if api_key:
            if config.provider == "openai":
                config.openai_api_key = api_key
            elif config.provider == "anthropic":
                config.anthropic_api_key = api_key
            elif config.provider == "openrouter":
                config.openrouter_api_key = api_key

        self.config = config
        self.storage = storage or InMemoryStorage()

        self.service = service if service is not None else create_model_service(config)
        self.manager = SessionManager(self.service, config)
        self.pool = SessionPool(self.manager, config.pool_size, config.session_reuse_threshold)

        self.image_builder = ImageContextBuilder(config, http_client, blob_resolver)
        self.language_detector = LanguageDetector(self.manager, config)
        self.translator = Translator(self.manager, config)

        logger.info(f"Initialized PagePixie with {self.service.name} model service and {type(self.storage).__name__} storage")

    async def wait_until_ready(
        self,
        on_progress: Optional[Callable[[ModelAvailability], Any]] = None
    ) -> bool:
        """Wait for the model service to become available (False on timeout)"""
        return await self.manager.wait_until_ready(on_progress=on_progress)

    # Capture

    async def capture(
        self,
        page: Union[PageContent, Dict[str, Any]],
        callbacks: Optional[CaptureCallbacks] = None,
        save: bool = True
    ) -> CaptureResult:
        """
        Run the capture pipeline on extracted page content

        Args:
            page: PageContent or an extractor payload dict
            callbacks: Progress callbacks
            save: Whether to store the result as a record keyed by URL

        Returns:
            CaptureResult with summary, structured data and diagnostics

        Raises:
            ServiceUnavailableError / ModelUnavailableError: If no session can be created
            SummarizationError: If the model service rejects summarization
        """
        if isinstance(page, dict):
            page = PageContent.from_dict(page)

        logger.info(f"Capturing page: {page.url or page.title}")

        ai = await self._checkout_ai()
        try:
            result = await CaptureOrchestrator(ai).execute(page, callbacks)
        except BaseException:
            ai.destroy()
            raise

        self.pool.release(ai.detach())

        if save and result.processed_page_content.url:
            await self.storage.save_record(CaptureRecord.from_capture(result))

        logger.info(f"Captured {page.url or page.title} ({len(result.diagnostics)} diagnostic(s))")
        return result

    # Chat

    async def chat(
        self,
        target: Union[CaptureRecord, CaptureResult, str],
        message: str
    ) -> ChatResponse:
        """
        Refine a capture's summary and structured data through chat

        Args:
            target: A stored record, a capture result or the URL of a stored record
            message: User message (question or edit instruction)

        Returns:
            ChatResponse; stored records are updated with the new summary,
            structured data and chat history
        """
        record: Optional[CaptureRecord] = None

        if isinstance(target, str):
            record = await self.storage.get_record(target)
            if record is None:
                raise ValueError(f"No capture record found for {target}")
        elif isinstance(target, CaptureRecord):
            record = target

        if record is not None:
            condensed = record.condensed_content or self._condensed_from_record(record)
            summary, structured = record.summary, record.structured_data
        else:
            condensed = target.condensed_content
            summary, structured = target.summary, target.structured_data

        ai = await self._checkout_ai()
        try:
            # Pooled sessions may carry another page's context
            await ai.reset()
            response = await ai.chat(condensed, summary, structured, message)
        except BaseException:
            ai.destroy()
            raise

        self.pool.release(ai.detach())

        if record is not None:
            record.summary = response.summary
            record.structured_data = response.structured_data
            record.add_message("user", message)
            record.add_message("assistant", response.ai_response)
            await self.storage.save_record(record)

        return response

    # Records

    async def get_record(self, url: str) -> Optional[CaptureRecord]:
        return await self.storage.get_record(url)

    async def list_records(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self.storage.list_records(limit)

    async def delete_record(self, url: str) -> bool:
        return await self.storage.delete_record(url)

    async def search_records(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        return await self.storage.search_records(query, limit)

    def get_stats(self) -> Dict[str, Any]:
        """Get system statistics"""
        return {
            'config': {
                'provider': self.config.provider,
                'model': self.config.model,
                'pool_size': self.config.pool_size,
                'session_reuse_threshold': self.config.session_reuse_threshold,
            },
            'pool': {'idle_sessions': self.pool.size, 'capacity': self.pool.capacity},
            'storage': self.storage.get_storage_stats(),
        }

    async def close(self) -> None:
        """Destroy pooled and cached sessions and close the HTTP client"""
        self.pool.destroy_all()
        self.language_detector.reset()
        self.translator.reset()
        await self.image_builder.close()
        logger.info("PagePixie closed")

    # Synchronous API for easier adoption

    def capture_sync(
        self,
        page: Union[PageContent, Dict[str, Any]],
        callbacks: Optional[CaptureCallbacks] = None,
        save: bool = True
    ) -> CaptureResult:
        """Synchronous version of capture"""
        return sync_wrapper(self.capture(page, callbacks, save))

    def chat_sync(self, target: Union[CaptureRecord, CaptureResult, str], message: str) -> ChatResponse:
        """Synchronous version of chat"""
        return sync_wrapper(self.chat(target, message))

    def wait_until_ready_sync(self) -> bool:
        """Synchronous version of wait_until_ready"""
        return sync_wrapper(self.wait_until_ready())

    def get_record_sync(self, url: str) -> Optional[CaptureRecord]:
        """Synchronous version of get_record"""
        return sync_wrapper(self.get_record(url))

    def close_sync(self) -> None:
        """Synchronous version of close"""
        sync_wrapper(self.close())

    # Context manager support

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_sync()

    async def _checkout_ai(self) -> PixieAI:
        session = await self.pool.checkout()
        return PixieAI(
            self.manager,
            session,
            self.config,
            image_builder=self.image_builder,
            language_detector=self.language_detector,
            translator=self.translator,
        )

    @staticmethod
    def _condensed_from_record(record: CaptureRecord) -> CondensedPageContent:
        # Records restored without condensed content only have the summary to offer
        return CondensedPageContent(
            title=record.title,
            url=record.url,
            condensed_content=record.summary,
            metadata=CondensedMetadata(content_type=record.content_type),
        )


# Convenience factory functions

def create_pagepixie(
    provider: str = "openai",
    api_key: Optional[str] = None
) -> PagePixie:
    """
    Create a PagePixie instance with simple configuration

    Args:
        provider: Model provider ("openai", "anthropic" or "openrouter")
        api_key: API key for the provider
    """
    config = PagePixieConfig(provider=provider)
    return PagePixie(config=config, api_key=api_key)
