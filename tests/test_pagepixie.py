"""
Tests for the PagePixie public API
"""

import pytest

from pagepixie import PagePixie
from pagepixie.ai.orchestrator import CaptureCallbacks
from pagepixie.exceptions import ModelUnavailableError, SummarizationError
from pagepixie.models.session import ModelAvailability
from pagepixie.providers.base import ProviderError
from pagepixie.storage.memory import InMemoryStorage

from tests.helpers import CHAT, EXTRACT, script_pipeline

PAYLOAD = {
    "title": "Capture Pipelines Explained",
    "url": "https://example.com/capture",
    "fullText": "Capture pipelines turn pages into summaries.\n\nThey condense, then summarize.",
    "metadata": {
        "contentType": "generic",
        "description": "An explainer on capture pipelines",
        "authors": ["Ada Lovelace"],
    },
    "images": [],
    "extractorType": "generic",
}


@pytest.fixture
def pixie(config, service):
    script_pipeline(service)
    # Keep reported usage far below the reuse threshold
    service.prompt_tokens = 10
    return PagePixie(config=config, service=service)


class TestCapture:
    """Test capturing pages through the public API"""

    @pytest.mark.asyncio
    async def test_capture_saves_record(self, pixie):
        result = await pixie.capture(PAYLOAD)

        assert result.summary == "A concise summary of the page."
        record = await pixie.get_record("https://example.com/capture")
        assert record is not None
        assert record.summary == result.summary
        assert record.content_type == "article"
        assert record.condensed_content is not None

    @pytest.mark.asyncio
    async def test_capture_without_saving(self, pixie):
        await pixie.capture(PAYLOAD, save=False)
        assert await pixie.list_records() == []

    @pytest.mark.asyncio
    async def test_session_returns_to_pool(self, pixie, service):
        """Test that a finished capture leaves its session idle for reuse"""
        await pixie.capture(PAYLOAD)
        assert pixie.pool.size == 1

        created = len(service.sessions)
        await pixie.capture(PAYLOAD)
        # Detection clone plus the two reset clones; the main session comes from the pool
        assert pixie.pool.size == 1
        assert len(service.sessions) - created == 3

    @pytest.mark.asyncio
    async def test_failed_capture_destroys_session(self, pixie, service):
        service.on(EXTRACT, ProviderError("rejected", "stub"))

        with pytest.raises(SummarizationError):
            await pixie.capture(PAYLOAD)

        assert pixie.pool.size == 0
        assert await pixie.list_records() == []

    @pytest.mark.asyncio
    async def test_capture_when_model_unavailable(self, pixie, service):
        service.state = ModelAvailability.UNAVAILABLE

        assert await pixie.wait_until_ready() is False
        with pytest.raises(ModelUnavailableError):
            await pixie.capture(PAYLOAD)

    @pytest.mark.asyncio
    async def test_capture_reports_progress(self, pixie):
        progress = []

        await pixie.capture(PAYLOAD, CaptureCallbacks(on_summarize_progress=lambda c, t: progress.append(c)))

        assert progress == [1, 2, 3]

    def test_capture_sync(self, pixie):
        """Test synchronous API outside an event loop"""
        result = pixie.capture_sync(PAYLOAD)

        assert result.summary == "A concise summary of the page."
        assert pixie.get_record_sync("https://example.com/capture") is not None
        pixie.close_sync()


class TestChat:
    """Test chat refinement through the public API"""

    @pytest.mark.asyncio
    async def test_chat_updates_record(self, pixie, service):
        service.on(CHAT, {
            "modifiedSummary": "A shorter summary.",
            "modifiedStructuredData": {"main_topics": ["capture"]},
            "aiResponse": "Shortened it.",
        })
        await pixie.capture(PAYLOAD)

        response = await pixie.chat("https://example.com/capture", "Make it shorter")

        assert response.ai_response == "Shortened it."
        record = await pixie.get_record("https://example.com/capture")
        assert record.summary == "A shorter summary."
        assert record.structured_data == {"main_topics": ["capture"]}
        assert [(m.role, m.content) for m in record.chat_history] == [
            ("user", "Make it shorter"),
            ("assistant", "Shortened it."),
        ]
        # Chat runs on a clean context
        assert len(service.messages_for(CHAT)) == 1

    @pytest.mark.asyncio
    async def test_chat_on_capture_result(self, pixie, service):
        service.on(CHAT, "not json")
        result = await pixie.capture(PAYLOAD, save=False)

        response = await pixie.chat(result, "Change everything")

        assert response.summary == result.summary
        assert response.structured_data == result.structured_data

    @pytest.mark.asyncio
    async def test_chat_unknown_url(self, pixie):
        with pytest.raises(ValueError):
            await pixie.chat("https://example.com/never-captured", "Hello")


class TestLifecycle:
    """Test context managers and shutdown"""

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self, config, service):
        script_pipeline(service)

        async with PagePixie(config=config, service=service) as pixie:
            await pixie.capture(PAYLOAD)
            idle = pixie.pool.size

        assert idle == 1
        assert pixie.pool.size == 0
        assert all(session.is_destroyed for session in service.sessions)

    def test_defaults(self, config, service):
        pixie = PagePixie(config=config, service=service)

        assert isinstance(pixie.storage, InMemoryStorage)
        assert pixie.pool.capacity == config.pool_size
        stats = pixie.get_stats()
        assert stats['pool'] == {'idle_sessions': 0, 'capacity': config.pool_size}
        assert stats['storage']['total_records'] == 0
