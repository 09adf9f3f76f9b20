"""
Basic tests for PagePixie configuration, models and storage
"""

import pytest

from pagepixie.core.config import PagePixieConfig
from pagepixie.core.utils import extract_json, parse_llm_json, truncate_text
from pagepixie.models.page import (
    CaptureResult, CondensedMetadata, CondensedPageContent, ContentType, PageContent, PageMetadata
)
from pagepixie.models.record import CaptureRecord, ConversationMessage
from pagepixie.providers import create_model_service
from pagepixie.providers.anthropic import AnthropicModelService
from pagepixie.providers.openai import OpenAIModelService
from pagepixie.storage.memory import InMemoryStorage


class TestPagePixieConfig:
    """Test configuration system"""

    def test_default_config(self):
        """Test default configuration values"""
        config = PagePixieConfig()

        assert config.provider == "openai"
        assert config.pool_size == 3
        assert config.session_reuse_threshold == 80.0
        assert config.translation_min_confidence == 0.3
        assert config.english_language_codes == ("en",)
        assert config.max_images == 5

    def test_config_validation(self):
        """Test configuration validation"""
        with pytest.raises(ValueError):
            PagePixieConfig(provider="gemini")
        with pytest.raises(ValueError):
            PagePixieConfig(temperature=1.5)
        with pytest.raises(ValueError):
            PagePixieConfig(pool_size=0)
        with pytest.raises(ValueError):
            PagePixieConfig(session_reuse_threshold=0)
        with pytest.raises(ValueError):
            PagePixieConfig(jpeg_quality=150)

    def test_provider_default_model(self):
        assert PagePixieConfig(provider="anthropic").model.startswith("claude")
        assert PagePixieConfig(provider="anthropic", model="claude-custom").model == "claude-custom"

    def test_language_codes_normalized(self):
        config = PagePixieConfig(english_language_codes=["EN", "en-US"])
        assert config.english_language_codes == ("en", "en-us")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PAGEPIXIE_PROVIDER", "anthropic")
        monkeypatch.setenv("PAGEPIXIE_POOL_SIZE", "5")
        monkeypatch.setenv("PAGEPIXIE_SESSION_REUSE_THRESHOLD", "60")
        monkeypatch.setenv("PAGEPIXIE_OPTIMIZE_IMAGES", "no")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")

        config = PagePixieConfig.from_env(max_images=2)

        assert config.provider == "anthropic"
        assert config.pool_size == 5
        assert config.session_reuse_threshold == 60.0
        assert config.optimize_images is False
        assert config.max_images == 2
        assert config.get_api_key() == "env-key"

    def test_validate_provider_config(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError):
            PagePixieConfig().validate_provider_config()


class TestModelServiceFactory:
    """Test host model service creation"""

    def test_create_services(self):
        openai_service = create_model_service(PagePixieConfig(openai_api_key="key"))
        anthropic_service = create_model_service(PagePixieConfig(provider="anthropic", anthropic_api_key="key"))
        openrouter_service = create_model_service(PagePixieConfig(provider="openrouter", openrouter_api_key="key"))

        assert isinstance(openai_service, OpenAIModelService)
        assert isinstance(anthropic_service, AnthropicModelService)
        assert isinstance(openrouter_service, OpenAIModelService)


class TestPageModels:
    """Test page content models"""

    def test_from_extractor_payload(self):
        """Test camelCase extractor payloads"""
        page = PageContent.from_dict({
            "title": "Pancakes",
            "url": "https://example.com/pancakes",
            "fullText": "Mix and fry.",
            "metadata": {"contentType": "recipe", "publishDate": "2024-02-01", "tags": ["breakfast"]},
            "extractorType": "recipe-site",
        })

        assert page.full_text == "Mix and fry."
        assert page.metadata.content_type == "recipe"
        assert page.metadata.publish_date == "2024-02-01"
        assert page.extractor == "recipe-site"
        assert PageContent.from_dict(page.to_dict()) == page

    def test_pages_are_immutable(self):
        page = PageContent(title="T", url="https://example.com", full_text="Body")

        with pytest.raises(AttributeError):
            page.title = "Changed"

        updated = page.with_metadata(content_type="news")
        assert updated.metadata.content_type == "news"
        assert page.metadata.content_type == ContentType.GENERIC.value

    def test_metadata_requires_content_type(self):
        with pytest.raises(ValueError):
            PageMetadata(content_type="")

    def test_compression_ratio(self):
        condensed = CondensedPageContent("T", "u", "x" * 25, CondensedMetadata(), original_length=100)
        assert condensed.compression_ratio == 0.25
        assert CondensedPageContent("T", "u", "", CondensedMetadata()).compression_ratio == 0.0


class TestCoreUtils:
    """Test JSON and text helpers"""

    def test_parse_llm_json(self):
        assert parse_llm_json('{"a": 1}') == {"a": 1}
        assert parse_llm_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_extract_json(self):
        assert extract_json('Here you go: {"a": [1, 2]} hope that helps') == {"a": [1, 2]}
        assert extract_json("no json here") is None

    def test_truncate_text(self):
        text = "First sentence. " * 20
        truncated = truncate_text(text, 100)

        assert len(truncated) <= 100
        assert truncated.endswith("[Content truncated...]")
        assert truncate_text("short", 100) == "short"


def make_record(url="https://example.com/a", summary="Summary"):
    page = PageContent(title="A page", url=url, full_text="Body")
    condensed = CondensedPageContent("A page", url, "Body", CondensedMetadata())
    return CaptureRecord.from_capture(CaptureResult(page, condensed, summary, {"topics": ["a"]}))


class TestInMemoryStorage:
    """Test in-memory, URL-keyed storage"""

    @pytest.mark.asyncio
    async def test_record_operations(self):
        storage = InMemoryStorage()
        record = make_record()

        record_id = await storage.save_record(record)

        assert record_id == record.id
        assert await storage.record_exists(record.url)
        loaded = await storage.get_record(record.url)
        assert loaded.summary == "Summary"
        assert loaded is not record

        assert await storage.delete_record(record.url)
        assert not await storage.delete_record(record.url)
        assert await storage.get_record(record.url) is None

    @pytest.mark.asyncio
    async def test_same_url_updates_record(self):
        """Test that saving an existing URL keeps its identity"""
        storage = InMemoryStorage()
        first = make_record(summary="First")
        await storage.save_record(first)

        second_id = await storage.save_record(make_record(summary="Second"))

        assert second_id == first.id
        assert storage.get_record_count() == 1
        stored = await storage.get_record(first.url)
        assert stored.summary == "Second"
        assert stored.created_at == first.created_at
        assert stored.updated_at is not None

    @pytest.mark.asyncio
    async def test_list_and_search(self):
        storage = InMemoryStorage()
        await storage.save_record(make_record("https://example.com/a", "About pancakes"))
        await storage.save_record(make_record("https://example.com/b", "About waffles"))

        listed = await storage.list_records()
        assert {meta['url'] for meta in listed} == {"https://example.com/a", "https://example.com/b"}
        assert len(await storage.list_records(limit=1)) == 1

        found = await storage.search_records("waffles")
        assert [meta['url'] for meta in found] == ["https://example.com/b"]

        storage.clear_all()
        assert storage.get_record_count() == 0

    def test_record_validation(self):
        with pytest.raises(ValueError):
            CaptureRecord(url="", title="T", content_type="generic", summary="S")
        with pytest.raises(ValueError):
            ConversationMessage(role="robot", content="hi")
        with pytest.raises(ValueError):
            ConversationMessage(role="user", content="  ")

    def test_record_to_dict(self):
        record = make_record()
        record.add_message("user", "Shorter please")

        data = record.to_dict()

        assert data['url'] == "https://example.com/a"
        assert data['chat_history'][0]['content'] == "Shorter please"
        assert data['updated_at'] is None
