"""
Tests for the capture pipeline state machine
"""

import base64

import pytest

from pagepixie.ai.engine import PixieAI
from pagepixie.ai.orchestrator import CaptureCallbacks, CaptureOrchestrator, CaptureStage, CaptureState
from pagepixie.exceptions import SummarizationError, TranslationError
from pagepixie.models.page import ContentType
from pagepixie.providers.base import ProviderError

from tests.helpers import (
    CLASSIFY, DETECT, EXTRACT, SUMMARY, TRANSLATE, make_image_bytes, script_pipeline
)

PIPELINE_STAGES = [
    CaptureStage.START,
    CaptureStage.LANGUAGE_NORMALIZE,
    CaptureStage.CLASSIFY,
    CaptureStage.CONDENSE,
    CaptureStage.RESET_FOR_SUMMARIZE,
    CaptureStage.ATTACH_IMAGE_CONTEXT,
    CaptureStage.SUMMARIZE,
]


class TestCapturePipeline:
    """Test complete pipeline runs"""

    @pytest.mark.asyncio
    async def test_english_page(self, ai, service, page):
        """Test a clean run: classification, condensing and summarization"""
        script_pipeline(service)
        stages, events = [], []
        callbacks = CaptureCallbacks(
            on_stage=stages.append,
            on_condense_progress=lambda current, total: events.append(("condense", current, total)),
            on_summarize_progress=lambda current, total: events.append(("summarize", current, total)),
        )

        result = await CaptureOrchestrator(ai).execute(page, callbacks)

        assert stages == PIPELINE_STAGES
        assert events == [("condense", 1, 1), ("summarize", 1, 3), ("summarize", 2, 3), ("summarize", 3, 3)]
        assert result.summary == "A concise summary of the page."
        assert result.structured_data["key_points"] == ["Pages become summaries"]
        assert result.processed_page_content.metadata.content_type == "article"
        assert result.condensed_content.metadata.content_type == "article"
        assert result.diagnostics == []
        assert not result.degraded
        assert service.prompts_with(TRANSLATE) == []
        # The caller's page is never modified
        assert page.metadata.content_type == ContentType.GENERIC.value

    @pytest.mark.asyncio
    async def test_summarize_starts_from_fresh_context(self, ai, service, page):
        """Test that condensing history never reaches the summarization prompts"""
        script_pipeline(service)

        await CaptureOrchestrator(ai).execute(page)

        assert len(service.messages_for(EXTRACT)) == 1
        assert len(service.messages_for(SUMMARY)) == 3

    @pytest.mark.asyncio
    async def test_non_english_page_is_translated(self, ai, service, page):
        script_pipeline(service, language="fr", confidence=0.9)
        started, completed = [], []

        async def on_complete():
            completed.append(True)

        result = await CaptureOrchestrator(ai).execute(page, CaptureCallbacks(
            on_translation_start=started.append,
            on_translation_complete=on_complete,
        ))

        processed = result.processed_page_content
        assert started == ["fr"]
        assert completed == [True]
        assert len(service.prompts_with(TRANSLATE)) == 2
        assert processed.full_text.startswith("Translated:")
        assert processed.metadata.description.startswith("Translated:")
        assert processed.metadata.extra["originalLanguage"] == "fr"
        assert processed.metadata.extra["languageDetectionConfidence"] == 0.9
        assert result.structured_data["originalLanguage"] == "fr"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("language, confidence", [("fr", 0.2), ("en-GB", 0.95), ("EN", 0.99)])
    async def test_translation_skipped(self, ai, service, page, language, confidence):
        """Test that English and low-confidence detections keep the original text"""
        script_pipeline(service, language=language, confidence=confidence)

        result = await CaptureOrchestrator(ai).execute(page)

        assert service.prompts_with(TRANSLATE) == []
        assert result.processed_page_content.full_text == page.full_text
        assert "originalLanguage" not in result.processed_page_content.metadata.extra

    @pytest.mark.asyncio
    async def test_translation_failure_keeps_original(self, ai, service, page):
        script_pipeline(service, language="de", confidence=0.9).on(TRANSLATE, ProviderError("busy", "stub"))
        errors = []

        result = await CaptureOrchestrator(ai).execute(page, CaptureCallbacks(on_translation_error=errors.append))

        assert len(errors) == 1
        assert isinstance(errors[0], TranslationError)
        assert result.processed_page_content.full_text == page.full_text
        assert any("translation skipped" in d for d in result.diagnostics)
        assert result.summary == "A concise summary of the page."

    @pytest.mark.asyncio
    async def test_detection_failure_and_failing_error_callback(self, ai, service, page):
        """Test that a broken detector and a raising error callback still finish the capture"""
        script_pipeline(service).on(DETECT, "no idea")

        def broken_callback(error):
            raise RuntimeError("callback bug")

        result = await CaptureOrchestrator(ai).execute(page, CaptureCallbacks(on_translation_error=broken_callback))

        assert result.degraded
        assert result.summary == "A concise summary of the page."

    @pytest.mark.asyncio
    async def test_extractor_content_type_is_authoritative(self, ai, service, page):
        script_pipeline(service)

        result = await CaptureOrchestrator(ai).execute(page.with_metadata(content_type="recipe"))

        assert service.prompts_with(CLASSIFY) == []
        assert result.processed_page_content.metadata.content_type == "recipe"

    @pytest.mark.asyncio
    async def test_classification_failure_keeps_hint(self, ai, service, page):
        script_pipeline(service).on(CLASSIFY, ProviderError("timeout", "stub"))

        result = await CaptureOrchestrator(ai).execute(page)

        assert result.processed_page_content.metadata.content_type == ContentType.GENERIC.value
        assert any("classification failed" in d for d in result.diagnostics)

    @pytest.mark.asyncio
    async def test_condense_failure_falls_back_to_truncation(self, ai, service, page):
        script_pipeline(service)

        async def broken_condense(page, on_progress=None):
            raise RuntimeError("condenser crashed")

        ai.condenser.condense = broken_condense

        result = await CaptureOrchestrator(ai).execute(page)

        assert result.condensed_content.condensed_content == page.full_text
        assert any("condensing failed" in d for d in result.diagnostics)
        assert result.summary == "A concise summary of the page."

    @pytest.mark.asyncio
    async def test_reset_failure_is_recorded(self, ai, service, page):
        script_pipeline(service)

        async def broken_reset():
            raise ProviderError("clone refused", "stub")

        ai.reset = broken_reset

        result = await CaptureOrchestrator(ai).execute(page)

        assert any("session reset failed" in d for d in result.diagnostics)
        assert result.summary == "A concise summary of the page."

    @pytest.mark.asyncio
    async def test_images_are_attached_before_summarizing(self, ai, service, page):
        script_pipeline(service)
        png = base64.b64encode(make_image_bytes()).decode()
        page = page.with_changes(images=[f"data:image/png;base64,{png}", "data:image/gif;base64,R0lGOD=="])

        await CaptureOrchestrator(ai).execute(page)

        messages = service.messages_for(EXTRACT)
        assert len(messages) == 2
        assert messages[0].image_count == 1

    @pytest.mark.asyncio
    async def test_image_failure_is_not_fatal(self, ai, service, page):
        script_pipeline(service)

        async def broken_attach(session, page):
            raise RuntimeError("image pipeline down")

        ai.image_builder.attach = broken_attach

        result = await CaptureOrchestrator(ai).execute(page)

        assert any("image context skipped" in d for d in result.diagnostics)
        assert result.summary == "A concise summary of the page."

    @pytest.mark.asyncio
    async def test_summarization_rejection_propagates(self, ai, service, page):
        script_pipeline(service).on(EXTRACT, ProviderError("content policy", "stub"))

        with pytest.raises(SummarizationError):
            await CaptureOrchestrator(ai).execute(page)

    @pytest.mark.asyncio
    async def test_empty_summary_falls_back_to_description(self, ai, service, page):
        script_pipeline(service, summary="   ")

        result = await CaptureOrchestrator(ai).execute(page)

        assert result.summary == "A test page about capture pipelines"
        assert "model returned an empty summary" in result.diagnostics


class TestCaptureStateMachine:
    """Test stepping and resuming the state machine"""

    @pytest.mark.asyncio
    async def test_step_through_every_stage(self, ai, service, page):
        script_pipeline(service)
        orchestrator = CaptureOrchestrator(ai)
        state = CaptureState(stage=CaptureStage.START, page=page)
        visited = []

        while state.stage != CaptureStage.DONE:
            visited.append(state.stage)
            state = await orchestrator.step(state)

        assert visited == PIPELINE_STAGES
        assert state.condensed is not None
        assert state.summary.summary == "A concise summary of the page."
        assert await orchestrator.step(state) is state

    @pytest.mark.asyncio
    async def test_resume_from_summarize(self, ai, service, page):
        """Test that a run can resume from a saved mid-pipeline state"""
        script_pipeline(service)
        condensed = ai.condenser.fallback(page)
        state = CaptureState(stage=CaptureStage.SUMMARIZE, page=page, condensed=condensed, diagnostics=("earlier",))

        result = await CaptureOrchestrator(ai).resume(state)

        assert [text for text, _ in service.calls] == service.prompts_with(EXTRACT) + service.prompts_with(SUMMARY)
        assert result.diagnostics == ["earlier"]
        assert result.condensed_content is condensed

    @pytest.mark.parametrize("code, expected", [
        ("en", True), ("EN-us", True), ("en-GB", True), ("eng", False), ("fr", False), ("", False),
    ])
    def test_is_english(self, manager, service, config, code, expected):
        ai = PixieAI(manager, service.new_session(), config)
        assert CaptureOrchestrator(ai).is_english(code) is expected
