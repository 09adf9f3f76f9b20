"""
In-process model service with scripted replies (no network calls)
"""

import io
import json
from typing import Any, AsyncIterator, Callable, List, Optional, Tuple, Union

from PIL import Image

from pagepixie.core.config import PagePixieConfig
from pagepixie.models.session import ContextMessage, ModelAvailability, SessionOptions
from pagepixie.providers.base import BaseModelService, BaseModelSession

# Markers identifying each pipeline prompt
DETECT = "Identify the language"
TRANSLATE = "Translate the following text"
CLASSIFY = "# Content Type Classification"
METADATA = "extract key metadata"
CHUNK = "You are condensing part"
FINAL = "Condense this"
REFINE = "Refine and improve"
EXTRACT = "# Structured Data Extraction"
SUMMARY = "# Summary Generation"
CHAT = "# Chat Assistant"

Reply = Union[str, dict, list, Exception, Callable[[str], Any]]


class StubModelSession(BaseModelSession):
    """Session that answers from its service's script"""

    def __init__(self, service: 'StubModelService', options: SessionOptions):
        super().__init__(options, service.config.context_window_tokens)
        self.service = service

    async def _complete(self, messages: List[ContextMessage], constraint: Optional[dict] = None) -> Tuple[str, Optional[int]]:
        return self.service.reply_for(messages, constraint), self.service.prompt_tokens

    async def _stream(self, messages: List[ContextMessage]) -> AsyncIterator[str]:
        text = self.service.reply_for(messages, None)
        for i in range(0, len(text), 5):
            yield text[i:i + 5]

    def _spawn(self) -> 'StubModelSession':
        return self.service.new_session(self.options)

    def destroy(self) -> None:
        if not self.is_destroyed:
            self.service.destroyed += 1
        super().destroy()


class StubModelService(BaseModelService):
    """
    Scripted host model service

    Replies are chosen by the first registered marker found in the prompt
    text; dicts and lists are sent back as JSON and exceptions are raised.
    """

    name = "stub"

    def __init__(self, config: Optional[PagePixieConfig] = None, state: ModelAvailability = ModelAvailability.AVAILABLE):
        super().__init__(config or PagePixieConfig(openai_api_key="test-key"))
        self.state = state
        self.states: List[ModelAvailability] = []
        self.rules: List[Tuple[str, Reply]] = []
        self.default_reply = "OK"
        self.calls: List[Tuple[str, List[ContextMessage]]] = []
        self.sessions: List[StubModelSession] = []
        self.destroyed = 0
        self.prompt_tokens: Optional[int] = None

    def on(self, marker: str, reply: Reply) -> 'StubModelService':
        self.rules = [(m, r) for m, r in self.rules if m != marker]
        self.rules.append((marker, reply))
        return self

    def reply_for(self, messages: List[ContextMessage], constraint: Optional[dict]) -> str:
        text = messages[-1].content
        self.calls.append((text, list(messages)))

        for marker, reply in self.rules:
            if marker not in text:
                continue
            if isinstance(reply, Exception):
                raise reply
            if callable(reply):
                reply = reply(text)
            if isinstance(reply, (dict, list)):
                reply = json.dumps(reply)
            return reply

        return self.default_reply

    def prompts_with(self, marker: str) -> List[str]:
        return [text for text, _ in self.calls if marker in text]

    def messages_for(self, marker: str) -> List[ContextMessage]:
        """Conversation sent with the first prompt containing marker"""
        for text, messages in self.calls:
            if marker in text:
                return messages
        raise AssertionError(f"No prompt containing {marker!r} was sent")

    async def availability(self) -> ModelAvailability:
        if self.states:
            return self.states.pop(0)
        return self.state

    async def create(self, options: SessionOptions) -> StubModelSession:
        return self.new_session(options)

    def new_session(self, options: Optional[SessionOptions] = None) -> StubModelSession:
        session = StubModelSession(self, options or SessionOptions())
        self.sessions.append(session)
        return session


def script_pipeline(
    service: StubModelService,
    language: str = "en",
    confidence: float = 0.98,
    content_type: str = "article",
    summary: str = "A concise summary of the page."
) -> StubModelService:
    """Register replies for a complete, successful capture"""
    return (
        service
        .on(DETECT, {"languages": [{"detectedLanguage": language, "confidence": confidence}]})
        .on(TRANSLATE, lambda text: "Translated: " + text.split(":\n\n", 1)[-1][:40])
        .on(CLASSIFY, content_type)
        .on(METADATA, {
            "description": "A test page about capture pipelines",
            "mainTopics": ["capture", "summaries"],
            "keyEntities": ["PagePixie"],
            "authors": ["Ada Lovelace"],
        })
        .on(REFINE, "Refined page content.")
        .on(CHUNK, "Condensed chunk.")
        .on(FINAL, "Final condensed content.")
        .on(EXTRACT, {
            "main_topics": ["capture", "summaries"],
            "key_points": ["Pages become summaries", "", None],
            "details": {"pages": 3, "format": "html"},
        })
        .on(SUMMARY, summary)
    )


def make_image_bytes(size: Tuple[int, int] = (8, 8), fmt: str = "PNG") -> bytes:
    """Encode a solid-color test image"""
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 40, 40)).save(buffer, fmt)
    return buffer.getvalue()
