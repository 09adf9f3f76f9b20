"""
Base interfaces for the host model service and its stateful sessions
"""

import base64
from abc import ABC, abstractmethod
from contextlib import aclosing
from typing import AsyncIterator, List, Optional, Tuple
import logging

from ..core.config import PagePixieConfig
from ..exceptions import InvalidSessionError
from ..models.session import (
    ModelAvailability, SessionOptions, ContextMessage, ImagePart, TextPart
)

logger = logging.getLogger(__name__)

# Rough cost of one image when a provider does not report token usage
IMAGE_TOKEN_ESTIMATE = 256


class BaseModelSession(ABC):
    """
    One stateful generative conversation

    The conversation state (initial prompts, appended context and
    prompt/response history) is held client-side and replayed on every
    call. A session is owned by exactly one holder; once destroyed (or
    replaced through clone-and-destroy) the handle is invalid.
    """

    def __init__(self, options: SessionOptions, input_quota: int):
        self.options = options
        self.input_quota = input_quota
        self.input_usage = 0
        self._history: List[ContextMessage] = []
        self._destroyed = False
        self._stream_prompt_tokens: Optional[int] = None

    @property
    def initial_prompts(self) -> List[ContextMessage]:
        """Prompts every clone starts with"""
        if self.options.system_prompt:
            return [ContextMessage(role="system", content=self.options.system_prompt)]
        return []

    @property
    def history(self) -> List[ContextMessage]:
        return list(self._history)

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    async def prompt(self, text: str, constraint: Optional[dict] = None) -> str:
        """Send a prompt and get the complete response"""
        self._ensure_active()
        messages = self._conversation_with(text)

        result, prompt_tokens = await self._complete(messages, constraint)

        self._record_turn(text, result, messages, prompt_tokens)
        return result

    async def prompt_streaming(self, text: str) -> AsyncIterator[str]:
        """
        Send a prompt and yield the response incrementally

        The turn is only recorded in the history once the stream is
        fully consumed.
        """
        self._ensure_active()
        messages = self._conversation_with(text)
        chunks: List[str] = []
        self._stream_prompt_tokens = None

        async with aclosing(self._stream(messages)) as stream:
            async for chunk in stream:
                chunks.append(chunk)
                yield chunk

        self._record_turn(text, "".join(chunks), messages, self._stream_prompt_tokens)

    async def append(self, messages: List[ContextMessage]) -> None:
        """Append context messages without prompting the model"""
        self._ensure_active()
        self._history.extend(messages)
        self.input_usage = self._estimate_tokens(self.initial_prompts + self._history)

    async def clone(self) -> 'BaseModelSession':
        """Create a new session with the same options and initial prompts but no history"""
        self._ensure_active()
        return self._spawn()

    def destroy(self) -> None:
        """Release the session; further use raises InvalidSessionError"""
        self._destroyed = True
        self._history.clear()

    @abstractmethod
    async def _complete(
        self,
        messages: List[ContextMessage],
        constraint: Optional[dict] = None
    ) -> Tuple[str, Optional[int]]:
        """Run one completion; return (text, prompt tokens if reported)"""
        pass

    @abstractmethod
    def _stream(self, messages: List[ContextMessage]) -> AsyncIterator[str]:
        """Yield completion chunks; may set self._stream_prompt_tokens"""
        pass

    @abstractmethod
    def _spawn(self) -> 'BaseModelSession':
        """Create a fresh session sharing this session's service and options"""
        pass

    def _ensure_active(self) -> None:
        if self._destroyed:
            raise InvalidSessionError("Model session has been destroyed")

    def _conversation_with(self, text: str) -> List[ContextMessage]:
        return self.initial_prompts + self._history + [ContextMessage(role="user", content=text)]

    def _record_turn(
        self,
        text: str,
        result: str,
        messages: List[ContextMessage],
        prompt_tokens: Optional[int]
    ) -> None:
        if self._destroyed:
            return
        self._history.append(ContextMessage(role="user", content=text))
        self._history.append(ContextMessage(role="assistant", content=result))
        self.input_usage = prompt_tokens if prompt_tokens is not None else self._estimate_tokens(messages)

    @staticmethod
    def _estimate_tokens(messages: List[ContextMessage]) -> int:
        """Approximate token count (4 characters per token)"""
        total = 0
        for message in messages:
            if isinstance(message.content, str):
                total += len(message.content) // 4
                continue
            for part in message.content:
                if isinstance(part, TextPart):
                    total += len(part.text) // 4
                else:
                    total += IMAGE_TOKEN_ESTIMATE
        return total

    # Helper methods for image handling (shared by all providers)

    @staticmethod
    def _encode_image(part: ImagePart) -> str:
        """Encode image bytes to base64 for API calls"""
        return base64.b64encode(part.data).decode('utf-8')

    def _create_image_data_url(self, part: ImagePart) -> str:
        """Create data URL for image"""
        return f"data:{part.mime_type};base64,{self._encode_image(part)}"


class BaseModelService(ABC):
    """Host model service: reports availability and creates sessions"""

    name = "base"

    def __init__(self, config: PagePixieConfig):
        self.config = config

    @abstractmethod
    async def availability(self) -> ModelAvailability:
        """Report whether sessions can be created"""
        pass

    @abstractmethod
    async def create(self, options: SessionOptions) -> BaseModelSession:
        """Create a new session with the given options"""
        pass


class ProviderError(Exception):
    """Exception raised when the model service rejects a call"""

    def __init__(self, message: str, provider: str):
        self.provider = provider
        super().__init__(message)
