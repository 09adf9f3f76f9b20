"""
OpenAI model service (also serves OpenRouter through its OpenAI-compatible endpoint)
"""

import logging
from typing import AsyncIterator, List, Dict, Any, Optional, Tuple

from .base import BaseModelService, BaseModelSession, ProviderError
from ..core.config import PagePixieConfig
from ..models.session import ModelAvailability, SessionOptions, ContextMessage, TextPart

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAIModelSession(BaseModelSession):
    """Stateful conversation backed by the Chat Completions API"""

    def __init__(self, service: 'OpenAIModelService', options: SessionOptions):
        super().__init__(options, service.config.context_window_tokens)
        self.service = service

    async def _complete(
        self,
        messages: List[ContextMessage],
        constraint: Optional[dict] = None
    ) -> Tuple[str, Optional[int]]:
        """Process messages through the OpenAI API"""
        request = self._build_request(messages)
        if constraint is not None:
            request["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": constraint, "strict": False},
            }

        try:
            response = await self.service.client.chat.completions.create(**request)
        except Exception as e:
            logger.error(f"{self.service.name} prompt failed: {e}")
            raise ProviderError(f"Prompt failed: {e}", self.service.name) from e

        result = (response.choices[0].message.content or "").strip()
        logger.debug(f"{self.service.name} response: {result[:50]}...")

        prompt_tokens = response.usage.prompt_tokens if response.usage else None
        return result, prompt_tokens

    async def _stream(self, messages: List[ContextMessage]) -> AsyncIterator[str]:
        """Stream a completion, closing the HTTP stream on every exit path"""
        request = self._build_request(messages)

        try:
            stream = await self.service.client.chat.completions.create(
                **request,
                stream=True,
                stream_options={"include_usage": True},
            )
        except Exception as e:
            logger.error(f"{self.service.name} streaming prompt failed: {e}")
            raise ProviderError(f"Streaming prompt failed: {e}", self.service.name) from e

        try:
            async for chunk in stream:
                if chunk.usage:
                    self._stream_prompt_tokens = chunk.usage.prompt_tokens
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await stream.close()

    def _spawn(self) -> 'OpenAIModelSession':
        return OpenAIModelSession(self.service, self.options)

    def _build_request(self, messages: List[ContextMessage]) -> Dict[str, Any]:
        return {
            "model": self.service.config.model,
            "messages": self._prepare_openai_messages(messages),
            "max_tokens": self.service.config.max_output_tokens,
            "temperature": self.options.temperature,
        }

    def _prepare_openai_messages(self, messages: List[ContextMessage]) -> List[Dict[str, Any]]:
        """Convert context messages to the OpenAI format, images as data URLs"""
        processed_messages = []

        for message in messages:
            if isinstance(message.content, str):
                processed_messages.append({"role": message.role, "content": message.content})
                continue

            processed_content = []
            for part in message.content:
                if isinstance(part, TextPart):
                    processed_content.append({"type": "text", "text": part.text})
                else:
                    processed_content.append({
                        "type": "image_url",
                        "image_url": {"url": self._create_image_data_url(part)}
                    })

            processed_messages.append({"role": message.role, "content": processed_content})

        return processed_messages


class OpenAIModelService(BaseModelService):
    """OpenAI (or OpenRouter) host model service"""

    def __init__(self, config: PagePixieConfig):
        super().__init__(config)
        self.name = config.provider
        self.client = None

        api_key = config.openrouter_api_key if config.provider == "openrouter" else config.openai_api_key
        if not api_key:
            logger.warning(f"No API key configured for {self.name}; model service is unavailable")
            return

        # Import here to make it optional dependency
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ImportError("OpenAI library not found. Install with: pip install openai")

        if config.provider == "openrouter":
            self.client = AsyncOpenAI(api_key=api_key, base_url=OPENROUTER_BASE_URL)
        else:
            self.client = AsyncOpenAI(api_key=api_key)

    async def availability(self) -> ModelAvailability:
        return ModelAvailability.AVAILABLE if self.client is not None else ModelAvailability.UNAVAILABLE

    async def create(self, options: SessionOptions) -> OpenAIModelSession:
        if self.client is None:
            raise ProviderError("No API key configured", self.name)
        return OpenAIModelSession(self, options)
