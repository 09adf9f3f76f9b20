"""
Anthropic Claude model service
"""

import json
import logging
from typing import AsyncIterator, List, Dict, Any, Optional, Tuple

from .base import BaseModelService, BaseModelSession, ProviderError
from ..core.config import PagePixieConfig
from ..models.session import ModelAvailability, SessionOptions, ContextMessage, TextPart

logger = logging.getLogger(__name__)


class AnthropicModelSession(BaseModelSession):
    """Stateful conversation backed by the Messages API"""

    def __init__(self, service: 'AnthropicModelService', options: SessionOptions):
        super().__init__(options, service.config.context_window_tokens)
        self.service = service

    async def _complete(
        self,
        messages: List[ContextMessage],
        constraint: Optional[dict] = None
    ) -> Tuple[str, Optional[int]]:
        """Process messages through the Anthropic API"""
        if constraint is not None:
            messages = self._with_schema_instruction(messages, constraint)

        try:
            response = await self.service.client.messages.create(**self._build_request(messages))
        except Exception as e:
            logger.error(f"Anthropic prompt failed: {e}")
            raise ProviderError(f"Prompt failed: {e}", "anthropic") from e

        result = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        ).strip()
        logger.debug(f"Anthropic response: {result[:50]}...")

        return result, response.usage.input_tokens if response.usage else None

    async def _stream(self, messages: List[ContextMessage]) -> AsyncIterator[str]:
        try:
            async with self.service.client.messages.stream(**self._build_request(messages)) as stream:
                async for text in stream.text_stream:
                    yield text
                final_message = await stream.get_final_message()
                self._stream_prompt_tokens = final_message.usage.input_tokens
        except Exception as e:
            logger.error(f"Anthropic streaming prompt failed: {e}")
            raise ProviderError(f"Streaming prompt failed: {e}", "anthropic") from e

    def _spawn(self) -> 'AnthropicModelSession':
        return AnthropicModelSession(self.service, self.options)

    def _build_request(self, messages: List[ContextMessage]) -> Dict[str, Any]:
        request = {
            "model": self.service.config.model,
            "max_tokens": self.service.config.max_output_tokens,
            "temperature": self.options.temperature,
            "top_k": self.options.top_k,
            "messages": self._prepare_claude_messages(messages),
        }

        # Claude takes the system prompt as a separate parameter
        system_content = "\n\n".join(
            m.content for m in messages if m.role == "system" and isinstance(m.content, str)
        )
        if system_content:
            request["system"] = system_content

        return request

    def _prepare_claude_messages(self, messages: List[ContextMessage]) -> List[Dict[str, Any]]:
        """
        Convert context messages to Claude content blocks

        Consecutive messages with the same role are merged, since appended
        context is followed directly by the user prompt.
        """
        claude_messages: List[Dict[str, Any]] = []

        for message in messages:
            if message.role == "system":
                continue

            blocks = self._to_blocks(message)
            if claude_messages and claude_messages[-1]["role"] == message.role:
                claude_messages[-1]["content"].extend(blocks)
            else:
                claude_messages.append({"role": message.role, "content": blocks})

        return claude_messages

    def _to_blocks(self, message: ContextMessage) -> List[Dict[str, Any]]:
        if isinstance(message.content, str):
            return [{"type": "text", "text": message.content}]

        blocks = []
        for part in message.content:
            if isinstance(part, TextPart):
                blocks.append({"type": "text", "text": part.text})
            else:
                blocks.append({
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": part.mime_type,
                        "data": self._encode_image(part),
                    }
                })
        return blocks

    @staticmethod
    def _with_schema_instruction(messages: List[ContextMessage], schema: dict) -> List[ContextMessage]:
        """Claude has no native response constraint, so the schema rides along with the prompt"""
        *earlier, last = messages
        instruction = (
            f"{last.content}\n\nRespond ONLY with a JSON value that matches this JSON schema, "
            f"with no surrounding text:\n{json.dumps(schema)}"
        )
        return earlier + [ContextMessage(role=last.role, content=instruction)]


class AnthropicModelService(BaseModelService):
    """Anthropic host model service"""

    name = "anthropic"

    def __init__(self, config: PagePixieConfig):
        super().__init__(config)
        self.client = None

        if not config.anthropic_api_key:
            logger.warning("No Anthropic API key configured; model service is unavailable")
            return

        # Import here to make it optional dependency
        try:
            import anthropic
        except ImportError:
            raise ImportError("Anthropic library not found. Install with: pip install anthropic")

        self.client = anthropic.AsyncAnthropic(api_key=config.anthropic_api_key)

    async def availability(self) -> ModelAvailability:
        return ModelAvailability.AVAILABLE if self.client is not None else ModelAvailability.UNAVAILABLE

    async def create(self, options: SessionOptions) -> AnthropicModelSession:
        if self.client is None:
            raise ProviderError("No API key configured", self.name)
        return AnthropicModelSession(self, options)
