"""
Session management helpers: creation, readiness polling, streaming and
schema-constrained prompts, usage accounting and reset-by-clone
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any, Callable, Optional

from ..core.config import PagePixieConfig
from ..core.utils import parse_llm_json
from ..exceptions import (
    ServiceUnavailableError, ModelUnavailableError, MalformedModelOutputError
)
from ..models.session import ModelAvailability, SessionOptions, SessionUsage
from ..providers.base import BaseModelService, BaseModelSession
from ..utils.async_helpers import notify

logger = logging.getLogger(__name__)

_JSON_TYPES = {
    "object": dict,
    "array": list,
    "string": str,
    "boolean": bool,
    "number": (int, float),
    "integer": int,
}


class SessionManager:
    """
    Creates and drives model sessions on top of a host model service

    The manager never owns the sessions it creates: ownership passes to
    the caller (or to a SessionPool).
    """

    def __init__(self, service: Optional[BaseModelService], config: Optional[PagePixieConfig] = None):
        self.service = service
        self.config = config or PagePixieConfig()

    def default_options(self) -> SessionOptions:
        """Session options from configuration"""
        return SessionOptions(
            temperature=self.config.temperature,
            top_k=self.config.top_k,
            system_prompt=self.config.system_prompt,
        )

    async def create_session(self, options: Optional[SessionOptions] = None) -> BaseModelSession:
        """
        Create a configured model session

        Raises:
            ServiceUnavailableError: If no model service is registered
            ModelUnavailableError: If the service reports it is unavailable
        """
        if self.service is None:
            raise ServiceUnavailableError("No model service is registered")

        availability = await self.service.availability()
        if availability == ModelAvailability.UNAVAILABLE:
            raise ModelUnavailableError(f"Model service '{self.service.name}' is unavailable")

        session = await self.service.create(options or self.default_options())
        logger.debug(f"Created {self.service.name} session")
        return session

    async def wait_until_ready(
        self,
        poll_interval_ms: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        on_progress: Optional[Callable[[ModelAvailability], Any]] = None
    ) -> bool:
        """
        Poll availability until the model is available, unavailable or the timeout passes

        Never raises: a timeout or a failing availability check yields False.
        """
        if self.service is None:
            return False

        interval = (poll_interval_ms if poll_interval_ms is not None else self.config.ready_poll_interval_ms) / 1000
        timeout = (timeout_ms if timeout_ms is not None else self.config.ready_timeout_ms) / 1000

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        try:
            while loop.time() < deadline:
                availability = await self.service.availability()

                await notify(on_progress, availability)

                if availability == ModelAvailability.AVAILABLE:
                    return True

                if availability == ModelAvailability.UNAVAILABLE:
                    return False

                await asyncio.sleep(max(0.0, min(interval, deadline - loop.time())))
        except Exception as e:
            logger.warning(f"Model readiness check failed: {e}")
            return False

        logger.info(f"Model not ready after {timeout:.1f}s")
        return False

    async def prompt_streaming(
        self,
        session: BaseModelSession,
        text: str,
        on_chunk: Callable[[str], Any]
    ) -> str:
        """
        Stream a response, invoking on_chunk per fragment, and return the full text

        The underlying stream is closed on every exit path, including
        on_chunk raising.
        """
        full_response = []

        async with aclosing(session.prompt_streaming(text)) as stream:
            async for chunk in stream:
                full_response.append(chunk)
                on_chunk(chunk)

        return "".join(full_response)

    async def prompt_constrained(self, session: BaseModelSession, text: str, schema: dict) -> Any:
        """
        Prompt with a JSON schema constraint and parse the result against it

        The constraint is advisory, so the output is parsed and checked here.

        Raises:
            MalformedModelOutputError: If the output is not JSON of the expected shape
        """
        raw = await session.prompt(text, constraint=schema)

        try:
            result = parse_llm_json(raw)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError is a ValueError; very deep nesting exhausts the decoder
            logger.error(f"Failed to parse constrained output: {raw[:200]}")
            raise MalformedModelOutputError(f"Model output is not valid JSON: {e}", raw) from e

        problem = _shape_problem(result, schema)
        if problem:
            logger.error(f"Constrained output does not match schema: {problem}")
            raise MalformedModelOutputError(f"Model output does not match schema: {problem}", raw)

        return result

    @staticmethod
    def usage(session: BaseModelSession) -> SessionUsage:
        """Input usage accounting for a session"""
        return SessionUsage(used=session.input_usage or 0, quota=session.input_quota or 0)

    async def reset_context(self, session: BaseModelSession) -> BaseModelSession:
        """
        Discard conversational history by cloning, keeping the initial prompts

        Ownership moves to the returned session; the old handle is destroyed.
        """
        fresh = await session.clone()
        session.destroy()
        logger.info("Model session reset (conversation history cleared)")
        return fresh


def _shape_problem(value: Any, schema: dict) -> Optional[str]:
    """Describe how value violates the top level of schema, or None"""
    expected = schema.get("type")
    python_type = _JSON_TYPES.get(expected) if isinstance(expected, str) else None

    if python_type is not None:
        # bool is an int subclass but not a JSON number
        if isinstance(value, bool) and expected in ("number", "integer"):
            return f"expected {expected}, got boolean"
        if not isinstance(value, python_type):
            return f"expected {expected}, got {type(value).__name__}"

    if isinstance(value, dict):
        missing = [key for key in schema.get("required", []) if key not in value]
        if missing:
            return f"missing required fields {missing}"

    return None
