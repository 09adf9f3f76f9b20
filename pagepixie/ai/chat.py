"""
Chat Service - Conversational refinement of a summary and its structured data
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict

from ..exceptions import MalformedModelOutputError, PagePixieError
from ..models.page import ChatResponse, CondensedPageContent
from ..providers.base import ProviderError
from ..utils.structured_data import normalize_structured_data
from .prompts import CHAT_PROMPT

if TYPE_CHECKING:
    from .engine import PixieAI

logger = logging.getLogger(__name__)

CHAT_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "modifiedSummary": {
            "type": "string",
            "description": "The summary, modified if requested, otherwise unchanged",
        },
        "modifiedStructuredData": {
            "type": "object",
            "additionalProperties": True,
            "description": "The structured data, modified if requested, otherwise unchanged",
        },
        "aiResponse": {
            "type": "string",
            "description": "Conversational response explaining what was done or answering the question",
        },
    },
    "required": ["modifiedSummary", "modifiedStructuredData", "aiResponse"],
}

UNPARSABLE_REPLY = "Sorry, I couldn't understand your instruction or parse my response. Please try again."
DEFAULT_REPLY = "I have updated the information based on your instructions."


class ChatService:
    """Single-pass chat: one constrained call decides, edits and replies"""

    def __init__(self, ai: 'PixieAI'):
        self.ai = ai

    async def chat(
        self,
        condensed: CondensedPageContent,
        current_summary: str,
        current_structured_data: Dict[str, Any],
        user_message: str
    ) -> ChatResponse:
        """
        Answer a question or apply an edit to the summary/structured data

        Never raises: on unparsable output or a service error the current
        summary and structured data are returned unchanged, and ai_response
        explains what went wrong.
        """
        prompt = CHAT_PROMPT.format(
            summary=current_summary,
            structured_data=json.dumps(current_structured_data, indent=2, ensure_ascii=False, default=str),
            content=condensed.condensed_content,
            message=user_message,
        )

        try:
            result = await self.ai.prompt_structured(prompt, CHAT_RESPONSE_SCHEMA)
        except MalformedModelOutputError as e:
            logger.error(f"Unable to parse chat response: {e.raw_output[:200]}")
            return self._unchanged(current_summary, current_structured_data, UNPARSABLE_REPLY)
        except (ProviderError, PagePixieError) as e:
            logger.error(f"Error in chat: {e}")
            return self._unchanged(current_summary, current_structured_data, f"Error: {e}")

        summary = result.get("modifiedSummary")
        structured = result.get("modifiedStructuredData")

        return ChatResponse(
            summary=summary.strip() if isinstance(summary, str) and summary.strip() else current_summary,
            structured_data=(
                normalize_structured_data(structured) if isinstance(structured, dict)
                else dict(current_structured_data)
            ),
            ai_response=result.get("aiResponse") or DEFAULT_REPLY,
        )

    @staticmethod
    def _unchanged(summary: str, structured_data: Dict[str, Any], reply: str) -> ChatResponse:
        return ChatResponse(summary=summary, structured_data=dict(structured_data), ai_response=reply)
