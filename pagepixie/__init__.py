"""
PagePixie - Web Page Capture Pipeline

Turns the extracted content of a web page into a concise summary and
type-specific structured data using stateful language model sessions.
"""

__version__ = "0.1.0"

from .pagepixie import PagePixie, create_pagepixie
from .models.page import (
    ContentType, PageMetadata, PageContent, CondensedPageContent,
    CaptureResult, ChatResponse, SummaryResponse
)
from .models.record import CaptureRecord, ConversationMessage
from .core.config import PagePixieConfig
from .ai.orchestrator import CaptureOrchestrator, CaptureCallbacks, CaptureStage
from .providers import BaseModelService, BaseModelSession, create_model_service
from .exceptions import PagePixieError

__all__ = [
    "PagePixie",
    "create_pagepixie",
    "ContentType",
    "PageMetadata",
    "PageContent",
    "CondensedPageContent",
    "CaptureResult",
    "ChatResponse",
    "SummaryResponse",
    "CaptureRecord",
    "ConversationMessage",
    "PagePixieConfig",
    "CaptureOrchestrator",
    "CaptureCallbacks",
    "CaptureStage",
    "BaseModelService",
    "BaseModelSession",
    "create_model_service",
    "PagePixieError",
]
