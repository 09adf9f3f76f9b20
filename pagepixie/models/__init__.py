"""Page, session and record data structures"""

from .page import (
    ContentType, PageMetadata, PageContent, CondensedMetadata,
    CondensedPageContent, SummaryResponse, ChatResponse, CaptureResult
)
from .session import (
    ModelAvailability, SessionOptions, SessionUsage, TextPart, ImagePart,
    ContextMessage, LanguageDetectionResult
)
from .record import CaptureRecord, ConversationMessage

__all__ = [
    "ContentType", "PageMetadata", "PageContent", "CondensedMetadata",
    "CondensedPageContent", "SummaryResponse", "ChatResponse", "CaptureResult",
    "ModelAvailability", "SessionOptions", "SessionUsage", "TextPart", "ImagePart",
    "ContextMessage", "LanguageDetectionResult",
    "CaptureRecord", "ConversationMessage",
]
