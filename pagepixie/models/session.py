"""
Model session data structures for PagePixie
"""

from dataclasses import dataclass
from typing import List, Optional, Union
from enum import Enum


class ModelAvailability(str, Enum):
    """Readiness reported by the host model service"""
    UNAVAILABLE = "unavailable"
    DOWNLOADABLE = "downloadable"
    DOWNLOADING = "downloading"
    AVAILABLE = "available"


@dataclass(frozen=True)
class SessionOptions:
    """Options used to create a model session"""
    temperature: float = 0.3
    top_k: int = 3
    system_prompt: Optional[str] = None

    def __post_init__(self):
        """Validate session options"""
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError("Temperature must be between 0 and 1")
        if isinstance(self.top_k, bool) or not isinstance(self.top_k, int) or self.top_k < 1:
            raise ValueError("top_k must be a positive integer")


@dataclass(frozen=True)
class SessionUsage:
    """Input token accounting for a session"""
    used: int
    quota: int

    @property
    def percent_used(self) -> float:
        return (self.used / self.quota) * 100 if self.quota > 0 else 0.0


@dataclass(frozen=True)
class TextPart:
    """Text content part of a context message"""
    text: str


@dataclass(frozen=True)
class ImagePart:
    """Raw image payload of a context message"""
    data: bytes
    mime_type: str

    def __post_init__(self):
        if not self.data:
            raise ValueError("Image data cannot be empty")


ContentPart = Union[TextPart, ImagePart]


@dataclass
class ContextMessage:
    """Message appended to a session as context (text and/or images)"""
    role: str
    content: Union[str, List[ContentPart]]

    def __post_init__(self):
        """Validate message data"""
        if self.role not in ["system", "user", "assistant"]:
            raise ValueError("Role must be 'system', 'user' or 'assistant'")

    @property
    def image_count(self) -> int:
        if isinstance(self.content, str):
            return 0
        return sum(1 for part in self.content if isinstance(part, ImagePart))


@dataclass(frozen=True)
class LanguageDetectionResult:
    """One ranked language guess"""
    detected_language: str
    confidence: float

    def __post_init__(self):
        if self.confidence < 0 or self.confidence > 1:
            raise ValueError("Confidence must be between 0 and 1")

