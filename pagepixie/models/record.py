"""
Persisted capture records for PagePixie
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import datetime

from .page import CaptureResult, CondensedPageContent


@dataclass
class ConversationMessage:
    """Represents a single chat message about a capture"""
    role: str  # "user", "assistant" or "system"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Validate message data"""
        if self.role not in ["system", "user", "assistant"]:
            raise ValueError("Role must be 'system', 'user' or 'assistant'")
        if not self.content.strip():
            raise ValueError("Content cannot be empty")


@dataclass
class CaptureRecord:
    """URL-keyed record of a captured page"""
    url: str
    title: str
    content_type: str
    summary: str
    structured_data: Dict[str, Any] = field(default_factory=dict)
    condensed_content: Optional[CondensedPageContent] = None
    chat_history: List[ConversationMessage] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate record data"""
        if not self.url:
            raise ValueError("Record URL is required")

    @classmethod
    def from_capture(cls, result: CaptureResult) -> 'CaptureRecord':
        """Create a record from a finished capture"""
        page = result.processed_page_content
        return cls(
            url=page.url,
            title=page.title or "Untitled",
            content_type=page.metadata.content_type,
            summary=result.summary,
            structured_data=dict(result.structured_data),
            condensed_content=result.condensed_content,
        )

    def add_message(self, role: str, content: str) -> ConversationMessage:
        """Append a chat message to the record's history"""
        message = ConversationMessage(role=role, content=content)
        self.chat_history.append(message)
        return message

    def to_dict(self) -> Dict[str, Any]:
        """Convert record metadata to a dictionary (condensed content omitted)"""
        return {
            'id': self.id,
            'url': self.url,
            'title': self.title,
            'content_type': self.content_type,
            'summary': self.summary,
            'structured_data': self.structured_data,
            'chat_history': [
                {'role': m.role, 'content': m.content, 'timestamp': m.timestamp.isoformat()}
                for m in self.chat_history
            ],
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
