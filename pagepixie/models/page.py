"""
Page content models and capture results for PagePixie
"""

from dataclasses import dataclass, field, replace
from typing import List, Dict, Any, Optional
from enum import Enum


class ContentType(str, Enum):
    """Content types the classifier may assign"""
    RESEARCH_PAPER = "research-paper"
    ARTICLE = "article"
    DOCUMENTATION = "documentation"
    BLOG = "blog"
    WIKI = "wiki"
    PRODUCT = "product"
    RECIPE = "recipe"
    TUTORIAL = "tutorial"
    NEWS = "news"
    REVIEW = "review"
    GENERIC = "generic"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class PageMetadata:
    """Standardized page metadata supplied by the extractor"""
    content_type: str = ContentType.GENERIC.value
    description: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    publish_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate metadata"""
        if not self.content_type:
            raise ValueError("Content type is required")


@dataclass(frozen=True)
class PageContent:
    """
    Immutable extraction result for one web page

    Pipeline stages never mutate a PageContent; they derive new values
    with with_changes() / with_metadata().
    """
    title: str
    url: str
    full_text: str
    metadata: PageMetadata = field(default_factory=PageMetadata)
    images: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    extractor: str = "generic"

    def with_changes(self, **changes: Any) -> 'PageContent':
        """Return a copy with top-level fields replaced"""
        return replace(self, **changes)

    def with_metadata(self, **changes: Any) -> 'PageContent':
        """Return a copy with metadata fields replaced"""
        return replace(self, metadata=replace(self.metadata, **changes))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageContent':
        """
        Build PageContent from an extractor payload

        Accepts both snake_case and the camelCase keys emitted by
        browser-side extractors (fullText, contentType, extractorType).
        """
        metadata = data.get("metadata") or {}
        return cls(
            title=data.get("title") or "",
            url=data.get("url") or "",
            full_text=data.get("full_text", data.get("fullText")) or "",
            metadata=PageMetadata(
                content_type=metadata.get("content_type", metadata.get("contentType")) or ContentType.GENERIC.value,
                description=metadata.get("description"),
                authors=list(metadata.get("authors") or []),
                publish_date=metadata.get("publish_date", metadata.get("publishDate")),
                tags=list(metadata.get("tags") or []),
                extra=dict(metadata.get("extra") or {}),
            ),
            images=list(data.get("images") or []),
            links=list(data.get("links") or []),
            extractor=data.get("extractor", data.get("extractorType")) or "generic",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary"""
        return {
            "title": self.title,
            "url": self.url,
            "full_text": self.full_text,
            "metadata": {
                "content_type": self.metadata.content_type,
                "description": self.metadata.description,
                "authors": list(self.metadata.authors),
                "publish_date": self.metadata.publish_date,
                "tags": list(self.metadata.tags),
                "extra": dict(self.metadata.extra),
            },
            "images": list(self.images),
            "links": list(self.links),
            "extractor": self.extractor,
        }


@dataclass
class CondensedMetadata:
    """Metadata carried alongside condensed content"""
    content_type: str = ContentType.GENERIC.value
    description: Optional[str] = None
    main_topics: List[str] = field(default_factory=list)
    key_entities: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    paper_structure: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CondensedPageContent:
    """Size-bounded derivative of PageContent that fits the model's context budget"""
    title: str
    url: str
    condensed_content: str
    metadata: CondensedMetadata
    original_length: int = 0

    @property
    def condensed_length(self) -> int:
        return len(self.condensed_content)

    @property
    def compression_ratio(self) -> float:
        """Condensed size relative to the original (0 when the original was empty)"""
        if self.original_length <= 0:
            return 0.0
        return self.condensed_length / self.original_length


@dataclass
class SummaryResponse:
    """Summary plus structured key/value data"""
    summary: str
    structured_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatResponse(SummaryResponse):
    """Summary response with a conversational reply for the user"""
    ai_response: str = ""


@dataclass
class CaptureResult:
    """Terminal artifact of one capture pipeline run"""
    processed_page_content: PageContent
    condensed_content: CondensedPageContent
    summary: str
    structured_data: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        """Whether any stage fell back to a degraded result"""
        return bool(self.diagnostics)
