"""
Condense Service - Shrinks page content to fit the model's context budget

Large content is split into paragraph chunks that are condensed one at a
time with a short rolling context, then combined and, when still too
long, condensed once more. Every model failure degrades to the original
text or a truncation, so condensation always produces a result.
"""

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from ..core.utils import truncate_text
from ..exceptions import PagePixieError
from ..models.page import CondensedMetadata, CondensedPageContent, PageContent
from ..providers.base import ProviderError
from ..utils.async_helpers import notify
from .prompts import (
    CONDENSE_METADATA_PROMPT, CONDENSE_CHUNK_PROMPT, CONDENSE_FINAL_PROMPT, CONDENSE_REFINE_PROMPT
)

if TYPE_CHECKING:
    from .engine import PixieAI

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Any]

# Snippets of the last N condensed chunks are carried into the next chunk prompt
ROLLING_CONTEXT_CHUNKS = 2
CONTEXT_SNIPPET_CHARS = 200

METADATA_SCHEMA = {
    "type": "object",
    "properties": {
        "description": {"type": "string"},
        "mainTopics": {"type": "array", "items": {"type": "string"}},
        "keyEntities": {"type": "array", "items": {"type": "string"}},
        "authors": {"type": "array", "items": {"type": "string"}},
        "paperStructure": {
            "type": "object",
            "properties": {
                "researchQuestion": {"type": "string"},
                "mainContribution": {"type": "string"},
                "methodology": {"type": "string"},
                "keyFindings": {"type": "string"},
            },
        },
    },
    "required": ["description", "mainTopics", "keyEntities"],
}


class CondenseService:
    """Iteratively condenses PageContent into CondensedPageContent"""

    def __init__(self, ai: 'PixieAI'):
        self.ai = ai

    @property
    def chunk_size(self) -> int:
        return self.ai.config.condense_chunk_size

    @property
    def target_length(self) -> int:
        return self.ai.config.condense_target_length

    async def condense(
        self,
        page: PageContent,
        on_progress: Optional[ProgressCallback] = None
    ) -> CondensedPageContent:
        """
        Condense page content, reporting progress as (current_chunk, total_chunks)

        Starts from a fresh session context. Never raises for model
        failures; the worst case is a truncated copy of the text.
        """
        raw_content = page.full_text or page.metadata.description or ""
        logger.info(f"Condensing {len(raw_content)} chars of content")

        try:
            await self.ai.reset()

            metadata = await self.extract_metadata(page)
            chunks = self.split_into_chunks(raw_content, self.chunk_size)
            logger.info(f"Split content into {len(chunks)} chunk(s)")

            condensed = await self._process_chunks(chunks, metadata.content_type, on_progress)
        except (ProviderError, PagePixieError) as e:
            logger.error(f"Condensing failed, falling back to truncation: {e}")
            return self.fallback(page)

        condensed = truncate_text(condensed, self.target_length)

        result = CondensedPageContent(
            title=page.title or "Untitled",
            url=page.url,
            condensed_content=condensed,
            metadata=metadata,
            original_length=len(raw_content),
        )
        logger.info(f"Condensing complete, compression ratio {result.compression_ratio * 100:.1f}%")
        return result

    def fallback(self, page: PageContent) -> CondensedPageContent:
        """Truncated condensed content built without the model"""
        raw_content = page.full_text or page.metadata.description or ""
        return CondensedPageContent(
            title=page.title or "Untitled",
            url=page.url,
            condensed_content=truncate_text(raw_content, self.target_length),
            metadata=self._default_metadata(page),
            original_length=len(raw_content),
        )

    async def extract_metadata(self, page: PageContent) -> CondensedMetadata:
        """Extract description, topics, entities and authors; defaults on failure"""
        prompt = CONDENSE_METADATA_PROMPT.format(
            title=page.title,
            url=page.url,
            description=page.metadata.description or "None",
            headings=", ".join(page.metadata.tags[:10]) or "None",
            preview=(page.full_text or page.metadata.description or "")[:1000],
        )

        try:
            extracted = await self.ai.prompt_structured(prompt, METADATA_SCHEMA)
        except (ProviderError, PagePixieError) as e:
            logger.warning(f"Failed to extract metadata, using defaults: {e}")
            return self._default_metadata(page)

        paper_structure = extracted.get("paperStructure")
        return CondensedMetadata(
            content_type=page.metadata.content_type,
            description=extracted.get("description") or page.metadata.description,
            main_topics=_string_list(extracted.get("mainTopics")),
            key_entities=_string_list(extracted.get("keyEntities")),
            authors=_string_list(extracted.get("authors")) or list(page.metadata.authors),
            tags=list(page.metadata.tags),
            paper_structure=paper_structure if isinstance(paper_structure, dict) else {},
            extra=dict(page.metadata.extra),
        )

    @staticmethod
    def split_into_chunks(content: str, chunk_size: int) -> List[str]:
        """Group paragraphs into chunks of roughly chunk_size characters"""
        if len(content) <= chunk_size:
            return [content] if content else []

        chunks = []
        current = ""

        for paragraph in _split_paragraphs(content, chunk_size):
            if current and len(current) + len(paragraph) + 2 > chunk_size:
                chunks.append(current.strip())
                current = paragraph
            else:
                current = f"{current}\n\n{paragraph}" if current else paragraph

        if current.strip():
            chunks.append(current.strip())

        return chunks

    async def _process_chunks(
        self,
        chunks: List[str],
        content_type: str,
        on_progress: Optional[ProgressCallback]
    ) -> str:
        if not chunks:
            return ""

        total_length = sum(len(chunk) for chunk in chunks)
        if total_length <= self.target_length:
            logger.info("Content already small enough, doing single refinement pass")
            await notify(on_progress, 1, 1)
            return await self._refine("\n\n".join(chunks), content_type)

        condensed_chunks = []
        snippets: List[str] = []

        for index, chunk in enumerate(chunks):
            await notify(on_progress, index + 1, len(chunks))
            logger.debug(f"Condensing chunk {index + 1}/{len(chunks)} ({len(chunk)} chars)")

            condensed = await self._condense_chunk(chunk, content_type, "\n".join(snippets), index, len(chunks))
            condensed_chunks.append(condensed)

            snippets.append(f"Chunk {index + 1}: {condensed[:CONTEXT_SNIPPET_CHARS]}...")
            snippets = snippets[-ROLLING_CONTEXT_CHUNKS:]

        combined = "\n\n".join(condensed_chunks)

        if len(combined) > self.target_length:
            logger.info("Final condensing pass needed")
            combined = await self._final_condense(combined, content_type)

        return combined

    async def _condense_chunk(self, chunk: str, content_type: str, context: str, index: int, total: int) -> str:
        prompt = CONDENSE_CHUNK_PROMPT.format(
            index=index + 1,
            total=total,
            content_type=content_type,
            context=f"\nPrevious content context:\n{context}\n" if context else "",
            chunk=chunk,
        )
        try:
            return (await self.ai.prompt(prompt)).strip()
        except (ProviderError, PagePixieError) as e:
            logger.warning(f"Failed to condense chunk {index + 1}, using original: {e}")
            return chunk

    async def _final_condense(self, content: str, content_type: str) -> str:
        prompt = CONDENSE_FINAL_PROMPT.format(
            content_type=content_type,
            target_length=self.target_length,
            length=len(content),
            content=content,
        )
        try:
            return (await self.ai.prompt(prompt)).strip()
        except (ProviderError, PagePixieError) as e:
            logger.warning(f"Final condense failed, truncating instead: {e}")
            return truncate_text(content, self.target_length)

    async def _refine(self, content: str, content_type: str) -> str:
        prompt = CONDENSE_REFINE_PROMPT.format(content_type=content_type, content=content)
        try:
            refined = (await self.ai.prompt(prompt)).strip()
        except (ProviderError, PagePixieError) as e:
            logger.warning(f"Refinement failed, using original: {e}")
            return content
        return refined or content

    @staticmethod
    def _default_metadata(page: PageContent) -> CondensedMetadata:
        return CondensedMetadata(
            content_type=page.metadata.content_type,
            description=page.metadata.description,
            authors=list(page.metadata.authors),
            tags=list(page.metadata.tags),
            extra=dict(page.metadata.extra),
        )


def _split_paragraphs(content: str, max_length: int) -> List[str]:
    paragraphs = [p.strip() for p in re.split(r"\n\n+", content) if p.strip()]

    # No blank-line separators: fall back to lines, dropping very short ones
    if len(paragraphs) == 1:
        lines = [line.strip() for line in re.split(r"\n+", content) if len(line.strip()) > 50]
        paragraphs = lines or paragraphs

    # Oversized paragraphs are cut so no chunk exceeds max_length
    pieces = []
    for paragraph in paragraphs:
        pieces.extend(paragraph[i:i + max_length] for i in range(0, len(paragraph), max_length))
    return pieces


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]
