"""
Content Type Classifier - Picks the extraction template for a page
"""

import logging
import re
from typing import TYPE_CHECKING

from ..exceptions import ContentClassificationError, PagePixieError
from ..models.page import ContentType, PageContent
from ..providers.base import ProviderError
from .prompts import CONTENT_CLASSIFICATION_PROMPT

if TYPE_CHECKING:
    from .engine import PixieAI

logger = logging.getLogger(__name__)

_PREFIXES = re.compile(r"^((the |a |an )?content type( is)?:?\s*|classification:?\s*)", re.IGNORECASE)


class ContentTypeClassifier:
    """
    Classifies a page into one of the known content types

    Only a preview of the page is sent (the description when it is
    substantial, otherwise the start of the full text).
    """

    def __init__(self, ai: 'PixieAI'):
        self.ai = ai

    async def classify(self, page: PageContent) -> str:
        """
        Classify page content

        Returns:
            A known content type, or the extractor's hint when the model
            answers with something unrecognized

        Raises:
            ContentClassificationError: If the model call fails
        """
        hint = page.metadata.content_type
        prompt = CONTENT_CLASSIFICATION_PROMPT.format(
            url=page.url,
            title=page.title,
            hint=hint,
            metadata_section=self._metadata_section(page),
            preview=self._preview(page),
        )

        try:
            response = await self.ai.prompt(prompt)
        except (ProviderError, PagePixieError) as e:
            logger.error(f"Content classification failed: {e}")
            raise ContentClassificationError(f"Failed to classify content: {e}") from e

        classification = self.parse_classification(response)

        if classification in ContentType.values():
            logger.info(f"Content classified as: {classification} (was: {hint})")
            return classification

        logger.warning(f"Invalid classification '{classification}', falling back to: {hint}")
        return hint

    @staticmethod
    def parse_classification(response: str) -> str:
        """Normalize a free-text classification answer"""
        cleaned = response.strip().lower()
        cleaned = cleaned.split("\n")[0].strip()
        cleaned = cleaned.strip("\"'*`. ")
        cleaned = _PREFIXES.sub("", cleaned)
        return cleaned.strip("\"'*`. ")

    def _preview(self, page: PageContent) -> str:
        limit = self.ai.config.classification_preview_chars
        description = page.metadata.description
        if description and len(description) > 50:
            return description[:limit]
        return page.full_text[:limit]

    @staticmethod
    def _metadata_section(page: PageContent) -> str:
        info = []
        if page.metadata.description:
            info.append(f"Description: {page.metadata.description}")
        if page.metadata.authors:
            info.append(f"Authors: {', '.join(page.metadata.authors)}")
        if page.metadata.tags:
            info.append(f"Tags/Headings: {', '.join(page.metadata.tags[:5])}")

        if not info:
            return "\n"
        return "\n## Metadata:\n" + "\n".join(info) + "\n"
