"""
Summarize Service - Summary and structured data from condensed content
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ..exceptions import MalformedModelOutputError, PagePixieError, SummarizationError
from ..models.page import CondensedMetadata, CondensedPageContent, SummaryResponse
from ..providers.base import ProviderError
from ..utils.async_helpers import notify
from ..utils.structured_data import normalize_structured_data
from .prompts import STRUCTURED_EXTRACTION_PROMPT, SUMMARY_PROMPT
from .templates import ContentTemplate, fields_prompt_section, generate_schema, get_template

if TYPE_CHECKING:
    from .engine import PixieAI

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Any]

TOTAL_STEPS = 3


class SummarizeService:
    """
    Two model calls per summary:
    1. structured data extraction against the content type's template
    2. summary generation guided by the extracted data
    """

    def __init__(self, ai: 'PixieAI'):
        self.ai = ai

    async def summarize(
        self,
        condensed: CondensedPageContent,
        on_progress: Optional[ProgressCallback] = None
    ) -> SummaryResponse:
        """
        Summarize condensed page content

        Unparsable structured output is not an error: the raw model text
        becomes the summary and the structured data is left empty.

        Raises:
            SummarizationError: If the model service rejects a call
        """
        template = get_template(condensed.metadata.content_type)
        content = condensed.condensed_content

        await notify(on_progress, 1, TOTAL_STEPS)

        try:
            structured = await self.ai.prompt_structured(
                self._extraction_prompt(condensed, template),
                generate_schema(template),
            )
        except MalformedModelOutputError as e:
            logger.warning(f"Structured output was not parseable, using raw text as summary: {e}")
            await notify(on_progress, TOTAL_STEPS, TOTAL_STEPS)
            return SummaryResponse(summary=e.raw_output.strip(), structured_data={})
        except (ProviderError, PagePixieError) as e:
            logger.error(f"Structured data extraction failed: {e}")
            raise SummarizationError(f"Structured data extraction failed: {e}") from e

        structured = normalize_structured_data(structured)
        await notify(on_progress, 2, TOTAL_STEPS)

        try:
            summary = await self.ai.prompt(SUMMARY_PROMPT.format(
                metadata_section=_metadata_lines(condensed.metadata),
                structured_data=json.dumps(structured, indent=2, ensure_ascii=False, default=str),
                content=content,
                template_name=template.name,
                template_name_lower=template.name.lower(),
                guidelines=template.summary_guidelines,
            ))
        except (ProviderError, PagePixieError) as e:
            logger.error(f"Summary generation failed: {e}")
            raise SummarizationError(f"Summary generation failed: {e}") from e

        await notify(on_progress, 3, TOTAL_STEPS)

        return SummaryResponse(
            summary=summary.strip(),
            structured_data={
                **structured,
                **condensed.metadata.extra,
            },
        )

    @staticmethod
    def _extraction_prompt(condensed: CondensedPageContent, template: ContentTemplate) -> str:
        metadata = condensed.metadata
        authors_notice = ""
        if metadata.authors:
            authors_notice = (
                f"\n**CRITICAL**: The authors are already identified as: {', '.join(metadata.authors)}. "
                "You MUST include them in the \"authors\" field.\n"
            )

        return STRUCTURED_EXTRACTION_PROMPT.format(
            title=condensed.title,
            template_name=template.name,
            template_name_lower=template.name.lower(),
            metadata_section=_extraction_metadata_section(metadata),
            content=condensed.condensed_content,
            fields_section=fields_prompt_section(template),
            extraction_hints=f"\n{template.extraction_hints}\n" if template.extraction_hints else "",
            authors_notice=authors_notice,
        )


def _metadata_lines(metadata: CondensedMetadata) -> str:
    lines = []
    if metadata.tags:
        lines.append(f"Tags/Topics: {', '.join(metadata.tags)}")
    if metadata.main_topics:
        lines.append(f"Main Topics: {', '.join(metadata.main_topics)}")
    if metadata.description:
        lines.append(f"Description: {metadata.description}")
    lines.append(f"Content Type: {metadata.content_type}")
    return "\n".join(lines) + "\n"


def _extraction_metadata_section(metadata: CondensedMetadata) -> str:
    lines = ["## Pre-extracted Metadata:", _metadata_lines(metadata).rstrip()]
    if metadata.authors:
        lines.append(f"Authors (MUST include in structured data): {', '.join(metadata.authors)}")

    paper: Dict[str, Any] = metadata.paper_structure
    if paper:
        lines.append("")
        lines.append("## Research Paper Context:")
        for key, label in (
            ("researchQuestion", "Research Question"),
            ("mainContribution", "Main Contribution"),
            ("methodology", "Methodology"),
            ("keyFindings", "Key Findings"),
        ):
            if paper.get(key):
                lines.append(f"{label}: {paper[key]}")

    return "\n".join(lines) + "\n"
