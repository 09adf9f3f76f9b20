"""
Content-type templates for structured data extraction
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class FieldTemplate:
    """One field to extract"""
    key: str
    description: str
    type: str = "array"  # string | array | object
    priority: str = "optional"  # required | optional
    examples: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ContentTemplate:
    """Extraction fields and summary guidelines for one content type"""
    name: str
    description: str
    fields: List[FieldTemplate] = field(default_factory=list)
    summary_guidelines: str = ""
    extraction_hints: Optional[str] = None

    @property
    def required_fields(self) -> List[FieldTemplate]:
        return [f for f in self.fields if f.priority == "required"]

    @property
    def optional_fields(self) -> List[FieldTemplate]:
        return [f for f in self.fields if f.priority == "optional"]


def _required(key: str, description: str, type: str = "array", examples: Tuple[str, ...] = ()) -> FieldTemplate:
    return FieldTemplate(key, description, type, "required", examples)


def _optional(key: str, description: str, type: str = "array", examples: Tuple[str, ...] = ()) -> FieldTemplate:
    return FieldTemplate(key, description, type, "optional", examples)


CONTENT_TEMPLATES: Dict[str, ContentTemplate] = {
    "research-paper": ContentTemplate(
        name="Research Paper",
        description="Academic research publication",
        fields=[
            _required("authors", "Paper authors", examples=("Jane Smith", "John Doe")),
            _optional("publication_venue", "Conference/journal name", "string", ("NeurIPS 2024", "Nature", "arXiv")),
            _optional("publication_year", "Year of publication", "string", ("2024", "2023")),
            _required("research_question", "Main research question or problem addressed", "string"),
            _required("methodology", "Research methods and approaches used",
                      examples=("Transformer architecture", "Supervised learning")),
            _required("key_contributions", "Main contributions and novel findings",
                      examples=("Improved accuracy by 15%", "Novel attention mechanism")),
            _optional("datasets_used", "Datasets mentioned or used", examples=("ImageNet", "COCO")),
            _optional("evaluation_metrics", "Metrics used for evaluation", examples=("Accuracy", "F1-score")),
            _optional("baselines_compared", "Baseline methods compared against", examples=("BERT", "ResNet-50")),
            _optional("key_results", "Quantitative results and performance numbers",
                      examples=("95.2% accuracy", "10x faster than baseline")),
            _optional("limitations", "Acknowledged limitations of the work"),
            _optional("future_work", "Suggested future research directions"),
            _optional("technologies_used", "Tools, frameworks, libraries used", examples=("PyTorch", "CUDA")),
        ],
        summary_guidelines=(
            "Focus on: (1) research gap and motivation, (2) proposed methodology and approach, "
            "(3) key contributions and novelty, (4) quantitative results with metrics, "
            "(5) implications and significance"
        ),
        extraction_hints=(
            "Distinguish between background/related work vs. the paper's own contributions. Pay special "
            "attention to the Abstract, Introduction, and Conclusion sections for key information."
        ),
    ),
    "article": ContentTemplate(
        name="Article/Blog Post",
        description="News or magazine article",
        fields=[
            _optional("authors", "Article authors"),
            _optional("publication_date", "Date of publication", "string"),
            _optional("publication", "Publication or outlet name", "string"),
            _required("main_topics", "Main topics covered"),
            _required("key_points", "Key points and arguments"),
            _optional("mentioned_people", "People mentioned"),
            _optional("mentioned_companies", "Companies or organizations mentioned"),
            _optional("mentioned_products", "Products mentioned"),
            _optional("sources_cited", "Sources cited"),
            _optional("statistics", "Statistics and figures"),
            _optional("quotes", "Notable quotes"),
        ],
        summary_guidelines=(
            "Focus on: (1) main message or thesis, (2) key supporting points and evidence, "
            "(3) context and significance, (4) actionable takeaways if applicable"
        ),
        extraction_hints=(
            "Pay attention to quotes, statistics, and expert opinions. Identify the author's "
            "perspective or bias if evident."
        ),
    ),
    "documentation": ContentTemplate(
        name="Technical Documentation",
        description="Technical documentation or developer guide",
        fields=[
            _required("technology_name", "Technology, library or product documented", "string"),
            _optional("version", "Version documented", "string"),
            _required("purpose", "What the technology does", "string"),
            _required("core_concepts", "Core concepts and features"),
            _optional("apis_functions", "APIs and functions described"),
            _optional("usage_examples", "Usage examples"),
            _optional("prerequisites", "Prerequisites"),
            _optional("installation_steps", "Installation steps"),
            _optional("configuration_options", "Configuration options"),
            _optional("common_issues", "Common issues and fixes"),
            _optional("related_technologies", "Related technologies"),
        ],
        summary_guidelines=(
            "Focus on: (1) what the technology does and why use it, (2) main concepts and features, "
            "(3) how to get started, (4) common use cases"
        ),
        extraction_hints=(
            "Look for code examples, API signatures, and configuration details. Identify whether it's "
            "a getting started guide, API reference, or tutorial."
        ),
    ),
    "blog": ContentTemplate(
        name="Blog Post",
        description="Personal or professional blog post",
        fields=[
            _optional("author", "Post author", "string"),
            _optional("publication_date", "Date of publication", "string"),
            _required("main_topic", "Main topic of the post", "string"),
            _required("key_insights", "Key insights and lessons"),
            _optional("personal_experiences", "Personal experiences shared"),
            _optional("recommendations", "Recommendations made"),
            _optional("resources_mentioned", "Resources mentioned"),
            _optional("technologies_discussed", "Technologies discussed"),
        ],
        summary_guidelines=(
            "Focus on: (1) main theme or message, (2) key insights and lessons, (3) actionable advice, "
            "(4) personal perspective"
        ),
        extraction_hints=(
            "Look for personal opinions, experiences, and practical advice. Identify the author's "
            "unique perspective."
        ),
    ),
    "wiki": ContentTemplate(
        name="Wiki/Encyclopedia",
        description="Encyclopedia-style reference article",
        fields=[
            _required("subject", "Subject of the article", "string"),
            _optional("category", "Category of the subject", "string"),
            _required("definition", "Concise definition", "string"),
            _required("key_facts", "Key facts"),
            _optional("historical_context", "Historical context", "string"),
            _optional("notable_people", "Notable people"),
            _optional("related_concepts", "Related concepts"),
            _optional("applications_uses", "Applications and uses"),
            _optional("references", "References"),
        ],
        summary_guidelines=(
            "Focus on: (1) clear definition, (2) key characteristics and facts, (3) historical context, "
            "(4) significance and applications"
        ),
        extraction_hints="Extract factual, objective information. Look for dates, names, and verifiable facts.",
    ),
    "generic": ContentTemplate(
        name="Generic Web Content",
        description="General web content",
        fields=[
            _required("main_topics", "Main topics covered"),
            _required("key_points", "Key points"),
            _optional("entities_mentioned", "People, places and organizations mentioned"),
            _optional("technologies", "Technologies mentioned"),
            _optional("links_references", "Links and references"),
            _optional("actionable_items", "Actionable items"),
        ],
        summary_guidelines="Focus on: (1) main purpose or message, (2) key information, (3) important details",
        extraction_hints=(
            "Extract the most relevant and useful information based on the content's apparent purpose."
        ),
    ),
    "product": ContentTemplate(
        name="Product/Shopping Page",
        description="Product page or e-commerce listing",
        fields=[
            _required("product_name", "Product name", "string"),
            _required("brand", "Brand or manufacturer", "string"),
            _optional("price", "Price", "string"),
            _optional("category", "Product category", "string"),
            _required("specifications", "Technical specifications", examples=("Weight: 1.5 kg", "Storage: 256GB")),
            _optional("dimensions", "Dimensions", "string"),
            _optional("materials", "Materials"),
            _optional("colors_available", "Available colors"),
            _required("key_features", "Key features"),
            _optional("compatibility", "Compatibility"),
            _optional("warranty", "Warranty", "string"),
            _optional("rating", "Customer rating", "string"),
        ],
        summary_guidelines=(
            "Focus on: (1) what the product is and who it's for, (2) key features and specifications, "
            "(3) standout qualities or unique selling points, (4) price and value proposition"
        ),
        extraction_hints=(
            "Extract concrete specifications with units. Keep brand names, model numbers, and technical "
            "specs precise. Separate different specs into distinct array items."
        ),
    ),
    "recipe": ContentTemplate(
        name="Recipe",
        description="Cooking recipe",
        fields=[
            _required("dish_name", "Name of the dish", "string"),
            _optional("cuisine_type", "Cuisine", "string"),
            _optional("prep_time", "Preparation time", "string"),
            _optional("cook_time", "Cooking time", "string"),
            _optional("servings", "Number of servings", "string"),
            _optional("difficulty", "Difficulty", "string"),
            _required("ingredients", "Ingredients with quantities"),
            _required("main_steps", "Main preparation steps"),
            _optional("dietary_info", "Dietary information"),
            _optional("nutrition_highlights", "Nutrition highlights"),
            _optional("tips", "Tips"),
        ],
        summary_guidelines=(
            "Focus on: (1) what the dish is and its origin, (2) key ingredients and flavors, "
            "(3) cooking method and difficulty, (4) time requirements and servings"
        ),
        extraction_hints=(
            "Keep ingredient measurements precise. Separate each ingredient into its own array item "
            "with full quantity info."
        ),
    ),
    "tutorial": ContentTemplate(
        name="Tutorial/How-To Guide",
        description="Step-by-step guide",
        fields=[
            _required("tutorial_title", "What the tutorial teaches", "string"),
            _optional("difficulty_level", "Difficulty level", "string"),
            _optional("time_required", "Time required", "string"),
            _optional("prerequisites", "Prerequisites"),
            _optional("materials_tools", "Materials and tools"),
            _required("main_steps", "Main steps"),
            _required("learning_outcomes", "Learning outcomes"),
            _optional("common_mistakes", "Common mistakes"),
            _optional("tips_best_practices", "Tips and best practices"),
            _optional("related_topics", "Related topics"),
        ],
        summary_guidelines=(
            "Focus on: (1) what the tutorial teaches and why it's useful, (2) prerequisites and "
            "difficulty level, (3) main steps and approach, (4) key takeaways and outcomes"
        ),
        extraction_hints=(
            "Focus on actionable steps and clear learning objectives. Distinguish between "
            "prerequisites and outcomes."
        ),
    ),
    "news": ContentTemplate(
        name="News Article",
        description="News report",
        fields=[
            _required("headline", "Headline", "string"),
            _optional("publication", "Publication", "string"),
            _optional("publication_date", "Date of publication", "string"),
            _optional("location", "Where it happened", "string"),
            _required("main_event", "What happened", "string"),
            _optional("key_people", "Key people involved"),
            _optional("key_organizations", "Key organizations involved"),
            _optional("timeline", "Timeline of events"),
            _optional("impact", "Impact", "string"),
            _optional("background_context", "Background context", "string"),
            _optional("quotes", "Notable quotes"),
            _optional("data_statistics", "Data and statistics"),
        ],
        summary_guidelines=(
            "Focus on: (1) what happened and where, (2) who is involved, (3) why it matters and the "
            "impact, (4) context and background. Follow journalistic 5W1H approach."
        ),
        extraction_hints=(
            "Prioritize facts over opinions. Extract specific dates, numbers, and quotes accurately. "
            "Distinguish between the current event and background information."
        ),
    ),
    "review": ContentTemplate(
        name="Review/Opinion Piece",
        description="Review or evaluation",
        fields=[
            _required("subject", "What is being reviewed", "string"),
            _optional("category", "Category", "string"),
            _optional("reviewer", "Reviewer", "string"),
            _optional("rating", "Rating", "string"),
            _required("pros", "Positive points"),
            _required("cons", "Negative points"),
            _optional("standout_features", "Standout features"),
            _optional("comparison", "Comparisons with alternatives"),
            _optional("recommendation", "Recommendation", "string"),
            _optional("value_assessment", "Value assessment", "string"),
            _optional("verdict", "Final verdict or conclusion", "string"),
        ],
        summary_guidelines=(
            "Focus on: (1) what is being reviewed and context, (2) balanced pros and cons, "
            "(3) standout features or aspects, (4) overall assessment and recommendations"
        ),
        extraction_hints=(
            "Balance positive and negative points. Extract the reviewer's main arguments and supporting "
            "evidence. Identify specific comparisons and recommendations."
        ),
    ),
}


def get_template(content_type: Optional[str]) -> ContentTemplate:
    """Template for a content type; unknown types use the generic template"""
    return CONTENT_TEMPLATES.get(content_type or "generic", CONTENT_TEMPLATES["generic"])


def generate_schema(template: ContentTemplate) -> Dict[str, Any]:
    """JSON schema describing a template's fields"""
    properties: Dict[str, Any] = {}

    for f in template.fields:
        if f.type == "array":
            properties[f.key] = {"type": "array", "items": {"type": "string"}, "description": f.description}
        elif f.type == "object":
            properties[f.key] = {"type": "object", "description": f.description, "additionalProperties": True}
        else:
            properties[f.key] = {"type": "string", "description": f.description}

    return {
        "type": "object",
        "properties": properties,
        "required": [f.key for f in template.required_fields],
        "additionalProperties": False,
    }


def fields_prompt_section(template: ContentTemplate) -> str:
    """Markdown listing of required and optional fields"""
    lines = ["## Required Fields:"]
    lines.extend(_describe(f) for f in template.required_fields)

    if template.optional_fields:
        lines.append("")
        lines.append("## Optional Fields (include if found):")
        lines.extend(_describe(f) for f in template.optional_fields)

    return "\n".join(lines)


def _describe(f: FieldTemplate) -> str:
    line = f"- **{f.key}**: {f.description}"
    if f.examples:
        line += f" (e.g., {', '.join(f.examples)})"
    return line
