"""
AI prompts for the PagePixie capture pipeline
"""

# =============================================================================
# SYSTEM PROMPTS
# =============================================================================

SYSTEM_PAGEPIXIE = """You are PagePixie, an assistant that turns web page content into concise summaries and structured information.
Be precise, keep technical terms and numbers exact, and only use information present in the content."""

SYSTEM_LANGUAGE_DETECTOR = """You are a language identification expert. Always respond with valid JSON.
Identify languages using ISO 639-1 codes (e.g. "en", "fr", "zh"), optionally with a region subtag (e.g. "en-GB")."""

SYSTEM_TRANSLATOR = """You are a professional translator from {source_language} to {target_language}.
Translate the text you are given faithfully, preserving formatting, line breaks, names and numbers.
Output ONLY the translation, with no commentary."""

SYSTEM_CONTENT_CLASSIFIER = "You are a content type classifier for web pages. Answer with a single content type."

# =============================================================================
# LANGUAGE PROMPTS
# =============================================================================

LANGUAGE_DETECTION_PROMPT = """Identify the language of the following text.

Return a JSON object with a "languages" array of up to 3 candidates ranked by likelihood. Each candidate has:
- detectedLanguage: ISO 639-1 language code
- confidence: number between 0 and 1

Text:
{text}"""

TRANSLATION_PROMPT = """Translate the following text from {source_language} to {target_language}:

{text}"""

# =============================================================================
# CLASSIFICATION PROMPTS
# =============================================================================

CONTENT_CLASSIFICATION_PROMPT = """# Content Type Classification

Determine the most appropriate content type for this web page.

## Available Content Types:

1. **research-paper**: Academic research publications, scientific papers, preprints
   - Indicators: Abstract, methodology, results, citations, academic writing style
2. **article**: News articles, magazine articles, online journalism
   - Indicators: News-style writing, current events, journalist byline, publication date
3. **documentation**: Technical documentation, API docs, developer guides
   - Indicators: Code examples, API references, installation steps, technical instructions
4. **blog**: Personal or professional blog posts, opinion pieces
   - Indicators: Personal perspective, informal tone, author's insights, narrative style
5. **wiki**: Encyclopedia-style content, Wikipedia articles
   - Indicators: Factual, objective, encyclopedic structure, categories, references
6. **product**: Product pages, e-commerce listings
   - Indicators: Price, specifications, features, buy buttons, product reviews
7. **recipe**: Cooking recipes, food preparation guides
   - Indicators: Ingredients list, cooking steps, prep/cook time, servings
8. **tutorial**: Step-by-step guides, how-to articles, learning content
   - Indicators: Sequential steps, learning objectives, prerequisites, examples
9. **news**: Breaking news, news reports, press releases
   - Indicators: Timely information, inverted pyramid structure, news organization
10. **review**: Product/service reviews, critiques, evaluations
    - Indicators: Rating, pros/cons, recommendations, comparative analysis
11. **generic**: General web content that doesn't fit above categories

## Page Information:
URL: {url}
Title: {title}
Extractor Hint: {hint} (use as a suggestion, but verify with content){metadata_section}
## Content Preview:
{preview}

Output ONLY the content type as a single word (e.g., "research-paper", "blog", "documentation").
No explanation needed, just the classification."""

# =============================================================================
# CONDENSE PROMPTS
# =============================================================================

CONDENSE_METADATA_PROMPT = """Analyze this web page and extract key metadata:

Title: {title}
URL: {url}
Description: {description}
Section Headings: {headings}

First 1000 characters of content:
{preview}

If this is a research paper, article, or blog post, try to extract author information from bylines,
author sections, metadata or signature areas.

For research papers, also extract the paper's core structure: the main research question,
the key contribution, the primary methodology and the main findings.

Output a JSON object with these fields:
- description: brief description (1-2 sentences)
- mainTopics: array of 1-5 main topics
- keyEntities: array of 0-5 key entities like people, places, organizations
- authors: array of author names if found
- paperStructure: (ONLY for research papers) object with researchQuestion, mainContribution, methodology, keyFindings"""

CONDENSE_CHUNK_PROMPT = """You are condensing part {index} of {total} from a {content_type}.
{context}
Current section to condense:
{chunk}

Instructions:
- Preserve all key facts, data, and important information
- Remove redundant explanations and filler words
- Keep technical terms and specific details
- Maintain logical flow
- Aim to reduce length by 30-50% while keeping all essential information

Return ONLY the condensed text, no explanations or metadata."""

CONDENSE_FINAL_PROMPT = """Condense this {content_type} content to approximately {target_length} characters.

Current content ({length} chars):
{content}

Instructions:
- Preserve all critical information and key facts
- Remove any remaining redundancy
- Keep the most important details and findings
- Maintain coherent structure
- Be concise but complete

Return ONLY the condensed text."""

CONDENSE_REFINE_PROMPT = """Refine and improve this {content_type} content for clarity and conciseness.

Content:
{content}

Instructions:
- Keep all important information
- Improve clarity and flow
- Remove unnecessary words
- Maintain professional tone

Return ONLY the refined text."""

# =============================================================================
# SUMMARIZE PROMPTS
# =============================================================================

STRUCTURED_EXTRACTION_PROMPT = """# Structured Data Extraction

## Page Information:
Title: {title}
Content Type: {template_name}
{metadata_section}
## Content:
{content}

# Your Task
Extract structured data from this {template_name_lower} content according to the template below.

{fields_section}
{extraction_hints}{authors_notice}
**IMPORTANT**:
- Include ALL template fields (use [] or "" for empty fields)
- Be specific and concrete - avoid vague entries
- Extract exact names and preserve capitalization
- Only include information explicitly mentioned in the content"""

SUMMARY_PROMPT = """# Summary Generation

## Pre-extracted Metadata:
{metadata_section}
## Structured Data Extracted:
{structured_data}

## Content:
{content}

# Your Task
Write a concise, informative summary (150-300 words) for this {template_name_lower}.

## Guidelines for {template_name}:
{guidelines}

## Writing Style:
- Clear and professional
- Flows naturally with good transitions
- Captures the essence without unnecessary details
- Highlights the most important information

Return ONLY the summary text (no JSON, no markdown headers, just the summary paragraph)."""

# =============================================================================
# CHAT PROMPTS
# =============================================================================

CHAT_PROMPT = """# Chat Assistant for Content Refinement

You are helping a user refine their saved web content. The user has a summary and structured data extracted from a webpage, and they want to interact with it through chat.

## Current Summary:
{summary}

## Current Structured Data:
{structured_data}

## Condensed Page Content (for reference):
{content}

## User Message:
"{message}"

# Your Task

**If the user is asking a question:**
- Answer based on the summary, structured data, and condensed content
- Keep modifiedSummary and modifiedStructuredData the same as current
- Provide a helpful answer in aiResponse

**If the user wants to modify the summary or structured data:**
- Make the requested changes (add, remove, update, shorten, expand, etc.)
- Update modifiedSummary and/or modifiedStructuredData accordingly
- Explain what you changed in aiResponse

**Guidelines:**
- Be precise and only change what the user requested
- Use the condensed content as reference when adding new information
- Keep the tone conversational and friendly
- Maintain the structure and format of existing data

**Output Format:**
Return a JSON object with:
- modifiedSummary: string (the summary, modified if requested, otherwise unchanged)
- modifiedStructuredData: object (the structured data, modified if requested, otherwise unchanged)
- aiResponse: string (conversational response to the user, 2-3 sentences)"""
