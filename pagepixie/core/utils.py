"""
Core utility functions for PagePixie
"""
import json
import re
from typing import Any, Optional


def sanitize_llm_json(response: str) -> str:
    """
    Sanitize JSON response from LLM by removing markdown code blocks and extra whitespace.

    LLMs sometimes wrap JSON responses with markdown code blocks like:
    ```json
    {"key": "value"}
    ```

    This function strips those wrappers and returns clean JSON.

    Args:
        response: Raw response string from LLM

    Returns:
        Sanitized JSON string ready for json.loads()
    """
    cleaned = response.strip()

    # Matches ```json...``` or ```...``` patterns
    code_block_pattern = r'^```(?:[\w-]+)?\s*\n?(.*?)\n?```$'
    match = re.match(code_block_pattern, cleaned, re.DOTALL | re.IGNORECASE)

    if match:
        cleaned = match.group(1).strip()

    return cleaned


def parse_llm_json(response: str) -> Any:
    """
    Parse JSON from LLM output, sanitizing it only if the direct parse fails

    Raises:
        json.JSONDecodeError: If the output is not valid JSON even after cleaning
    """
    try:
        return json.loads(response)
    except json.JSONDecodeError:
        return json.loads(sanitize_llm_json(response))


def extract_json(text: str) -> Optional[Any]:
    """
    Find the first JSON object (or array) embedded in prose.

    Returns None when nothing parseable is found.
    """
    cleaned = sanitize_llm_json(text)

    for pattern in (r'\{.*\}', r'\[.*\]'):
        match = re.search(pattern, cleaned, re.DOTALL)
        if match:
            try:
                return json.loads(match.group(0))
            except (ValueError, RecursionError):
                continue

    return None


def truncate_text(content: str, max_length: int, marker: str = "\n\n[Content truncated...]") -> str:
    """
    Truncate text to max_length characters, preferring a sentence or line boundary.

    The returned string (marker included) never exceeds max_length.
    """
    if len(content) <= max_length:
        return content

    budget = max(0, max_length - len(marker))
    truncated = content[:budget]
    cut_point = max(truncated.rfind('.'), truncated.rfind('\n'))

    if cut_point > budget * 0.8:
        truncated = truncated[:cut_point + 1]

    return (truncated + marker)[:max_length]
