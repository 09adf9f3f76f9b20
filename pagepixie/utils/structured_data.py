"""
Normalization of arbitrary model output into presentable structured data
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_PASSTHROUGH_TYPES = (bool, int, float, datetime, date)
_CONTAINER_TYPES = (list, tuple, set, dict)

# Containers nested deeper than this collapse into their scalar leaves
MAX_NESTING_DEPTH = 20


def normalize_structured_data(data: Any) -> Dict[str, Any]:
    """
    Normalize a structured data mapping for presentation

    - None values and blank strings are dropped
    - strings are trimmed
    - numbers, booleans and dates pass through unchanged
    - lists are normalized element-wise and flattened one level
    - nested mappings become a single "key: value; key: value" string

    Never raises; non-mapping input yields an empty mapping.
    """
    if not isinstance(data, dict):
        if data is not None:
            logger.warning(f"Expected structured data mapping, got {type(data).__name__}")
        return {}

    normalized = {}
    for key, value in data.items():
        cleaned = _normalize_value(value, 0)
        if cleaned is not None:
            normalized[str(key)] = cleaned

    return normalized


def _normalize_value(value: Any, depth: int) -> Optional[Any]:
    if value is None:
        return None

    if isinstance(value, str):
        value = value.strip()
        return value or None

    if isinstance(value, _PASSTHROUGH_TYPES):
        return value

    if isinstance(value, (list, tuple, set)):
        if depth >= MAX_NESTING_DEPTH:
            return _leaf_texts(value) or None

        items: List[Any] = []
        for element in value:
            cleaned = _normalize_value(element, depth + 1)
            if cleaned is None:
                continue
            # Nested lists splice into the parent
            if isinstance(cleaned, list):
                items.extend(cleaned)
            else:
                items.append(cleaned)
        return items or None

    if isinstance(value, dict):
        text = _stringify(value, depth)
        return text or None

    text = _safe_str(value).strip()
    return text or None


def stringify_structured_value(value: Any) -> str:
    """
    Render any structured data value as readable text

    Lists are joined with ", " and mappings render as "key: value"
    pairs joined with "; ". Never raises.
    """
    return _stringify(value, 0)


def _stringify(value: Any, depth: int) -> str:
    if value is None:
        return ""

    if isinstance(value, str):
        return value.strip()

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, (int, float)):
        return str(value)

    if isinstance(value, (datetime, date)):
        return value.isoformat()

    if isinstance(value, _CONTAINER_TYPES) and depth >= MAX_NESTING_DEPTH:
        return ", ".join(_leaf_texts(value))

    if isinstance(value, (list, tuple, set)):
        parts = [_stringify(element, depth + 1) for element in value]
        return ", ".join(part for part in parts if part)

    if isinstance(value, dict):
        pairs = []
        for key, item in value.items():
            text = _stringify(item, depth + 1)
            if text:
                pairs.append(f"{key}: {text}")
        return "; ".join(pairs)

    return _safe_str(value).strip()


def _leaf_texts(value: Any) -> List[str]:
    """Scalar leaves of a nested container in document order, without recursion"""
    texts: List[str] = []
    stack = [value]

    while stack:
        item = stack.pop()
        if isinstance(item, dict):
            stack.extend(reversed(list(item.values())))
        elif isinstance(item, (list, tuple, set)):
            stack.extend(reversed(list(item)))
        else:
            text = _stringify(item, 0)
            if text:
                texts.append(text)

    return texts


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<{type(value).__name__}>"
