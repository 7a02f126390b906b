"""Helpers for reading message payloads from the export format."""

import math
from typing import Any

from .model import (
    CONTENT_CODE,
    CONTENT_MULTIMODAL,
    CONTENT_TEXT,
    ROLES,
    UNKNOWN_ROLE,
    MessageNode,
)


REASONING_TYPES = ('thoughts', 'reasoning_recap')
CODE_TYPES = ('code', 'execution_output')


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and Infinity parse as floats but are not timestamps.
    return result if math.isfinite(result) else None


def safe_str(value: Any) -> str:
    return '' if value is None else str(value)


def normalize_role(author: Any) -> str:
    """Map an export author object to one of the known roles."""
    if not isinstance(author, dict):
        return UNKNOWN_ROLE
    role = author.get('role')
    return role if role in ROLES else UNKNOWN_ROLE


def classify_content_type(content: Any) -> str:
    if not isinstance(content, dict):
        return CONTENT_TEXT
    content_type = content.get('content_type') or CONTENT_TEXT
    if content_type == CONTENT_TEXT:
        return CONTENT_TEXT
    if content_type == CONTENT_CODE:
        return CONTENT_CODE
    return CONTENT_MULTIMODAL


def _thought_parts(thoughts: Any) -> tuple[str, ...]:
    if not isinstance(thoughts, list):
        return ()
    parts = []
    for thought in thoughts:
        if not isinstance(thought, dict):
            continue
        summary = thought.get('summary')
        thought_content = thought.get('content')
        if isinstance(summary, str) and summary:
            parts.append(f"[{summary}]")
        if isinstance(thought_content, str) and thought_content:
            parts.append(thought_content)
    return tuple(parts)


def extract_parts(content: Any) -> tuple[Any, ...]:
    """Return the ordered content fragments of a message.

    Text and multimodal payloads carry a 'parts' list. Code and execution
    output payloads carry a single 'text' string instead. Reasoning payloads
    keep their text in 'thoughts' (summary and content per step) or, for a
    recap, in 'content'.
    """
    if not isinstance(content, dict):
        return ()

    content_type = content.get('content_type')
    if content_type == 'thoughts':
        return _thought_parts(content.get('thoughts'))
    if content_type == 'reasoning_recap':
        recap = content.get('content')
        return (recap,) if isinstance(recap, str) and recap else ()

    parts = content.get('parts')
    if isinstance(parts, list):
        return tuple(parts)
    text = content.get('text')
    if isinstance(text, str):
        return (text,)
    return ()


def get_message_category(node: MessageNode) -> str:
    """Determine the display category of a message.

    Returns one of: 'user', 'assistant', 'system', 'reasoning', 'tool',
                    'code', 'web_citation', 'error', 'structural' or 'other'
    """
    if node.is_structural:
        return 'structural'

    source_type = node.source_content_type
    if source_type in REASONING_TYPES:
        return 'reasoning'
    if source_type == 'tether_quote':
        return 'web_citation'
    if source_type == 'system_error':
        return 'error'
    if source_type in CODE_TYPES:
        return 'code'

    if node.role in ROLES:
        return node.role
    return 'other'
