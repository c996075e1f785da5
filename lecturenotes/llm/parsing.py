"""
lecturenotes.llm.parsing - Provider response probing and notes checks.

Model responses come back in different JSON shapes depending on the model
family. Field paths are probed in priority order and the raw body is the
last resort.
"""

from __future__ import annotations

import json
from typing import Any

from lecturenotes.exceptions import ProviderResponseError

MIN_NOTES_LENGTH = 10

PLACEHOLDER_NOTES = (
    "# Notes Unavailable\n\n"
    "No usable notes were generated for this lecture. "
    "Please try processing the recording again."
)

FAILED_NOTES = (
    "# Notes Generation Failed\n\n"
    "Every configured language model provider failed to generate notes for "
    "this lecture. Please try again later."
)

# A path is a tuple of dict keys and list indexes
FieldPath = tuple[str | int, ...]

GENERIC_FIELDS: tuple[FieldPath, ...] = (
    ("outputText",),
    ("generation",),
    ("completion",),
    ("results", 0, "outputText"),
    ("completions", 0, "data", "text"),
    ("content", 0, "text"),
    ("outputs", 0, "text"),
    ("generations", 0, "text"),
    ("choices", 0, "message", "content"),
    ("text",),
)


def get_path(data: Any, path: FieldPath) -> Any:
    """Follow a key/index path, returning None where it breaks."""
    current = data
    for part in path:
        if isinstance(part, int):
            if not isinstance(current, list) or len(current) <= part:
                return None
            current = current[part]
        else:
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
    return current


def probe_text(body: str, fields: tuple[FieldPath, ...] = GENERIC_FIELDS) -> str:
    """Extract generated text from a raw response body.

    Args:
        body: Raw response body
        fields: Field paths to try, in priority order

    Returns:
        The first non-empty string found; the raw body if no field matched
        or the body is not JSON
    """
    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        return body

    for path in fields:
        value = get_path(data, path)
        if isinstance(value, str) and value.strip():
            return value
    return body


def ensure_notes(text: str | None) -> str:
    """Substitute a placeholder for empty or near-empty notes."""
    if text is None or len(text.strip()) < MIN_NOTES_LENGTH:
        return PLACEHOLDER_NOTES
    return text.strip()


def require_text(text: Any, provider: str) -> str:
    """Validate that a provider returned a string."""
    if not isinstance(text, str):
        raise ProviderResponseError(f"expected text, got {type(text).__name__}", provider)
    return text
