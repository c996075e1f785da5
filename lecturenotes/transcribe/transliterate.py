"""
lecturenotes.transcribe.transliterate - Latin-script transliteration.

Used when a lecture is transcribed in several languages and one of them
comes back in a non-Latin script (e.g. Devanagari for hi-IN). Failure
always degrades to the original text.
"""

from __future__ import annotations

import unicodedata
from typing import Any, Protocol

from lecturenotes.logging import get_logger

log = get_logger("transliterate")

TRANSLITERATE_PROMPT = (
    "Transliterate the following text into Latin (English) script. "
    "Keep the original language and wording; only change the script. "
    "Return the transliterated text only.\n\n{text}"
)


class Transliterator(Protocol):
    def transliterate(self, text: str) -> str: ...


def contains_non_latin(text: str) -> bool:
    """True if any letter in the text is outside the Latin script."""
    for char in text:
        if not char.isalpha():
            continue
        try:
            name = unicodedata.name(char)
        except ValueError:
            return True
        if not name.startswith("LATIN"):
            return True
    return False


class LLMTransliterator:
    """Transliterate by asking a notes provider to rewrite the script."""

    def __init__(self, provider: Any) -> None:
        self.provider = provider

    def transliterate(self, text: str) -> str:
        return self.provider.generate(TRANSLITERATE_PROMPT.format(text=text)).strip()


def transliterate_safely(text: str, transliterator: Transliterator | None) -> str:
    """Transliterate non-Latin text, returning the original on any failure."""
    if transliterator is None or not text or not contains_non_latin(text):
        return text
    try:
        result = transliterator.transliterate(text)
    except Exception as e:
        log.warning("Transliteration failed, keeping original text: %s", e)
        return text
    if not result or not result.strip():
        log.warning("Transliteration returned empty text, keeping original")
        return text
    return result
