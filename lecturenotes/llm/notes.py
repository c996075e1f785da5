"""
lecturenotes.llm.notes - Study notes generation with provider fallback.

Providers are tried strictly in order. Each attempt is caught on its own
and logged with the provider name; the next provider runs only after the
previous one raised. If the whole chain fails the caller still gets a
non-empty placeholder document.
"""

from __future__ import annotations

from collections.abc import Sequence

from lecturenotes.exceptions import NotesGenerationError
from lecturenotes.llm.parsing import FAILED_NOTES, ensure_notes
from lecturenotes.llm.providers import NotesProvider
from lecturenotes.llm.templates import PromptTemplateManager
from lecturenotes.logging import get_logger
from lecturenotes.models import NotesResult, ProviderFailure

log = get_logger("notes")


class NotesGenerator:
    """Generate markdown study notes from transcript and slide text."""

    def __init__(
        self,
        providers: Sequence[NotesProvider],
        template_manager: PromptTemplateManager | None = None,
    ) -> None:
        if not providers:
            raise NotesGenerationError("No notes providers configured")
        self.providers = list(providers)
        self.template_manager = template_manager or PromptTemplateManager()

    def build_prompt(self, transcript: str, visual_text: str) -> str:
        return self.template_manager.build_notes_prompt(transcript, visual_text)

    def generate(self, transcript: str, visual_text: str) -> NotesResult:
        """Run the fallback chain.

        Args:
            transcript: Speech transcript (may be empty)
            visual_text: OCR text from slides (may be empty)

        Returns:
            NotesResult; ``provider`` is None when every provider failed
        """
        prompt = self.build_prompt(transcript, visual_text)
        failures: list[ProviderFailure] = []

        for provider in self.providers:
            log.info("Generating notes with %s", provider.name)
            try:
                text = provider.generate(prompt)
            except Exception as e:
                log.warning("Notes provider %s failed: %s", provider.name, e)
                failures.append(ProviderFailure(provider=provider.name, error=str(e)))
                continue

            log.info("Notes generated by %s (%d chars)", provider.name, len(text or ""))
            return NotesResult(
                markdown=ensure_notes(text),
                provider=provider.name,
                failures=failures,
            )

        log.error("All %d notes providers failed", len(self.providers))
        return NotesResult(markdown=FAILED_NOTES, provider=None, failures=failures)
