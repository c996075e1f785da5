"""
lecturenotes.llm.templates - Prompt template loading and rendering.

Uses Jinja2 to load the notes prompts. Templates ship inside the package;
a custom prompts directory can replace them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

SYSTEM_TEMPLATE = "system.txt"
REQUEST_TEMPLATE = "request.txt"

SECTION_LIMITS: dict[str, int] = {
    "KEYWORDS_MIN": 5,
    "KEYWORDS_MAX": 10,
    "QUESTIONS_MIN": 3,
    "QUESTIONS_MAX": 5,
    "REVISION_POINTS": 5,
}


class PromptTemplateManager:
    """Manages loading and rendering of prompt templates."""

    def __init__(self, prompts_dir: Path | None = None) -> None:
        self.prompts_dir = prompts_dir or PROMPTS_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.prompts_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._cache: dict[str, Template] = {}

    def get_template(self, name: str) -> Template:
        """Load a template by name.

        Raises:
            FileNotFoundError: If template doesn't exist
        """
        if name not in self._cache:
            template_path = self.prompts_dir / name
            if not template_path.exists():
                raise FileNotFoundError(f"Template not found: {template_path}")
            self._cache[name] = self.env.get_template(name)
        return self._cache[name]

    def render(self, template_name: str, variables: dict[str, Any]) -> str:
        template = self.get_template(template_name)
        return template.render(**variables)

    def build_notes_prompt(self, transcript: str, visual_text: str) -> str:
        """Combine the fixed instruction block with the lecture content.

        The transcript and visual text are embedded verbatim.
        """
        system = self.render(SYSTEM_TEMPLATE, SECTION_LIMITS)
        request = self.render(
            REQUEST_TEMPLATE,
            {"TRANSCRIPT": transcript.strip(), "VISUAL_TEXT": visual_text.strip()},
        )
        return f"{system.strip()}\n\nUser Request:\n{request.strip()}\n"
