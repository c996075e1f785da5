"""
lecturenotes.llm - Study notes generation.

Pipeline Stage 4: Build the notes prompt from transcript and slide text and
send it through an ordered chain of language model providers (Amazon
Bedrock models and any litellm backend) until one succeeds.
"""

from __future__ import annotations

from lecturenotes.llm.notes import NotesGenerator
from lecturenotes.llm.providers import BedrockProvider, LiteLLMProvider, build_providers

__all__ = ["BedrockProvider", "LiteLLMProvider", "NotesGenerator", "build_providers"]
