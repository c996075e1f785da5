"""
lecturenotes.llm.providers - Language model provider adapters.

Each provider maps one service's request and response schema onto the
single capability the notes generator needs: ``generate(prompt) -> str``.
Providers make exactly one attempt; retrying is the fallback chain's job.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from lecturenotes.exceptions import NotesGenerationError, ProviderResponseError
from lecturenotes.llm.parsing import GENERIC_FIELDS, FieldPath, probe_text, require_text


class NotesProvider(Protocol):
    name: str

    def generate(self, prompt: str) -> str: ...


# Bedrock model family -> response fields probed before the generic list
FAMILY_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "meta": (("generation",),),
    "amazon": (("results", 0, "outputText"), ("outputText",)),
    "anthropic": (("content", 0, "text"), ("completion",)),
    "mistral": (("outputs", 0, "text"),),
    "cohere": (("generations", 0, "text"), ("text",)),
    "ai21": (("completions", 0, "data", "text"),),
}


def model_family(model_id: str) -> str:
    """Return the vendor prefix of a Bedrock model id.

    Cross-region inference ids ("us.meta.llama3-...") carry a region
    prefix that is skipped.
    """
    for part in model_id.split(".")[:2]:
        if part in FAMILY_FIELDS:
            return part
    return "amazon"


class BedrockProvider:
    """Amazon Bedrock InvokeModel adapter."""

    def __init__(
        self,
        name: str,
        model: str,
        client: Any = None,
        region: str | None = None,
        max_tokens: int = 3000,
        temperature: float = 0.7,
        top_p: float = 0.9,
    ) -> None:
        if client is None:
            import boto3

            client = boto3.client("bedrock-runtime", region_name=region)
        self.name = name
        self.model = model
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.family = model_family(model)

    def build_body(self, prompt: str) -> dict[str, Any]:
        """Build the InvokeModel request body for this model family."""
        if self.family == "meta":
            return {
                "prompt": prompt,
                "max_gen_len": min(self.max_tokens, 2048),
                "temperature": self.temperature,
                "top_p": self.top_p,
            }
        if self.family == "anthropic":
            return {
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "top_p": self.top_p,
                "messages": [{"role": "user", "content": prompt}],
            }
        if self.family == "mistral":
            return {
                "prompt": f"<s>[INST] {prompt} [/INST]",
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "top_p": self.top_p,
            }
        if self.family == "cohere":
            return {
                "prompt": prompt,
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "p": self.top_p,
            }
        if self.family == "ai21":
            return {
                "prompt": prompt,
                "maxTokens": self.max_tokens,
                "temperature": self.temperature,
                "topP": self.top_p,
            }
        return {
            "inputText": prompt,
            "textGenerationConfig": {
                "maxTokenCount": self.max_tokens,
                "temperature": self.temperature,
                "topP": self.top_p,
            },
        }

    def parse_body(self, body: str) -> str:
        """Map a response body onto plain text, falling back to the raw body."""
        return probe_text(body, FAMILY_FIELDS[self.family] + GENERIC_FIELDS)

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.invoke_model(
                modelId=self.model,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(self.build_body(prompt)),
            )
            raw = response["body"].read()
        except Exception as e:
            raise NotesGenerationError(f"Bedrock invoke failed: {e}", self.name) from e

        body = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
        return self.parse_body(body)


class LiteLLMProvider:
    """Chat completion adapter for any backend litellm supports."""

    def __init__(
        self,
        name: str,
        model: str,
        max_tokens: int = 3000,
        temperature: float = 0.7,
        top_p: float = 0.9,
        api_base: str | None = None,
        timeout: int = 300,
    ) -> None:
        self.name = name
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.api_base = api_base
        self.timeout = timeout
        self._token_usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    def generate(self, prompt: str) -> str:
        try:
            import litellm
        except ImportError as e:
            raise NotesGenerationError(
                "litellm not installed. Install with: pip install litellm", self.name
            ) from e

        litellm.telemetry = False

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "timeout": self.timeout,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = litellm.completion(**kwargs)
        except Exception as e:
            raise NotesGenerationError(f"completion failed: {e}", self.name) from e

        usage = getattr(response, "usage", None)
        if usage:
            self._token_usage["prompt_tokens"] += getattr(usage, "prompt_tokens", 0) or 0
            self._token_usage["completion_tokens"] += getattr(usage, "completion_tokens", 0) or 0
            self._token_usage["total_tokens"] += getattr(usage, "total_tokens", 0) or 0

        choices = getattr(response, "choices", None)
        if not choices:
            raise ProviderResponseError("empty response", self.name)

        message = getattr(choices[0], "message", None)
        if message is None:
            raise ProviderResponseError("no message in response", self.name)

        return require_text(getattr(message, "content", None), self.name)

    def get_token_usage(self) -> dict[str, int]:
        """Get cumulative token usage."""
        return self._token_usage.copy()


def create_provider(settings: Any, region: str | None = None, bedrock_client: Any = None) -> NotesProvider:
    """Create a provider from ProviderSettings."""
    if settings.kind == "bedrock":
        return BedrockProvider(
            name=settings.name,
            model=settings.model,
            client=bedrock_client,
            region=region,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            top_p=settings.top_p,
        )
    return LiteLLMProvider(
        name=settings.name,
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        top_p=settings.top_p,
        api_base=settings.api_base,
    )


def build_providers(config: Any) -> list[NotesProvider]:
    """Build the ordered fallback chain from LectureNotesConfig.

    Bedrock providers share one runtime client.
    """
    bedrock_client = None
    if any(p.kind == "bedrock" for p in config.providers):
        import boto3

        bedrock_client = boto3.client("bedrock-runtime", region_name=config.aws_region)
    return [
        create_provider(p, region=config.aws_region, bedrock_client=bedrock_client)
        for p in config.providers
    ]
