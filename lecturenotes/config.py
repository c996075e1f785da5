"""
lecturenotes.config - YAML config loading, environment overrides, validation.

Handles loading lecturenotes.yaml, applying environment variables (a .env
file is read when present) and validating all parameters.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from lecturenotes.exceptions import ConfigError

CONFIG_FILENAME = "lecturenotes.yaml"


class FrameSettings(BaseModel):
    """Frame sampling for slide OCR."""

    interval_seconds: float = Field(default=5.0, gt=0.0)


class OCRSettings(BaseModel):
    language: str = "eng"


class TranscribeSettings(BaseModel):
    """AWS Transcribe job and polling parameters."""

    language_code: str = "en-US"
    languages: list[str] = Field(default_factory=list)
    transliterate: bool = False
    poll_interval: float = Field(default=5.0, gt=0.0)
    max_interval: float = Field(default=30.0, gt=0.0)
    backoff: float = Field(default=1.5, ge=1.0)
    max_attempts: int = Field(default=180, gt=0)


class ProviderSettings(BaseModel):
    """One language model provider in the fallback chain."""

    name: str
    kind: str = "bedrock"
    model: str
    max_tokens: int = Field(default=3000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    api_base: str | None = None

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        valid = {"bedrock", "litellm"}
        if v not in valid:
            raise ValueError(f"provider kind must be one of: {valid}")
        return v


class RenderSettings(BaseModel):
    title: str = "Smart Classroom Lecture Notes"
    footer: str = "Generated by Smart Classroom AI"
    section_aware: bool = True
    page_size: str = "A4"

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: str) -> str:
        valid = {"A4", "letter"}
        if v not in valid:
            raise ValueError(f"page_size must be one of: {valid}")
        return v


class PipelineSettings(BaseModel):
    work_dir: Path = Path("work")
    output_dir: Path = Path("output")
    retain_local_artifacts: bool = False
    deadline_seconds: float | None = Field(default=None, gt=0.0)


class EmailSettings(BaseModel):
    """SMTP settings; notification is disabled while smtp_host is unset."""

    smtp_host: str | None = None
    smtp_port: int = 587
    username: str | None = None
    password: str | None = None
    sender: str = "notes@localhost"
    use_tls: bool = True

    @property
    def enabled(self) -> bool:
        return bool(self.smtp_host)


def default_providers() -> list[ProviderSettings]:
    return [
        ProviderSettings(name="bedrock-llama3", kind="bedrock", model="meta.llama3-70b-instruct-v1:0"),
        ProviderSettings(name="bedrock-titan", kind="bedrock", model="amazon.titan-text-premier-v1:0"),
        ProviderSettings(name="openai", kind="litellm", model="gpt-4o-mini"),
    ]


class LectureNotesConfig(BaseModel):
    """Resolved configuration for the notes pipeline."""

    aws_region: str = "us-east-1"
    s3_bucket: str | None = None

    frames: FrameSettings = Field(default_factory=FrameSettings)
    ocr: OCRSettings = Field(default_factory=OCRSettings)
    transcribe: TranscribeSettings = Field(default_factory=TranscribeSettings)
    providers: list[ProviderSettings] = Field(default_factory=default_providers)
    render: RenderSettings = Field(default_factory=RenderSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)

    config_path: Path | None = None

    @field_validator("providers")
    @classmethod
    def validate_providers(cls, v: list[ProviderSettings]) -> list[ProviderSettings]:
        if not v:
            raise ValueError("at least one notes provider must be configured")
        names = [p.name for p in v]
        if len(names) != len(set(names)):
            raise ValueError("provider names must be unique")
        return v


# Environment variable -> dotted config key
ENV_OVERRIDES: dict[str, str] = {
    "AWS_REGION": "aws_region",
    "AWS_S3_BUCKET": "s3_bucket",
    "SMTP_HOST": "email.smtp_host",
    "SMTP_PORT": "email.smtp_port",
    "SMTP_USERNAME": "email.username",
    "SMTP_PASSWORD": "email.password",
    "SMTP_SENDER": "email.sender",
    "NOTES_RETAIN_LOCAL": "pipeline.retain_local_artifacts",
}


def apply_env_overrides(raw: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Overlay environment variables onto a raw config dict.

    Environment values win over file values. Nested keys are created as
    needed; pydantic coerces the string values when the config is built.
    """
    environ = os.environ if environ is None else environ
    merged = {k: (dict(v) if isinstance(v, dict) else v) for k, v in raw.items()}
    for env_name, dotted in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        target = merged
        *parents, leaf = dotted.split(".")
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = value
    return merged


def find_config_file(start: Path | None = None) -> Path | None:
    """Find lecturenotes.yaml in the given directory or any parent."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(
    config_path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> LectureNotesConfig:
    """Load and validate configuration.

    Args:
        config_path: Explicit YAML file; searched from the cwd when None
        environ: Environment mapping (defaults to os.environ after .env load)

    Returns:
        Validated LectureNotesConfig

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if environ is None:
        load_dotenv()

    if config_path is None:
        config_path = find_config_file()
    elif not config_path.exists():
        raise ConfigError(f"No config file found at {config_path}")

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            with open(config_path) as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping")

    merged = apply_env_overrides(raw_config, environ)
    merged["config_path"] = config_path

    try:
        return LectureNotesConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def create_default_config() -> dict[str, Any]:
    """Create a default config dict for a new working directory."""
    config = LectureNotesConfig()
    data = config.model_dump(mode="json", exclude={"config_path", "email"})
    data["s3_bucket"] = "my-lecture-notes-bucket"
    return data


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
