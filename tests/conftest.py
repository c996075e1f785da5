"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from lecturenotes.models import StoredObject


class FakeStorage:
    """In-memory stand-in for S3Storage."""

    def __init__(self, bucket: str = "test-bucket", region: str = "us-east-1", fail: bool = False):
        self.bucket = bucket
        self.region = region
        self.fail = fail
        self.uploads: list[tuple[Path, str, str]] = []

    def upload_file(self, path: Path, key: str, content_type: str) -> StoredObject:
        from lecturenotes.exceptions import UploadError

        if self.fail:
            raise UploadError(f"upload of {key} refused")
        if not path.exists():
            raise UploadError(f"Cannot upload missing file: {path}")
        self.uploads.append((path, key, content_type))
        return StoredObject(
            bucket=self.bucket,
            key=key,
            uri=f"s3://{self.bucket}/{key}",
            url=f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}",
        )


class FakeProvider:
    """Notes provider returning a canned response or raising."""

    def __init__(self, name: str, response: str | None = None, error: Exception | None = None):
        self.name = name
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response or ""


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def make_storage():
    return FakeStorage


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def sample_notes() -> str:
    """Notes shaped like a typical model response."""
    return (
        "# Summary\n"
        "This lecture introduces **photosynthesis** and the light reactions.\n"
        "\n"
        "# Detailed Notes\n"
        "## Light Reactions\n"
        "- Occur in the *thylakoid* membrane\n"
        "- Produce ATP and NADPH\n"
        "\n"
        "# Key Topics\n"
        "- Chlorophyll\n"
        "- Calvin cycle\n"
        "\n"
        "# References\n"
        "- Campbell Biology, chapter 10\n"
        "\n"
        "# Important Questions\n"
        "1. Where do the light reactions occur?\n"
        "2. What does the Calvin cycle produce?\n"
        "\n"
        "# Quick Revision\n"
        "- Light energy becomes chemical energy\n"
    )


@pytest.fixture
def sample_config_dict() -> dict:
    """Return a sample configuration dictionary."""
    return {
        "aws_region": "eu-west-1",
        "s3_bucket": "lecture-bucket",
        "frames": {"interval_seconds": 10},
        "transcribe": {"language_code": "en-IN", "languages": ["en-IN", "hi-IN"], "transliterate": True},
        "providers": [
            {"name": "llama", "kind": "bedrock", "model": "meta.llama3-70b-instruct-v1:0"},
            {"name": "gpt", "kind": "litellm", "model": "gpt-4o-mini", "max_tokens": 2000},
        ],
        "render": {"page_size": "letter"},
    }


@pytest.fixture
def config_file(tmp_path: Path, sample_config_dict: dict) -> Path:
    path = tmp_path / "lecturenotes.yaml"
    with open(path, "w") as f:
        yaml.dump(sample_config_dict, f)
    return path
