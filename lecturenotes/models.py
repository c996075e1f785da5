"""
lecturenotes.models - Pipeline data types.

Filesystem artifacts (video, audio, frames) are request-scoped and owned by
the orchestrator; text products are plain strings.
"""

from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class SourceVideo(BaseModel):
    """Uploaded lecture video."""

    path: Path
    size_bytes: int = 0
    mime_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: Path) -> SourceVideo:
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            path=path,
            size_bytes=path.stat().st_size if path.exists() else 0,
            mime_type=mime_type or "application/octet-stream",
        )


class AudioTrack(BaseModel):
    """Mono 16kHz PCM WAV extracted for speech services."""

    path: Path
    sample_rate: int = 16000
    channels: int = 1
    codec: str = "pcm_s16le"


class FrameSequence(BaseModel):
    """Still frames sampled at a fixed interval, in temporal order."""

    directory: Path
    frames: list[Path] = Field(default_factory=list)
    interval_seconds: float = 5.0

    def __len__(self) -> int:
        return len(self.frames)


class StoredObject(BaseModel):
    """Object written to remote storage."""

    bucket: str
    key: str
    uri: str
    url: str


class ProviderFailure(BaseModel):
    """One failed attempt in the notes fallback chain."""

    provider: str
    error: str


class NotesResult(BaseModel):
    """Markdown notes plus which provider (if any) produced them."""

    markdown: str
    provider: str | None = None
    failures: list[ProviderFailure] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.provider is not None


class PipelineStage(str, Enum):
    RECEIVED = "received"
    AUDIO_EXTRACTED = "audio_extracted"
    FRAMES_EXTRACTED = "frames_extracted"
    OCR_DONE = "ocr_done"
    TRANSCRIBED = "transcribed"
    NOTES_GENERATED = "notes_generated"
    RENDERED = "rendered"
    UPLOADED = "uploaded"
    DONE = "done"
    FAILED = "failed"


class PipelineResult(BaseModel):
    """Terminal state of one orchestration run."""

    success: bool
    artifact_url: str | None = None
    error_message: str | None = None
    stage: PipelineStage = PipelineStage.RECEIVED
    provider: str | None = None
    local_pdf: Path | None = None
