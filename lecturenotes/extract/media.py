"""
lecturenotes.extract.media - FFmpeg audio and frame extraction.

Both operations shell out to ffmpeg. Any failure raises
MediaExtractionError; there is no partial-media recovery.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

from lecturenotes.exceptions import DependencyError, MediaExtractionError
from lecturenotes.logging import get_logger
from lecturenotes.models import AudioTrack, FrameSequence

log = get_logger("extract")

FRAME_PATTERN = "frame-%04d.jpg"
FRAME_GLOB = "frame-*.jpg"


def check_ffmpeg() -> None:
    """Ensure ffmpeg and ffprobe are on PATH.

    Raises:
        DependencyError: If either executable is missing
    """
    for tool in ("ffmpeg", "ffprobe"):
        if not shutil.which(tool):
            raise DependencyError(
                tool,
                f"{tool} not found in PATH",
                "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)",
            )


def _run_ffmpeg(cmd: list[str], what: str) -> None:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise MediaExtractionError(f"ffmpeg not available for {what}: {e}") from e
    except OSError as e:
        raise MediaExtractionError(f"{what} failed: {e}") from e
    if proc.returncode != 0:
        raise MediaExtractionError(f"FFmpeg {what} failed: {proc.stderr.strip()}")


def extract_audio(source_path: Path, output_path: Path) -> AudioTrack:
    """Extract a 16kHz mono 16-bit PCM WAV track from a video.

    Args:
        source_path: Path to source video file
        output_path: Output path for the WAV file

    Returns:
        AudioTrack describing the written file

    Raises:
        MediaExtractionError: If the source is missing or FFmpeg fails
    """
    if not source_path.exists():
        raise MediaExtractionError(f"Source video not found: {source_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        "ffmpeg",
        "-y",
        "-i",
        str(source_path),
        "-vn",
        "-acodec",
        "pcm_s16le",
        "-ar",
        "16000",
        "-ac",
        "1",
        str(output_path),
    ]
    log.debug("Extracting audio: %s", " ".join(cmd))
    _run_ffmpeg(cmd, "audio extraction")

    if not output_path.exists():
        raise MediaExtractionError(f"FFmpeg produced no audio file at {output_path}")

    return AudioTrack(path=output_path)


def extract_frames(
    source_path: Path,
    output_dir: Path,
    interval_seconds: float = 5.0,
) -> FrameSequence:
    """Sample one still frame every ``interval_seconds`` of video.

    Frames are written as frame-0001.jpg, frame-0002.jpg, ... so that a
    sorted directory listing is in temporal order.

    Args:
        source_path: Path to source video file
        output_dir: Directory for the frame images (created if needed)
        interval_seconds: Gap between sampled frames

    Returns:
        FrameSequence with the frames in order

    Raises:
        MediaExtractionError: If the source is missing or FFmpeg fails
    """
    if interval_seconds <= 0:
        raise MediaExtractionError(f"Invalid frame interval: {interval_seconds}")
    if not source_path.exists():
        raise MediaExtractionError(f"Source video not found: {source_path}")

    output_dir.mkdir(parents=True, exist_ok=True)

    cmd = [
        "ffmpeg",
        "-y",
        "-i",
        str(source_path),
        "-vf",
        f"fps=1/{interval_seconds:g}",
        str(output_dir / FRAME_PATTERN),
    ]
    log.debug("Extracting frames: %s", " ".join(cmd))
    _run_ffmpeg(cmd, "frame extraction")

    return FrameSequence(
        directory=output_dir,
        frames=list_frames(output_dir),
        interval_seconds=interval_seconds,
    )


def list_frames(frames_dir: Path) -> list[Path]:
    """List extracted frames in temporal (lexical) order."""
    return sorted(frames_dir.glob(FRAME_GLOB))


def probe_duration(path: Path) -> float:
    """Return the duration of a media file in seconds using ffprobe.

    Raises:
        MediaExtractionError: If ffprobe fails or reports no duration
    """
    cmd = [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        str(path),
    ]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise MediaExtractionError(f"ffprobe not available: {e}") from e
    if proc.returncode != 0:
        raise MediaExtractionError(f"ffprobe failed for {path}: {proc.stderr.strip()}")

    try:
        data = json.loads(proc.stdout or "{}")
        return float(data.get("format", {})["duration"])
    except (KeyError, TypeError, ValueError) as e:
        raise MediaExtractionError(f"No duration reported for {path}") from e
