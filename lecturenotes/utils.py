"""
lecturenotes.utils - Shared utility functions.
"""

from __future__ import annotations

import math
from pathlib import Path


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS or MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (HH:MM:SS if >= 1 hour, otherwise MM:SS)
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(path: Path) -> str:
    """Format file size in human-readable format."""
    if not path.exists():
        return "-"
    size = path.stat().st_size
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def expected_frame_count(duration_seconds: float, interval_seconds: float) -> int:
    """Number of frames sampled from a video at a fixed interval."""
    if duration_seconds <= 0:
        return 0
    return math.ceil(duration_seconds / interval_seconds)
