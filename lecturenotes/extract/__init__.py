"""
lecturenotes.extract - Audio and frame extraction from video files.

Pipeline Stage 1: Extract from the lecture video:
- 16kHz mono 16-bit PCM WAV for speech transcription
- Still frames every few seconds for slide OCR
"""

from __future__ import annotations

from lecturenotes.extract.media import extract_audio, extract_frames, probe_duration

__all__ = ["extract_audio", "extract_frames", "probe_duration"]
