"""
lecturenotes.transcribe - Speech transcription.

Pipeline Stage 3: Submit the audio to AWS Transcribe, poll the job to
completion and fetch the transcript, optionally across several languages
with Latin-script transliteration.
"""

from __future__ import annotations

from lecturenotes.transcribe.engine import JobStatus, SpeechTranscriber

__all__ = ["JobStatus", "SpeechTranscriber"]
