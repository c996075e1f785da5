"""
lecturenotes - AI-generated study notes from recorded lectures.

Turns a lecture video into a formatted PDF through a six-stage pipeline:
media extraction → slide OCR → speech transcription → LLM notes
generation (with provider fallback) → PDF rendering → upload.
"""

__version__ = "0.1.0"
