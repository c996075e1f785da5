"""
lecturenotes.ocr - Slide and board text recognition.

Pipeline Stage 2: Run OCR over every sampled frame, strictly in order,
tolerating per-frame failures.
"""

from __future__ import annotations

from lecturenotes.ocr.engine import OCREngine, TesseractEngine, extract_visual_text

__all__ = ["OCREngine", "TesseractEngine", "extract_visual_text"]
