"""
lecturenotes.ocr.engine - Frame OCR with per-frame failure tolerance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from lecturenotes.exceptions import OCRError
from lecturenotes.logging import get_logger
from lecturenotes.models import FrameSequence

log = get_logger("ocr")


class OCREngine(Protocol):
    def recognize(self, image_path: Path) -> str: ...


class TesseractEngine:
    """OCR engine backed by pytesseract."""

    def __init__(self, language: str = "eng", config: str = "") -> None:
        self.language = language
        self.config = config

    def recognize(self, image_path: Path) -> str:
        import pytesseract
        from PIL import Image

        with Image.open(image_path) as image:
            return pytesseract.image_to_string(image, lang=self.language, config=self.config)


def extract_visual_text(frames: FrameSequence, engine: OCREngine) -> str:
    """Run OCR over each frame in order and join the recognized text.

    A frame that fails OCR is logged and skipped; blank results are dropped.

    Args:
        frames: Extracted frame sequence
        engine: OCR engine

    Returns:
        Newline-joined text of the successfully recognized frames

    Raises:
        OCRError: If the frame directory itself cannot be read
    """
    if not frames.directory.is_dir():
        raise OCRError(f"Frame directory not found: {frames.directory}")

    texts: list[str] = []
    failed = 0
    for frame in frames.frames:
        try:
            text = engine.recognize(frame)
        except Exception as e:
            failed += 1
            log.warning("OCR failed for %s: %s", frame.name, e)
            continue
        text = (text or "").strip()
        if text:
            texts.append(text)

    log.info(
        "OCR processed %d frames (%d with text, %d failed)",
        len(frames.frames),
        len(texts),
        failed,
    )
    return "\n".join(texts)
