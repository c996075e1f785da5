"""
lecturenotes.render.pdf - ReportLab PDF renderer for study notes.

Lays out classified markdown lines with a fixed palette: colored bold
headings with a thin divider, indented bullets and numbered items, and
justified body text. Every page carries the header title and a footer
caption. The section-aware layout groups lines into named blocks, each
with its own accent color.

Output is written to a temporary file beside the destination, flushed and
fsync'd, then renamed into place, so callers never see a partial PDF.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT
from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

from lecturenotes.exceptions import RenderError
from lecturenotes.logging import get_logger
from lecturenotes.render.markdown import (
    PREAMBLE,
    Line,
    LineKind,
    escape_markup,
    parse_lines,
    split_sections,
    strip_emphasis,
    to_markup,
)

log = get_logger("render")

PAGE_SIZES = {"A4": A4, "letter": letter}

PALETTE: dict[str, Any] = {
    "title": colors.HexColor("#1F3A5F"),
    "heading": colors.HexColor("#1F4E79"),
    "body": colors.HexColor("#222222"),
    "footer": colors.HexColor("#7F7F7F"),
    "rule": colors.HexColor("#BFBFBF"),
}

SECTION_ACCENTS: dict[str, Any] = {
    "summary": colors.HexColor("#2E75B6"),
    "notes": colors.HexColor("#548235"),
    "key_topics": colors.HexColor("#BF8F00"),
    "references": colors.HexColor("#7030A0"),
    "questions": colors.HexColor("#C55A11"),
    "revision": colors.HexColor("#C00000"),
    PREAMBLE: colors.HexColor("#1F4E79"),
}


def build_styles(palette: dict[str, Any]) -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "NotesTitle",
            parent=base["Title"],
            fontName="Helvetica-Bold",
            fontSize=20,
            leading=24,
            textColor=palette["title"],
            alignment=TA_CENTER,
            spaceAfter=14,
        ),
        "section": ParagraphStyle(
            "NotesSection",
            parent=base["Heading1"],
            fontName="Helvetica-Bold",
            fontSize=16,
            leading=20,
            spaceBefore=14,
            spaceAfter=4,
        ),
        "heading": ParagraphStyle(
            "NotesHeading",
            parent=base["Heading2"],
            fontName="Helvetica-Bold",
            fontSize=14,
            leading=18,
            textColor=palette["heading"],
            spaceBefore=10,
            spaceAfter=2,
        ),
        "body": ParagraphStyle(
            "NotesBody",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=11,
            leading=15,
            textColor=palette["body"],
            alignment=TA_JUSTIFY,
            spaceAfter=6,
        ),
        "bullet": ParagraphStyle(
            "NotesBullet",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=11,
            leading=15,
            textColor=palette["body"],
            alignment=TA_LEFT,
            leftIndent=20,
            bulletIndent=8,
            spaceAfter=4,
        ),
        "numbered": ParagraphStyle(
            "NotesNumbered",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=11,
            leading=15,
            textColor=palette["body"],
            alignment=TA_LEFT,
            leftIndent=22,
            bulletIndent=6,
            spaceAfter=4,
        ),
    }


class PDFRenderer:
    """Render markdown notes into a paginated PDF."""

    def __init__(
        self,
        title: str = "Smart Classroom Lecture Notes",
        footer: str = "Generated by Smart Classroom AI",
        section_aware: bool = True,
        page_size: str = "A4",
        palette: dict[str, Any] | None = None,
    ) -> None:
        self.title = title
        self.footer = footer
        self.section_aware = section_aware
        self.page_size = PAGE_SIZES[page_size]
        self.palette = {**PALETTE, **(palette or {})}
        self.styles = build_styles(self.palette)

    @classmethod
    def from_config(cls, config: Any) -> PDFRenderer:
        settings = config.render
        return cls(
            title=settings.title,
            footer=settings.footer,
            section_aware=settings.section_aware,
            page_size=settings.page_size,
        )

    def paragraph(self, text: str, style: Any, **kwargs: Any) -> Paragraph:
        """Paragraph for a line of notes, degrading to plain text on bad markup."""
        try:
            return Paragraph(to_markup(text), style, **kwargs)
        except ValueError as e:
            log.warning("Rendering line as plain text: %s", e)
            return Paragraph(escape_markup(strip_emphasis(text)), style, **kwargs)

    def line_flowables(self, line: Line, accent: Any = None) -> list[Any]:
        """Flowables for one classified line."""
        if line.kind is LineKind.HEADING:
            style = self.styles["heading"]
            if accent is not None:
                style = ParagraphStyle("NotesHeadingAccent", parent=style, textColor=accent)
            return [
                self.paragraph(line.text, style),
                HRFlowable(
                    width="100%",
                    thickness=0.5,
                    color=self.palette["rule"],
                    spaceBefore=1,
                    spaceAfter=6,
                ),
            ]
        if line.kind is LineKind.BULLET:
            return [self.paragraph(line.text, self.styles["bullet"], bulletText="•")]
        if line.kind is LineKind.NUMBERED:
            return [
                self.paragraph(line.text, self.styles["numbered"], bulletText=f"{line.number}.")
            ]
        if line.kind is LineKind.RULE:
            return [
                HRFlowable(
                    width="100%",
                    thickness=0.5,
                    color=self.palette["rule"],
                    spaceBefore=4,
                    spaceAfter=4,
                )
            ]
        return [self.paragraph(line.text, self.styles["body"])]

    def build_story(self, notes: str) -> list[Any]:
        story: list[Any] = [self.paragraph(self.title, self.styles["title"])]
        lines = parse_lines(notes)

        if not self.section_aware:
            for line in lines:
                story.extend(self.line_flowables(line))
            return story

        for section in split_sections(lines):
            accent = SECTION_ACCENTS.get(section.name, self.palette["heading"])
            if section.title:
                style = ParagraphStyle("NotesSectionAccent", parent=self.styles["section"], textColor=accent)
                story.append(self.paragraph(section.title, style))
                story.append(
                    HRFlowable(width="100%", thickness=1.5, color=accent, spaceBefore=1, spaceAfter=8)
                )
            for line in section.lines:
                story.extend(self.line_flowables(line, accent=accent))
            story.append(Spacer(1, 8))
        return story

    def _decorate_page(self, canvas: Any, doc: Any) -> None:
        width, height = self.page_size
        canvas.saveState()
        canvas.setFont("Helvetica-Bold", 10)
        canvas.setFillColor(self.palette["title"])
        canvas.drawCentredString(width / 2, height - 0.5 * inch, self.title)
        canvas.setStrokeColor(self.palette["rule"])
        canvas.setLineWidth(0.5)
        canvas.line(doc.leftMargin, height - 0.58 * inch, width - doc.rightMargin, height - 0.58 * inch)

        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(self.palette["footer"])
        canvas.drawString(doc.leftMargin, 0.45 * inch, self.footer)
        canvas.drawRightString(width - doc.rightMargin, 0.45 * inch, f"Page {doc.page}")
        canvas.restoreState()

    def render(self, notes: str, output_path: Path) -> Path:
        """Render notes to a PDF file.

        Args:
            notes: Markdown notes
            output_path: Destination PDF path

        Returns:
            Path to the finished PDF

        Raises:
            RenderError: If the document cannot be built or written
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=output_path.parent,
            delete=False,
            suffix=".pdf.tmp",
        )
        tmp_path = Path(tmp.name)
        try:
            with tmp:
                doc = SimpleDocTemplate(
                    tmp,
                    pagesize=self.page_size,
                    leftMargin=0.8 * inch,
                    rightMargin=0.8 * inch,
                    topMargin=0.9 * inch,
                    bottomMargin=0.8 * inch,
                    title=self.title,
                    author=self.footer,
                    invariant=1,
                )
                doc.build(
                    self.build_story(notes),
                    onFirstPage=self._decorate_page,
                    onLaterPages=self._decorate_page,
                )
                tmp.flush()
                os.fsync(tmp.fileno())
            tmp_path.replace(output_path)
        except Exception as e:
            tmp_path.unlink(missing_ok=True)
            raise RenderError(f"PDF rendering failed: {e}") from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise RenderError(f"PDF was not written: {output_path}")

        log.info("Rendered notes PDF %s (%d bytes)", output_path, output_path.stat().st_size)
        return output_path
