"""Tests for lecturenotes.render modules."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from reportlab.platypus import HRFlowable, Paragraph

from lecturenotes.exceptions import RenderError
from lecturenotes.render import pdf
from lecturenotes.render.markdown import (
    PREAMBLE,
    LineKind,
    classify_line,
    match_bucket,
    normalize_markdown,
    parse_lines,
    split_sections,
    strip_emphasis,
    to_markup,
)
from lecturenotes.render.pdf import PDFRenderer


class TestClassifyLine:
    def test_hash_headings(self) -> None:
        assert classify_line("# Summary") == (LineKind.HEADING, "Summary", "")
        assert classify_line("### Light **Reactions** ###").text == "Light Reactions"

    def test_bold_line_is_heading(self) -> None:
        assert classify_line("**Key Topics:**").kind is LineKind.HEADING
        assert classify_line("**Key Topics:**").text == "Key Topics"
        assert classify_line("__Overview__").text == "Overview"

    def test_bold_phrase_in_sentence_is_body(self) -> None:
        line = classify_line("**Entropy** and **enthalpy** are related")
        assert line.kind is LineKind.BODY

    def test_bullets(self) -> None:
        for raw in ["- item", "* item", "• item", "   - item"]:
            line = classify_line(raw)
            assert line.kind is LineKind.BULLET
            assert line.text == "item"

    def test_numbered(self) -> None:
        line = classify_line("12. What is entropy?")
        assert line.kind is LineKind.NUMBERED
        assert line.number == "12"
        assert line.text == "What is entropy?"
        assert classify_line("3) Third").number == "3"

    def test_rule_and_blank(self) -> None:
        assert classify_line("---").kind is LineKind.RULE
        assert classify_line("   ").kind is LineKind.BLANK

    def test_heading_beats_bullet(self) -> None:
        assert classify_line("# - odd heading").kind is LineKind.HEADING

    def test_body(self) -> None:
        assert classify_line("  Plain sentence.  ") == (LineKind.BODY, "Plain sentence.", "")


class TestNormalize:
    def test_strips_fences_and_tags(self) -> None:
        text = "```markdown\n# Summary<br>\n<b>Bold</b> &amp; more\n```"
        assert normalize_markdown(text) == ["# Summary", "Bold & more"]

    def test_parse_lines_drops_blanks(self, sample_notes: str) -> None:
        lines = parse_lines(sample_notes)
        assert all(line.kind is not LineKind.BLANK for line in lines)
        assert lines[0] == (LineKind.HEADING, "Summary", "")


class TestInlineMarkup:
    def test_strip_emphasis(self) -> None:
        assert strip_emphasis("**Bold** and *italic*") == "Bold and italic"

    def test_to_markup(self) -> None:
        assert to_markup("**F** = *ma*") == "<b>F</b> = <i>ma</i>"
        assert to_markup("use `x < y`") == 'use <font name="Courier">x &lt; y</font>'

    def test_escapes_markup_characters(self) -> None:
        assert to_markup("a < b & c") == "a &lt; b &amp; c"

    def test_snake_case_not_italic(self) -> None:
        assert to_markup("call some_long_name now") == "call some_long_name now"

    def test_bold_italic(self) -> None:
        assert to_markup("This is ***very important*** for the exam") == (
            "This is <b><i>very important</i></b> for the exam"
        )
        assert to_markup("___key___") == "<b><i>key</i></b>"
        assert strip_emphasis("***very important***") == "very important"

    def test_overlapping_emphasis_stays_well_nested(self) -> None:
        assert to_markup("**bold *and** italic*") == "<b>bold *and</b> italic*"


class TestSections:
    def test_match_bucket(self) -> None:
        assert match_bucket("Summary") == "summary"
        assert match_bucket("Lecture Overview") == "summary"
        assert match_bucket("Detailed Notes") == "notes"
        assert match_bucket("Revision Notes") == "revision"
        assert match_bucket("Important Questions") == "questions"
        assert match_bucket("MCQs") == "questions"
        assert match_bucket("Keywords") == "key_topics"
        assert match_bucket("References Mentioned") == "references"
        assert match_bucket("Subtopics of Thermodynamics") is None

    def test_split_sample(self, sample_notes: str) -> None:
        sections = split_sections(parse_lines(sample_notes))
        assert [s.name for s in sections] == [
            "summary",
            "notes",
            "key_topics",
            "references",
            "questions",
            "revision",
        ]
        notes = sections[1]
        assert notes.title == "Detailed Notes"
        assert notes.lines[0] == (LineKind.HEADING, "Light Reactions", "")
        assert [line.kind for line in sections[4].lines] == [LineKind.NUMBERED, LineKind.NUMBERED]

    def test_preamble_kept_when_present(self) -> None:
        sections = split_sections(parse_lines("Intro line\n# Summary\nS"))
        assert sections[0].name == PREAMBLE
        assert sections[0].title == ""
        assert sections[0].lines[0].text == "Intro line"

    def test_no_empty_preamble(self) -> None:
        sections = split_sections(parse_lines("# Summary\nS"))
        assert [s.name for s in sections] == ["summary"]

    def test_revisited_bucket_accumulates(self) -> None:
        text = "# Summary\nfirst\n# Key Topics\n- k\n# More Summary\nsecond"
        sections = split_sections(parse_lines(text))
        summary = sections[0]
        assert [line.text for line in summary.lines] == ["first", "second"]
        assert len(sections) == 2

    def test_same_bucket_heading_kept_as_line(self) -> None:
        sections = split_sections(parse_lines("# Summary\n## Summary of part one\ntext"))
        assert sections[0].lines[0] == (LineKind.HEADING, "Summary of part one", "")


def pdf_page_count(path: Path) -> int:
    return len(re.findall(rb"/Type\s*/Page\b(?!s)", path.read_bytes()))


class TestPDFRenderer:
    def test_story_starts_with_title(self, sample_notes: str) -> None:
        story = PDFRenderer(title="Physics 101").build_story(sample_notes)
        assert isinstance(story[0], Paragraph)
        assert "Physics 101" in story[0].getPlainText()

    def test_heading_has_divider(self) -> None:
        renderer = PDFRenderer(section_aware=False)
        story = renderer.build_story("## Subtopic\nBody")
        assert isinstance(story[1], Paragraph)
        assert isinstance(story[2], HRFlowable)
        assert len(story) == 4

    def test_bullets_and_numbers(self) -> None:
        renderer = PDFRenderer(section_aware=False)
        story = renderer.build_story("- point\n2. second")
        assert story[1].bulletText == "•"
        assert story[2].bulletText == "2."

    def test_render_writes_pdf(self, tmp_path: Path, sample_notes: str) -> None:
        out = tmp_path / "out" / "notes.pdf"
        result = PDFRenderer().render(sample_notes, out)
        assert result == out
        data = out.read_bytes()
        assert data.startswith(b"%PDF")
        assert len(data) > 0
        assert list(out.parent.iterdir()) == [out]

    def test_render_is_deterministic(self, tmp_path: Path, sample_notes: str) -> None:
        renderer = PDFRenderer()
        first = renderer.render(sample_notes, tmp_path / "a.pdf").read_bytes()
        second = renderer.render(sample_notes, tmp_path / "b.pdf").read_bytes()
        assert first == second

    def test_plain_layout(self, tmp_path: Path, sample_notes: str) -> None:
        out = PDFRenderer(section_aware=False, page_size="letter").render(sample_notes, tmp_path / "n.pdf")
        assert out.stat().st_size > 0

    def test_long_notes_paginate(self, tmp_path: Path) -> None:
        notes = "# Detailed Notes\n" + "\n".join(f"- Point number {i} about the topic" for i in range(300))
        out = PDFRenderer().render(notes, tmp_path / "long.pdf")
        assert pdf_page_count(out) > 1

    def test_hostile_text_renders(self, tmp_path: Path) -> None:
        notes = "# Summary\nUse <script> & 5 > 3 **unclosed\n- `code <b>`"
        out = PDFRenderer().render(notes, tmp_path / "n.pdf")
        assert out.stat().st_size > 0

    def test_llm_emphasis_renders(self, tmp_path: Path) -> None:
        notes = "# Summary\nThis is ***very important*** for the exam\n- **bold *and** italic*\n"
        out = PDFRenderer().render(notes, tmp_path / "n.pdf")
        assert out.read_bytes().startswith(b"%PDF")

    def test_unparseable_markup_falls_back_to_plain_text(self, monkeypatch) -> None:
        monkeypatch.setattr(pdf, "to_markup", lambda text: "<b><i>x</b></i>")
        story = PDFRenderer(section_aware=False).build_story("Plain **words** here")
        assert story[1].getPlainText() == "Plain words here"

    def test_failure_raises_and_cleans_up(self, tmp_path: Path, monkeypatch) -> None:
        renderer = PDFRenderer()

        def broken(notes: str):
            raise ValueError("layout exploded")

        monkeypatch.setattr(renderer, "build_story", broken)
        with pytest.raises(RenderError, match="layout exploded"):
            renderer.render("# Summary\nx", tmp_path / "n.pdf")
        assert list(tmp_path.iterdir()) == []
