"""
lecturenotes.render.markdown - Line classification for LLM markdown.

Notes come back as loosely formatted markdown. Lines are cleaned of
residual HTML and code fences, then classified one at a time:

    heading  > bullet > numbered > body

Section-aware rendering additionally groups lines into named buckets by
keyword-matching heading text.
"""

from __future__ import annotations

import html
import re
from enum import Enum
from typing import NamedTuple


class LineKind(str, Enum):
    HEADING = "heading"
    BULLET = "bullet"
    NUMBERED = "numbered"
    RULE = "rule"
    BODY = "body"
    BLANK = "blank"


class Line(NamedTuple):
    kind: LineKind
    text: str
    number: str = ""


_TAG_RE = re.compile(r"<[^>]+>")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_RULE_RE = re.compile(r"^\s*(-{3,}|\*{3,}|_{3,})\s*$")
_HASH_HEADING_RE = re.compile(r"^\s*#{1,6}\s*(.+?)\s*#*\s*$")
_BOLD_HEADING_RE = re.compile(r"^\s*(?:\*\*([^*]+)\*\*|__([^_]+)__)\s*:?\s*$")
_BULLET_RE = re.compile(r"^\s*[-*•]\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\s*(\d+)[.)]\s+(.*)$")


def normalize_markdown(text: str) -> list[str]:
    """Strip residual markup and split notes into lines."""
    lines = []
    for raw in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if _FENCE_RE.match(raw):
            continue
        line = html.unescape(_TAG_RE.sub("", raw)).rstrip()
        lines.append(line)
    return lines


def classify_line(line: str) -> Line:
    """Classify one line by pattern, in precedence order."""
    if not line.strip():
        return Line(LineKind.BLANK, "")
    if _RULE_RE.match(line):
        return Line(LineKind.RULE, "")

    match = _HASH_HEADING_RE.match(line)
    if match:
        return Line(LineKind.HEADING, strip_emphasis(match.group(1)))
    match = _BOLD_HEADING_RE.match(line)
    if match:
        return Line(LineKind.HEADING, (match.group(1) or match.group(2)).strip().rstrip(":").strip())

    match = _BULLET_RE.match(line)
    if match:
        return Line(LineKind.BULLET, match.group(1).strip())

    match = _NUMBERED_RE.match(line)
    if match:
        return Line(LineKind.NUMBERED, match.group(2).strip(), match.group(1))

    return Line(LineKind.BODY, line.strip())


def parse_lines(text: str) -> list[Line]:
    """Classify every non-blank line of a notes document."""
    lines = (classify_line(line) for line in normalize_markdown(text))
    return [line for line in lines if line.kind is not LineKind.BLANK]


def strip_emphasis(text: str) -> str:
    """Remove markdown emphasis markers, keeping the words."""
    text = re.sub(r"(\*\*\*|___)(.+?)\1", r"\2", text)
    text = re.sub(r"(\*\*|__)(.+?)\1", r"\2", text)
    text = re.sub(r"(?<![\w*])[*_](?!\s)(.+?)(?<!\s)[*_](?![\w*])", r"\1", text)
    return text.strip()


def escape_markup(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def to_markup(text: str) -> str:
    """Convert inline markdown into reportlab paragraph markup.

    Text is XML-escaped first so stray angle brackets and ampersands in
    notes cannot break the paragraph parser. Bold-italic runs are handled
    before bold and italic, and no emphasis span may cross a tag, so
    overlapping markers leave literal asterisks instead of mis-nested tags.
    """
    text = escape_markup(text)
    text = re.sub(r"`([^`]+)`", r'<font name="Courier">\1</font>', text)
    text = re.sub(r"(\*\*\*|___)(?!\s)([^<>]+?)(?<!\s)\1", r"<b><i>\2</i></b>", text)
    text = re.sub(r"(\*\*|__)([^<>]+?)\1", r"<b>\2</b>", text)
    text = re.sub(r"(?<![\w*])[*_](?!\s)([^<>]+?)(?<!\s)[*_](?![\w*])", r"<i>\1</i>", text)
    return text


# Bucket name, display title and heading keywords. Checked in this order;
# "revision" comes before "notes" so "Revision Notes" lands in revision.
SECTION_BUCKETS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("revision", "Quick Revision", ("revision", "recap")),
    ("questions", "Important Questions", ("question", "mcq", "quiz")),
    ("references", "References", ("reference", "mention", "resources", "further reading")),
    ("key_topics", "Key Topics", ("keyword", "key topic", "key term", "key concept", "main topics")),
    ("summary", "Summary", ("summary", "overview")),
    ("notes", "Detailed Notes", ("notes",)),
)

PREAMBLE = "preamble"


class Section(NamedTuple):
    name: str
    title: str
    lines: list[Line]


def match_bucket(heading: str) -> str | None:
    """Return the bucket a heading belongs to, or None."""
    lowered = heading.lower()
    for name, _, keywords in SECTION_BUCKETS:
        if any(keyword in lowered for keyword in keywords):
            return name
    return None


def split_sections(lines: list[Line]) -> list[Section]:
    """Group classified lines into section buckets in one forward pass.

    A heading that matches a different bucket switches the current bucket
    and is consumed as that bucket's title. Any other line, including a
    heading that matches nothing or the current bucket, is appended to the
    current bucket. Buckets revisited later keep accumulating. Lines before
    the first matching heading go to a preamble bucket.
    """
    titles = {name: title for name, title, _ in SECTION_BUCKETS}
    sections: dict[str, Section] = {}
    current = PREAMBLE

    for line in lines:
        if line.kind is LineKind.HEADING:
            bucket = match_bucket(line.text)
            if bucket is not None and bucket != current:
                current = bucket
                if current not in sections:
                    sections[current] = Section(current, titles[current], [])
                continue
        if current not in sections:
            sections[current] = Section(current, "", [])
        sections[current].lines.append(line)

    return [section for section in sections.values() if section.lines or section.name != PREAMBLE]
