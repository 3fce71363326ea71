from __future__ import annotations

import re
import unicodedata

from resume_tailor.core.scoring_config import get_scoring_value
from resume_tailor.schemas.tailoring import FormattingIssue

_STANDARD_SECTION_KEYWORDS = {
    "summary", "experience", "skills", "education", "projects", "certifications",
    "professional profile", "profile", "objective", "work history", "employment",
    "competencies", "technical skills", "achievements", "awards", "publications",
    "languages", "volunteer", "training", "qualifications", "professional summary",
    "core competencies", "professional development", "contact",
}
_ALLOWED_SYMBOLS = {"•", "–", "—", "·"}


def _lines(text: str) -> list[str]:
    return [line.rstrip() for line in (text or "").splitlines() if line.strip()]


def _is_table_like_pipe_line(line: str) -> bool:
    stripped = line.strip()
    if stripped.count("|") < 2:
        return False
    if "@" in stripped or "linkedin" in stripped.lower():
        return False
    segments = [segment.strip() for segment in stripped.split("|") if segment.strip()]
    return len(segments) >= 3


def _table_issue(lines: list[str]) -> FormattingIssue | None:
    markdown_rules = [line for line in lines if re.match(r"^\s*\|?\s*:?-{2,}\s*\|", line)]
    pipe_lines = [line for line in lines if _is_table_like_pipe_line(line)]
    if not markdown_rules and len(pipe_lines) < 2:
        return None
    return FormattingIssue(
        id="tables",
        severity="high",
        message="Table-like rows detected; many ATS parsers flatten or drop table cells.",
        evidence=(markdown_rules + pipe_lines)[:3],
    )


def _multi_column_issue(lines: list[str]) -> FormattingIssue | None:
    min_spaces = int(get_scoring_value("formatting.wide_gap_min_spaces", 5))
    gap_re = re.compile(r"\S(?:\t+|\s{%d,})\S" % max(2, min_spaces))
    flagged = [line.strip() for line in lines if gap_re.search(line.strip())]
    if not flagged:
        return None
    return FormattingIssue(
        id="multi_column",
        severity="high",
        message="Tab stops or wide gaps inside lines suggest a multi-column layout; use a single column.",
        evidence=flagged[:3],
    )


def _looks_like_header(line: str) -> bool:
    stripped = line.strip()
    words = stripped.rstrip(":").split()
    if not words or len(words) > 5 or stripped.endswith("."):
        return False
    if re.search(r"[0-9@|,]", stripped):
        return False
    if stripped.endswith(":"):
        return True
    # all-caps headers; single acronyms (HIPAA, MCSA) are skills, not headers
    return len(words) >= 2 and bool(re.fullmatch(r"[A-Z\s/&\-:']{3,}", stripped))


def _non_standard_header_issue(lines: list[str]) -> FormattingIssue | None:
    flagged: list[str] = []
    for line in lines:
        if not _looks_like_header(line):
            continue
        lowered = line.strip().rstrip(":").lower()
        if any(keyword in lowered for keyword in _STANDARD_SECTION_KEYWORDS):
            continue
        flagged.append(line.strip())
    if not flagged:
        return None
    return FormattingIssue(
        id="non_standard_header",
        severity="medium",
        message="Section headers not recognized by common ATS parsers; prefer Summary, Experience, Skills, Education.",
        evidence=flagged[:3],
    )


def _is_graphic_char(char: str) -> bool:
    if char in _ALLOWED_SYMBOLS:
        return False
    code = ord(char)
    if 0x1F300 <= code <= 0x1FAFF or 0x2600 <= code <= 0x27BF:
        return True
    return unicodedata.category(char) == "So"


def _icons_issue(lines: list[str]) -> FormattingIssue | None:
    flagged = [line.strip() for line in lines if any(_is_graphic_char(char) for char in line)]
    if not flagged:
        return None
    return FormattingIssue(
        id="icons_graphics",
        severity="medium",
        message="Icons or decorative symbols detected; ATS parsers may drop them or garble adjacent text.",
        evidence=flagged[:3],
    )


def _long_bullets_issue(bullets: list[str]) -> FormattingIssue | None:
    max_words = int(get_scoring_value("formatting.max_bullet_words", 45))
    flagged = [bullet for bullet in bullets if len(bullet.split()) > max_words]
    if not flagged:
        return None
    return FormattingIssue(
        id="long_bullets",
        severity="low",
        message=f"Bullets longer than {max_words} words are hard to scan; split or tighten them.",
        evidence=[bullet[:120] for bullet in flagged[:3]],
    )


def detect_formatting_issues(text: str, *, bullets: list[str] | None = None) -> list[FormattingIssue]:
    lines = _lines(text)
    checks = (
        _table_issue(lines),
        _multi_column_issue(lines),
        _non_standard_header_issue(lines),
        _icons_issue(lines),
        _long_bullets_issue(bullets or []),
    )
    return [issue for issue in checks if issue is not None]
