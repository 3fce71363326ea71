from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable

from resume_tailor.taxonomy.provider import TaxonomyProvider, TermEntry

_WORD_CHAR = r"A-Za-z0-9"


@lru_cache(maxsize=2048)
def term_pattern(term: str, digit_suffix: bool = False) -> re.Pattern[str]:
    """Case-insensitive whole-term pattern; inner whitespace may vary.

    With ``digit_suffix`` a trailing digit does not end the term, so
    "Python3" still matches "Python".
    """
    parts = [re.escape(part) for part in term.strip().split()]
    body = r"\s+".join(parts)
    trailing = "A-Za-z" if digit_suffix else _WORD_CHAR
    return re.compile(rf"(?<![{_WORD_CHAR}]){body}(?![{trailing}])", re.IGNORECASE)


def find_spans(text: str, term: str, *, digit_suffix: bool = False) -> list[tuple[int, int]]:
    if not text or not term.strip():
        return []
    return [match.span() for match in term_pattern(term, digit_suffix).finditer(text)]


def contains_term(text: str, term: str) -> bool:
    if not text or not term.strip():
        return False
    return term_pattern(term).search(text) is not None


def keyword_present(text: str, keyword: str, aliases: Iterable[str] = ()) -> bool:
    if contains_term(text, keyword):
        return True
    return any(contains_term(text, alias) for alias in aliases)


@dataclass
class TermHit:
    term: str
    category: str
    count: int = 0
    first_position: int = -1
    forms: set[str] = field(default_factory=set)
    spans: list[tuple[int, int]] = field(default_factory=list)


def find_catalog_terms(text: str, taxonomy: TaxonomyProvider) -> dict[str, TermHit]:
    """Locate catalog terms and aliases, collapsing aliases onto canonical terms.

    Longer surface forms claim their span first, so "SQL Server Integration
    Services" counts for SSIS and not also for SQL Server.
    """
    if not text:
        return {}

    candidates: list[tuple[int, int, str, TermEntry]] = []
    for entry in taxonomy.entries():
        for form in entry.surface_forms():
            for start, end in find_spans(text, form):
                candidates.append((start, end, form, entry))

    candidates.sort(key=lambda item: (-(item[1] - item[0]), item[0], item[3].term))
    claimed: list[tuple[int, int]] = []
    hits: dict[str, TermHit] = {}
    for start, end, form, entry in candidates:
        if any(start < taken_end and end > taken_start for taken_start, taken_end in claimed):
            continue
        claimed.append((start, end))
        hit = hits.setdefault(entry.term, TermHit(term=entry.term, category=entry.category))
        hit.count += 1
        hit.forms.add(form)
        hit.spans.append((start, end))
        if hit.first_position < 0 or start < hit.first_position:
            hit.first_position = start
    return hits
