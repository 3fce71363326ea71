from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping

from pydantic import ValidationError

from resume_tailor.core.scoring_config import get_scoring_value
from resume_tailor.features.formatting import detect_formatting_issues
from resume_tailor.features.term_matching import keyword_present
from resume_tailor.schemas.tailoring import (
    CATEGORIES,
    CategoryScore,
    FormattingIssue,
    KeywordBuckets,
    ScoreBreakdown,
    TailoredContent,
)
from resume_tailor.services.errors import MalformedContent
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreWeights:
    """Points available per category; always totals 100."""

    core_tech: int = 35
    responsibilities: int = 25
    tools: int = 15
    adjacent_data_stores: int = 10
    compliance: int = 10
    logistics: int = 5

    def __post_init__(self) -> None:
        values = self.as_dict()
        negative = [name for name, value in values.items() if value < 0]
        if negative:
            raise ValueError(f"category weights cannot be negative: {', '.join(negative)}")
        total = sum(values.values())
        if total != 100:
            raise ValueError(f"category weights must sum to 100, got {total}")

    def as_dict(self) -> dict[str, int]:
        return {item.name: int(getattr(self, item.name)) for item in fields(self)}

    @classmethod
    def from_config(cls) -> "ScoreWeights":
        configured = get_scoring_value("scoring.category_weights", {}) or {}
        defaults = cls.__dataclass_fields__
        return cls(**{name: int(configured.get(name, defaults[name].default)) for name in CATEGORIES})


@dataclass(frozen=True)
class ScoreResult:
    breakdown: ScoreBreakdown
    formatting_issues: list[FormattingIssue]


def effective_weights(weights: ScoreWeights, buckets: KeywordBuckets) -> dict[str, int]:
    """Move the points of empty categories onto the non-empty ones.

    Shares are proportional to the base weights and rounded by largest
    remainder, so the result still totals 100. With no keywords at all the
    base weights are returned unchanged.
    """
    base = weights.as_dict()
    active = [category for category in CATEGORIES if buckets.get(category)]
    if not active:
        return dict(base)

    freed = sum(base[category] for category in CATEGORIES if category not in active)
    active_base = sum(base[category] for category in active)
    exact: dict[str, float] = {}
    for category in active:
        share = (base[category] / active_base) if active_base else 1.0 / len(active)
        exact[category] = base[category] + freed * share

    result = {category: 0 for category in CATEGORIES}
    for category in active:
        result[category] = int(exact[category])
    leftover = 100 - sum(result.values())
    by_remainder = sorted(active, key=lambda name: (-(exact[name] - int(exact[name])), CATEGORIES.index(name)))
    for category in by_remainder[:leftover]:
        result[category] += 1
    return result


def _coerce_content(content: Any) -> TailoredContent:
    if isinstance(content, TailoredContent):
        return content
    if isinstance(content, Mapping):
        try:
            return TailoredContent.model_validate(dict(content))
        except ValidationError as exc:
            raise MalformedContent(f"Tailored content failed validation: {exc.error_count()} error(s).") from exc
    raise MalformedContent(f"Tailored content must be a mapping, got {type(content).__name__}.")


def render_plaintext(content: TailoredContent) -> str:
    """Single-column plain-text rendering used for layout checks."""
    lines: list[str] = []
    contact = content.contact
    heading = ", ".join(value for value in (contact.name, contact.title) if value)
    if heading:
        lines.append(heading)
    if content.summary:
        lines.extend(["PROFESSIONAL SUMMARY", content.summary])
    if content.experience:
        lines.append("PROFESSIONAL EXPERIENCE")
        for entry in content.experience:
            header = ", ".join(value for value in (entry.title, entry.company, entry.duration) if value)
            if header:
                lines.append(header)
            lines.extend(f"• {achievement}" for achievement in entry.achievements)
    if content.skills:
        lines.extend(["SKILLS", ", ".join(content.skills)])
    for heading, items in (
        ("CERTIFICATIONS", content.certifications),
        ("EDUCATION", content.education),
        ("PROFESSIONAL DEVELOPMENT", content.professional_development),
    ):
        if items:
            lines.append(heading)
            lines.extend(f"• {item}" for item in items)
    return "\n".join(lines)


class ATSScorer:
    def __init__(self, weights: ScoreWeights | None = None, *, taxonomy: TaxonomyProvider | None = None) -> None:
        self.weights = weights or ScoreWeights.from_config()
        self._taxonomy = taxonomy or get_default_taxonomy_provider()

    def _matched(self, text: str, keywords: list[str]) -> list[str]:
        matched: list[str] = []
        for keyword in keywords:
            entry = self._taxonomy.lookup(keyword)
            if keyword_present(text, keyword, entry.aliases if entry else ()):
                matched.append(keyword)
        return matched

    def breakdown_for_text(self, text: str, buckets: KeywordBuckets) -> ScoreBreakdown:
        """Keyword points for plain text, e.g. the résumé as submitted."""
        possible_by_category = effective_weights(self.weights, buckets)
        categories: dict[str, CategoryScore] = {}
        for category in CATEGORIES:
            keywords = buckets.get(category)
            possible = possible_by_category[category]
            if not keywords:
                categories[category] = CategoryScore(earned=0, possible=possible, evidence=[], skipped=True)
                continue
            matched = self._matched(text, keywords)
            total = len(keywords)
            # round half up
            earned = (2 * possible * len(matched) + total) // (2 * total)
            categories[category] = CategoryScore(
                earned=min(possible, max(0, earned)),
                possible=possible,
                evidence=matched,
            )

        overall = sum(item.earned for item in categories.values())
        return ScoreBreakdown(categories=categories, overall=overall)

    def score(self, content: TailoredContent | Mapping[str, Any], buckets: KeywordBuckets) -> ScoreResult:
        content = _coerce_content(content)
        text = content.resume_text()
        if not text.strip():
            raise MalformedContent("Tailored content has no text to score.")

        breakdown = self.breakdown_for_text(text, buckets)
        issues = detect_formatting_issues(
            render_plaintext(content),
            bullets=[achievement for entry in content.experience for achievement in entry.achievements],
        )
        logger.info("ats_scored overall=%s formatting_issues=%s", breakdown.overall, len(issues))
        return ScoreResult(breakdown=breakdown, formatting_issues=issues)
