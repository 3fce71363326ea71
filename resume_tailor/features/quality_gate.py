from __future__ import annotations

import re
from dataclasses import dataclass

from resume_tailor.core.scoring_config import get_scoring_value
from resume_tailor.features.term_matching import find_catalog_terms
from resume_tailor.schemas.tailoring import PipelineWarning, QualityGateResult
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

INPUT_TOO_SPARSE = "input_too_sparse"

# Work-arrangement terms say nothing about the role itself.
_NON_ROLE_CATEGORIES = frozenset({"logistics"})

_BOILERPLATE_PHRASES: tuple[str, ...] = (
    "equal opportunity employer",
    "without regard to",
    "race, color",
    "sexual orientation",
    "reasonable accommodation",
    "veteran status",
    "competitive salary",
    "competitive compensation",
    "benefits package",
    "401(k)",
    "paid time off",
    "health, dental",
    "dental and vision",
    "fast-paced environment",
    "team player",
    "self-starter",
    "excellent communication skills",
    "other duties as assigned",
    "apply now",
    "join our team",
    "we are looking for",
    "about us",
    "our mission",
    "e-verify",
)


@dataclass(frozen=True)
class QualityGateConfig:
    min_chars: int = 3000
    min_role_signal_hits: int = 3
    max_boilerplate_ratio: float = 0.5
    min_term_density: float = 0.4

    @classmethod
    def from_config(cls) -> "QualityGateConfig":
        return cls(
            min_chars=max(0, int(get_scoring_value("quality_gate.min_chars", cls.min_chars))),
            min_role_signal_hits=max(
                0, int(get_scoring_value("quality_gate.min_role_signal_hits", cls.min_role_signal_hits))
            ),
            max_boilerplate_ratio=min(
                1.0,
                max(0.0, float(get_scoring_value("quality_gate.max_boilerplate_ratio", cls.max_boilerplate_ratio))),
            ),
            min_term_density=max(
                0.0, float(get_scoring_value("quality_gate.min_term_density", cls.min_term_density))
            ),
        )


def _is_boilerplate_line(line: str) -> bool:
    lowered = line.lower()
    return any(phrase in lowered for phrase in _BOILERPLATE_PHRASES)


def evaluate_quality(
    text: str,
    config: QualityGateConfig | None = None,
    *,
    taxonomy: TaxonomyProvider | None = None,
) -> QualityGateResult:
    """Advisory checks on a job description. Never raises and never blocks."""
    config = config or QualityGateConfig.from_config()
    taxonomy = taxonomy or get_default_taxonomy_provider()
    text = text or ""

    char_count = len(text)
    word_count = len(re.findall(r"\S+", text))
    distinct_terms = sum(
        1 for hit in find_catalog_terms(text, taxonomy).values() if hit.category not in _NON_ROLE_CATEGORIES
    )

    lines = [line.strip() for line in text.splitlines() if line.strip()]
    boilerplate_lines = sum(1 for line in lines if _is_boilerplate_line(line))
    boilerplate_ratio = boilerplate_lines / len(lines) if lines else 0.0
    term_density = (distinct_terms * 100.0 / word_count) if word_count else 0.0

    return QualityGateResult(
        sufficient_length=char_count >= config.min_chars,
        role_specific=distinct_terms >= config.min_role_signal_hits,
        not_generic=(
            boilerplate_ratio <= config.max_boilerplate_ratio
            and term_density >= config.min_term_density
        ),
        char_count=char_count,
        word_count=word_count,
        role_signal_hits=distinct_terms,
        boilerplate_ratio=round(boilerplate_ratio, 4),
        term_density=round(term_density, 4),
        min_chars=config.min_chars,
        min_role_signal_hits=config.min_role_signal_hits,
        max_boilerplate_ratio=config.max_boilerplate_ratio,
        min_term_density=config.min_term_density,
    )


def quality_warnings(result: QualityGateResult) -> list[PipelineWarning]:
    warnings: list[PipelineWarning] = []
    if not result.sufficient_length:
        warnings.append(
            PipelineWarning(
                code=INPUT_TOO_SPARSE,
                message=(
                    f"Job description has {result.char_count} characters; at least {result.min_chars} "
                    "are recommended. Paste the full posting including responsibilities and requirements."
                ),
            )
        )
    if not result.role_specific:
        warnings.append(
            PipelineWarning(
                code=INPUT_TOO_SPARSE,
                message=(
                    f"Only {result.role_signal_hits} role-specific technologies or duties were recognized "
                    f"(need {result.min_role_signal_hits}). Include the technical requirements section."
                ),
            )
        )
    if not result.not_generic:
        warnings.append(
            PipelineWarning(
                code=INPUT_TOO_SPARSE,
                message=(
                    "Job description reads as generic company or benefits copy. "
                    "Add the role's concrete duties and required tools."
                ),
            )
        )
    return warnings
