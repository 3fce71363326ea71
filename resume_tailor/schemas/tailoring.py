from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterator, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

KeywordCategory = Literal[
    "core_tech",
    "responsibilities",
    "tools",
    "adjacent_data_stores",
    "compliance",
    "logistics",
]
CATEGORIES: tuple[KeywordCategory, ...] = (
    "core_tech",
    "responsibilities",
    "tools",
    "adjacent_data_stores",
    "compliance",
    "logistics",
)
RoleArchetype = Literal[
    "specialist-dba",
    "ehr-administrator",
    "cloud-data-platform-engineer",
    "data-engineer",
    "generic-data-role",
]
TruthLevel = Literal["hands-on", "familiar", "omitted"]
SessionStatus = Literal["draft", "analyzing", "tailored", "completed"]
IssueSeverity = Literal["low", "medium", "high"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PipelineWarning(BaseModel):
    code: str
    message: str


class JobPosting(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str | None = None
    text: str
    char_count: int = Field(ge=0)
    word_count: int = Field(ge=0)

    @classmethod
    def from_text(cls, text: str, *, url: str | None = None) -> "JobPosting":
        return cls(
            url=url,
            text=text,
            char_count=len(text),
            word_count=len(re.findall(r"\S+", text)),
        )


class QualityGateResult(BaseModel):
    sufficient_length: bool
    role_specific: bool
    not_generic: bool
    char_count: int = Field(ge=0)
    word_count: int = Field(ge=0)
    role_signal_hits: int = Field(ge=0)
    boilerplate_ratio: float = Field(ge=0.0, le=1.0)
    term_density: float = Field(ge=0.0)
    min_chars: int
    min_role_signal_hits: int
    max_boilerplate_ratio: float
    min_term_density: float

    @property
    def passed(self) -> bool:
        return self.sufficient_length and self.role_specific and self.not_generic


class KeywordBuckets(BaseModel):
    """Six fixed keyword categories; list order is relevance order."""

    core_tech: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    adjacent_data_stores: list[str] = Field(default_factory=list)
    compliance: list[str] = Field(default_factory=list)
    logistics: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_single_bucket(self) -> "KeywordBuckets":
        seen: dict[str, str] = {}
        for category, keywords in self.items():
            for keyword in keywords:
                key = keyword.strip().lower()
                if not key:
                    raise ValueError(f"empty keyword in bucket '{category}'")
                if key in seen:
                    raise ValueError(
                        f"keyword '{keyword}' appears in both '{seen[key]}' and '{category}'"
                    )
                seen[key] = category
        return self

    def items(self) -> list[tuple[KeywordCategory, list[str]]]:
        return [(category, list(getattr(self, category))) for category in CATEGORIES]

    def get(self, category: KeywordCategory) -> list[str]:
        return list(getattr(self, category))

    def all_keywords(self) -> list[str]:
        return [keyword for _, keywords in self.items() for keyword in keywords]

    def category_of(self, keyword: str) -> KeywordCategory | None:
        key = keyword.strip().lower()
        for category, keywords in self.items():
            if any(item.lower() == key for item in keywords):
                return category
        return None

    def total(self) -> int:
        return sum(len(keywords) for _, keywords in self.items())


class JobAnalysis(BaseModel):
    title: str = ""
    company: str = ""
    role_archetype: RoleArchetype = "generic-data-role"
    requirements: list[str] = Field(default_factory=list)
    keyword_buckets: KeywordBuckets = Field(default_factory=KeywordBuckets)
    quality_gate: QualityGateResult
    synonym_map: dict[str, list[str]] = Field(default_factory=dict)
    weighting_hints: list[str] = Field(default_factory=list)
    warnings: list[PipelineWarning] = Field(default_factory=list)
    job_posting: JobPosting
    analyzed_at: datetime = Field(default_factory=_utc_now)


class ContactInformation(BaseModel):
    name: str = ""
    title: str = ""
    phone: str = ""
    email: str = ""
    city: str = ""
    state: str = ""
    linkedin: str = ""


class ExperienceEntry(BaseModel):
    title: str = ""
    company: str = ""
    duration: str = ""
    achievements: list[str] = Field(default_factory=list)


class CategoryScore(BaseModel):
    earned: int = Field(ge=0)
    possible: int = Field(ge=0, le=100)
    evidence: list[str] = Field(default_factory=list)
    skipped: bool = False

    @model_validator(mode="after")
    def _validate_earned(self) -> "CategoryScore":
        if self.earned > self.possible:
            raise ValueError("earned points cannot exceed possible points")
        return self


class ScoreBreakdown(BaseModel):
    categories: dict[str, CategoryScore]
    overall: int = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _validate_totals(self) -> "ScoreBreakdown":
        if tuple(self.categories.keys()) != CATEGORIES:
            raise ValueError(f"score categories must be exactly {', '.join(CATEGORIES)}")
        possible = sum(item.possible for item in self.categories.values())
        if possible != 100:
            raise ValueError(f"category weights must sum to 100, got {possible}")
        earned = sum(item.earned for item in self.categories.values())
        if earned != self.overall:
            raise ValueError("overall score must equal the sum of earned points")
        return self


class FormattingIssue(BaseModel):
    id: str
    severity: IssueSeverity
    message: str
    evidence: list[str] = Field(default_factory=list)


class CoverageReport(BaseModel):
    matched_keywords: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    truthfulness_level: dict[str, TruthLevel] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_disjoint(self) -> "CoverageReport":
        matched = {item.lower() for item in self.matched_keywords}
        overlap = [item for item in self.missing_keywords if item.lower() in matched]
        if overlap:
            raise ValueError(f"keywords cannot be both matched and missing: {', '.join(overlap)}")
        return self


class TailoredContent(BaseModel):
    contact: ContactInformation = Field(default_factory=ContactInformation)
    summary: str = ""
    experience: list[ExperienceEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    professional_development: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    applied_micro_edits: list[str] = Field(default_factory=list)
    suggested_micro_edits: list[str] = Field(default_factory=list)
    truthfulness: dict[str, TruthLevel] = Field(default_factory=dict)
    score_breakdown: ScoreBreakdown | None = None
    coverage_report: CoverageReport | None = None
    formatting_issues: list[FormattingIssue] = Field(default_factory=list)
    # Submitted résumé measured against the same buckets.
    baseline_score: ScoreBreakdown | None = None
    baseline_coverage: CoverageReport | None = None
    generated_at: datetime = Field(default_factory=_utc_now)

    def resume_text_fields(self) -> Iterator[str]:
        """Strings that end up on the rendered résumé."""
        if self.contact.title:
            yield self.contact.title
        if self.summary:
            yield self.summary
        for entry in self.experience:
            yield from (value for value in (entry.title, entry.company, entry.duration) if value)
            yield from entry.achievements
        yield from self.skills
        yield from self.certifications
        yield from self.education
        yield from self.professional_development

    def all_text_fields(self) -> Iterator[str]:
        yield from self.resume_text_fields()
        yield from self.improvements
        yield from self.applied_micro_edits
        yield from self.suggested_micro_edits

    def resume_text(self) -> str:
        return "\n".join(self.resume_text_fields())


class GapQuestion(BaseModel):
    topic: str
    question: str
    rationale: str
    category: Literal["gap", "general"] = "gap"


class InterviewPrep(BaseModel):
    mode: Literal["gap", "general"]
    questions: list[GapQuestion] = Field(default_factory=list)
    gap_keywords: list[str] = Field(default_factory=list)
    role_archetype: RoleArchetype = "generic-data-role"
    company: str = ""
    job_title: str = ""
    generated_at: datetime = Field(default_factory=_utc_now)


class Session(BaseModel):
    session_id: str
    user_id: str | None = None
    status: SessionStatus = "draft"
    resume_text: str = ""
    job_analysis: JobAnalysis | None = None
    tailored_content: TailoredContent | None = None
    interview_prep: InterviewPrep | None = None
    request_token: int = Field(default=0, ge=0)
    library_entry_id: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
