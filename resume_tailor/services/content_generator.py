from __future__ import annotations

import logging
from typing import Any

from resume_tailor.ai.types import ContentOracle, OracleError
from resume_tailor.core.config import settings
from resume_tailor.features.term_matching import contains_term, find_spans
from resume_tailor.features.truthfulness import (
    FAMILIAR_PHRASES,
    assign_truth_levels,
    banned_terms,
    find_violations,
)
from resume_tailor.normalize.utils import safe_str, safe_str_list, strip_bullet_prefix
from resume_tailor.schemas.tailoring import (
    ContactInformation,
    ExperienceEntry,
    JobAnalysis,
    TailoredContent,
    TruthLevel,
)
from resume_tailor.services.errors import NoResumeContent, OracleUnavailable, TruthfulnessViolation
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2

_OUTPUT_SCHEMA: dict[str, Any] = {
    "contact": {"name": "", "title": "", "phone": "", "email": "", "city": "", "state": "", "linkedin": ""},
    "summary": "3-4 sentence professional summary",
    "experience": [{"title": "", "company": "", "duration": "", "achievements": ["..."]}],
    "skills": ["..."],
    "certifications": ["..."],
    "education": ["..."],
    "professional_development": ["..."],
    "improvements": ["short note on each change made"],
}

_RULES: tuple[str, ...] = (
    "Only claim experience the resume supports. Keywords under 'hands_on' may be stated as direct experience.",
    "Keywords under 'familiar' may only appear with qualified phrasing such as the entries in 'familiar_phrasing'; "
    "vary the phrasing instead of repeating one opener.",
    "Keywords under 'banned' must not appear anywhere in the output, in any spelling, including the improvements list.",
    "Keep every employer, title and date range from the resume; do not add or remove positions.",
    "Keep certifications, education and professional development exactly as listed in the resume.",
    "Use plain single-column text: no tables, icons, emoji or decorative symbols.",
    "Start each achievement with an action verb and keep it under 40 words; quantify results when the resume does.",
    "Do not mention location preferences, remote or on-site arrangements in the summary.",
)


def _safe_experience(value: Any) -> list[ExperienceEntry]:
    if not isinstance(value, list):
        return []
    entries: list[ExperienceEntry] = []
    for item in value[:15]:
        if not isinstance(item, dict):
            continue
        entry = ExperienceEntry(
            title=safe_str(item.get("title"), max_len=160),
            company=safe_str(item.get("company"), max_len=160),
            duration=safe_str(item.get("duration"), max_len=80),
            achievements=safe_str_list(item.get("achievements"), max_items=12),
        )
        if entry.title or entry.company or entry.achievements:
            entries.append(entry)
    return entries


def _safe_contact(value: Any) -> ContactInformation:
    if not isinstance(value, dict):
        return ContactInformation()
    return ContactInformation(
        **{name: safe_str(value.get(name), max_len=200) for name in ContactInformation.model_fields}
    )


def _truncate(text: str, max_chars: int) -> str:
    text = text or ""
    return text if len(text) <= max_chars else text[:max_chars].rstrip()


class ContentGenerator:
    def __init__(
        self,
        oracle: ContentOracle,
        *,
        taxonomy: TaxonomyProvider | None = None,
        resume_max_chars: int | None = None,
        job_max_chars: int | None = None,
    ) -> None:
        self._oracle = oracle
        self._taxonomy = taxonomy or get_default_taxonomy_provider()
        self._resume_max_chars = resume_max_chars or settings.resume_prompt_max_chars
        self._job_max_chars = job_max_chars or settings.job_prompt_max_chars

    def build_instructions(
        self,
        analysis: JobAnalysis,
        levels: dict[str, TruthLevel],
        *,
        previous_violations: list[str] | None = None,
    ) -> dict[str, Any]:
        instructions: dict[str, Any] = {
            "task": (
                "Tailor the resume to the target job. Rewrite the summary, experience achievements and skills "
                "to surface relevant keywords while staying truthful to the resume."
            ),
            "rules": list(_RULES),
            "role_archetype": analysis.role_archetype,
            "weighting_hints": list(analysis.weighting_hints),
            "keywords": {
                "hands_on": [keyword for keyword, level in levels.items() if level == "hands-on"],
                "familiar": [keyword for keyword, level in levels.items() if level == "familiar"],
                "banned": banned_terms(levels, taxonomy=self._taxonomy),
            },
            "familiar_phrasing": list(FAMILIAR_PHRASES),
            "output_schema": _OUTPUT_SCHEMA,
        }
        if previous_violations:
            instructions["retry_notice"] = {
                "previous_violations": list(previous_violations),
                "rule": (
                    "The previous draft claimed keywords the resume does not support. Remove every mention of "
                    "the listed terms and of everything under keywords.banned. Do not substitute synonyms."
                ),
            }
        return instructions

    def build_context(self, resume_text: str, analysis: JobAnalysis) -> dict[str, Any]:
        return {
            "resume_text": _truncate(resume_text, self._resume_max_chars),
            "job": {
                "title": analysis.title,
                "company": analysis.company,
                "url": analysis.job_posting.url,
                "requirements": list(analysis.requirements),
                "keyword_buckets": analysis.keyword_buckets.model_dump(),
                "description": _truncate(analysis.job_posting.text, self._job_max_chars),
            },
        }

    def _request_draft(self, instructions: dict[str, Any], context: dict[str, Any]) -> dict[str, Any]:
        try:
            raw = self._oracle.generate(instructions, context, purpose="tailor")
        except OracleError as exc:
            raise OracleUnavailable(str(exc)) from exc
        except Exception as exc:  # noqa: BLE001 - raw oracle errors never leave the service
            logger.warning("content_oracle_failed error=%s", exc)
            raise OracleUnavailable("Content generation service is unavailable. Try again shortly.") from exc
        if not isinstance(raw, dict):
            raise OracleUnavailable("Content generation returned an unexpected shape.", code="oracle_unusable")
        return raw

    def _parse_draft(self, raw: dict[str, Any]) -> TailoredContent:
        content = TailoredContent(
            contact=_safe_contact(raw.get("contact")),
            summary=safe_str(raw.get("summary"), max_len=1500),
            experience=_safe_experience(raw.get("experience")),
            skills=safe_str_list(raw.get("skills"), max_items=60, max_len=80),
            certifications=safe_str_list(raw.get("certifications"), max_items=20, max_len=200),
            education=safe_str_list(raw.get("education"), max_items=10, max_len=200),
            professional_development=safe_str_list(raw.get("professional_development"), max_items=20, max_len=200),
            improvements=safe_str_list(raw.get("improvements"), max_items=15, max_len=300),
        )
        if not content.summary and not content.experience and not content.skills:
            raise OracleUnavailable(
                "Content generation returned no usable résumé sections.", code="oracle_unusable"
            )
        return content

    def _apply_micro_edits(
        self, content: TailoredContent, resume_text: str, levels: dict[str, TruthLevel]
    ) -> TailoredContent:
        applied: list[str] = []

        experience: list[ExperienceEntry] = []
        glyphs_removed = 0
        for entry in content.experience:
            cleaned = []
            for achievement in entry.achievements:
                stripped = strip_bullet_prefix(achievement)
                if stripped != achievement:
                    glyphs_removed += 1
                if stripped:
                    cleaned.append(stripped)
            experience.append(entry.model_copy(update={"achievements": cleaned}))
        if glyphs_removed:
            applied.append(f"Removed leading bullet glyphs from {glyphs_removed} achievement(s).")

        skills: list[str] = []
        seen: set[str] = set()
        for skill in content.skills:
            key = skill.lower()
            if key in seen:
                applied.append(f"Removed duplicate skill '{skill}'.")
                continue
            seen.add(key)
            skills.append(skill)

        draft = content.model_copy(update={"experience": experience, "skills": skills})
        draft_text = draft.resume_text()
        for keyword, level in levels.items():
            if level != "hands-on" or contains_term(draft_text, keyword):
                continue
            entry = self._taxonomy.lookup(keyword)
            if entry is None:
                continue
            evidence = next((alias for alias in entry.aliases if find_spans(resume_text, alias)), "")
            if keyword.lower() not in seen:
                seen.add(keyword.lower())
                skills.append(keyword)
                note = f" (résumé evidence: '{evidence}')" if evidence else ""
                applied.append(f"Added canonical keyword '{keyword}' to skills{note}.")

        return draft.model_copy(update={"skills": skills, "applied_micro_edits": applied})

    def _suggest_micro_edits(self, content: TailoredContent, levels: dict[str, TruthLevel]) -> list[str]:
        draft_text = content.resume_text()
        suggestions: list[str] = []
        familiar = [keyword for keyword, level in levels.items() if level == "familiar"]
        for index, keyword in enumerate(familiar):
            if contains_term(draft_text, keyword):
                continue
            phrase = FAMILIAR_PHRASES[index % len(FAMILIAR_PHRASES)]
            suggestions.append(
                f"Consider adding '{phrase} {keyword}' where related work is described; keep it qualified."
            )
        return suggestions

    def generate(self, resume_text: str, analysis: JobAnalysis) -> TailoredContent:
        if not (resume_text or "").strip():
            raise NoResumeContent("Add your résumé text before tailoring.")

        levels = assign_truth_levels(resume_text, analysis.keyword_buckets, taxonomy=self._taxonomy)
        context = self.build_context(resume_text, analysis)
        violations: list[str] = []
        for attempt in range(1, MAX_ATTEMPTS + 1):
            instructions = self.build_instructions(analysis, levels, previous_violations=violations or None)
            raw = self._request_draft(instructions, context)
            content = self._apply_micro_edits(self._parse_draft(raw), resume_text, levels)
            violations = find_violations(content.all_text_fields(), levels, taxonomy=self._taxonomy)
            if not violations:
                logger.info(
                    "content_generated attempt=%s hands_on=%s familiar=%s omitted=%s",
                    attempt,
                    sum(1 for level in levels.values() if level == "hands-on"),
                    sum(1 for level in levels.values() if level == "familiar"),
                    sum(1 for level in levels.values() if level == "omitted"),
                )
                return content.model_copy(
                    update={
                        "truthfulness": dict(levels),
                        "suggested_micro_edits": self._suggest_micro_edits(content, levels),
                    }
                )
            logger.warning("truthfulness_violation attempt=%s terms=%s", attempt, violations)

        raise TruthfulnessViolation(
            "Generated content claimed keywords the résumé does not support: " + ", ".join(violations),
            terms=violations,
        )
