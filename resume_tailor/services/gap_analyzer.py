from __future__ import annotations

import logging
from typing import Any

from resume_tailor.ai.types import ContentOracle, OracleError
from resume_tailor.core.scoring_config import get_scoring_value
from resume_tailor.features.keyword_buckets import bucketize_keywords
from resume_tailor.features.role_classifier import classify_role
from resume_tailor.schemas.tailoring import (
    GapQuestion,
    InterviewPrep,
    JobAnalysis,
    KeywordBuckets,
    RoleArchetype,
    TailoredContent,
)
from resume_tailor.normalize.utils import safe_str
from resume_tailor.services.coverage import build_coverage_report, coverage_for_text
from resume_tailor.services.errors import NoResumeContent, OracleUnavailable
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

logger = logging.getLogger(__name__)

MAX_GAP_QUESTIONS = 5

_COMMON_QUESTIONS: list[tuple[str, str, str]] = [
    (
        "Incident response",
        "Walk me through the most serious production database incident you handled. What was your first move?",
        "Interviewers use this to judge composure, triage order and communication under pressure.",
    ),
    (
        "Prioritization",
        "How do you balance planned project work against unplanned operational requests?",
        "Checks whether you can protect reliability work while staying responsive.",
    ),
]

_GENERAL_BANK: dict[str, list[tuple[str, str, str]]] = {
    "specialist-dba": [
        (
            "High availability",
            "How would you design high availability and disaster recovery for a critical SQL Server workload, "
            "and how would you test failover?",
            "Core responsibility for a specialist DBA; expect follow-ups on RPO/RTO.",
        ),
        (
            "Performance tuning",
            "A query that ran in seconds now takes minutes. How do you find and fix the cause?",
            "Probes your diagnostic method: execution plans, statistics, indexing and blocking.",
        ),
        (
            "Backup strategy",
            "Describe a backup and restore strategy you owned and how you proved it worked.",
            "Restores, not backups, are what interviewers care about.",
        ),
    ],
    "ehr-administrator": [
        (
            "EHR operations",
            "How have you supported an EHR platform during an upgrade or go-live?",
            "Clinical downtime is costly; interviewers look for planning and stakeholder coordination.",
        ),
        (
            "HIPAA",
            "How do you ensure PHI stays protected in reporting databases and extracts?",
            "Compliance is a screening filter for healthcare data roles.",
        ),
        (
            "Clinical users",
            "Tell me about a time you translated a clinician's request into a technical change.",
            "Tests communication with non-technical, time-constrained users.",
        ),
    ],
    "cloud-data-platform-engineer": [
        (
            "Cloud migration",
            "How would you plan the migration of an on-prem database estate to a managed cloud service?",
            "Expect questions on assessment, cutover strategy and rollback.",
        ),
        (
            "Cost and scale",
            "How do you keep managed database costs under control as workloads grow?",
            "Cloud platform roles own spend as well as uptime.",
        ),
        (
            "Infrastructure as code",
            "How do you provision and change database infrastructure repeatably across environments?",
            "Checks automation habits and change safety.",
        ),
    ],
    "data-engineer": [
        (
            "Pipeline design",
            "Describe a data pipeline you built end to end. How did you handle late or bad data?",
            "Interviewers look for ownership of data quality, not just orchestration.",
        ),
        (
            "Orchestration",
            "How do you structure dependencies and retries in a scheduled pipeline?",
            "Probes practical orchestration experience.",
        ),
        (
            "Modeling",
            "How do you decide between normalized and dimensional models for analytics?",
            "Tests modeling judgment for downstream consumers.",
        ),
    ],
    "generic-data-role": [
        (
            "Data platforms",
            "Which database platforms have you worked with most, and what did you own on each?",
            "Sets the baseline for follow-up technical questions.",
        ),
        (
            "Reliability",
            "How do you make sure the systems you support stay reliable and recoverable?",
            "A general probe for operational maturity.",
        ),
        (
            "Learning",
            "Tell me about a technology you had to learn quickly for a project. How did you get productive?",
            "Useful when the role's stack differs from your background.",
        ),
    ],
}


def general_questions(archetype: RoleArchetype) -> list[GapQuestion]:
    bank = _GENERAL_BANK.get(archetype, _GENERAL_BANK["generic-data-role"]) + _COMMON_QUESTIONS
    return [
        GapQuestion(topic=topic, question=question, rationale=rationale, category="general")
        for topic, question, rationale in bank
    ]


def _question_cap(value: int | None) -> int:
    if value is None:
        value = int(get_scoring_value("gap_analysis.question_cap", MAX_GAP_QUESTIONS))
    return max(1, min(MAX_GAP_QUESTIONS, int(value)))


class GapAnalyzer:
    def __init__(
        self,
        oracle: ContentOracle,
        *,
        taxonomy: TaxonomyProvider | None = None,
        question_cap: int | None = None,
        keyword_budget: int | None = None,
    ) -> None:
        self._oracle = oracle
        self._taxonomy = taxonomy or get_default_taxonomy_provider()
        self._question_cap = _question_cap(question_cap)
        self._keyword_budget = keyword_budget

    def find_gaps(self, missing_keywords: list[str], buckets: KeywordBuckets) -> list[str]:
        probed = set(get_scoring_value("gap_analysis.probed_categories", ["core_tech", "tools"]) or [])
        gaps = [keyword for keyword in missing_keywords if buckets.category_of(keyword) in probed]
        return gaps[: self._question_cap]

    def _ask(self, keyword: str, category: str, context: dict[str, Any]) -> GapQuestion:
        instructions = {
            "task": (
                "Write one interview question that probes the candidate on a requirement their resume "
                "does not show, plus a one-sentence rationale explaining why an interviewer would ask it."
            ),
            "rules": [
                "Ask about the named keyword specifically.",
                "Do not assume the candidate has used it; allow them to describe adjacent experience.",
            ],
            "output_schema": {"question": "", "rationale": ""},
        }
        try:
            raw = self._oracle.generate(
                instructions, {**context, "keyword": keyword, "category": category}, purpose="gap_question"
            )
        except OracleError as exc:
            raise OracleUnavailable(str(exc)) from exc
        except Exception as exc:  # noqa: BLE001 - raw oracle errors never leave the service
            logger.warning("gap_oracle_failed keyword=%s error=%s", keyword, exc)
            raise OracleUnavailable("Interview question service is unavailable. Try again shortly.") from exc

        question = safe_str(raw.get("question"), max_len=400) if isinstance(raw, dict) else ""
        rationale = safe_str(raw.get("rationale"), max_len=400) if isinstance(raw, dict) else ""
        if not question:
            raise OracleUnavailable(
                f"Interview question service returned no question for '{keyword}'.", code="oracle_unusable"
            )
        return GapQuestion(topic=f"Gap: {keyword}", question=question, rationale=rationale, category="gap")

    def analyze(
        self,
        *,
        resume_text: str = "",
        tailored_content: TailoredContent | None = None,
        job_analysis: JobAnalysis | None = None,
        job_description: str | None = None,
        company: str = "",
        job_title: str = "",
    ) -> InterviewPrep:
        if tailored_content is None and not (resume_text or "").strip():
            raise NoResumeContent("Add your résumé or tailor it before generating interview questions.")

        company = company or (job_analysis.company if job_analysis else "")
        job_title = job_title or (job_analysis.title if job_analysis else "")

        if job_description and job_description.strip():
            role = classify_role(job_description, job_title)
            archetype: RoleArchetype = role.archetype
            buckets = bucketize_keywords(
                job_description, archetype, budget=self._keyword_budget, taxonomy=self._taxonomy
            ).buckets
        elif job_analysis is not None:
            archetype = job_analysis.role_archetype
            buckets = job_analysis.keyword_buckets
        else:
            logger.info("gap_analysis_general reason=no_job_description")
            return InterviewPrep(
                mode="general",
                questions=general_questions("generic-data-role"),
                company=company,
                job_title=job_title,
            )

        if tailored_content is not None:
            coverage = build_coverage_report(tailored_content, buckets, taxonomy=self._taxonomy)
        else:
            coverage = coverage_for_text(resume_text, buckets, taxonomy=self._taxonomy)
        gaps = self.find_gaps(coverage.missing_keywords, buckets)
        if not gaps:
            logger.info("gap_analysis_general reason=no_gaps archetype=%s", archetype)
            return InterviewPrep(
                mode="general",
                questions=general_questions(archetype),
                role_archetype=archetype,
                company=company,
                job_title=job_title,
            )

        context = {"role_archetype": archetype, "job_title": job_title, "company": company}
        questions = [self._ask(keyword, buckets.category_of(keyword) or "", context) for keyword in gaps]
        logger.info("gap_analysis_completed gaps=%s", len(questions))
        return InterviewPrep(
            mode="gap",
            questions=questions,
            gap_keywords=gaps,
            role_archetype=archetype,
            company=company,
            job_title=job_title,
        )
