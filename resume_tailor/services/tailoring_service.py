from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Iterator, Protocol

from resume_tailor.ai.types import ContentOracle
from resume_tailor.core.session_store import SessionStore
from resume_tailor.features.job_text import extract_requirements, infer_title
from resume_tailor.features.keyword_buckets import bucketize_keywords
from resume_tailor.features.quality_gate import QualityGateConfig, evaluate_quality, quality_warnings
from resume_tailor.features.role_classifier import classify_role
from resume_tailor.schemas.tailoring import (
    CoverageReport,
    InterviewPrep,
    JobAnalysis,
    JobPosting,
    ScoreBreakdown,
    Session,
    SessionStatus,
)
from resume_tailor.services.ats_scorer import ATSScorer
from resume_tailor.services.content_generator import ContentGenerator
from resume_tailor.services.coverage import build_coverage_report, coverage_for_text
from resume_tailor.services.errors import (
    InvalidSessionState,
    JobDescriptionRequired,
    NoResumeContent,
    SessionBusy,
    SessionNotFound,
    StaleResult,
)
from resume_tailor.services.gap_analyzer import GapAnalyzer
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

logger = logging.getLogger(__name__)


class JobTextExtractor(Protocol):
    def extract(self, url: str) -> str:
        """Fetch a posting and return its plain text."""


class _SessionLocks:
    """Non-blocking per-session exclusion; only sessions in use are tracked."""

    def __init__(self) -> None:
        self._busy: set[str] = set()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._busy)

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self._guard:
            if session_id in self._busy:
                raise SessionBusy(
                    "Another request is already running for this session. Try again when it finishes."
                )
            self._busy.add(session_id)
        try:
            yield
        finally:
            with self._guard:
                self._busy.discard(session_id)


class TailoringService:
    """Drives a session through draft -> analyzing -> tailored -> completed."""

    def __init__(
        self,
        store: SessionStore,
        oracle: ContentOracle,
        *,
        scorer: ATSScorer | None = None,
        taxonomy: TaxonomyProvider | None = None,
        quality_config: QualityGateConfig | None = None,
        job_text_extractor: JobTextExtractor | None = None,
        keyword_budget: int | None = None,
        gap_question_cap: int | None = None,
    ) -> None:
        self._store = store
        self._taxonomy = taxonomy or get_default_taxonomy_provider()
        self._generator = ContentGenerator(oracle, taxonomy=self._taxonomy)
        self._scorer = scorer or ATSScorer(taxonomy=self._taxonomy)
        self._gap_analyzer = GapAnalyzer(
            oracle, taxonomy=self._taxonomy, question_cap=gap_question_cap, keyword_budget=keyword_budget
        )
        self._quality_config = quality_config
        self._extractor = job_text_extractor
        self._keyword_budget = keyword_budget
        self._locks = _SessionLocks()

    def _load(self, session_id: str) -> Session:
        session = self._store.get(session_id)
        if session is None:
            raise SessionNotFound(f"Session '{session_id}' was not found.")
        return session

    @staticmethod
    def _require_status(session: Session, allowed: set[SessionStatus], action: str) -> None:
        if session.status not in allowed:
            raise InvalidSessionState(
                f"Cannot {action} while the session is '{session.status}'. "
                f"Allowed states: {', '.join(sorted(allowed))}."
            )

    def _begin(self, session_id: str, allowed: set[SessionStatus] | None = None, action: str = "") -> tuple[int, Session]:
        """Issue a request token and return it with the session as of that token."""
        if allowed is not None:
            self._require_status(self._load(session_id), allowed, action)
        try:
            token = self._store.issue_token(session_id)
        except KeyError as exc:
            raise SessionNotFound(f"Session '{session_id}' was not found.") from exc
        session = self._load(session_id)
        if allowed is not None:
            self._require_status(session, allowed, action)
        return token, session

    def _commit(self, session: Session, token: int) -> Session:
        if not self._store.replace_if_current(session, token):
            logger.info("session_write_discarded session=%s token=%s", session.session_id, token)
            raise StaleResult("A newer request replaced this session; the result was discarded.")
        return self._load(session.session_id)

    def create_session(self, user_id: str | None = None) -> Session:
        session = self._store.create(user_id)
        logger.info("session_created session=%s", session.session_id)
        return session

    def get_session(self, session_id: str) -> Session:
        return self._load(session_id)

    def attach_resume(self, session_id: str, resume_text: str) -> Session:
        if not (resume_text or "").strip():
            raise NoResumeContent("Résumé text is empty. Paste the full résumé text.")
        token, session = self._begin(session_id, {"draft", "analyzing"}, "replace the résumé")
        return self._commit(session.model_copy(update={"resume_text": resume_text.strip()}), token)

    def build_job_analysis(
        self,
        job_description: str,
        *,
        job_url: str | None = None,
        title: str | None = None,
        company: str | None = None,
    ) -> JobAnalysis:
        posting = JobPosting.from_text(job_description, url=job_url)
        quality = evaluate_quality(job_description, self._quality_config, taxonomy=self._taxonomy)
        title = title or infer_title(job_description)
        role = classify_role(job_description, title)
        bucketized = bucketize_keywords(
            job_description, role.archetype, budget=self._keyword_budget, taxonomy=self._taxonomy
        )
        return JobAnalysis(
            title=title,
            company=company or "",
            role_archetype=role.archetype,
            requirements=extract_requirements(job_description),
            keyword_buckets=bucketized.buckets,
            quality_gate=quality,
            synonym_map=bucketized.synonym_map,
            weighting_hints=role.weighting_hints,
            warnings=quality_warnings(quality),
            job_posting=posting,
        )

    def analyze_job(
        self,
        session_id: str,
        job_description: str | None = None,
        *,
        job_url: str | None = None,
        title: str | None = None,
        company: str | None = None,
    ) -> Session:
        self._load(session_id)
        text = (job_description or "").strip()
        if not text and job_url:
            if self._extractor is None:
                raise JobDescriptionRequired(
                    "Fetching postings by URL is not available. Paste the job description text instead."
                )
            text = (self._extractor.extract(job_url) or "").strip()
        if not text:
            raise JobDescriptionRequired("Paste the job description text to analyze.")

        # A new token makes any tailoring still running for the old posting stale.
        token, session = self._begin(session_id)
        analysis = self.build_job_analysis(text, job_url=job_url, title=title, company=company)
        updated = session.model_copy(
            update={
                "status": "analyzing",
                "job_analysis": analysis,
                "tailored_content": None,
                "interview_prep": None,
                "library_entry_id": None,
            }
        )
        committed = self._commit(updated, token)
        logger.info(
            "job_analyzed session=%s archetype=%s keywords=%s warnings=%s",
            session_id,
            analysis.role_archetype,
            analysis.keyword_buckets.total(),
            len(analysis.warnings),
        )
        return committed

    def tailor(self, session_id: str) -> Session:
        with self._locks.hold(session_id):
            token, session = self._begin(session_id, {"analyzing", "tailored"}, "tailor")
            analysis = session.job_analysis
            if analysis is None:
                raise JobDescriptionRequired("Analyze a job description before tailoring.")
            if not session.resume_text.strip():
                raise NoResumeContent("Add your résumé text before tailoring.")

            buckets = analysis.keyword_buckets
            content = self._generator.generate(session.resume_text, analysis)
            scored = self._scorer.score(content, buckets)
            coverage = build_coverage_report(content, buckets, content.truthfulness, taxonomy=self._taxonomy)
            # Same measurement over the résumé as submitted, for before/after comparison.
            baseline_score = self._scorer.breakdown_for_text(session.resume_text, buckets)
            baseline_coverage = coverage_for_text(session.resume_text, buckets, taxonomy=self._taxonomy)
            content = content.model_copy(
                update={
                    "score_breakdown": scored.breakdown,
                    "coverage_report": coverage,
                    "formatting_issues": scored.formatting_issues,
                    "baseline_score": baseline_score,
                    "baseline_coverage": baseline_coverage,
                }
            )
            committed = self._commit(
                session.model_copy(update={"status": "tailored", "tailored_content": content}), token
            )
            logger.info(
                "tailoring_completed session=%s score=%s baseline=%s missing=%s",
                session_id,
                scored.breakdown.overall,
                baseline_score.overall,
                len(coverage.missing_keywords),
            )
            return committed

    def save_to_library(self, session_id: str, filename: str | None = None) -> Session:
        token, session = self._begin(session_id, {"tailored"}, "save to the library")
        entry_id = uuid.uuid4().hex
        name = (filename or "").strip() or self._default_filename(session)
        updated = session.model_copy(update={"status": "completed", "library_entry_id": entry_id})
        if not self._store.save_to_library(updated, token, filename=name):
            raise StaleResult("A newer request replaced this session; nothing was saved.")
        logger.info("library_saved session=%s entry=%s", session_id, entry_id)
        return self._load(session_id)

    @staticmethod
    def _default_filename(session: Session) -> str:
        analysis = session.job_analysis
        parts = [part for part in ((analysis.company, analysis.title) if analysis else ()) if part]
        stem = "-".join(parts) if parts else "tailored-resume"
        return "".join(char if char.isalnum() or char in "-_" else "-" for char in stem).strip("-") + ".json"

    def score(self, session_id: str) -> ScoreBreakdown:
        content = self._load(session_id).tailored_content
        if content is None or content.score_breakdown is None:
            raise InvalidSessionState("No tailored résumé yet; run tailoring first.")
        return content.score_breakdown

    def coverage(self, session_id: str) -> CoverageReport:
        content = self._load(session_id).tailored_content
        if content is None or content.coverage_report is None:
            raise InvalidSessionState("No tailored résumé yet; run tailoring first.")
        return content.coverage_report

    def interview_questions(
        self,
        session_id: str,
        *,
        job_description: str | None = None,
        company: str | None = None,
        job_title: str | None = None,
    ) -> InterviewPrep:
        with self._locks.hold(session_id):
            token, session = self._begin(session_id)
            prep = self._gap_analyzer.analyze(
                resume_text=session.resume_text,
                tailored_content=session.tailored_content,
                job_analysis=session.job_analysis,
                job_description=job_description,
                company=company or "",
                job_title=job_title or "",
            )
            self._commit(session.model_copy(update={"interview_prep": prep}), token)
            logger.info(
                "interview_prep_saved session=%s mode=%s questions=%s", session_id, prep.mode, len(prep.questions)
            )
            return prep
