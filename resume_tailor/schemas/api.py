from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from .tailoring import (
    CoverageReport,
    FormattingIssue,
    InterviewPrep,
    JobAnalysis,
    ScoreBreakdown,
    Session,
    SessionStatus,
    TailoredContent,
)


class CreateSessionRequest(BaseModel):
    user_id: str | None = Field(default=None, max_length=200)


class AttachResumeRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=120000)


class AnalyzeJobRequest(BaseModel):
    job_description: str = Field(default="", max_length=120000)
    job_url: str | None = Field(default=None, max_length=2000)
    title: str | None = Field(default=None, max_length=200)
    company: str | None = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def _validate_source(self) -> "AnalyzeJobRequest":
        if not self.job_description.strip() and not (self.job_url or "").strip():
            raise ValueError("Provide job_description text or a job_url.")
        return self


class SaveToLibraryRequest(BaseModel):
    filename: str | None = Field(default=None, max_length=200)


class InterviewQuestionsRequest(BaseModel):
    job_description: str | None = Field(default=None, max_length=120000)
    company: str | None = Field(default=None, max_length=200)
    job_title: str | None = Field(default=None, max_length=200)


class SessionResponse(BaseModel):
    session_id: str
    user_id: str | None = None
    status: SessionStatus
    has_resume: bool
    job_analysis: JobAnalysis | None = None
    tailored_content: TailoredContent | None = None
    interview_prep: InterviewPrep | None = None
    library_entry_id: str | None = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(
            session_id=session.session_id,
            user_id=session.user_id,
            status=session.status,
            has_resume=bool(session.resume_text.strip()),
            job_analysis=session.job_analysis,
            tailored_content=session.tailored_content,
            interview_prep=session.interview_prep,
            library_entry_id=session.library_entry_id,
        )


class ScoreResponse(BaseModel):
    session_id: str
    score_breakdown: ScoreBreakdown
    baseline_score: ScoreBreakdown | None = None
    formatting_issues: list[FormattingIssue] = Field(default_factory=list)


class CoverageResponse(BaseModel):
    session_id: str
    coverage_report: CoverageReport
