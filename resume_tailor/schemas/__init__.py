from .api import (
    AnalyzeJobRequest,
    AttachResumeRequest,
    CoverageResponse,
    CreateSessionRequest,
    InterviewQuestionsRequest,
    SaveToLibraryRequest,
    ScoreResponse,
    SessionResponse,
)
from .tailoring import (
    CATEGORIES,
    CategoryScore,
    ContactInformation,
    CoverageReport,
    ExperienceEntry,
    FormattingIssue,
    GapQuestion,
    InterviewPrep,
    JobAnalysis,
    JobPosting,
    KeywordBuckets,
    PipelineWarning,
    QualityGateResult,
    ScoreBreakdown,
    Session,
    TailoredContent,
)

__all__ = [
    "AnalyzeJobRequest",
    "AttachResumeRequest",
    "CoverageResponse",
    "CreateSessionRequest",
    "InterviewQuestionsRequest",
    "SaveToLibraryRequest",
    "ScoreResponse",
    "SessionResponse",
    "CATEGORIES",
    "CategoryScore",
    "ContactInformation",
    "CoverageReport",
    "ExperienceEntry",
    "FormattingIssue",
    "GapQuestion",
    "InterviewPrep",
    "JobAnalysis",
    "JobPosting",
    "KeywordBuckets",
    "PipelineWarning",
    "QualityGateResult",
    "ScoreBreakdown",
    "Session",
    "TailoredContent",
]
