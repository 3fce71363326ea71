from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Request, status

from resume_tailor.ai.factory import get_oracle
from resume_tailor.core.rate_limit import rate_limit
from resume_tailor.core.session_store import get_session_store
from resume_tailor.schemas.api import (
    AnalyzeJobRequest,
    AttachResumeRequest,
    CoverageResponse,
    CreateSessionRequest,
    InterviewQuestionsRequest,
    SaveToLibraryRequest,
    ScoreResponse,
    SessionResponse,
)
from resume_tailor.schemas.tailoring import InterviewPrep
from resume_tailor.services.errors import TailoringError
from resume_tailor.services.tailoring_service import TailoringService

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def _build_service() -> TailoringService:
    return TailoringService(get_session_store(), get_oracle())


def get_tailoring_service() -> TailoringService:
    try:
        return _build_service()
    except (RuntimeError, ValueError) as exc:
        logger.error("tailoring_service_unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "oracle_unavailable", "message": "Content generation is not configured."},
        ) from exc


def _raise_tailoring_http_error(exc: TailoringError) -> None:
    if exc.status_code >= 500:
        logger.warning("tailoring_request_failed code=%s: %s", exc.code, exc)
    raise HTTPException(status_code=exc.status_code, detail=exc.to_payload()) from exc


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
@rate_limit()
def create_session(
    request: Request,
    payload: CreateSessionRequest | None = None,
    service: TailoringService = Depends(get_tailoring_service),
):
    session = service.create_session(payload.user_id if payload else None)
    return SessionResponse.from_session(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
@rate_limit()
def get_session(request: Request, session_id: str, service: TailoringService = Depends(get_tailoring_service)):
    try:
        return SessionResponse.from_session(service.get_session(session_id))
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)


@router.post("/sessions/{session_id}/resume", response_model=SessionResponse)
@rate_limit()
def attach_resume(
    request: Request,
    session_id: str,
    payload: AttachResumeRequest,
    service: TailoringService = Depends(get_tailoring_service),
):
    try:
        return SessionResponse.from_session(service.attach_resume(session_id, payload.resume_text))
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)


@router.post("/sessions/{session_id}/analyze-job", response_model=SessionResponse)
@rate_limit()
def analyze_job(
    request: Request,
    session_id: str,
    payload: AnalyzeJobRequest,
    service: TailoringService = Depends(get_tailoring_service),
):
    try:
        session = service.analyze_job(
            session_id,
            payload.job_description,
            job_url=payload.job_url,
            title=payload.title,
            company=payload.company,
        )
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)
    return SessionResponse.from_session(session)


@router.post("/sessions/{session_id}/tailor", response_model=SessionResponse)
@rate_limit()
def tailor(request: Request, session_id: str, service: TailoringService = Depends(get_tailoring_service)):
    try:
        return SessionResponse.from_session(service.tailor(session_id))
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)


@router.get("/sessions/{session_id}/score", response_model=ScoreResponse)
@rate_limit()
def get_score(request: Request, session_id: str, service: TailoringService = Depends(get_tailoring_service)):
    try:
        session = service.get_session(session_id)
        breakdown = service.score(session_id)
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)
    content = session.tailored_content
    return ScoreResponse(
        session_id=session_id,
        score_breakdown=breakdown,
        baseline_score=content.baseline_score if content else None,
        formatting_issues=content.formatting_issues if content else [],
    )


@router.get("/sessions/{session_id}/coverage", response_model=CoverageResponse)
@rate_limit()
def get_coverage(request: Request, session_id: str, service: TailoringService = Depends(get_tailoring_service)):
    try:
        report = service.coverage(session_id)
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)
    return CoverageResponse(session_id=session_id, coverage_report=report)


@router.post("/sessions/{session_id}/save", response_model=SessionResponse)
@rate_limit()
def save_to_library(
    request: Request,
    session_id: str,
    payload: SaveToLibraryRequest | None = None,
    service: TailoringService = Depends(get_tailoring_service),
):
    try:
        session = service.save_to_library(session_id, payload.filename if payload else None)
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)
    return SessionResponse.from_session(session)


@router.post("/sessions/{session_id}/interview-questions", response_model=InterviewPrep)
@rate_limit()
def interview_questions(
    request: Request,
    session_id: str,
    payload: InterviewQuestionsRequest | None = None,
    service: TailoringService = Depends(get_tailoring_service),
):
    payload = payload or InterviewQuestionsRequest()
    try:
        return service.interview_questions(
            session_id,
            job_description=payload.job_description,
            company=payload.company,
            job_title=payload.job_title,
        )
    except TailoringError as exc:
        _raise_tailoring_http_error(exc)
