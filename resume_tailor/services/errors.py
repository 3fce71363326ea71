from __future__ import annotations

from typing import Any


class TailoringError(RuntimeError):
    code = "tailoring_error"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class InputTooSparse(TailoringError):
    """Advisory only; surfaced as a warning on the analysis, never raised by the pipeline."""

    code = "input_too_sparse"
    status_code = 422


class OracleUnavailable(TailoringError):
    code = "oracle_unavailable"
    status_code = 503


class TruthfulnessViolation(TailoringError):
    code = "truthfulness_violation"
    status_code = 422

    def __init__(self, message: str, *, terms: list[str]):
        super().__init__(message)
        self.terms = list(terms)

    def to_payload(self) -> dict[str, Any]:
        return {**super().to_payload(), "terms": self.terms}


class NoResumeContent(TailoringError):
    code = "no_resume_content"
    status_code = 422


class MalformedContent(TailoringError):
    code = "malformed_content"
    status_code = 422


class JobDescriptionRequired(TailoringError):
    code = "job_description_required"
    status_code = 422


class SessionNotFound(TailoringError):
    code = "session_not_found"
    status_code = 404


class InvalidSessionState(TailoringError):
    code = "invalid_session_state"
    status_code = 409


class SessionBusy(TailoringError):
    code = "session_busy"
    status_code = 409


class StaleResult(TailoringError):
    code = "stale_result"
    status_code = 409
