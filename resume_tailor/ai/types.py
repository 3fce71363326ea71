from __future__ import annotations

from typing import Any, Mapping, Protocol


class OracleError(RuntimeError):
    def __init__(self, message: str, *, code: str = "oracle_unavailable"):
        super().__init__(message)
        self.code = code


class ContentOracle(Protocol):
    """Structured-in, structured-out text generation.

    Callers pass plain dicts/lists. The implementation serializes them exactly
    once at its transport boundary; handing it an already-encoded JSON string
    would be encoded a second time, so string payloads are rejected with
    TypeError. Responses come back decoded into a dict.
    """

    def generate(
        self,
        instructions: Mapping[str, Any],
        context: Mapping[str, Any],
        *,
        purpose: str = "tailor",
    ) -> dict[str, Any]: ...


def ensure_structured(name: str, value: Any) -> Mapping[str, Any]:
    if isinstance(value, (str, bytes, bytearray)):
        raise TypeError(f"{name} must be a mapping, not a pre-serialized {type(value).__name__}")
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be a mapping, got {type(value).__name__}")
    return value
