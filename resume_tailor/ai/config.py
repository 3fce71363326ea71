from dataclasses import dataclass

from resume_tailor.core.config import settings


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    timeout_s: float
    max_retries: int
    temperature: float


def load_ai_config() -> AIConfig:
    return AIConfig(
        provider=settings.ai_provider,
        model=settings.ai_model,
        timeout_s=settings.oracle_timeout_s,
        max_retries=settings.oracle_max_retries,
        temperature=settings.oracle_temperature,
    )
