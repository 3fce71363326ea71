from resume_tailor.ai.config import load_ai_config
from resume_tailor.ai.types import ContentOracle

from resume_tailor.ai.providers.openai_provider import OpenAIOracle


def get_oracle() -> ContentOracle:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIOracle(
            model=cfg.model,
            timeout_s=cfg.timeout_s,
            max_retries=cfg.max_retries,
            temperature=cfg.temperature,
        )

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
