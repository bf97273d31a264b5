# config.py
"""Configuration settings for the narration evaluation engine.
Uses Pydantic BaseSettings for automatic environment variable loading.
"""

from __future__ import annotations

import structlog
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = structlog.get_logger()

# Values shipped in example env files that must not count as real credentials
PLACEHOLDER_API_KEYS = frozenset({"", "nope", "your-api-key", "sk-..."})


class NarrationEvalSettings(BaseSettings):
    """Full configuration for the narration evaluation engine."""

    # API and Model Configuration
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Dynamic Model Assignments (set from OPENAI_MODEL if not specified in env)
    EVALUATION_MODEL: str | None = None
    NARRATION_MODEL: str | None = None

    # Temperature Settings
    TEMPERATURE_EVALUATION: float = 0.3
    TEMPERATURE_NARRATION: float = 0.8

    # LLM Call Settings
    LLM_RETRY_ATTEMPTS: int = 3
    LLM_RETRY_DELAY_SECONDS: float = 1.0
    HTTPX_TIMEOUT: float = 60.0
    MAX_GENERATION_TOKENS: int = 1024
    LLM_TOP_P: float = 1.0
    TIKTOKEN_DEFAULT_ENCODING: str = "cl100k_base"
    FALLBACK_CHARS_PER_TOKEN: float = 4.0
    # Concurrency and Rate Limiting
    MAX_CONCURRENT_LLM_CALLS: int = 4

    # Narration prompt
    NARRATION_MAX_RESIDENTS_IN_PROMPT: int = 5

    # Logging
    LOG_LEVEL_STR: str = Field("INFO", alias="EVAL_LOG_LEVEL")
    LOG_FORMAT: str = (
        "%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"
    )
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: str | None = None
    ENABLE_RICH_LOGGING: bool = True

    @model_validator(mode="after")
    def set_dynamic_model_defaults(self) -> NarrationEvalSettings:
        if self.EVALUATION_MODEL is None:
            self.EVALUATION_MODEL = self.OPENAI_MODEL
        if self.NARRATION_MODEL is None:
            self.NARRATION_MODEL = self.OPENAI_MODEL
        return self

    @model_validator(mode="after")
    def warn_missing_credentials(self) -> NarrationEvalSettings:
        if not self.has_llm_credentials:
            logger.warning(
                "OPENAI_API_KEY is not configured. Full evaluation will fall back to quick mode."
            )
        return self

    @property
    def has_llm_credentials(self) -> bool:
        """Whether a usable text-generation credential is configured."""
        return self.OPENAI_API_KEY.strip() not in PLACEHOLDER_API_KEYS

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )


settings = NarrationEvalSettings()
