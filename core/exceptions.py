# core/exceptions.py
"""Exception hierarchy for the narration evaluation engine."""

from __future__ import annotations


class NarrationEvalError(Exception):
    """Base class for all engine errors."""


class ValidationError(NarrationEvalError):
    """Required request input is missing or empty."""


class ConfigurationError(NarrationEvalError):
    """A text-generation capability was needed but none is configured."""


class JudgeParseError(NarrationEvalError):
    """The judge reply did not follow the two-line response format."""

    def __init__(self, raw_response: str) -> None:
        super().__init__("Judge response is missing the CREATIVITY_SCORE line.")
        self.raw_response = raw_response


class LLMCallError(NarrationEvalError):
    """The text-generation call failed after all retry attempts."""

    def __init__(self, model_name: str, cause: Exception | None = None) -> None:
        message = f"LLM call to '{model_name}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.model_name = model_name
        self.cause = cause


CapabilityError = LLMCallError
