# agents/creativity_judge_agent.py

"""LLM-as-judge agent scoring narration creativity."""

from __future__ import annotations

import asyncio
import re

import structlog
from config import settings
from core.exceptions import ConfigurationError, JudgeParseError
from core.llm_interface import TextGenerator
from prompt_renderer import render_prompt
from utils import word_count

from models import (
    DEFAULT_JUDGE_FEEDBACK,
    JudgeOutcome,
    LocationFact,
    ParseFailed,
    Scored,
    Unavailable,
)

logger = structlog.get_logger(__name__)

FALLBACK_FEEDBACK = "LLM evaluation unavailable. Using fallback heuristic scoring."
NOT_CONFIGURED_REASON = "OpenAI API key not configured"
HUMOR_BONUS = 20

_SCORE_LINE = re.compile(r"CREATIVITY_SCORE:\s*(\d+)")
_FEEDBACK_LINE = re.compile(r"FEEDBACK:\s*(.+)")
_HUMOR_MARKER = re.compile(r"\b(haha|lol|funny|hilarious)\b", flags=re.IGNORECASE)


def fallback_creativity(narration: str) -> int:
    """Creativity estimate used when the judge call itself fails."""
    bonus = HUMOR_BONUS if _HUMOR_MARKER.search(narration) else 0
    return min(100, word_count(narration) + bonus)


def extract_creativity_score(response_text: str) -> int:
    """Return the clamped CREATIVITY_SCORE value; raises ``JudgeParseError``."""
    score_match = _SCORE_LINE.search(response_text)
    if not score_match:
        raise JudgeParseError(response_text)
    return max(0, min(100, int(score_match.group(1))))


def parse_judge_response(response_text: str) -> JudgeOutcome:
    """Extract the score and feedback lines from a judge reply.

    A missing feedback line falls back to a generic message. A missing or
    non-numeric score line yields ``ParseFailed`` carrying the default score.
    """
    feedback_match = _FEEDBACK_LINE.search(response_text)
    feedback = (
        feedback_match.group(1).strip()
        if feedback_match and feedback_match.group(1).strip()
        else DEFAULT_JUDGE_FEEDBACK
    )

    try:
        creativity = extract_creativity_score(response_text)
    except JudgeParseError as err:
        logger.warning(
            "Judge response did not match the expected format. Using default score.",
            error=str(err),
            response_preview=err.raw_response[:200],
        )
        return ParseFailed(raw=err.raw_response, feedback=feedback)

    return Scored(creativity=creativity, feedback=feedback)


class CreativityJudgeAgent:
    """Asks an external text generator to grade narration creativity."""

    def __init__(
        self,
        generator: TextGenerator | None,
        model_name: str = settings.EVALUATION_MODEL,
        temperature: float = settings.TEMPERATURE_EVALUATION,
    ) -> None:
        self.generator = generator
        self.model_name = model_name
        self.temperature = temperature
        logger.info(
            "CreativityJudgeAgent initialized with model: %s", self.model_name
        )

    @property
    def is_configured(self) -> bool:
        return self.generator is not None

    def build_prompt(self, narration: str, location: LocationFact) -> str:
        return render_prompt(
            "creativity_judge_agent/evaluate_creativity.j2",
            {"narration": narration, "location": location},
        )

    async def judge(self, narration: str, location: LocationFact) -> JudgeOutcome:
        """Grade ``narration`` and return the judge outcome.

        Args:
            narration: Text to grade.
            location: Facts the narration describes; embedded in the prompt.

        Returns:
            ``Unavailable`` when no generator is configured, ``ParseFailed``
            when the reply lacks a score line, otherwise ``Scored``. A failing
            generator call is absorbed into a ``Scored`` fallback outcome.
        """
        if self.generator is None:
            return Unavailable(reason=NOT_CONFIGURED_REASON)

        try:
            prompt = self.build_prompt(narration, location)
            response_text = await self.generator.generate(
                prompt, model=self.model_name, temperature=self.temperature
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(
                "LLM evaluation error. Using fallback creativity heuristic.",
                location=location.name,
                error=str(exc),
                exc_info=True,
            )
            return Scored(
                creativity=fallback_creativity(narration),
                feedback=FALLBACK_FEEDBACK,
                fallback=True,
            )

        return parse_judge_response(response_text)

    async def judge_score(
        self, narration: str, location: LocationFact
    ) -> tuple[int, str]:
        """Return ``(creativity, feedback)``; raises when no generator is set."""
        outcome = await self.judge(narration, location)
        if isinstance(outcome, Unavailable):
            raise ConfigurationError(outcome.reason)
        return outcome.creativity, outcome.feedback
