# orchestration/evaluation_service.py
"""Combine heuristic and judge scoring into a single evaluation result."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog
from agents.creativity_judge_agent import CreativityJudgeAgent
from core.llm_interface import TextGenerator
from processing.heuristic_scoring import heuristic_scores
from utils import clamp_score, distinct_token_count, utc_timestamp, word_count

from models import (
    EvaluationMode,
    EvaluationResult,
    EvaluationScores,
    HeuristicScores,
    LocationFact,
    ParseFailed,
    Scored,
    Unavailable,
)

logger = structlog.get_logger(__name__)

QUICK_FEEDBACK = (
    "Quick heuristic evaluation completed. For detailed feedback, use full evaluation."
)
NOT_CONFIGURED_FEEDBACK = "OpenAI API key not configured. Using quick evaluation mode."
JUDGE_FAILED_FEEDBACK = "Judge evaluation failed. Using quick evaluation mode."

LEXICAL_DIVERSITY_SCALE = 150


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the four sub-scores in the overall score."""

    factual_consistency: float = 0.30
    tone_match: float = 0.30
    creativity: float = 0.25
    completeness: float = 0.15

    def combine(self, heuristics: HeuristicScores, creativity: int) -> int:
        return clamp_score(
            heuristics.factual_consistency * self.factual_consistency
            + heuristics.tone_match * self.tone_match
            + creativity * self.creativity
            + heuristics.completeness * self.completeness
        )


def lexical_diversity_creativity(narration: str) -> int:
    """Creativity estimate from the ratio of distinct to total words."""
    total_words = word_count(narration)
    if total_words == 0:
        return 0
    ratio = distinct_token_count(narration) / total_words
    return clamp_score(ratio * LEXICAL_DIVERSITY_SCALE)


class NarrationEvaluator:
    """Scores narrations in quick (heuristic) or full (heuristic + judge) mode.

    The judge is only consulted when a ``TextGenerator`` is injected; without
    one, full mode behaves like quick mode with an explanatory feedback
    string.
    """

    def __init__(
        self,
        generator: TextGenerator | None = None,
        weights: ScoreWeights | None = None,
        judge: CreativityJudgeAgent | None = None,
    ) -> None:
        self.weights = weights or ScoreWeights()
        self.judge = judge or CreativityJudgeAgent(generator)

    @property
    def generator(self) -> TextGenerator | None:
        return getattr(self.judge, "generator", None)

    async def aclose(self) -> None:
        """Close the judge's generator when it holds resources."""
        aclose = getattr(self.generator, "aclose", None)
        if aclose is not None:
            await aclose()

    def _assemble(
        self, heuristics: HeuristicScores, creativity: int, feedback: str
    ) -> EvaluationResult:
        scores = EvaluationScores(
            factual_consistency=heuristics.factual_consistency,
            tone_match=heuristics.tone_match,
            creativity=creativity,
            completeness=heuristics.completeness,
            overall=self.weights.combine(heuristics, creativity),
        )
        return EvaluationResult(
            scores=scores, feedback=feedback, timestamp=utc_timestamp()
        )

    def quick_evaluate(
        self, narration: str, location: LocationFact, feedback: str = QUICK_FEEDBACK
    ) -> EvaluationResult:
        """Heuristic-only evaluation; never calls the text generator."""
        heuristics = heuristic_scores(narration, location)
        return self._assemble(
            heuristics, lexical_diversity_creativity(narration), feedback
        )

    async def _full_evaluate(
        self, narration: str, location: LocationFact
    ) -> EvaluationResult:
        heuristics = heuristic_scores(narration, location)

        try:
            outcome = await self.judge.judge(narration, location)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(
                "Judge evaluation raised unexpectedly. Degrading to quick creativity.",
                location=location.name,
                error=str(exc),
                exc_info=True,
            )
            return self._assemble(
                heuristics,
                lexical_diversity_creativity(narration),
                JUDGE_FAILED_FEEDBACK,
            )

        if isinstance(outcome, Unavailable):
            logger.info(
                "Judge not configured; using quick evaluation.",
                location=location.name,
                reason=outcome.reason,
            )
            return self._assemble(
                heuristics,
                lexical_diversity_creativity(narration),
                NOT_CONFIGURED_FEEDBACK,
            )
        if isinstance(outcome, ParseFailed):
            logger.info(
                "Judge reply unparsable; default creativity used.",
                location=location.name,
            )
        elif outcome.fallback:
            logger.info(
                "Judge unreachable; fallback creativity used.",
                location=location.name,
                creativity=outcome.creativity,
            )
        return self._assemble(heuristics, outcome.creativity, outcome.feedback)

    async def evaluate(
        self,
        narration: str,
        location: LocationFact,
        mode: EvaluationMode = EvaluationMode.FULL,
    ) -> EvaluationResult:
        """Evaluate ``narration`` against ``location`` in the given mode."""
        if EvaluationMode(mode) is EvaluationMode.QUICK:
            return self.quick_evaluate(narration, location)
        return await self._full_evaluate(narration, location)
