"""Central package for narration evaluation data models."""

from .evaluation_models import (
    DEFAULT_JUDGE_CREATIVITY,
    DEFAULT_JUDGE_FEEDBACK,
    EvaluationMode,
    EvaluationRequest,
    EvaluationResponse,
    EvaluationResult,
    EvaluationScores,
    HeuristicScores,
    JudgeOutcome,
    LocationFact,
    ParseFailed,
    Resident,
    Scored,
    Unavailable,
)

__all__ = [
    "DEFAULT_JUDGE_CREATIVITY",
    "DEFAULT_JUDGE_FEEDBACK",
    "EvaluationMode",
    "EvaluationRequest",
    "EvaluationResponse",
    "EvaluationResult",
    "EvaluationScores",
    "HeuristicScores",
    "JudgeOutcome",
    "LocationFact",
    "ParseFailed",
    "Resident",
    "Scored",
    "Unavailable",
]
