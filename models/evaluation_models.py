# models/evaluation_models.py
"""Pydantic models for narration evaluation requests and results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Score = Annotated[int, Field(ge=0, le=100)]

DEFAULT_JUDGE_CREATIVITY = 50
DEFAULT_JUDGE_FEEDBACK = "Evaluation completed."


class EvaluationMode(str, Enum):
    """Evaluation profile selecting whether the judge may be consulted."""

    QUICK = "quick"
    FULL = "full"


class Resident(BaseModel):
    """A character living at a location."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    species: str = ""
    status: str = ""

    @field_validator("species", "status", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class LocationFact(BaseModel):
    """Factual record a narration is checked against."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    type: str = ""
    dimension: str = ""
    residents: list[Resident] = Field(default_factory=list)

    @field_validator("type", "dimension", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("residents", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class HeuristicScores(BaseModel):
    """The three deterministic sub-scores."""

    model_config = ConfigDict(frozen=True)

    factual_consistency: Score
    tone_match: Score
    completeness: Score


class EvaluationScores(BaseModel):
    """All four sub-scores plus the weighted overall score."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    factual_consistency: Score
    tone_match: Score
    creativity: Score
    completeness: Score
    overall: Score


class EvaluationResult(BaseModel):
    """Scores, feedback and the time the evaluation completed."""

    model_config = ConfigDict(populate_by_name=True)

    scores: EvaluationScores
    feedback: str
    timestamp: str


class EvaluationRequest(BaseModel):
    """Payload accepted at the invocation boundary."""

    model_config = ConfigDict(extra="ignore")

    narration: str
    location: LocationFact
    mode: EvaluationMode = EvaluationMode.FULL

    @field_validator("mode", mode="before")
    @classmethod
    def _default_mode(cls, value: Any) -> Any:
        return EvaluationMode.FULL if value in (None, "") else value


class EvaluationResponse(EvaluationResult):
    """Evaluation result echoed with the mode and location name."""

    mode: EvaluationMode
    location: str


@dataclass(frozen=True)
class Scored:
    """Judge produced a creativity score, possibly via the local fallback."""

    creativity: int
    feedback: str
    fallback: bool = False


@dataclass(frozen=True)
class Unavailable:
    """No text generator is configured."""

    reason: str


@dataclass(frozen=True)
class ParseFailed:
    """Judge reply lacked a usable score line; defaults apply."""

    raw: str
    feedback: str = DEFAULT_JUDGE_FEEDBACK
    creativity: int = DEFAULT_JUDGE_CREATIVITY


JudgeOutcome = Scored | Unavailable | ParseFailed
