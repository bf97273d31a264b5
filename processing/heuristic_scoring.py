# processing/heuristic_scoring.py
"""Deterministic pattern-based scoring of narrations.

Produces the factual consistency, tone match and completeness sub-scores
from the narration text and the location's factual record. Every check is a
small predicate paired with a weight; the scores are folded sums over those
tables so that new markers only need a new table entry.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from utils import clamp_score, round_half_up, split_sentences, word_count

from models import HeuristicScores, LocationFact

logger = structlog.get_logger(__name__)

MAX_RESIDENT_POINTS = 20
POINTS_PER_RESIDENT = 10

IDEAL_MIN_WORDS = 30
IDEAL_MAX_WORDS = 150
SHORT_TEXT_MAX_SCORE = 50
LONG_TEXT_FLOOR = 50
SENTENCE_STRUCTURE_BONUS = 10


@dataclass(frozen=True)
class ToneMarker:
    """A stylistic marker worth ``points`` when ``predicate`` holds."""

    name: str
    predicate: Callable[[str], bool]
    points: int

    def matches(self, narration: str) -> bool:
        return self.predicate(narration)


@dataclass(frozen=True)
class FactCheck:
    """A factual grounding check scored against a location."""

    name: str
    scorer: Callable[[str, LocationFact], int]

    def score(self, narration_lower: str, location: LocationFact) -> int:
        return self.scorer(narration_lower, location)


def keyword_predicate(*terms: str) -> Callable[[str], bool]:
    """Case-insensitive whole-word match against any of ``terms``."""
    pattern = re.compile(
        r"\b(" + "|".join(re.escape(term) for term in terms) + r")\b",
        flags=re.IGNORECASE,
    )
    return lambda text: pattern.search(text) is not None


_MULTI_SENTENCE = re.compile(r"[.!?]\s+[A-Z].*[.!?]\s+[A-Z]", flags=re.DOTALL)


def has_multi_sentence_structure(text: str) -> bool:
    """Two sentence boundaries each followed by a capitalized word."""
    return _MULTI_SENTENCE.search(text) is not None


TONE_MARKERS: tuple[ToneMarker, ...] = (
    ToneMarker("Morty reference", keyword_predicate("morty", "jeez", "geez"), 15),
    ToneMarker("Burp", keyword_predicate("burp", "belch"), 10),
    ToneMarker(
        "Sci-fi jargon",
        keyword_predicate("dimension", "multiverse", "universe", "reality", "portal"),
        15,
    ),
    ToneMarker(
        "Cynicism",
        keyword_predicate("stupid", "dumb", "idiot", "moron", "pathetic"),
        10,
    ),
    ToneMarker(
        "Scientific terms",
        keyword_predicate(
            "science", "quantum", "molecular", "cosmic", "inter-dimensional"
        ),
        15,
    ),
    ToneMarker(
        "Nihilism",
        keyword_predicate(
            "nobody cares", "doesn't matter", "pointless", "meaningless", "who cares"
        ),
        15,
    ),
    ToneMarker("Family references", keyword_predicate("grandpa", "grandson", "family"), 10),
    ToneMarker("Multiple sentences", has_multi_sentence_structure, 10),
)


# Plain containment: an empty name counts as mentioned.
def _mentions(narration_lower: str, value: str) -> bool:
    return value.lower() in narration_lower


def _mentions_non_empty(narration_lower: str, value: str) -> bool:
    return bool(value) and _mentions(narration_lower, value)


def _score_name(narration_lower: str, location: LocationFact) -> int:
    return 40 if _mentions(narration_lower, location.name) else 0


def _score_type(narration_lower: str, location: LocationFact) -> int:
    return 20 if _mentions_non_empty(narration_lower, location.type) else 0


def _score_dimension(narration_lower: str, location: LocationFact) -> int:
    return 20 if _mentions_non_empty(narration_lower, location.dimension) else 0


def _score_residents(narration_lower: str, location: LocationFact) -> int:
    mentioned = sum(
        1 for resident in location.residents if _mentions(narration_lower, resident.name)
    )
    return min(MAX_RESIDENT_POINTS, mentioned * POINTS_PER_RESIDENT)


FACT_CHECKS: tuple[FactCheck, ...] = (
    FactCheck("Location name", _score_name),
    FactCheck("Location type", _score_type),
    FactCheck("Dimension", _score_dimension),
    FactCheck("Residents", _score_residents),
)


def score_factual_consistency(narration: str, location: LocationFact) -> int:
    narration_lower = narration.lower()
    return clamp_score(sum(check.score(narration_lower, location) for check in FACT_CHECKS))


def score_tone_match(narration: str) -> int:
    return clamp_score(
        sum(marker.points for marker in TONE_MARKERS if marker.matches(narration))
    )


def score_completeness(narration: str) -> int:
    """Score length against the ideal band, plus a bonus for multiple sentences."""
    words = word_count(narration)
    if words < IDEAL_MIN_WORDS:
        score = (words / IDEAL_MIN_WORDS) * SHORT_TEXT_MAX_SCORE
    elif words <= IDEAL_MAX_WORDS:
        score = 100.0
    else:
        score = max(LONG_TEXT_FLOOR, 100 - (words - IDEAL_MAX_WORDS) / 2)

    if len(split_sentences(narration)) >= 2:
        score = min(100.0, score + SENTENCE_STRUCTURE_BONUS)
    return round_half_up(score)


def heuristic_scores(narration: str, location: LocationFact) -> HeuristicScores:
    """Compute the deterministic sub-scores for ``narration``.

    Never raises; empty or odd input simply scores low.
    """
    scores = HeuristicScores(
        factual_consistency=score_factual_consistency(narration, location),
        tone_match=score_tone_match(narration),
        completeness=score_completeness(narration),
    )
    logger.debug(
        "Heuristic scores computed.",
        location=location.name,
        factual_consistency=scores.factual_consistency,
        tone_match=scores.tone_match,
        completeness=scores.completeness,
    )
    return scores


def explain_heuristics(narration: str, location: LocationFact) -> dict[str, list[str]]:
    """Names of the tone markers and factual checks that contributed points."""
    narration_lower = narration.lower()
    return {
        "tone_markers": [m.name for m in TONE_MARKERS if m.matches(narration)],
        "fact_checks": [
            c.name for c in FACT_CHECKS if c.score(narration_lower, location) > 0
        ],
    }
