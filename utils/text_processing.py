# utils/text_processing.py
"""Tokenizing helpers shared by the heuristic scorers."""

from __future__ import annotations

import math
import re

_SENTENCE_DELIMITERS = re.compile(r"[.!?]+")
_NON_WORD = re.compile(r"\W+", flags=re.ASCII)


def split_words(text: str) -> list[str]:
    """Return whitespace-delimited tokens."""
    return text.split()


def word_count(text: str) -> int:
    return len(split_words(text))


def split_sentences(text: str) -> list[str]:
    """Return the non-empty ``.!?``-delimited sentences of ``text``."""
    return [s for s in _SENTENCE_DELIMITERS.split(text) if s.strip()]


def distinct_token_count(text: str) -> int:
    """Count distinct lower-cased tokens split on non-word runs.

    Leading or trailing punctuation yields an empty token which is counted
    like any other, so ``"Hi!"`` has two distinct tokens.
    """
    return len(set(_NON_WORD.split(text.lower())))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, round_half_up(value)))
