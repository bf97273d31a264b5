# utils/__init__.py
"""General utility functions for the narration evaluation engine."""

from .helpers import utc_timestamp
from .logging import setup_logging
from .text_processing import (
    clamp_score,
    distinct_token_count,
    round_half_up,
    split_sentences,
    split_words,
    word_count,
)

__all__ = [
    "clamp_score",
    "distinct_token_count",
    "round_half_up",
    "setup_logging",
    "split_sentences",
    "split_words",
    "utc_timestamp",
    "word_count",
]
