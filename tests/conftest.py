# tests/conftest.py
import os
import sys

import pytest

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

# Ensure placeholder secrets do not trigger validators during tests
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from models import LocationFact  # noqa: E402


class FakeGenerator:
    """Records calls and returns a canned reply or raises."""

    def __init__(self, response: str = "", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    async def generate(self, prompt: str, *, model: str, temperature: float) -> str:
        self.calls.append({"prompt": prompt, "model": model, "temperature": temperature})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def citadel() -> LocationFact:
    return LocationFact(
        name="Citadel of Ricks",
        type="Space station",
        dimension="Unknown",
        residents=[],
    )


@pytest.fixture
def earth() -> LocationFact:
    return LocationFact.model_validate(
        {
            "id": "1",
            "name": "Earth (C-137)",
            "type": "Planet",
            "dimension": "Dimension C-137",
            "residents": [
                {"id": "38", "name": "Beth Smith", "species": "Human", "status": "Alive"},
                {"id": "45", "name": "Bill", "species": "Human", "status": "Alive"},
                {"id": "71", "name": "Davin", "species": "Human", "status": "Dead"},
            ],
        }
    )


CITADEL_NARRATION = (
    "Welcome to the Citadel of Ricks, Morty! In this dimension, everyone's a "
    "genius, and nobody cares. Quantum paradoxes, multiverse bureaucracy — "
    "it's all pathetic, honestly."
)


@pytest.fixture
def citadel_narration() -> str:
    return CITADEL_NARRATION


@pytest.fixture
def make_generator():
    """Factory for ``FakeGenerator`` instances."""
    return FakeGenerator
