# agents/narrator_agent.py
"""Agent producing in-character narrations for locations."""

from __future__ import annotations

import structlog
from config import settings
from core.exceptions import ConfigurationError
from core.llm_interface import TextGenerator
from prompt_renderer import render_prompt

from models import LocationFact

logger = structlog.get_logger(__name__)

NO_RESIDENTS_TEXT = "No known residents"


def summarize_residents(
    location: LocationFact, limit: int = settings.NARRATION_MAX_RESIDENTS_IN_PROMPT
) -> str:
    """Render ``Name (Species, Status)`` for the first ``limit`` residents."""
    if not location.residents:
        return NO_RESIDENTS_TEXT

    summary = ", ".join(
        f"{r.name} ({r.species}, {r.status})" for r in location.residents[:limit]
    )
    remaining = len(location.residents) - limit
    if remaining > 0:
        summary += f" and {remaining} more"
    return summary


class NarratorAgent:
    """Generates a short narration of a location in Rick Sanchez's voice."""

    def __init__(
        self,
        generator: TextGenerator | None,
        model_name: str = settings.NARRATION_MODEL,
        temperature: float = settings.TEMPERATURE_NARRATION,
    ) -> None:
        self.generator = generator
        self.model_name = model_name
        self.temperature = temperature
        logger.info("NarratorAgent initialized with model: %s", self.model_name)

    def build_prompt(self, location: LocationFact) -> str:
        return render_prompt(
            "narrator_agent/narrate_location.j2",
            {"location": location, "resident_summary": summarize_residents(location)},
        )

    async def narrate(self, location: LocationFact) -> str:
        """Generate a narration; generator errors propagate to the caller."""
        if self.generator is None:
            raise ConfigurationError(
                "OpenAI API key not configured. Please add OPENAI_API_KEY to your .env file"
            )

        logger.info("Generating narration.", location=location.name)
        text = await self.generator.generate(
            self.build_prompt(location),
            model=self.model_name,
            temperature=self.temperature,
        )
        logger.info(
            "Narration generated successfully.",
            location=location.name,
            length=len(text),
        )
        return text
