# orchestration/request_handler.py
"""Request/response boundary for narration evaluation."""

from __future__ import annotations

from typing import Any

import pydantic
import structlog
from config import NarrationEvalSettings, settings
from core.exceptions import ValidationError
from core.llm_interface import LLMService

from models import EvaluationRequest, EvaluationResponse
from orchestration.evaluation_service import NarrationEvaluator

logger = structlog.get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Narration and location data are required"
GENERIC_FAILURE_MESSAGE = "Failed to evaluate narration"


def build_evaluator(config: NarrationEvalSettings = settings) -> NarrationEvaluator:
    """Create an evaluator, wiring the judge only when credentials exist."""
    if not config.has_llm_credentials:
        logger.info("No API key configured; full evaluation will use quick mode.")
        return NarrationEvaluator(generator=None)
    return NarrationEvaluator(generator=LLMService(config))


def parse_evaluation_request(payload: Any) -> EvaluationRequest:
    """Validate a raw payload; raises ``ValidationError`` on bad input."""
    if not isinstance(payload, dict):
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    narration = payload.get("narration")
    location = payload.get("location")
    if not isinstance(narration, str) or not narration.strip() or not location:
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    try:
        return EvaluationRequest.model_validate(payload)
    except pydantic.ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in exc.errors()
        )
        raise ValidationError(f"Invalid evaluation request fields: {fields}") from exc


async def handle_evaluation_request(
    payload: Any, evaluator: NarrationEvaluator
) -> tuple[int, dict[str, Any]]:
    """Evaluate a request payload and return ``(status_code, body)``.

    Never raises: validation problems map to 400 and anything unexpected to
    500 with a generic message.
    """
    try:
        request = parse_evaluation_request(payload)
    except ValidationError as exc:
        logger.warning("Rejected evaluation request.", error=str(exc))
        return 400, {"error": str(exc)}

    try:
        logger.info(
            "Evaluating narration.",
            location=request.location.name,
            mode=request.mode.value,
        )
        result = await evaluator.evaluate(
            request.narration, request.location, request.mode
        )
        logger.info("Evaluation complete.", overall=result.scores.overall)

        response = EvaluationResponse(
            **result.model_dump(),
            mode=request.mode,
            location=request.location.name,
        )
        return 200, response.model_dump(mode="json", by_alias=True)
    except Exception as exc:
        logger.error("Error evaluating narration.", error=str(exc), exc_info=True)
        return 500, {"error": str(exc) or GENERIC_FAILURE_MESSAGE}
