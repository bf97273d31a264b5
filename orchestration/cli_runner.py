# orchestration/cli_runner.py
"""Command-line runner for narration generation and evaluation."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import structlog
from agents.narrator_agent import NarratorAgent
from config import settings
from core.exceptions import NarrationEvalError
from processing.heuristic_scoring import explain_heuristics
from rich.console import Console
from utils.logging import setup_logging

from models import EvaluationMode, LocationFact
from orchestration.evaluation_service import NarrationEvaluator
from orchestration.request_handler import build_evaluator, handle_evaluation_request

logger = structlog.get_logger(__name__)

console = Console()


def _load_location(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


async def _evaluate(
    evaluator: NarrationEvaluator,
    narration: str,
    location_data: dict[str, Any],
    mode: EvaluationMode,
    explain: bool,
) -> int:
    status, body = await handle_evaluation_request(
        {"narration": narration, "location": location_data, "mode": mode.value},
        evaluator,
    )
    if explain and status == 200:
        body["matched"] = explain_heuristics(
            narration, LocationFact.model_validate(location_data)
        )
    console.print_json(data=body)
    return 0 if status == 200 else 1


async def _run(
    location_file: str,
    narration_file: str | None,
    mode: EvaluationMode,
    explain: bool,
) -> int:
    location_data = _load_location(location_file)
    evaluator = build_evaluator(settings)
    try:
        if narration_file:
            narration = Path(narration_file).read_text(encoding="utf-8")
        else:
            narrator = NarratorAgent(evaluator.generator)
            narration = await narrator.narrate(
                LocationFact.model_validate(location_data)
            )
            console.print(narration)
        return await _evaluate(evaluator, narration, location_data, mode, explain)
    finally:
        await evaluator.aclose()


def run(
    location_file: str,
    narration_file: str | None,
    mode: str = EvaluationMode.FULL.value,
    explain: bool = False,
) -> int:
    """Evaluate a narration file, or generate one first when none is given."""
    setup_logging()
    try:
        return asyncio.run(
            _run(location_file, narration_file, EvaluationMode(mode), explain)
        )
    except KeyboardInterrupt:
        logger.info("Evaluation interrupted by user.")
        return 130
    except (OSError, ValueError, NarrationEvalError) as err:
        logger.error("Evaluation run failed: %s", err)
        return 1
