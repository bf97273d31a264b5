# main.py
"""CLI entry point for the narration evaluation engine."""

from __future__ import annotations

import argparse
import sys

from orchestration.cli_runner import run


def main() -> None:
    """Parse command-line arguments and evaluate a narration."""
    parser = argparse.ArgumentParser(
        description="Score a location narration for factual grounding, tone, creativity and completeness."
    )
    parser.add_argument(
        "location", help="Path to a JSON file with the location's name, type, dimension and residents"
    )
    parser.add_argument(
        "--narration",
        default=None,
        help="Path to a text file with the narration; generated when omitted",
    )
    parser.add_argument("--mode", choices=["quick", "full"], default="full")
    parser.add_argument(
        "--explain",
        action="store_true",
        help="Include the matched tone markers and factual checks in the output",
    )
    args = parser.parse_args()
    sys.exit(run(args.location, args.narration, args.mode, args.explain))


if __name__ == "__main__":
    main()
