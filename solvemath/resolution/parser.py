"""Coercion of free-form backend output into a structured solution."""

from __future__ import annotations

import json
import re
from typing import Optional, Tuple

from solvemath.models import Solution, SolutionStep
from solvemath.utils.logger import get_logger

FALLBACK_STEP_TITLE = "Analyse du problème"
FALLBACK_FINAL_ANSWER = "Voir l'analyse ci-dessus"

_FENCE_PATTERN = re.compile(r"```(?:json)?\n?")

logger = get_logger("solvemath.resolution.parser")


def strip_code_fences(text: str) -> str:
    """Removes fenced-code markers (```json / ```) and surrounding whitespace."""
    return _FENCE_PATTERN.sub("", text).strip()


def parse_structured_solution(text: str) -> Optional[Solution]:
    """Strictly parses backend text into a solution.

    Args:
        text: Raw backend completion.

    Returns:
        The parsed `Solution`, or None when the text is not JSON or the JSON
        does not have the solution shape.
    """
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        return None
    return Solution.from_dict(payload)


def build_fallback_solution(raw_text: str) -> Solution:
    """Wraps unparsable backend text verbatim into a one-step solution."""
    return Solution(
        steps=[SolutionStep(title=FALLBACK_STEP_TITLE, content=raw_text)],
        final_answer=FALLBACK_FINAL_ANSWER,
    )


def coerce_solution(raw_text: str) -> Tuple[Solution, bool]:
    """Returns a valid solution for any backend text.

    Args:
        raw_text: Raw backend completion.

    Returns:
        Tuple of `(solution, structured)` where `structured` is False when the
        fallback solution was synthesized.
    """
    parsed = parse_structured_solution(raw_text)
    if parsed is not None:
        return parsed, True
    logger.warning("solution_parse_fallback raw_chars=%s", len(raw_text))
    return build_fallback_solution(raw_text), False
