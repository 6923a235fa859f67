"""Problem-to-solution resolution against the reasoning backend."""

from __future__ import annotations

import time
from typing import Dict, Optional

from solvemath.errors import InvalidRequestError
from solvemath.llm.client import ReasoningBackendClient
from solvemath.models import Solution, SolveRequest
from solvemath.resolution.parser import coerce_solution
from solvemath.resolution.prompts import build_messages
from solvemath.utils.logger import get_logger

logger = get_logger("solvemath.resolution.resolver")


class SolutionResolver:
    """Turns one solve request into a structured solution.

    Each call validates the request, builds the prompt, performs a single
    backend call and coerces the reply. Unparsable replies are absorbed into a
    one-step fallback solution; only configuration and upstream failures raise.
    """

    def __init__(
        self,
        backend: Optional[ReasoningBackendClient] = None,
        prompt_pack: Optional[Dict[str, str]] = None,
    ) -> None:
        self.backend = backend or ReasoningBackendClient()
        self.prompt_pack = dict(prompt_pack or {})

    async def resolve(self, problem: str, category: str = "", image: Optional[str] = None) -> Solution:
        """Resolves a problem statement and/or image into a solution.

        Args:
            problem: Problem text; may be empty when an image is given.
            category: Advisory category label.
            image: Optional encoded image.

        Returns:
            A solution with at least one step and a non-empty final answer.

        Raises:
            InvalidRequestError: If neither problem nor image is provided.
            SolveError: Subclasses raised by the backend client.
        """
        request = SolveRequest(problem=problem or "", category=category or "", image=image or None)
        return await self.resolve_request(request)

    async def resolve_request(self, request: SolveRequest) -> Solution:
        if request.is_empty():
            raise InvalidRequestError()

        messages = build_messages(
            problem=request.problem,
            category=request.category,
            image=request.image if request.has_image() else None,
            prompt_pack=self.prompt_pack,
        )
        started_at = time.perf_counter()
        raw_text = await self.backend.complete(messages)
        solution, structured = coerce_solution(raw_text)
        elapsed_ms = (time.perf_counter() - started_at) * 1000.0
        logger.info(
            "resolve_done category=%s has_image=%s structured=%s steps=%s elapsed_ms=%.1f",
            request.category or "-",
            request.has_image(),
            structured,
            len(solution.steps),
            elapsed_ms,
            extra={
                "context": {
                    "category": request.category or None,
                    "structured": structured,
                    "steps": len(solution.steps),
                    "elapsed_ms": round(elapsed_ms, 1),
                }
            },
        )
        return solution
