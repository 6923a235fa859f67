"""Prompt construction, backend output coercion and the solution resolver."""

from .parser import build_fallback_solution, coerce_solution, parse_structured_solution, strip_code_fences
from .prompts import build_messages, build_user_content
from .resolver import SolutionResolver

__all__ = [
    "SolutionResolver",
    "build_messages",
    "build_user_content",
    "build_fallback_solution",
    "coerce_solution",
    "parse_structured_solution",
    "strip_code_fences",
]
