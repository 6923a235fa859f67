"""Typed contracts shared by the solve client, the resolver and the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SolveRequest:
    """One solve invocation as submitted by the caller.

    Attributes:
        problem: Problem statement; may be empty when an image is attached.
        category: Advisory category label, only used as prompt context.
        image: Optional encoded image (data URL, remote URL or raw base64).
    """

    problem: str = ""
    category: str = ""
    image: Optional[str] = None

    def has_problem(self) -> bool:
        return bool((self.problem or "").strip())

    def has_image(self) -> bool:
        return bool((self.image or "").strip())

    def is_empty(self) -> bool:
        """Returns True when neither problem text nor image was supplied."""
        return not self.has_problem() and not self.has_image()

    def to_payload(self) -> Dict[str, Any]:
        """Serializes the request into the inbound JSON body."""
        payload: Dict[str, Any] = {"problem": self.problem or "", "category": self.category or ""}
        if self.has_image():
            payload["image"] = self.image
        return payload


def _scalar_text(value: Any) -> Optional[str]:
    """Returns strings and numbers as text; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


@dataclass
class SolutionStep:
    title: str
    content: str
    formula: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        payload = {"title": self.title, "content": self.content}
        if self.formula is not None:
            payload["formula"] = self.formula
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["SolutionStep"]:
        """Builds a step from a mapping, or returns None when the shape is wrong."""
        if not isinstance(payload, dict):
            return None
        title = _scalar_text(payload.get("title"))
        content = _scalar_text(payload.get("content"))
        if title is None or content is None:
            return None
        formula = _scalar_text(payload.get("formula"))
        if formula is not None and not formula.strip():
            formula = None
        return cls(title=title, content=content, formula=formula)


@dataclass
class Solution:
    """Ordered solution steps plus the final answer.

    A returned solution always holds at least one step and a non-empty
    final answer.
    """

    steps: List[SolutionStep] = field(default_factory=list)
    final_answer: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [step.to_dict() for step in self.steps],
            "finalAnswer": self.final_answer,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Solution"]:
        """Validates and converts a decoded JSON payload.

        Args:
            payload: Decoded JSON value.

        Returns:
            A `Solution` when `steps` is a non-empty list of well-formed steps and
            `finalAnswer` is a non-empty string or number; otherwise None.
            Numeric fields are kept as their text form.
        """
        if not isinstance(payload, dict):
            return None
        raw_steps = payload.get("steps")
        final_answer = _scalar_text(payload.get("finalAnswer"))
        if not isinstance(raw_steps, list) or not raw_steps:
            return None
        if final_answer is None or not final_answer.strip():
            return None

        steps: List[SolutionStep] = []
        for item in raw_steps:
            step = SolutionStep.from_dict(item)
            if step is None:
                return None
            steps.append(step)
        return cls(steps=steps, final_answer=final_answer)
