"""Deterministic reasoning backend payloads and transports for tests."""

import json
from typing import Any, Callable, Dict, List

import httpx

QUADRATIC_SOLUTION = {
    "steps": [
        {"title": "Identifier les coefficients", "content": "On a a = 1, b = -5 et c = -6.", "formula": "ax² + bx + c = 0"},
        {"title": "Calculer le discriminant", "content": "On calcule Δ = b² - 4ac.", "formula": "Δ = 25 + 24 = 49"},
        {"title": "Racine du discriminant", "content": "Δ > 0 donc deux solutions réelles.", "formula": "√Δ = 7"},
        {"title": "Appliquer la formule", "content": "On utilise x = (-b ± √Δ) / 2a.", "formula": "x = (5 ± 7) / 2"},
        {"title": "Conclure", "content": "Les deux racines sont 6 et -1."},
    ],
    "finalAnswer": "x₁ = 6 et x₂ = -1",
}

PROSE_REPLY = "Sure, here's how: factor the quadratic and read off the roots."


def chat_completion(content: str) -> Dict[str, Any]:
    """Wraps text in an OpenAI-compatible chat completion body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


def fenced(payload: Dict[str, Any]) -> str:
    return "```json\n{}\n```".format(json.dumps(payload, ensure_ascii=False))


class RecordingBackend:
    """Mock transport handler recording every request it receives."""

    def __init__(self, content: str = "", status_code: int = 200, body: Any = None) -> None:
        self.content = content
        self.status_code = status_code
        self.body = body
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is not None:
            return httpx.Response(self.status_code, json=self.body)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"error": {"message": "upstream failure"}})
        return httpx.Response(self.status_code, json=chat_completion(self.content))

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_payload(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content.decode("utf-8"))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def raising_transport(exc_factory: Callable[[httpx.Request], Exception]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_factory(request)

    return httpx.MockTransport(handler)
