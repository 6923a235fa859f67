"""Reasoning backend client for OpenAI-compatible chat completion gateways."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from dotenv import load_dotenv

from solvemath.errors import (
    BackendUnavailableError,
    ConfigurationError,
    QuotaExhaustedError,
    RateLimitedError,
)
from solvemath.utils.config_loader import LLMSettings
from solvemath.utils.logger import get_logger

logger = get_logger("solvemath.llm.client")


@dataclass
class LLMRuntimeConfig:
    """Runtime configuration for the reasoning backend client.

    Attributes:
        base_url: Gateway base URL; `/chat/completions` is appended.
        model: Provider model identifier.
        api_key_env: Environment variable holding the bearer token.
        temperature: Sampling temperature used by chat completions.
        timeout_seconds: Bound for the whole HTTP round-trip.
    """

    base_url: str = "https://ai.gateway.lovable.dev/v1"
    model: str = "google/gemini-3-flash-preview"
    api_key_env: str = "LOVABLE_API_KEY"
    temperature: float = 0.3
    timeout_seconds: float = 60.0

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> "LLMRuntimeConfig":
        return cls(
            base_url=settings.base_url,
            model=settings.model,
            api_key_env=settings.api_key_env,
            temperature=settings.temperature,
            timeout_seconds=settings.timeout_seconds,
        )


class ReasoningBackendClient:
    """Performs one chat completion per call and maps upstream failures.

    The client keeps configuration only. Every call opens its own
    `httpx.AsyncClient`, so concurrent calls never share state.
    """

    def __init__(
        self,
        config: Optional[LLMRuntimeConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Builds a client.

        Args:
            config: Runtime settings; defaults are used when omitted.
            transport: Optional httpx transport, mainly for tests.
        """
        self.config = config or LLMRuntimeConfig()
        self._transport = transport
        _load_environment_variables()

    @property
    def endpoint(self) -> str:
        return self.config.base_url.rstrip("/") + "/chat/completions"

    def describe(self) -> Dict[str, Any]:
        """Returns diagnostics about the configured backend."""
        return {
            "endpoint": self.endpoint,
            "model": self.config.model,
            "temperature": self.config.temperature,
            "api_key_env": self.config.api_key_env,
            "api_key_present": _resolve_api_key(self._key_candidates()) is not None,
        }

    def _key_candidates(self) -> List[str]:
        return [self.config.api_key_env, "LOVABLE_API_KEY"]

    def build_payload(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
        }

    async def complete(self, messages: List[Dict[str, Any]]) -> str:
        """Sends the chat messages and returns the completion text.

        Args:
            messages: Chat messages in role/content mapping format.

        Returns:
            Text content of the first choice.

        Raises:
            ConfigurationError: If no API key is configured.
            RateLimitedError: On HTTP 429.
            QuotaExhaustedError: On HTTP 402.
            BackendUnavailableError: On other failures or an empty completion.
        """
        api_key = _resolve_api_key(self._key_candidates())
        if not api_key:
            raise ConfigurationError("{} is not configured".format(self.config.api_key_env))

        headers = {"Authorization": "Bearer {}".format(api_key), "Content-Type": "application/json"}
        started_at = time.perf_counter()
        logger.info("backend_call_start endpoint=%s model=%s", self.endpoint, self.config.model)
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=self.build_payload(messages), headers=headers)
        except httpx.TimeoutException as exc:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            logger.error("backend_timeout endpoint=%s elapsed_ms=%.1f", self.endpoint, elapsed_ms)
            raise BackendUnavailableError() from exc
        except httpx.HTTPError as exc:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            logger.error("backend_transport_error endpoint=%s elapsed_ms=%.1f error=%s", self.endpoint, elapsed_ms, exc)
            raise BackendUnavailableError() from exc

        elapsed_ms = (time.perf_counter() - started_at) * 1000.0
        logger.info("backend_call_done status=%s elapsed_ms=%.1f", response.status_code, elapsed_ms)
        _raise_for_upstream_status(response)
        return _extract_completion_text(response)


def _raise_for_upstream_status(response: httpx.Response) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 429:
        raise RateLimitedError()
    if status == 402:
        raise QuotaExhaustedError()
    logger.error("backend_error status=%s body=%s", status, response.text[:500])
    raise BackendUnavailableError()


def _extract_completion_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError as exc:
        logger.error("backend_invalid_json body=%s", response.text[:500])
        raise BackendUnavailableError() from exc

    content: Any = None
    choices = data.get("choices") if isinstance(data, dict) else None
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        if isinstance(message, dict):
            content = message.get("content")

    if not isinstance(content, str) or not content:
        raise BackendUnavailableError("No content in AI response")
    return content


def _load_environment_variables() -> None:
    """Loads environment variables from candidate `.env` files without overriding."""
    env_candidates = [
        Path.cwd() / ".env",
        Path(__file__).resolve().parents[2] / ".env",
    ]
    for env_path in env_candidates:
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)


def _resolve_api_key(candidates: List[str]) -> Optional[str]:
    """Finds the first non-empty API key among candidate env vars."""
    for name in candidates:
        if not name:
            continue
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None
