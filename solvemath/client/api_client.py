"""HTTP client for the solve API, with response shape validation."""

from __future__ import annotations

import base64
import logging
import mimetypes
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from solvemath.errors import (
    GENERIC_FAILURE_MESSAGE,
    BackendUnavailableError,
    InvalidRequestError,
    MalformedResponseError,
    SolveError,
    error_for_status,
)
from solvemath.history import HistoryItem
from solvemath.models import Solution, SolveRequest

logger = logging.getLogger("solvemath.client.api_client")

CONNECT_FAILURE_MESSAGE = "Impossible de joindre le service de résolution"


def encode_image_bytes(image_bytes: bytes, media_type: str = "image/png") -> str:
    """Encodes raw image bytes as a base64 data URL."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return "data:{};base64,{}".format(media_type, encoded)


def infer_image_media_type(filename: str, fallback: str = "image/png") -> str:
    guessed, _ = mimetypes.guess_type(filename)
    if guessed and guessed.startswith("image/"):
        return guessed
    return fallback


def encode_image_file(path: str, max_image_bytes: int = 5242880) -> str:
    """Reads a local image and returns it as a data URL.

    Args:
        path: Local image path.
        max_image_bytes: Maximum accepted file size.

    Returns:
        Base64 data URL with an inferred media type.

    Raises:
        ValueError: If the file is missing or larger than `max_image_bytes`.
    """
    image_path = Path(path).expanduser()
    if not image_path.is_file():
        raise ValueError("Image introuvable: {}".format(path))
    payload = image_path.read_bytes()
    if len(payload) > max_image_bytes:
        raise ValueError("Image trop volumineuse ({} octets, maximum {})".format(len(payload), max_image_bytes))
    return encode_image_bytes(payload, infer_image_media_type(image_path.name))


def build_solve_payload(problem: str, category: str = "", image: Optional[str] = None) -> Dict[str, Any]:
    """Builds the `/v1/solve` body.

    Raises:
        InvalidRequestError: If neither problem text nor image is provided.
    """
    request = SolveRequest(problem=problem or "", category=category or "", image=image)
    if request.is_empty():
        raise InvalidRequestError()
    return request.to_payload()


def interpret_solve_response(status_code: int, body: Any) -> Solution:
    """Turns an HTTP outcome into a solution or a typed error.

    Args:
        status_code: HTTP status of the solve response.
        body: Decoded JSON body, or None when the body was not JSON.

    Returns:
        The validated solution.

    Raises:
        SolveError: Subclass matching the status, the `error` field, or the
            missing fields of a success body.
    """
    error_message = _extract_error_message(body)
    if status_code >= 400:
        raise error_for_status(status_code, error_message or GENERIC_FAILURE_MESSAGE)
    if error_message:
        raise SolveError(error_message, status_code=status_code)

    solution = Solution.from_dict(body)
    if solution is None:
        logger.error("Invalid response structure: %s", body)
        raise MalformedResponseError()
    return solution


def _extract_error_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    value = body.get("error")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class SolveApiClient:
    """Calls the solve API once per request; no retries.

    Args:
        base_url: API base URL.
        timeout_seconds: Request timeout in seconds.
        user_id: Optional authenticated identity forwarded for history.
        http_client: Optional pre-built `httpx.Client` (e.g. a test client).
        transport: Optional sync transport used when no `http_client` is given.
        async_transport: Optional transport for :meth:`solve_async`.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        timeout_seconds: float = 120.0,
        user_id: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.user_id = user_id
        self._http_client = http_client
        self._transport = transport
        self._async_transport = async_transport

    def _headers(self, request_id: Optional[str] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if request_id:
            headers["X-Request-ID"] = request_id
        if self.user_id:
            headers["X-User-ID"] = self.user_id
        return headers

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        endpoint = self.base_url + path
        started_at = time.perf_counter()
        logger.info("HTTP %s start endpoint=%s timeout=%ss", method, endpoint, self.timeout_seconds)
        try:
            if self._http_client is not None:
                response = self._http_client.request(method, endpoint, **kwargs)
            else:
                with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
                    response = client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as exc:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            logger.error("HTTP timeout endpoint=%s elapsed_ms=%.1f", endpoint, elapsed_ms)
            raise BackendUnavailableError(CONNECT_FAILURE_MESSAGE) from exc
        except httpx.HTTPError as exc:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            logger.error("HTTP error endpoint=%s elapsed_ms=%.1f error=%s", endpoint, elapsed_ms, exc)
            raise BackendUnavailableError(CONNECT_FAILURE_MESSAGE) from exc
        elapsed_ms = (time.perf_counter() - started_at) * 1000.0
        logger.info("HTTP %s done endpoint=%s status=%s elapsed_ms=%.1f", method, endpoint, response.status_code, elapsed_ms)
        return response

    def solve(
        self,
        problem: str,
        category: str = "",
        image: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Solution:
        """Submits one problem and returns the validated solution.

        Raises:
            InvalidRequestError: If both problem and image are empty; nothing is sent.
            SolveError: On network failure, error status, error body or invalid shape.
        """
        payload = build_solve_payload(problem, category, image)
        response = self._send("POST", "/v1/solve", json=payload, headers=self._headers(request_id))
        return interpret_solve_response(response.status_code, _decode_body(response))

    async def solve_async(
        self,
        problem: str,
        category: str = "",
        image: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Solution:
        """Async variant of :meth:`solve`."""
        payload = build_solve_payload(problem, category, image)
        endpoint = self.base_url + "/v1/solve"
        started_at = time.perf_counter()
        logger.info("HTTP POST start endpoint=%s timeout=%ss", endpoint, self.timeout_seconds)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._async_transport) as client:
                response = await client.post(endpoint, json=payload, headers=self._headers(request_id))
        except httpx.TimeoutException as exc:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            logger.error("HTTP timeout endpoint=%s elapsed_ms=%.1f", endpoint, elapsed_ms)
            raise BackendUnavailableError(CONNECT_FAILURE_MESSAGE) from exc
        except httpx.HTTPError as exc:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            logger.error("HTTP error endpoint=%s elapsed_ms=%.1f error=%s", endpoint, elapsed_ms, exc)
            raise BackendUnavailableError(CONNECT_FAILURE_MESSAGE) from exc
        elapsed_ms = (time.perf_counter() - started_at) * 1000.0
        logger.info("HTTP POST done endpoint=%s status=%s elapsed_ms=%.1f", endpoint, response.status_code, elapsed_ms)
        return interpret_solve_response(response.status_code, _decode_body(response))

    def list_history(self, limit: int = 50) -> List[HistoryItem]:
        """Returns the caller's history, newest first; empty when anonymous."""
        if not self.user_id:
            return []
        response = self._send("GET", "/v1/history", params={"limit": limit}, headers=self._headers())
        body = _decode_body(response)
        if response.status_code >= 400:
            raise error_for_status(response.status_code, _extract_error_message(body))
        items = body.get("items", []) if isinstance(body, dict) else []
        return [HistoryItem.from_dict(item) for item in items]

    def delete_history_item(self, item_id: str) -> None:
        response = self._send("DELETE", "/v1/history/{}".format(item_id), headers=self._headers())
        if response.status_code >= 400:
            body = _decode_body(response)
            raise SolveError(_extract_error_message(body) or GENERIC_FAILURE_MESSAGE, status_code=response.status_code)
