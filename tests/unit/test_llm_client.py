import os
import unittest
from unittest.mock import patch

import httpx

from solvemath.errors import (
    BackendUnavailableError,
    ConfigurationError,
    QuotaExhaustedError,
    RateLimitedError,
)
from solvemath.llm.client import LLMRuntimeConfig, ReasoningBackendClient, _resolve_api_key
from tests.mocks.mock_backend_responses import RecordingBackend, raising_transport

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "2+2"}]


class ReasoningBackendClientTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        patcher = patch.dict(os.environ, {"LOVABLE_API_KEY": "test-key"}, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)

    async def test_complete_returns_first_choice_content(self) -> None:
        backend = RecordingBackend(content='{"steps": []}')
        client = ReasoningBackendClient(transport=backend.transport())
        text = await client.complete(MESSAGES)
        self.assertEqual(text, '{"steps": []}')
        self.assertEqual(backend.calls, 1)

    async def test_request_carries_model_temperature_and_bearer(self) -> None:
        backend = RecordingBackend(content="ok")
        config = LLMRuntimeConfig(base_url="https://gateway.test/v1/", model="test/model", temperature=0.1)
        client = ReasoningBackendClient(config=config, transport=backend.transport())
        await client.complete(MESSAGES)

        request = backend.requests[0]
        self.assertEqual(str(request.url), "https://gateway.test/v1/chat/completions")
        self.assertEqual(request.headers["Authorization"], "Bearer test-key")
        payload = backend.last_payload()
        self.assertEqual(payload["model"], "test/model")
        self.assertEqual(payload["temperature"], 0.1)
        self.assertEqual(payload["messages"], MESSAGES)

    async def test_status_mapping(self) -> None:
        cases = [
            (429, RateLimitedError, "rate_limited"),
            (402, QuotaExhaustedError, "quota_exhausted"),
            (500, BackendUnavailableError, "backend_unavailable"),
            (503, BackendUnavailableError, "backend_unavailable"),
            (401, BackendUnavailableError, "backend_unavailable"),
        ]
        for status, error_type, kind in cases:
            with self.subTest(status=status):
                backend = RecordingBackend(status_code=status)
                client = ReasoningBackendClient(transport=backend.transport())
                with self.assertRaises(error_type) as ctx:
                    await client.complete(MESSAGES)
                self.assertEqual(ctx.exception.kind, kind)

    async def test_error_kinds_are_distinct(self) -> None:
        kinds = {RateLimitedError.kind, QuotaExhaustedError.kind, BackendUnavailableError.kind}
        self.assertEqual(len(kinds), 3)
        self.assertNotEqual(RateLimitedError().message, BackendUnavailableError().message)
        self.assertNotEqual(QuotaExhaustedError().message, BackendUnavailableError().message)

    async def test_transport_failure_maps_to_backend_unavailable(self) -> None:
        transport = raising_transport(lambda request: httpx.ConnectError("refused", request=request))
        client = ReasoningBackendClient(transport=transport)
        with self.assertRaises(BackendUnavailableError):
            await client.complete(MESSAGES)

    async def test_timeout_maps_to_backend_unavailable(self) -> None:
        transport = raising_transport(lambda request: httpx.ReadTimeout("slow", request=request))
        client = ReasoningBackendClient(transport=transport)
        with self.assertRaises(BackendUnavailableError):
            await client.complete(MESSAGES)

    async def test_empty_completion_is_backend_failure(self) -> None:
        backend = RecordingBackend(body={"choices": []})
        client = ReasoningBackendClient(transport=backend.transport())
        with self.assertRaises(BackendUnavailableError):
            await client.complete(MESSAGES)

    async def test_missing_key_fails_before_network(self) -> None:
        backend = RecordingBackend(content="ok")
        with patch.dict(os.environ, {}, clear=True):
            client = ReasoningBackendClient(
                config=LLMRuntimeConfig(api_key_env="SOLVEMATH_TEST_MISSING_KEY"),
                transport=backend.transport(),
            )
            with patch("solvemath.llm.client._resolve_api_key", return_value=None):
                with self.assertRaises(ConfigurationError):
                    await client.complete(MESSAGES)
        self.assertEqual(backend.calls, 0)


class ResolveApiKeyTestCase(unittest.TestCase):
    def test_resolve_api_key_with_strip(self) -> None:
        with patch.dict(os.environ, {"LOVABLE_API_KEY": "  test-key  "}, clear=False):
            self.assertEqual(_resolve_api_key(["", "LOVABLE_API_KEY"]), "test-key")

    def test_describe_reports_key_presence(self) -> None:
        with patch.dict(os.environ, {"LOVABLE_API_KEY": "k"}, clear=False):
            meta = ReasoningBackendClient().describe()
        self.assertTrue(meta["api_key_present"])
        self.assertTrue(meta["endpoint"].endswith("/chat/completions"))


if __name__ == "__main__":
    unittest.main()
