import json
import os
import unittest
from unittest.mock import patch

from solvemath.errors import InvalidRequestError, RateLimitedError
from solvemath.llm.client import ReasoningBackendClient
from solvemath.resolution.parser import FALLBACK_STEP_TITLE
from solvemath.resolution.resolver import SolutionResolver
from tests.mocks.mock_backend_responses import PROSE_REPLY, QUADRATIC_SOLUTION, RecordingBackend, fenced


def _resolver(backend: RecordingBackend) -> SolutionResolver:
    return SolutionResolver(backend=ReasoningBackendClient(transport=backend.transport()))


class SolutionResolverTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        patcher = patch.dict(os.environ, {"LOVABLE_API_KEY": "test-key"}, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)

    async def test_empty_request_never_reaches_backend(self) -> None:
        backend = RecordingBackend(content=json.dumps(QUADRATIC_SOLUTION))
        resolver = _resolver(backend)
        for problem, image in (("", None), ("   ", None), ("\n\t", ""), ("", "   ")):
            with self.subTest(problem=problem, image=image):
                with self.assertRaises(InvalidRequestError) as ctx:
                    await resolver.resolve(problem, "algebra", image)
                self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(backend.calls, 0)

    async def test_structured_reply_is_returned(self) -> None:
        backend = RecordingBackend(content=fenced(QUADRATIC_SOLUTION))
        solution = await _resolver(backend).resolve("Résoudre x² - 5x - 6 = 0", "algebra")
        self.assertEqual(solution.to_dict(), QUADRATIC_SOLUTION)
        self.assertEqual(backend.calls, 1)

    async def test_prose_reply_becomes_fallback(self) -> None:
        backend = RecordingBackend(content=PROSE_REPLY)
        solution = await _resolver(backend).resolve("2+2", "")
        self.assertEqual(len(solution.steps), 1)
        self.assertEqual(solution.steps[0].title, FALLBACK_STEP_TITLE)
        self.assertEqual(solution.steps[0].content, PROSE_REPLY)
        self.assertTrue(solution.final_answer)

    async def test_image_only_request_sends_multimodal_message(self) -> None:
        backend = RecordingBackend(content=json.dumps(QUADRATIC_SOLUTION))
        await _resolver(backend).resolve("", "", "data:image/png;base64,AAAA")
        payload = backend.last_payload()
        user_content = payload["messages"][1]["content"]
        self.assertEqual(user_content[0]["type"], "text")
        self.assertNotIn("Contexte additionnel", user_content[0]["text"])
        self.assertEqual(user_content[1]["image_url"]["url"], "data:image/png;base64,AAAA")

    async def test_category_is_context_only(self) -> None:
        backend = RecordingBackend(content=PROSE_REPLY)
        resolver = _resolver(backend)
        first = await resolver.resolve("2+2", "algebra")
        second = await resolver.resolve("2+2", "statistics")
        self.assertEqual(first, second)
        self.assertIn("Catégorie: statistics", backend.last_payload()["messages"][1]["content"])

    async def test_upstream_errors_propagate(self) -> None:
        backend = RecordingBackend(status_code=429)
        with self.assertRaises(RateLimitedError):
            await _resolver(backend).resolve("2+2", "")
        self.assertEqual(backend.calls, 1)

    async def test_low_temperature_by_default(self) -> None:
        backend = RecordingBackend(content=PROSE_REPLY)
        await _resolver(backend).resolve("2+2", "")
        self.assertLessEqual(backend.last_payload()["temperature"], 0.5)


if __name__ == "__main__":
    unittest.main()
