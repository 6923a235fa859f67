import json
import os
import tempfile
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from solvemath.api.server import create_app
from solvemath.history import InMemoryHistoryStore, JsonFileHistoryStore
from solvemath.llm.client import ReasoningBackendClient
from solvemath.resolution.resolver import SolutionResolver
from solvemath.utils.config_loader import AppConfig
from tests.mocks.mock_backend_responses import PROSE_REPLY, QUADRATIC_SOLUTION, RecordingBackend


class _ExplodingResolver:
    async def resolve(self, problem, category="", image=None):  # noqa: ANN001, ANN201 - test double
        raise ValueError("boom")


class APIServerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch.dict(os.environ, {"LOVABLE_API_KEY": "test-key"}, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.history = InMemoryHistoryStore()

    def _client(self, backend: RecordingBackend) -> TestClient:
        resolver = SolutionResolver(backend=ReasoningBackendClient(transport=backend.transport()))
        app = create_app(config=AppConfig(), resolver=resolver, history_store=self.history)
        return TestClient(app)

    def test_health_and_categories(self) -> None:
        client = self._client(RecordingBackend())
        self.assertEqual(client.get("/health").json(), {"status": "ok"})
        ids = [item["id"] for item in client.get("/v1/categories").json()["categories"]]
        self.assertEqual(ids, ["algebra", "geometry", "calculus", "statistics"])

    def test_solve_returns_solution_without_null_formula(self) -> None:
        backend = RecordingBackend(content=json.dumps(QUADRATIC_SOLUTION))
        response = self._client(backend).post("/v1/solve", json={"problem": "x² - 5x - 6 = 0", "category": "algebra"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), QUADRATIC_SOLUTION)
        self.assertNotIn("formula", response.json()["steps"][-1])

    def test_empty_request_is_400_without_backend_call(self) -> None:
        backend = RecordingBackend(content=PROSE_REPLY)
        response = self._client(backend).post("/v1/solve", json={"problem": " ", "category": "algebra"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Le problème ou une image est requis"})
        self.assertEqual(backend.calls, 0)

    def test_malformed_body_is_400(self) -> None:
        client = self._client(RecordingBackend())
        response = client.post("/v1/solve", content=b"not json", headers={"Content-Type": "application/json"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_upstream_status_mapping(self) -> None:
        for upstream, expected in ((429, 429), (402, 402), (500, 500), (503, 500)):
            with self.subTest(upstream=upstream):
                response = self._client(RecordingBackend(status_code=upstream)).post("/v1/solve", json={"problem": "2+2"})
                self.assertEqual(response.status_code, expected)
                self.assertIn("error", response.json())

    def test_fallback_solution_is_success(self) -> None:
        response = self._client(RecordingBackend(content=PROSE_REPLY)).post("/v1/solve", json={"problem": "2+2"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["steps"]), 1)
        self.assertEqual(body["steps"][0]["content"], PROSE_REPLY)

    def test_unexpected_failure_is_generic_500(self) -> None:
        app = create_app(config=AppConfig(), resolver=_ExplodingResolver(), history_store=self.history)
        response = TestClient(app).post("/v1/solve", json={"problem": "2+2"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Erreur lors de la résolution"})

    def test_authenticated_solve_is_recorded(self) -> None:
        client = self._client(RecordingBackend(content=json.dumps(QUADRATIC_SOLUTION)))
        client.post("/v1/solve", json={"problem": "x² - 5x - 6 = 0", "category": "algebra"}, headers={"X-User-ID": "u1"})
        client.post("/v1/solve", json={"problem": "anonymous", "category": "algebra"})

        items = client.get("/v1/history", headers={"X-User-ID": "u1"}).json()["items"]
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["problem"], "x² - 5x - 6 = 0")
        self.assertEqual(items[0]["answer"], "x₁ = 6 et x₂ = -1")
        self.assertEqual(items[0]["category"], "Algèbre")
        self.assertEqual(items[0]["user_id"], "u1")

    def test_failed_solve_is_not_recorded(self) -> None:
        client = self._client(RecordingBackend(status_code=429))
        client.post("/v1/solve", json={"problem": "2+2"}, headers={"X-User-ID": "u1"})
        self.assertEqual(self.history.list_recent("u1"), [])

    def test_history_requires_identity(self) -> None:
        client = self._client(RecordingBackend())
        self.assertEqual(client.get("/v1/history").json(), {"items": []})
        self.assertEqual(client.delete("/v1/history/abc").status_code, 401)

    def test_delete_history_item(self) -> None:
        item = self.history.add("u1", "2+2", "4", "Algèbre")
        client = self._client(RecordingBackend())

        self.assertEqual(client.delete("/v1/history/{}".format(item.id), headers={"X-User-ID": "u2"}).status_code, 404)
        response = client.delete("/v1/history/{}".format(item.id), headers={"X-User-ID": "u1"})
        self.assertEqual(response.json(), {"deleted": item.id})
        self.assertEqual(self.history.list_recent("u1"), [])

    def test_file_backed_history_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            self.history = JsonFileHistoryStore(tmpdir)
            client = self._client(RecordingBackend(content=json.dumps(QUADRATIC_SOLUTION)))
            client.post("/v1/solve", json={"problem": "x² - 5x - 6 = 0", "category": "algebra"}, headers={"X-User-ID": "u1"})

            items = client.get("/v1/history", headers={"X-User-ID": "u1"}).json()["items"]
            self.assertEqual([item["answer"] for item in items], ["x₁ = 6 et x₂ = -1"])
            response = client.delete("/v1/history/{}".format(items[0]["id"]), headers={"X-User-ID": "u1"})
            self.assertEqual(response.status_code, 200)
            self.assertEqual(client.get("/v1/history", headers={"X-User-ID": "u1"}).json(), {"items": []})


if __name__ == "__main__":
    unittest.main()
