"""REST interface for solvemath."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from solvemath import __version__
from solvemath.categories import category_title, list_categories
from solvemath.errors import GENERIC_FAILURE_MESSAGE, SolveError
from solvemath.history import HistoryItemNotFoundError, HistoryStore, build_history_store
from solvemath.llm import LLMRuntimeConfig, ReasoningBackendClient
from solvemath.resolution import SolutionResolver
from solvemath.utils.config_loader import AppConfig, load_app_config
from solvemath.utils.logger import get_logger

logger = get_logger("solvemath.api")

USER_ID_HEADER = "X-User-ID"


class SolveRequestBody(BaseModel):
    problem: str = Field(default="", description="Mathematical problem statement")
    category: str = Field(default="", description="Advisory category (algebra, geometry, calculus, statistics, ...)")
    image: Optional[str] = Field(default=None, description="Encoded image, usually a base64 data URL")


class SolutionStepBody(BaseModel):
    title: str
    content: str
    formula: Optional[str] = None


class SolutionBody(BaseModel):
    steps: List[SolutionStepBody]
    finalAnswer: str


class HistoryItemBody(BaseModel):
    id: str
    problem: str
    answer: str
    category: str
    created_at: str
    user_id: str


class HistoryListBody(BaseModel):
    items: List[HistoryItemBody]


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def build_resolver(config: AppConfig) -> SolutionResolver:
    backend = ReasoningBackendClient(LLMRuntimeConfig.from_settings(config.llm))
    return SolutionResolver(backend=backend, prompt_pack=config.prompts.get("solver"))


def create_app(
    config: Optional[AppConfig] = None,
    resolver: Optional[SolutionResolver] = None,
    history_store: Optional[HistoryStore] = None,
) -> FastAPI:
    """Builds and configures the FastAPI application.

    Args:
        config: Application settings; loaded from `configs/app_config.yml` when omitted.
        resolver: Optional pre-built resolver.
        history_store: Optional pre-built history backend.

    Returns:
        Configured FastAPI app instance.
    """
    config = config or load_app_config()
    resolver = resolver or build_resolver(config)
    history_store = history_store or build_history_store(config.history)
    default_limit = config.history.default_limit

    app = FastAPI(title="solvemath API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SolveError)
    async def solve_error_handler(request: Request, exc: SolveError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "Requête invalide")

    def _user_id(request: Request) -> Optional[str]:
        value = (request.headers.get(USER_ID_HEADER) or "").strip()
        return value or None

    def _record_history(user_id: str, payload: SolveRequestBody, final_answer: str, request_id: str) -> None:
        try:
            history_store.add(
                user_id=user_id,
                problem=payload.problem,
                answer=final_answer,
                category=category_title(payload.category),
            )
        except Exception as exc:
            logger.exception("history_save_failed request_id=%s user_id=%s error=%s", request_id, user_id, exc)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/v1/categories")
    async def categories() -> Dict[str, Any]:
        return {"categories": list_categories()}

    @app.post("/v1/solve", response_model=SolutionBody, response_model_exclude_none=True)
    async def solve(payload: SolveRequestBody, request: Request) -> Any:
        request_id = request.headers.get("X-Request-ID", "-")
        user_id = _user_id(request)
        started_at = time.perf_counter()
        logger.info(
            "solve_start request_id=%s category=%s has_problem=%s has_image=%s authenticated=%s",
            request_id,
            payload.category or "-",
            bool(payload.problem.strip()),
            bool((payload.image or "").strip()),
            user_id is not None,
        )

        try:
            solution = await resolver.resolve(payload.problem, payload.category, payload.image)
        except SolveError as exc:
            logger.warning("solve_rejected request_id=%s kind=%s status=%s", request_id, exc.kind, exc.status_code)
            raise
        except Exception as exc:
            logger.exception("solve_failed request_id=%s error=%s", request_id, exc)
            return _error_response(500, GENERIC_FAILURE_MESSAGE)

        if user_id is not None:
            await run_in_threadpool(_record_history, user_id, payload, solution.final_answer, request_id)

        elapsed_ms = (time.perf_counter() - started_at) * 1000.0
        logger.info(
            "solve_done request_id=%s steps=%s elapsed_ms=%.1f",
            request_id,
            len(solution.steps),
            elapsed_ms,
            extra={"context": {"request_id": request_id, "steps": len(solution.steps), "elapsed_ms": round(elapsed_ms, 1)}},
        )
        return solution.to_dict()

    @app.get("/v1/history", response_model=HistoryListBody)
    def history(request: Request, limit: int = default_limit) -> Dict[str, Any]:
        user_id = _user_id(request)
        if user_id is None:
            return {"items": []}
        items = history_store.list_recent(user_id, limit=max(1, min(int(limit), 100)))
        return {"items": [item.to_dict() for item in items]}

    @app.delete("/v1/history/{item_id}")
    def delete_history(item_id: str, request: Request) -> Any:
        user_id = _user_id(request)
        if user_id is None:
            return _error_response(401, "Authentification requise")
        try:
            history_store.delete(user_id, item_id)
        except HistoryItemNotFoundError:
            return _error_response(404, "Élément d'historique introuvable")
        logger.info("history_deleted user_id=%s item_id=%s", user_id, item_id)
        return {"deleted": item_id}

    return app
