"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quiz_backend.api.admin import router as admin_router
from quiz_backend.api.models import CheckNameRequest, SaveResultRequest
from quiz_backend.app_logging import configure_logging
from quiz_backend.config import parse_cors_origins
from quiz_backend.containers import AppContainer
from quiz_backend.domain.batches import BatchDefinition
from quiz_backend.domain.errors import ErrorKind, QuizError
from quiz_backend.services.batches import BatchCatalog

MAX_LEADERBOARD_LIMIT = 100


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        catalog: BatchCatalog = app.state.container.batch_catalog
        logger.info(
            "Serving %d quiz batches in %s",
            len(catalog.list_batches()),
            catalog.timezone.key,
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(admin_router)

    @app.exception_handler(QuizError)
    async def quiz_error_handler(_request: Request, exc: QuizError) -> JSONResponse:
        return JSONResponse(status_code=exc.kind.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = QuizError(ErrorKind.INVALID_FIELD, _format_validation_errors(exc))
        logger.info("Rejected %s: %s", request.url.path, error.message)
        return JSONResponse(status_code=error.kind.status_code, content=error.to_dict())

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/check-name")
    def check_name(
        request: Request,
        payload: CheckNameRequest | None = None,
        batch_id: str | None = Query(default=None, alias="batchId"),
    ) -> dict[str, object]:
        """Admit a name into a batch, or confirm an existing session."""
        state_container: AppContainer = request.app.state.container
        body = payload or CheckNameRequest()
        decision = state_container.admission_controller.check_name(
            body.name, batch_id or body.batch_id
        )
        return {
            "success": True,
            "message": decision.message,
            "outcome": decision.outcome.value,
        }

    @app.post("/save-result")
    def save_result(request: Request, payload: SaveResultRequest) -> dict[str, object]:
        """Store a finished attempt for an admitted participant."""
        state_container: AppContainer = request.app.state.container
        result = state_container.admission_controller.save_result(
            name=payload.name,
            batch_id=payload.batch_id,
            score=payload.score,
            completion_time=payload.completion_time,
            entry_time=payload.entry_time,
        )
        return {"success": True, "result": result.to_dict()}

    @app.get("/leaderboard")
    def leaderboard(
        request: Request,
        batch_id: str | None = Query(default=None, alias="batchId"),
        limit: int | None = Query(default=None, ge=0, le=MAX_LEADERBOARD_LIMIT),
    ) -> list[dict[str, object]]:
        """Return ranked results, optionally for one batch."""
        state_container: AppContainer = request.app.state.container
        results = state_container.leaderboard_service.leaderboard(
            batch_id=batch_id or None, limit=limit
        )
        return [result.to_dict() for result in results]

    @app.get("/batches")
    def list_batches(request: Request) -> dict[str, object]:
        """Return the configured batches with their current windows."""
        state_container: AppContainer = request.app.state.container
        catalog = state_container.batch_catalog
        now = state_container.clock.now()
        return {
            "now": now.isoformat(),
            "batches": [
                _serialize_batch(catalog, definition, now)
                for definition in catalog.list_batches()
            ],
        }

    return app


def _serialize_batch(
    catalog: BatchCatalog, definition: BatchDefinition, now: datetime
) -> dict[str, object]:
    window = catalog.window_of(definition.batch_id, now)
    return {
        "batchId": definition.batch_id,
        "windowStart": window.start.isoformat(),
        "windowEnd": window.end.isoformat(),
        "durationMinutes": definition.window_duration_minutes,
        "isOpen": catalog.is_open(definition.batch_id, now),
    }


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location or 'body'}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"
