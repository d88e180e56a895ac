"""
HTTP surface: FastAPI app exposing test generation as an NDJSON stream.

Endpoints
---------
- POST /api/generate-tests
    400 + JSON {"type": "error", "message", "code"} when the request is
    rejected before generation starts; otherwise 200 with an
    `application/x-ndjson` body of progress events and one terminal event.
- GET /api/models
    The model catalog.

A client disconnect cancels the streaming task; the provider stream is
closed on the way out and nothing more is written.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import aclosing

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from . import __version__
from .config import Settings, get_settings
from .core.events import encode_event
from .logging_config import configure_logging, log_adapter
from .services import ErrorCode, GenerationService, ServiceError, create_generation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

NDJSON_MEDIA_TYPE = "application/x-ndjson"
CORRELATION_HEADER = "X-Correlation-ID"


# --- DATA MODELS ---
class UploadedFileBody(BaseModel):
    """One uploaded source file."""

    name: str | None = None
    content: str | None = None


class GenerateTestsBody(BaseModel):
    """Request body of POST /api/generate-tests. Semantic checks live in RequestLoader."""

    inputCode: str | None = None
    uploadedFiles: list[UploadedFileBody] | None = None
    selectedLanguage: str | None = None
    testFramework: str | None = None
    aiModel: str | None = None


def _correlation_id(req: Request) -> str:
    return req.headers.get("x-correlation-id") or str(uuid.uuid4())


def _error_response(error: ServiceError, cid: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"type": "error", "message": error.message, "code": error.code.value},
        headers={CORRELATION_HEADER: cid},
    )


# Handle /api/generate-tests POST requests with an NDJSON event stream
@router.post("/generate-tests")
async def generate_tests(body: GenerateTestsBody, req: Request):
    service: GenerationService = req.app.state.service
    cid = _correlation_id(req)
    log = log_adapter(logger, cid)

    prepared = service.prepare(body.model_dump())
    if not prepared.success:
        log.info("generate_tests.rejected code=%s", prepared.error.code.value)
        return _error_response(prepared.error, cid)

    loaded = prepared.data
    log.info(
        "generate_tests.accepted model=%s language=%s framework=%s",
        loaded.model.id, loaded.request.selected_language, loaded.request.test_framework,
    )

    async def ndjson():
        async with aclosing(service.stream_events(loaded, cid=cid)) as events:
            async for event in events:
                yield encode_event(event)

    # Proxy-safe headers so each line is delivered as soon as it is written
    return StreamingResponse(
        ndjson(),
        media_type=NDJSON_MEDIA_TYPE,
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            CORRELATION_HEADER: cid,
        },
    )


@router.get("/models")
async def list_models(req: Request):
    """Return the supported models and their limits."""
    service: GenerationService = req.app.state.service
    return {"models": service.list_models()}


async def _validation_error_handler(req: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request body")
    if location:
        message = f"{location}: {message}"
    error = ServiceError(code=ErrorCode.VALIDATION_ERROR, message=message)
    return _error_response(error, _correlation_id(req))


def create_app(
    service: GenerationService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: GenerationService to serve (created from settings if None)
        settings: Runtime settings (loaded from the environment if None)
    """
    settings = settings or get_settings()

    app = FastAPI(title="testgen-pipeline", version=__version__)
    app.state.service = service or create_generation_service(settings=settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router)
    return app


def main():
    """Entry point: serve the app with uvicorn."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting testgen-pipeline HTTP server on %s:%d", settings.host, settings.port)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        access_log=settings.access_log,
        log_config=None,
    )


if __name__ == "__main__":
    main()
