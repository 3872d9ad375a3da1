from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from segment_annotator.config import Settings, settings as default_settings
from segment_annotator.errors import AnnotatorError, ValidationError
from segment_annotator.routes import annotations, export, health, queue, timestamps, videos
from segment_annotator.services.backends import build_backends
from segment_annotator.utils.common import configure_logging

logger = logging.getLogger(__name__)


def _format_request_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error.get('msg')}" if location else str(error.get("msg"))


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": exc.message, "errors": exc.errors})

    @app.exception_handler(AnnotatorError)
    async def handle_annotator_error(request: Request, exc: AnnotatorError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [_format_request_error(error) for error in exc.errors()]
        return JSONResponse(status_code=400, content={"error": "; ".join(errors), "errors": errors})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings.log_level)
        logger.info("Starting video segment annotation API")

        backends = build_backends(app_settings)
        await backends.startup(app_settings)
        app.state.settings = app_settings
        app.state.backends = backends

        yield

        await backends.shutdown()

    app = FastAPI(title="Video Segment Annotator API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s %s %.0fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(queue.router)
    app.include_router(videos.router)
    app.include_router(timestamps.router)
    app.include_router(annotations.router)
    app.include_router(export.router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "segment_annotator.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
