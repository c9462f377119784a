# menu_analyzer/main.py
# Main app setup

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from menu_analyzer.api.routes import analyses, analyze, health
from menu_analyzer.api.schemas import ErrorResponse
from menu_analyzer.config import get_settings
from menu_analyzer.core.errors import MenuAnalyzerError
from menu_analyzer.database import init_db
from menu_analyzer.utils.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run when app starts and stops
    init_db()
    logger.info("[startup] database ready")
    yield


def _error(status_code: int, message: str, code: str = None) -> JSONResponse:
    body = ErrorResponse(error=message, detail=code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _menu_analyzer_error(request: Request, exc: MenuAnalyzerError):
    if exc.status_code >= 500:
        logger.error(f"[error] {exc.code}: {exc.message}")
    else:
        logger.info(f"[error] {exc.status_code} {exc.code}: {exc.message}")
    return _error(exc.status_code, exc.message, exc.code)


async def _http_error(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


async def _unhandled_error(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"[error] unhandled on {request.method} {request.url.path}")
    return _error(500, "Failed to analyze menu. Please try again.", "INTERNAL_ERROR")


def create_app() -> FastAPI:
    # Create the FastAPI app
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _request_logging(request: Request, call_next):
        request_id = uuid.uuid4().hex
        start = time.perf_counter()
        with logger.contextualize(request_id=request_id):
            response = await call_next(request)
            latency_ms = int((time.perf_counter() - start) * 1000)
            ctx = getattr(request.state, "log_context", None) or {}
            extras = " ".join(f"{k}={v}" for k, v in ctx.items())
            logger.info(
                f"request.completed {request.method} {request.url.path} "
                f"status={response.status_code} latency_ms={latency_ms} {extras}".rstrip()
            )
        response.headers["X-Request-ID"] = request_id
        return response

    # Errors become {"success": false, "error": ..., "detail": ...}
    app.add_exception_handler(MenuAnalyzerError, _menu_analyzer_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled_error)

    # Register API routes
    app.include_router(health.router)
    app.include_router(analyze.router)
    app.include_router(analyses.router)

    return app


# Create the app instance
app = create_app()


@app.get("/")
async def root():
    # Basic info endpoint
    settings = get_settings()
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("menu_analyzer.main:app", host="0.0.0.0", port=8000, reload=True)
