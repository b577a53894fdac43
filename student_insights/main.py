"""Student Insights Service.

Generates pedagogical insights for students with a Gemini model and keeps
the history of generated insights per student.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from student_insights.api.routes.health import router as health_router
from student_insights.api.routes.insights import router as insights_router
from student_insights.api.routes.monitoring import router as monitoring_router
from student_insights.core.config import AppEnvironment, get_settings
from student_insights.core.database import reset_engine
from student_insights.core.errors import InsightServiceError, get_status_code
from student_insights.core.logging import setup_logging
from student_insights.core.tracing import clear_tracing_context, set_request_id
from student_insights.llm.generation import GenerationClient
from student_insights.llm.provider import get_generation_provider

logger = structlog.get_logger(__name__)

API_CSP_POLICY = (
    "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; "
    "form-action 'none'; object-src 'none'"
)


def _request_log_context(request: Request) -> dict[str, str]:
    return {
        "path": request.url.path,
        "method": request.method,
        "request_id": getattr(request.state, "request_id", ""),
        "client_host": request.client.host if request.client else "",
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create process-wide clients on startup and release them on shutdown."""
    settings = get_settings()
    setup_logging()

    logger.info(
        "Starting Student Insights",
        app=settings.app.name,
        env=settings.app.env.value,
        version=settings.app.version,
        model=settings.generation.model,
    )

    provider = get_generation_provider(settings)
    if not provider.is_configured:
        logger.warning("GEMINI_API_KEY is not set; insight generation will fail")
    app.state.settings = settings
    app.state.generation_client = GenerationClient.from_config(provider, settings.generation)

    yield

    await provider.close()
    await reset_engine()

    logger.info("Student Insights stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    is_prod = settings.app.env == AppEnvironment.PROD

    app = FastAPI(
        title="Student Insights",
        description="AI-generated pedagogical insights for students.",
        version=settings.app.version,
        lifespan=lifespan,
        docs_url=None if is_prod else "/docs",
        redoc_url=None if is_prod else "/redoc",
        openapi_url=None if is_prod else "/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_allowed_origins,
        allow_credentials=settings.security.cors_allow_credentials,
        allow_methods=settings.security.cors_allow_methods,
        allow_headers=settings.security.cors_allow_headers,
    )

    app.include_router(health_router, prefix=settings.app.api_prefix)
    app.include_router(monitoring_router, prefix=settings.app.api_prefix)
    app.include_router(insights_router, prefix=settings.app.api_prefix)

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        """Set baseline security headers for all responses."""
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        if not request.url.path.startswith(("/docs", "/redoc", "/openapi.json")):
            response.headers.setdefault("Content-Security-Policy", API_CSP_POLICY)
        return response

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Propagate X-Request-ID into logs and outbound generation calls."""
        request_id = set_request_id(request.headers.get("x-request-id"))
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            # Prevent context leakage across requests in long-lived workers.
            structlog.contextvars.clear_contextvars()
            clear_tracing_context()
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(InsightServiceError)
    async def domain_error_handler(request: Request, exc: InsightServiceError) -> JSONResponse:
        """Map domain errors to their status with a human-readable message."""
        status_code = get_status_code(exc)
        logger.warning(
            "Domain exception",
            **_request_log_context(request),
            status_code=status_code,
            error_code=exc.code,
            error=exc.message,
            error_details=exc.details or {},
        )
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render framework HTTP errors with the same body as domain errors."""
        logger.warning(
            "HTTP exception",
            **_request_log_context(request),
            status_code=exc.status_code,
            error=exc.detail,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "Unhandled exception",
            **_request_log_context(request),
            error=str(exc),
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "student_insights.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.env == AppEnvironment.LOCAL,
        workers=1 if settings.app.env == AppEnvironment.LOCAL else settings.server.workers,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    run()
