"""
main.py — EasyTax FastAPI application entry point.

Start with: uvicorn easytax.main:app --reload --port 8000
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mistralai import Mistral
from starlette.exceptions import HTTPException as StarletteHTTPException

from easytax.agents.advisor_agent.llm_service import AdvisoryClient, MistralCompletionService
from easytax.cache import create_store
from easytax.config import settings

# ---------------------------------------------------------------------------
# Logging: configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


def build_advisor() -> AdvisoryClient:
    """Mistral-backed advisor, or a static-only one when no API key is set."""
    if not settings.mistral_api_key:
        logger.warning("MISTRAL_API_KEY not set — advisory answers come from static tables only")
        return AdvisoryClient(None)
    completion = MistralCompletionService(
        Mistral(api_key=settings.mistral_api_key),
        model=settings.mistral_model,
        temperature=settings.mistral_temperature,
        max_tokens=settings.mistral_max_tokens,
    )
    logger.info("Mistral client initialized model=%s", settings.mistral_model)
    return AdvisoryClient(completion)


# ---------------------------------------------------------------------------
# Lifespan: startup & shutdown hooks
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      1. Key-value store (Redis pool or in-memory, per STORE_BACKEND)
      2. Advisory client — singleton for HTTP connection pool reuse
    Shutdown:
      1. Close the store
    """
    app.state.kv = await create_store()
    app.state.advisor = build_advisor()

    logger.info("EasyTax v%s starting up", settings.app_version)
    yield

    await app.state.kv.close()
    logger.info("EasyTax shutting down")


# ---------------------------------------------------------------------------
# FastAPI application instance
# ---------------------------------------------------------------------------
app = FastAPI(
    title="EasyTax API",
    version=settings.app_version,
    description=(
        "Indian income-tax and GST assistant. Computes slab tax under both regimes, "
        "aggregates ITR and GST reports, and adds AI recommendations with static fallbacks."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# ---------------------------------------------------------------------------
# CORS middleware: restricted to frontend origins from settings
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error response helper
# ---------------------------------------------------------------------------
def _make_error_response(
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Build a standard {error: {code, message, details}} response."""
    body = {
        "error": {
            "code": code,
            "message": message,
            "details": details or [],
        }
    }
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Global exception handlers: registered BEFORE routers
# ---------------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Converts FastAPI 422 validation errors to the standard format, all violations at once."""
    details = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        details.append({"field": field or None, "issue": error["msg"]})
    return _make_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        details=details,
        status_code=422,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code_map = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "VALIDATION_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }
    code = code_map.get(exc.status_code, f"HTTP_{exc.status_code}")
    return _make_error_response(
        code=code,
        message=str(exc.detail),
        status_code=exc.status_code,
    )


@app.exception_handler(ValueError)
async def value_error_handler(
    request: Request, exc: ValueError
) -> JSONResponse:
    """ValueError from business logic surfaces as 422 VALIDATION_ERROR."""
    return _make_error_response(
        code="VALIDATION_ERROR",
        message=str(exc),
        status_code=422,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Catch-all for unexpected errors.
    DEBUG=true  → includes exception type & message in details (dev only).
    DEBUG=false → generic message; full traceback logged server-side only.
    """
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=True,
    )
    if settings.debug:
        details = [{"issue": f"{type(exc).__name__}: {exc}"}]
        message = "An unexpected error occurred (debug details included)"
    else:
        details = []
        message = "An unexpected error occurred"
    return _make_error_response(
        code="INTERNAL_ERROR",
        message=message,
        details=details,
        status_code=500,
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------
@app.get("/api/health", tags=["System"])
async def health_check(request: Request) -> dict:
    advisor = getattr(request.app.state, "advisor", None)
    return {
        "status": "ok",
        "version": settings.app_version,
        "advisory": "model" if advisor is not None and advisor.available else "static",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Agent routers
# ---------------------------------------------------------------------------
from easytax.agents.input_agent.routes import router as input_agent_router  # noqa: E402
from easytax.agents.evaluator_agent.routes import router as evaluator_agent_router  # noqa: E402
from easytax.agents.advisor_agent.routes import router as advisor_agent_router  # noqa: E402

app.include_router(input_agent_router)
app.include_router(evaluator_agent_router)
app.include_router(advisor_agent_router)
