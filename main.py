"""Main FastAPI application"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings
from database import DatabaseContext, connect
from exceptions import ExpenseTrackerException
from logging_config import configure_logging
from routes import router as api_router

logger = logging.getLogger(__name__)


def error_envelope(message: str, code: str, details: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"message": message, "code": code}
    if details:
        error["details"] = details
    return {"message": "fail", "error": error}


# --- Exception Handlers ---
async def expense_tracker_exception_handler(request: Request, exc: ExpenseTrackerException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.error_code, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} rejected: invalid request")
    return JSONResponse(status_code=400, content=error_envelope("Invalid request", "VALIDATION_ERROR", details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error handling {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_envelope("An unexpected server error occurred.", "INTERNAL_ERROR"),
    )


def create_app(settings: Optional[Settings] = None, context: Optional[DatabaseContext] = None) -> FastAPI:
    """
    Application factory.

    settings: defaults to `Settings.from_env()`.
    context: an already built DatabaseContext (tests pass one around an in-memory collection).
        When omitted, the lifespan connects to MongoDB on startup and closes the client on shutdown.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_context = context is None
        if owns_context:
            app.state.context = await connect(settings)
            if not app.state.context.available:
                logger.error("Starting without a database; expense endpoints will answer 503.")

        yield  # Application runs here

        if owns_context:
            app.state.context.close()

    app = FastAPI(
        title="Expense Tracker API",
        description="API for creating and listing expense records.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ExpenseTrackerException, expense_tracker_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, server_error_handler)

    app.include_router(api_router, tags=["expenses"])

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
