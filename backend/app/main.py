import logging

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import bio as bio_api
from .api import wizard as wizard_api
from .config import get_settings
from .utils.error_handlers import AppError, app_error_response, create_error_response, error_code_for_status

settings = get_settings()

logging.getLogger("backend").setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

app = FastAPI(title="Bi İşim Var AI Functions")

app.include_router(bio_api.router)
app.include_router(wizard_api.router)

logger = logging.getLogger(__name__)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Handle application errors raised by routers and services."""
    return app_error_response(exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Same JSON shape for framework errors (unknown path, wrong method)."""
    return create_error_response(
        exc.status_code,
        error_code_for_status(exc.status_code),
        exc.detail,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors globally."""
    logger.exception("Unhandled exception: %s", exc)
    return create_error_response(500, "internal_error", str(exc))


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "Bi İşim Var AI Functions",
    }
