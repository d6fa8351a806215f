from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from terramail.config import Settings
from terramail.controllers import api
from terramail.dependencies import ErrorResponse
from terramail.errors import TerramailError
from terramail.logger import setup_logging
from terramail.models import ErrorCode
from terramail.services.seed import seed_defaults
from terramail.store import build_store

settings = Settings()
setup_logging(settings.log_level.upper())
logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    429: ErrorCode.TOO_MANY_REQUESTS,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def warn_on_default_secrets(cfg: Settings) -> list[str]:
    """Log a warning for each secret still at its built-in value."""
    checked = ["jwt_secret"]
    if cfg.seed_defaults:
        checked.append("admin_password")
    defaults = [
        name for name in checked if getattr(cfg, name) == Settings.model_fields[name].default
    ]
    for name in defaults:
        logger.warning(
            "%s is the built-in default; set %s before exposing this deployment",
            name,
            Settings.model_fields[name].alias,
            extra={"event": "config", "setting": name},
        )
    return defaults


@asynccontextmanager
async def lifespan(app: FastAPI):
    warn_on_default_secrets(settings)
    store = await asyncio.to_thread(build_store, settings)
    app.state.store = store
    if settings.seed_defaults:
        await asyncio.to_thread(seed_defaults, store, settings)
    yield
    await asyncio.to_thread(store.close)


app = FastAPI(
    title="TerraMail API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, code: ErrorCode) -> JSONResponse:
    body = ErrorResponse(error=message, code=code)
    return JSONResponse(body.model_dump(mode="json"), status_code=status_code)


@app.exception_handler(TerramailError)
async def terramail_error_handler(_request: Request, exc: TerramailError):
    return _error(exc.status_code, exc.message, exc.code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, message, ErrorCode.BAD_REQUEST)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_request: Request, exc: StarletteHTTPException):
    code = _STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return _error(exc.status_code, str(exc.detail), code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error", ErrorCode.INTERNAL_ERROR)


app.include_router(api.router)

# Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app)
