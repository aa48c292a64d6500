import hmac
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.exc import IntegrityError
from starlette.middleware.base import BaseHTTPMiddleware
from shipradar.api.routes import router
from shipradar.config import settings
from shipradar.database import init_db
from shipradar.modules.custom_fields import CustomFieldValidationError
from shipradar.schemas.error import ErrorResponse, ViolationRead

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables at startup."""
    init_db()
    logger.info("ShipRADAR API ready (upstream %s)", settings.API_BASE_URL)
    yield


app = FastAPI(
    title="ShipRADAR",
    description="Tracked vessel list and custom vessel fields.",
    version=VERSION,
    lifespan=lifespan,
)

# CORS origins from settings (supports comma-separated env var)
cors_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Simple API key check. If SHIPRADAR_API_KEY is unset, all requests pass."""

    async def dispatch(self, request: Request, call_next):
        if settings.SHIPRADAR_API_KEY is not None:
            if request.url.path not in ("/health", "/docs", "/openapi.json", "/redoc"):
                api_key = request.headers.get("X-API-Key")
                if not hmac.compare_digest(api_key or "", settings.SHIPRADAR_API_KEY):
                    return JSONResponse(
                        status_code=401,
                        content={"detail": "Invalid or missing API key"},
                    )
        return await call_next(request)


app.add_middleware(APIKeyMiddleware)

# Applies RATE_LIMIT to every route per client address
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT])
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(router, prefix="/api/v1")


# ── Structured error handlers ─────────────────────────────────────────────────

@app.exception_handler(CustomFieldValidationError)
async def custom_field_validation_handler(request: Request, exc: CustomFieldValidationError):
    body = ErrorResponse(
        error="Validation error",
        detail=str(exc),
        violations=[ViolationRead(field=v.field, message=v.message) for v in exc.violations],
    )
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"error": "Validation error", "detail": str(exc)})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    return JSONResponse(status_code=409, content={"error": "Conflict", "detail": str(exc.orig) if exc.orig else str(exc)})


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s:\n%s", request.method, request.url.path, traceback.format_exc())
    return JSONResponse(status_code=500, content={"error": "Internal server error", "detail": "An unexpected error occurred."})


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "version": VERSION}
