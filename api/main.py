"""
api/main.py -- FastAPI application entry point for Shopfront.

Multi-tenant shop and product management: shop owners manage their own
shops and products, administrators have cross-tenant access.

Run with:      uvicorn api.main:app --reload

Middleware:
  TrustedHostMiddleware -- rejects requests with unexpected Host headers
  CORSMiddleware        -- adds CORS headers for allowed browser origins
  log_requests          -- one access log line per request (outermost, so
                           rejected hosts are logged too)

Lifespan handles startup (stores, authorization guard, bulk coordinator,
optional demo seed) and shutdown (dispose store engines) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.products import router as products_router
from api.routes.v1.shops import router as shops_router
from api.routes.v1.users import router as users_router
from auth.credentials import CredentialStore
from auth.errors import AccessError
from auth.policy import AuthorizationGuard
from auth.seed import seed_demo_users
from auth.store import UserStore
from core.config import get_settings
from inventory.bulk import BulkMutationCoordinator
from inventory.ownership import OwnershipResolver
from inventory.store import InventoryStore

API_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("shopfront.api")


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


def wire_state(app: FastAPI, user_store: UserStore, inventory: InventoryStore) -> None:
    """Attach the stores and the services built on them to app.state.

    Route handlers read everything they need from request.app.state; tests
    call this with in-memory stores instead of running the real lifespan.
    """
    app.state.user_store = user_store
    app.state.inventory = inventory
    app.state.credentials = CredentialStore(user_store)
    app.state.guard = AuthorizationGuard(OwnershipResolver(inventory))
    app.state.bulk = BulkMutationCoordinator(inventory)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Settings are read first so a missing SECRET_KEY in production
    fails the boot instead of the first login.
    """
    settings = get_settings()
    logger.info("Shopfront API starting up (debug=%s)", settings.debug)
    user_store = UserStore(settings.database_url)
    inventory = InventoryStore(settings.database_url)
    wire_state(app, user_store, inventory)
    if settings.seed_demo_users:
        seed_demo_users(user_store)
    logger.info("Stores initialized")

    yield

    inventory.close()
    user_store.close()
    logger.info("Shopfront API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Shopfront API",
    description="Shop and product management with role- and ownership-based access control.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps each add_middleware() call around the previous stack, so the
# last one registered sees the request first.
# ---------------------------------------------------------------------------

_settings = get_settings()

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])
app.include_router(shops_router, prefix="/api/v1", tags=["Shops"])
app.include_router(products_router, prefix="/api/v1", tags=["Products"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    """Render a typed access failure (401/403/404/400) with its stable code."""
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with structured error when request body, path or query params fail validation."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404 route, 405 method)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged only, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=API_VERSION)
