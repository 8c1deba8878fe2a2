"""
FastAPI server for the ring designer backend.

Endpoints:
- GET  /                → health check
- GET  /api/vendors     → supported retailers
- POST /api/import-ring → import ring images + metadata from a product URL
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from config import get_settings
from errors import ImportFailed, InvalidUrl, MissingUrl, RingImportError
from importer import import_ring
from models import ErrorResponse, HealthStatus, ImportRequest, ImportSuccess, VendorInfo
from vendors import VENDORS, vendor_id

logger = logging.getLogger("server")


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(f"Ring Designer API starting (allowed origin: {settings.allowed_origin})")
    yield


app = FastAPI(
    title="Ring Designer API",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().allowed_origin],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    max_age=86400,
)


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One HTTP client per import request; closed when the request ends."""
    settings = get_settings()
    async with httpx.AsyncClient(follow_redirects=True, timeout=settings.fetch_timeout_seconds) as client:
        yield client


# ---------------------------------------------------------------------------
# Error rendering
# ---------------------------------------------------------------------------


@app.exception_handler(RingImportError)
async def ring_import_error_handler(request: Request, exc: RingImportError) -> ORJSONResponse:
    return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    # A present-but-wrongly-typed url is an invalid URL; anything else means we got no usable url
    url_errors = [e for e in exc.errors() if "url" in e.get("loc", ()) and e.get("type") != "missing"]
    error = InvalidUrl() if url_errors else MissingUrl()
    return ORJSONResponse(status_code=error.status_code, content=error.to_dict())


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/", response_model=HealthStatus)
async def health():
    return HealthStatus(status="ok", message="Ring Designer API is running 💍")


@app.get("/api/vendors", response_model=list[VendorInfo])
async def list_vendors():
    """Return the retailers that ring import supports."""
    return [VendorInfo(domain=vendor_id(v), name=v.name) for v in VENDORS]


@app.post(
    "/api/import-ring",
    response_model=ImportSuccess,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def import_ring_endpoint(
    request: ImportRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Import a ring's images and metadata from a supported retailer URL."""
    try:
        return await import_ring(request.url, client=client)
    except RingImportError as e:
        logger.info(f"Import failed ({e.kind}): {request.url}")
        raise
    except Exception:
        logger.exception(f"Unclassified import failure for {request.url}")
        raise ImportFailed() from None
