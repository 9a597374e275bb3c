import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardscan.api import cards_router, health_router, uploads_router
from cardscan.config import settings
from cardscan.models.failure import KnownError
from cardscan.services.catalog_index import get_catalog_index

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Requests are served from the seed table until the first refresh lands
    refresh_task = asyncio.create_task(
        get_catalog_index().run_forever(settings.catalog_refresh_interval_seconds)
    )
    yield
    refresh_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await refresh_task


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardscan"),
    lifespan=lifespan,
)

app.include_router(cards_router)
app.include_router(health_router)
app.include_router(uploads_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render classified failures as {"error": message}."""
    if exc.status_code >= 500:
        logger.error("REQUEST_FAILED", extra={"kind": exc.kind.value, "detail": exc.detail})
    else:
        logger.info("REQUEST_REJECTED", extra={"kind": exc.kind.value, "detail": exc.detail})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and query strings are client errors (400)."""
    fields = sorted({".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()})
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request: {', '.join(fields) or 'malformed body'}"},
    )
