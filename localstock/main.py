"""FastAPI application wiring the resolution service."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .backend_proxy import BackendProxyAdapter
from .cache import ResolutionCache, get_cache
from .config import settings
from .entities import isoformat, utc_now
from .guards import GuardConfig
from .models import HealthResponse, ResolveRequest, StockUpdate
from .repository import Repository, get_repository
from .resolver import ResolutionError, Resolver
from .sample_data import seed_sample_data

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Force a predictable logging setup even when run under uvicorn; ``force=True``
# replaces uvicorn's default handlers.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="LocalStock Resolver")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
)

_sweep_task: asyncio.Task | None = None


def get_resolver(
    repository: Repository = Depends(get_repository),
    cache: ResolutionCache = Depends(get_cache),
) -> Resolver:
    return Resolver(
        repository,
        cache,
        backend=BackendProxyAdapter.from_settings(settings),
        guard_config=GuardConfig.from_settings(settings),
    )


async def sweep_cache_forever(cache: ResolutionCache, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = cache.sweep()
        if removed:
            logger.debug("cache sweep removed %s expired entries", removed)


@app.on_event("startup")
async def startup_event() -> None:
    global _sweep_task
    if settings.load_sample_data:
        seed_sample_data(get_repository())
    _sweep_task = asyncio.create_task(
        sweep_cache_forever(get_cache(), settings.cache_sweep_interval_seconds)
    )


@app.on_event("shutdown")
async def shutdown_event() -> None:
    global _sweep_task
    if _sweep_task is not None:
        _sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await _sweep_task
        _sweep_task = None


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request format", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(ResolutionError)
async def resolution_error_handler(request: Request, exc: ResolutionError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc)},
    )


@app.post("/api/resolve")
async def resolve(
    payload: ResolveRequest,
    request: Request,
    resolver: Resolver = Depends(get_resolver),
) -> Dict[str, Any]:
    return await resolver.resolve(payload, user_agent=request.headers.get("user-agent"))


@app.get("/api/health", response_model=HealthResponse)
async def health(cache: ResolutionCache = Depends(get_cache)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=isoformat(utc_now()),
        cache={"entries": cache.size(), "ttl": cache.ttl_seconds},
    )


@app.get("/api/resolve/recent")
async def recent_requests(
    limit: int = Query(default=settings.recent_requests_limit, ge=1, le=200),
    repository: Repository = Depends(get_repository),
) -> List[Dict[str, Any]]:
    records = await asyncio.to_thread(repository.get_recent_resolve_requests, limit)
    return [record.to_dict() for record in records]


@app.delete("/api/cache")
async def clear_cache(cache: ResolutionCache = Depends(get_cache)) -> Dict[str, str]:
    cache.clear()
    return {"message": "Cache cleared"}


@app.patch("/api/offers/{offer_id}/stock")
async def update_offer_stock(
    offer_id: str,
    update: StockUpdate,
    repository: Repository = Depends(get_repository),
) -> Dict[str, Any]:
    offer = await asyncio.to_thread(repository.update_offer_stock, offer_id, update.inStock, update.stockLevel)
    if offer is None:
        raise HTTPException(status_code=404, detail="Offer not found")
    return {
        "id": offer.id,
        "inStock": offer.in_stock,
        "stockLevel": offer.stock_level,
        "lastSeen": isoformat(offer.last_seen),
    }
