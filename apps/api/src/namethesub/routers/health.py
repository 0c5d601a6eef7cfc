from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from ..core.config import settings
from ..services.store import get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/live", response_model=dict)
async def live() -> dict:
    return {"ok": True}


@router.get("/ready")
async def ready() -> JSONResponse:
    store = await get_store(settings.redis_url)
    try:
        reachable = await store.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Store ping failed: %s", exc)
        reachable = False
    status_code = 200 if reachable else 503
    return JSONResponse({"ok": reachable, "store": type(store).__name__}, status_code=status_code)
