from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .puzzles.day_keys import utc_today
from .puzzles.engine import warm_daily_puzzles
from .routers import auth, counter, game, health


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Name That Sub API", version="0.1.0")

    origins = list(settings.cors_origins or ["*"])
    if settings.frontend_base_url:
        origins.append(str(settings.frontend_base_url).rstrip("/"))
    allow_origins = ["*"] if "*" in origins else origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(game.router, prefix="/api/game", tags=["game"])
    app.include_router(counter.router, prefix="/api/counter", tags=["counter"])
    app.include_router(auth.router)

    return app


app = create_app()


@app.on_event("startup")
async def warm_puzzle_cache() -> None:
    if not settings.warm_cache_on_startup:
        return
    await warm_daily_puzzles(utc_today())
