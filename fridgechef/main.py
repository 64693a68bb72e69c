from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fridgechef.api.v1.metrics import router as metrics_router
from fridgechef.api.v1.narration import router as narration_router
from fridgechef.api.v1.recipes import router as recipes_router
from fridgechef.config import Settings
from fridgechef.services.clients import build_openai_client
from fridgechef.services.narration import NarrationRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Ensure data dir exists so the latency log can write
    settings: Settings = app.state.settings
    os.makedirs(settings.data_dir, exist_ok=True)
    yield
    registry: NarrationRegistry = app.state.narration
    if len(registry):
        logger.info("Closing %d open narration sessions", len(registry))
    registry.close_all()
    await app.state.openai.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="Fridge Chef API", version="1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.narration = NarrationRegistry(max_sessions=settings.narration_max_sessions)
    # one client for the app lifetime; recipes, images and speech all share it
    app.state.openai = build_openai_client(settings)

    # CORS (narrow it down in .env via CORS_ALLOW_ORIGINS if you want)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(recipes_router)
    app.include_router(narration_router)
    app.include_router(metrics_router)

    if settings.telemetry_enabled:
        from fridgechef.telemetry import setup_telemetry  # local import: tracing deps are optional
        setup_telemetry(app, settings)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/readyz")
    def readyz():
        return {"status": "ready"}

    return app
