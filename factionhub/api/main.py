"""
factionhub.api.main — FastAPI application entry point
======================================================

Run with::

    uvicorn factionhub.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from factionhub.api.deps import get_engine  # noqa: E402
from factionhub.api.routes.regulations import router as regulations_router  # noqa: E402
from factionhub.api.routes.wars import router as wars_router  # noqa: E402
from factionhub.database.engine import init_db  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    if os.getenv("FACTIONHUB_INIT_DB", "").lower() in ("1", "true", "yes"):
        init_db(engine)
    logger.info("Faction Hub API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Faction Hub API shutting down")


app = FastAPI(
    title="Faction Hub War API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Regulations first: its static path must win over /wars/{war_id}
app.include_router(regulations_router, prefix="/api")
app.include_router(wars_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
