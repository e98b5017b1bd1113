import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from service_manual.adapters.sqlite.migrator import SQLiteMigrator
from service_manual.api.deps import get_rules, get_settings
from service_manual.api.routes import editions, guides, topics

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Fail fast on a broken rules file or schema.
    rules = get_rules(settings)
    logger.info(
        "Rules loaded from %s (self approval %s)",
        settings.rules_path,
        "on" if rules.workflow.allow_self_approval or settings.force_self_approval else "off",
    )

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path).run_migrations()

    yield


app = FastAPI(
    title="Service Manual Publisher API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
app.include_router(guides.router, prefix="/api/guides", tags=["Guides"])
app.include_router(editions.router, prefix="/api/editions", tags=["Editions"])
app.include_router(topics.router, prefix="/api/topics", tags=["Topics"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "service-manual-publisher"}
