"""
FastAPI application and lifespan.

Opens the database pool, applies migrations and prepares the local asset
directory on startup. Stored images are served back under the path of
``asset_base_url`` so the URLs written into subscriber records resolve.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlparse

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse
from psycopg_pool import ConnectionPool

from src.adapters.assets.local import LocalAssetStore
from src.adapters.repository.postgres import run_migrations
from src.api.dependencies import get_asset_store
from src.api.v1 import router as v1_router
from src.config.settings import get_settings

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "v1",
        "description": "Applications, identity screening, acceptance, job requirements and roster export",
    },
]

ASSET_PREFIX = urlparse(get_settings().asset_base_url).path.rstrip("/")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()

    asset_root = Path(settings.asset_root)
    asset_root.mkdir(parents=True, exist_ok=True)
    logger.info("Serving assets from %s at %s", asset_root.resolve(), settings.asset_base_url)

    logger.info("Opening database pool (%d-%d connections)", settings.pool_min_size, settings.pool_max_size)
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )
    run_migrations(pool)
    app.state.pool = pool
    logger.info("crowdroster ready")

    yield

    pool.close()
    logger.info("Database pool closed")


app = FastAPI(
    title="crowdroster",
    description="Event Registration API - Identity screening, duplicate detection "
    "and applicant lifecycle for crowd-management events",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.include_router(v1_router, prefix="/v1")


@app.get(ASSET_PREFIX + "/upload/{version}/{stored_path:path}", include_in_schema=False)
def serve_asset(
    version: str, stored_path: str, store: LocalAssetStore = Depends(get_asset_store)
) -> FileResponse:
    """Serve a stored image. The version segment only busts caches."""
    path = store.locate(stored_path)
    if path is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    return FileResponse(path)


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Report database and asset storage status.

    Fails with a server error when the database is unreachable.
    """
    pool: ConnectionPool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    assets = "ok" if Path(get_settings().asset_root).is_dir() else "missing"
    return {"status": "healthy", "database": "ok", "assets": assets}
