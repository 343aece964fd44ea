"""Airspace service - main FastAPI application."""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from airspace_app.config import settings
from airspace_app.routers import airspace_router
from airspace_app.routers.airspace import create_map_type


def _configure_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.debug else settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    _configure_logging()
    logger.info(f"{settings.app_name} - starting")
    logger.info(f"Airspace tiles: {settings.airspace_tile_url} (max zoom {settings.airspace_max_zoom})")

    app.state.airspace = create_map_type()

    yield

    map_type = app.state.airspace
    if map_type.pending:
        logger.info(f"Waiting for {map_type.pending} airspace tile fetches")
        await map_type.drain()
    map_type.cache.clear()
    logger.info(f"{settings.app_name} - stopped")


app = FastAPI(
    title=settings.app_name,
    description="Airspace lookup and tile shading",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(airspace_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    map_type = getattr(app.state, "airspace", None)
    return {
        "status": "ok",
        "cached_tiles": len(map_type.cache) if map_type is not None else 0,
    }


def main() -> None:
    import uvicorn

    uvicorn.run(
        "airspace_app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
