"""API routers."""

from airspace_app.routers.airspace import router as airspace_router

__all__ = ["airspace_router"]
