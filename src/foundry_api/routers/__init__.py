"""API routers for Plugin Foundry."""

from foundry_api.routers.admin import router as admin_router

__all__ = ["admin_router"]
