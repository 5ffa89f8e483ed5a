"""API Routes for Wayfarer."""

from wayfarer.infrastructure.api.routes.auth_router import router as auth_router
from wayfarer.infrastructure.api.routes.oauth_router import router as oauth_router

__all__ = ["auth_router", "oauth_router"]
