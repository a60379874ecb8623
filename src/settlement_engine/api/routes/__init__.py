"""API routes."""

from settlement_engine.api.routes.acts_of_completion import router as acts_of_completion_router
from settlement_engine.api.routes.health import router as health_router

__all__ = ["acts_of_completion_router", "health_router"]
