"""API routes."""

from benefits_engine.api.routes.health import router as health_router
from benefits_engine.api.routes.month_end import router as month_end_router
from benefits_engine.api.routes.paychecks import router as paychecks_router

__all__ = ["health_router", "month_end_router", "paychecks_router"]
