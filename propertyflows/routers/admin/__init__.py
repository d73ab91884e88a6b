"""Admin API routers."""

from .organizations import router as organizations_router
from .plans import router as plans_router

__all__ = ["organizations_router", "plans_router"]
