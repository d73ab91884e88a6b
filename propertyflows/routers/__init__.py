"""
API routers.
"""

from .admin import organizations_router as admin_organizations_router
from .admin import plans_router as admin_plans_router
from .organizations import router as organizations_router
from .subscription import router as subscription_router
from .webhooks import router as webhooks_router

__all__ = [
  "admin_organizations_router",
  "admin_plans_router",
  "organizations_router",
  "subscription_router",
  "webhooks_router",
]
