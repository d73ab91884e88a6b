"""
Static constants configuration.

Operational constants (pool sizes, TTLs) and lifecycle defaults that don't
change based on environment. Environment overrides live in env.py.
"""

# =============================================================================
# DATABASE CONSTANTS
# =============================================================================

DEFAULT_POOL_SIZE = 10
DEFAULT_MAX_OVERFLOW = 20
DEFAULT_POOL_TIMEOUT = 30
DEFAULT_POOL_RECYCLE = 3600  # 1 hour

# =============================================================================
# CACHE CONSTANTS
# =============================================================================

PRICE_CACHE_TTL_SECONDS = 86400  # 24 hours
PRICE_LOCK_TTL_SECONDS = 30
DEFAULT_OAUTH_STATE_TTL_SECONDS = 900  # 15 minutes

# =============================================================================
# SUBSCRIPTION LIFECYCLE CONSTANTS
# =============================================================================

DEFAULT_GRACE_PERIOD_DAYS = 14
MIN_GRACE_PERIOD_DAYS = 0
MAX_GRACE_PERIOD_DAYS = 90

# Organization statuses an admin may reactivate a suspended organization into
SUSPENSION_OVERRIDE_STATUSES = ("active", "past_due", "trialing")
