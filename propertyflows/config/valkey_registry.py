"""
Centralized Valkey/Redis Database Number Registry.

This module provides a single source of truth for all Valkey/Redis database
allocations to prevent key collisions between services.

IMPORTANT: When adding a new Redis connection, always check this registry first
and use the next available database number.
"""

import ssl
from enum import IntEnum
from typing import Any, Dict, Optional
from urllib.parse import quote

from .env import env


class ValkeyDatabase(IntEnum):
  """
  Enumeration of all Valkey/Redis database allocations.

  Current allocation:
  - 0-1: Reserved (task queue, if one is ever introduced)
  - 2-3: Application services (billing price cache, OAuth state)
  """

  # =========================================================================
  # APPLICATION DATABASES (2-3)
  # =========================================================================
  BILLING_CACHE = 2  # Stripe price id cache and price creation locks
  OAUTH_STATE = 3  # Single-use OAuth connection state tokens

  @classmethod
  def get_next_available(cls) -> int:
    """
    Get the next available database number.

    Raises:
        ValueError: If no database slots are available
    """
    used_numbers = {db.value for db in cls}
    # Redis supports databases 0-15
    for i in range(16):
      if i not in used_numbers:
        return i
    raise ValueError("No database slots available (all 0-15 are allocated)")


class ValkeyURLBuilder:
  """Helper class to build Valkey/Redis URLs with proper database numbers."""

  @staticmethod
  def build_url(
    base_url: Optional[str] = None,
    database: ValkeyDatabase = ValkeyDatabase.BILLING_CACHE,
    auth_token: Optional[str] = None,
    use_tls: Optional[bool] = None,
  ) -> str:
    """
    Build a complete Valkey/Redis URL with the specified database.

    Args:
        base_url: Base Redis URL. Defaults to VALKEY_URL
        database: Database number from ValkeyDatabase enum
        auth_token: Optional auth token for authenticated connections
        use_tls: If True, use TLS (rediss://). If None, auto-detect based on auth_token

    Returns:
        Complete URL with database number (e.g., "redis://localhost:6379/2")

    Examples:
        >>> ValkeyURLBuilder.build_url("redis://localhost:6379", ValkeyDatabase.BILLING_CACHE)
        'redis://localhost:6379/2'
    """
    if base_url is None:
      base_url = env.VALKEY_URL

    if use_tls is None:
      use_tls = bool(auth_token) and (env.is_production() or env.is_staging())

    base_url = base_url.rstrip("/")

    # Drop an existing database number
    if "/" in base_url.split("://")[-1]:
      base_url = base_url.rsplit("/", 1)[0]

    if "://" in base_url:
      _, host_part = base_url.split("://", 1)
    else:
      host_part = base_url

    # Strip credentials already embedded in the URL
    if "@" in host_part:
      host_part = host_part.split("@")[-1]

    protocol = "rediss" if use_tls else "redis"

    if auth_token:
      # Use 'default' as username for Redis/Valkey AUTH
      encoded_token = quote(auth_token, safe="")
      return f"{protocol}://default:{encoded_token}@{host_part}/{database.value}"

    return f"{protocol}://{host_part}/{database.value}"

  @staticmethod
  def parse_url(url: str) -> tuple[str, Optional[int]]:
    """
    Parse a Valkey/Redis URL to extract base URL and database number.

    Example:
        >>> ValkeyURLBuilder.parse_url("redis://localhost:6379/2")
        ('redis://localhost:6379', 2)
    """
    if "/" in url.split("://")[-1]:
      base_url, db_part = url.rsplit("/", 1)
      try:
        db_num = int(db_part.split("?")[0])
        return base_url, db_num
      except ValueError:
        return url, None
    return url, None


def get_redis_connection_params() -> Dict[str, Any]:
  """
  Get Redis connection parameters based on environment.

  Handles ElastiCache-specific TLS configuration for staging/production.
  """
  params: Dict[str, Any] = {
    "decode_responses": True,
    "socket_connect_timeout": 5,
    "socket_timeout": 5,
    "retry_on_timeout": True,
    "health_check_interval": 30,
  }

  if (env.is_production() or env.is_staging()) and env.VALKEY_AUTH_TOKEN:
    # ElastiCache presents self-signed certificates inside the VPC
    params["ssl_cert_reqs"] = ssl.CERT_NONE
    params["ssl_check_hostname"] = False
    params["ssl_ca_certs"] = None

  return params


def create_redis_client(
  database: ValkeyDatabase, decode_responses: bool = True, **kwargs
) -> Any:  # Returns redis.Redis but avoid import here
  """
  Create a Redis client with proper configuration for the environment.

  Example:
      >>> client = create_redis_client(ValkeyDatabase.BILLING_CACHE)
      >>> client.get("stripe_price:starter")
  """
  import redis

  url = ValkeyURLBuilder.build_url(
    database=database, auth_token=env.VALKEY_AUTH_TOKEN or None
  )

  params = get_redis_connection_params()
  params["decode_responses"] = decode_responses
  params.update(kwargs)

  return redis.Redis.from_url(url, **params)
