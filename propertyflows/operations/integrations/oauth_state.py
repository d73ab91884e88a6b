"""
OAuth state store for third-party connection flows.

The accounting connection routes live outside this service; they import
``OAuthStateStore`` to issue the ``state`` parameter before redirecting to the
provider and to consume it on the callback. Nothing inside this package calls
it.
"""

import hashlib
import json
import secrets
from datetime import UTC, datetime
from typing import Any

from ...config import env
from ...config.valkey_registry import ValkeyDatabase, create_redis_client
from ...logger import logger
from ...security import SecurityAuditLogger, SecurityEventType

KEY_PREFIX = "oauth_state"


def _hash_state(state: str) -> str:
  return hashlib.sha256(state.encode()).hexdigest()


class OAuthStateStore:
  """
  Expiring, single-use OAuth state kept in Valkey/Redis.

  Only the SHA-256 of the state is stored, so a leaked key listing cannot be
  replayed against the callback. States survive restarts and are shared by all
  workers.
  """

  def __init__(self, redis_client=None, ttl_seconds: int | None = None):
    self._redis_client = redis_client
    self.ttl_seconds = ttl_seconds or env.OAUTH_STATE_TTL_SECONDS

  @property
  def redis_client(self):
    if self._redis_client is None:
      self._redis_client = create_redis_client(ValkeyDatabase.OAUTH_STATE)
    return self._redis_client

  def _key(self, state: str) -> str:
    return f"{KEY_PREFIX}:{_hash_state(state)}"

  def create(self, user_id: str, provider: str, **data: Any) -> str:
    """Create and store a new state for a user's connection attempt."""
    state = secrets.token_urlsafe(32)
    payload = {
      "user_id": user_id,
      "provider": provider,
      "created_at": datetime.now(UTC).isoformat(),
      **data,
    }
    self.redis_client.setex(self._key(state), self.ttl_seconds, json.dumps(payload))
    logger.debug(f"Created OAuth state for {provider} (user {user_id})")
    return state

  def consume(self, state: str) -> dict[str, Any] | None:
    """
    Validate and remove a state.

    Returns:
        The data stored with the state, or None when it is unknown, expired or
        already used
    """
    if not state:
      return None

    pipe = self.redis_client.pipeline()
    pipe.get(self._key(state))
    pipe.delete(self._key(state))
    raw, _ = pipe.execute()

    if raw is None:
      SecurityAuditLogger.log_security_event(
        event_type=SecurityEventType.OAUTH_STATE_INVALID,
        details={"reason": "unknown_or_expired_state"},
        risk_level="medium",
      )
      return None

    return json.loads(raw)
