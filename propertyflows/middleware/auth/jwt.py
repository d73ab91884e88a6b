"""JWT token utilities.

Tokens are issued by the PropertyFlows identity service; this service only
verifies them (HS256, issuer and audience checked) and reads the user_id claim.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import HTTPException, status

from ...config import env
from ...config.logging import get_logger

logger = get_logger("propertyflows.auth.jwt")


class JWTConfig:
  """JWT configuration management."""

  @staticmethod
  def get_jwt_secret() -> str:
    """Get JWT secret key."""
    secret = env.JWT_SECRET_KEY
    if not secret:
      raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="JWT secret key is not set",
      )
    return secret


def verify_jwt_token(token: str) -> Optional[str]:
  """Verify a JWT token and return the user_id if valid.

  Args:
    token: The JWT token to verify

  Returns:
    The user_id if token is valid, None otherwise
  """
  try:
    secret_key = JWTConfig.get_jwt_secret()
    payload = jwt.decode(
      token,
      secret_key,
      algorithms=["HS256"],
      issuer=env.JWT_ISSUER,
      audience=env.JWT_AUDIENCE,
    )
    return payload.get("user_id")

  except jwt.ExpiredSignatureError:
    logger.info("JWT token verification failed: token expired")
    return None
  except jwt.InvalidTokenError as e:
    logger.info(f"JWT token verification failed: {type(e).__name__}")
    return None


def create_jwt_token(user_id: str, expiry_hours: Optional[float] = None) -> str:
  """Create a JWT token for a user.

  Used by the admin tooling and tests; production tokens come from the
  identity service with the same claims.
  """
  secret_key = JWTConfig.get_jwt_secret()
  now = datetime.now(timezone.utc)

  payload = {
    "user_id": user_id,
    "jti": str(uuid.uuid4()),
    "exp": now + timedelta(hours=expiry_hours or env.JWT_EXPIRY_HOURS),
    "iat": now,
    "iss": env.JWT_ISSUER,
    "aud": env.JWT_AUDIENCE,
  }
  return jwt.encode(payload, secret_key, algorithm="HS256")
