"""FastAPI authentication dependencies."""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...logger import get_logger
from ...models.iam import Organization, User
from ...security.audit_logger import SecurityAuditLogger, SecurityEventType
from .jwt import verify_jwt_token

logger = get_logger(__name__)


def _bearer_token(request: Request) -> str | None:
  authorization = request.headers.get("authorization")
  if authorization and authorization.startswith("Bearer "):
    return authorization[7:]
  return None


async def get_current_user(
  request: Request,
  db: Session = Depends(get_db_session),
) -> User:
  """
  Get the authenticated user, raising an exception if authentication fails.

  Returns:
      User: The active user named by the bearer token.

  Raises:
      HTTPException: 401 if no valid token is provided.
  """
  client_ip = request.client.host if request.client else None
  user_agent = request.headers.get("user-agent")
  endpoint = str(request.url.path)

  jwt_token = _bearer_token(request)

  if jwt_token:
    user_id = verify_jwt_token(jwt_token)
    if user_id:
      user = User.get_by_id(user_id, db)
      if user and bool(user.is_active):
        request.state.user_id = user.id
        return user

    SecurityAuditLogger.log_security_event(
      event_type=SecurityEventType.AUTH_TOKEN_INVALID,
      ip_address=client_ip,
      user_agent=user_agent,
      endpoint=endpoint,
      details={"token_type": "jwt"},
      risk_level="high",
    )
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail="Invalid or expired token",
      headers={"WWW-Authenticate": "Bearer"},
    )

  SecurityAuditLogger.log_auth_failure(
    reason="No authentication provided",
    ip_address=client_ip,
    user_agent=user_agent,
    endpoint=endpoint,
  )
  raise HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Authentication required",
    headers={"WWW-Authenticate": "Bearer"},
  )


async def get_current_organization(
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> Organization:
  """The organization the authenticated user belongs to (404 if none)."""
  org = None
  if current_user.organization_id:
    org = Organization.get_by_id(current_user.organization_id, db)

  if not org:
    raise HTTPException(
      status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found"
    )
  return org
