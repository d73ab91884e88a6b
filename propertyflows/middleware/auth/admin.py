"""Admin authorization dependency.

Admin routes accept the same bearer JWT as every other route; the caller's
user record must carry the admin role.
"""

from fastapi import Depends, HTTPException, Request, status

from ...logger import get_logger
from ...models.iam import User
from ...security.audit_logger import SecurityAuditLogger
from .dependencies import get_current_user

logger = get_logger(__name__)


async def require_admin(
  request: Request,
  current_user: User = Depends(get_current_user),
) -> User:
  """Return the current user if they are an admin, else raise 403."""
  if not current_user.is_admin:
    SecurityAuditLogger.log_authorization_denied(
      user_id=current_user.id,
      endpoint=str(request.url.path),
      required_role="admin",
      ip_address=request.client.host if request.client else None,
    )
    raise HTTPException(
      status_code=status.HTTP_403_FORBIDDEN,
      detail="Admin access required",
    )

  logger.info(
    f"Admin request by {current_user.id}: {request.method} {request.url.path}",
    extra={"user_id": current_user.id, "action": "admin_request"},
  )
  return current_user
