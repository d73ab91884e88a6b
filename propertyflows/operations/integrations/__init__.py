"""Third-party connection support."""

from .oauth_state import OAuthStateStore

__all__ = ["OAuthStateStore"]
