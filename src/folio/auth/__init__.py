"""Authentication module — session-user guards for the HTTP surface."""

from folio.auth.middleware import current_user_id, get_user, require_authenticated_user

__all__ = ["current_user_id", "get_user", "require_authenticated_user"]
