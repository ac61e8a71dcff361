"""Authentication: password hashing, session tokens and route gates."""

from earnhub.auth.local import LocalAuthService, TokenPayload
from earnhub.auth.middleware import (
    AuthRedirect,
    redirect_if_authenticated,
    require_admin,
    require_user,
)

__all__ = [
    "LocalAuthService",
    "TokenPayload",
    "AuthRedirect",
    "redirect_if_authenticated",
    "require_admin",
    "require_user",
]
