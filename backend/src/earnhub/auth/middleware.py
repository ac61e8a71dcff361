"""Authentication gates for FastAPI routes.

Every gate reads the session token from the ``token`` cookie and verifies its
signature. Failures surface as ``AuthRedirect``, which the app converts into
a 302 response.
"""

from fastapi import Depends, Request

from earnhub.auth.local import LocalAuthService, ROLE_ADMIN, ROLE_USER, TokenPayload
from earnhub.errors import InvalidToken
from earnhub.logging_config import get_logger

logger = get_logger(__name__)

LANDING_URL = "/"
ADMIN_LOGIN_URL = "/admin-login"


class AuthRedirect(Exception):
    """Raised by a gate to send the visitor elsewhere."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(url)


def get_auth_service(request: Request) -> LocalAuthService:
    return request.app.state.auth_service


def read_identity(request: Request, auth_service: LocalAuthService) -> TokenPayload | None:
    """Decode the token cookie, or None if it is absent or does not verify."""
    token = request.cookies.get(auth_service.settings.cookie_name)
    if not token:
        return None

    try:
        return auth_service.verify_token(token)
    except InvalidToken:
        return None


def redirect_if_authenticated(
    request: Request,
    auth_service: LocalAuthService = Depends(get_auth_service),
) -> None:
    """Guest-only gate: send signed-in visitors to their dashboard.

    A cookie that fails verification is treated as absent.
    """
    identity = read_identity(request, auth_service)
    if identity is None:
        return

    raise AuthRedirect("/admin/dashboard" if identity.is_admin else "/dashboard")


def require_user(
    request: Request,
    auth_service: LocalAuthService = Depends(get_auth_service),
) -> TokenPayload:
    """Protected gate for user pages.

    Raises:
        AuthRedirect: To the landing page when no valid user token is present
    """
    identity = read_identity(request, auth_service)
    if identity is None or identity.role != ROLE_USER:
        raise AuthRedirect(LANDING_URL)

    request.state.identity = identity
    return identity


def require_admin(
    request: Request,
    auth_service: LocalAuthService = Depends(get_auth_service),
) -> TokenPayload:
    """Protected gate for ``/admin/*`` routes.

    Raises:
        AuthRedirect: To the admin login page when no valid admin token is present
    """
    identity = read_identity(request, auth_service)
    if identity is None or identity.role != ROLE_ADMIN:
        logger.warning("admin_access_denied", path=request.url.path)
        raise AuthRedirect(ADMIN_LOGIN_URL)

    request.state.identity = identity
    return identity


def optional_admin(
    request: Request,
    auth_service: LocalAuthService = Depends(get_auth_service),
) -> TokenPayload | None:
    """Admin identity if present, without redirecting."""
    identity = read_identity(request, auth_service)
    if identity is not None and identity.is_admin:
        return identity
    return None
