"""Signup and login endpoints for users and admins."""

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse

from earnhub.api.deps import database_errors, get_db, get_settings
from earnhub.api.rate_limit import LOGIN_LIMIT, SIGNUP_LIMIT, limiter
from earnhub.auth.local import LocalAuthService, ROLE_ADMIN, ROLE_USER, TokenPayload
from earnhub.auth.middleware import ADMIN_LOGIN_URL, AuthRedirect, get_auth_service, optional_admin
from earnhub.logging_config import get_logger
from earnhub.referral.service import ReferralService
from earnhub.settings import Settings
from earnhub.storage.db import Database

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


def _login_redirect(url: str, token: str, settings: Settings) -> RedirectResponse:
    """Redirect carrying the session token in an HTTP-only cookie."""
    response = RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.token_expire_days * 24 * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


@router.post("/signup")
@limiter.limit(SIGNUP_LIMIT)
def signup(
    request: Request,
    username: str | None = Form(default=None),
    email: str | None = Form(default=None),
    password: str | None = Form(default=None),
    referral_code: str | None = Form(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth_service: LocalAuthService = Depends(get_auth_service),
):
    """Register a user, crediting the referrer when the code is valid."""
    with database_errors("Error during sign-up", as_json=True), db.session() as session:
        ReferralService(session, auth_service, settings).register_user(
            username=username,
            email=email,
            password=password,
            referral_code=referral_code,
        )

    return RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)


@router.post("/login")
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    email: str | None = Form(default=None),
    password: str | None = Form(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth_service: LocalAuthService = Depends(get_auth_service),
):
    with database_errors("Error during login", as_json=True), db.session() as session:
        user = auth_service.authenticate_user(session, email, password)
        token = auth_service.create_access_token(user.id, role=ROLE_USER)

    return _login_redirect("/dashboard", token, settings)


@router.post("/admin-login")
@limiter.limit(LOGIN_LIMIT)
def admin_login(
    request: Request,
    email: str | None = Form(default=None),
    password: str | None = Form(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth_service: LocalAuthService = Depends(get_auth_service),
):
    with database_errors("Error during login", as_json=True), db.session() as session:
        admin = auth_service.authenticate_admin(session, email, password)
        token = auth_service.create_access_token(admin.id, role=ROLE_ADMIN)

    return _login_redirect("/admin/dashboard", token, settings)


@router.post("/admin/signup")
@limiter.limit(SIGNUP_LIMIT)
def admin_signup(
    request: Request,
    username: str | None = Form(default=None),
    email: str | None = Form(default=None),
    password: str | None = Form(default=None),
    db: Database = Depends(get_db),
    auth_service: LocalAuthService = Depends(get_auth_service),
    identity: TokenPayload | None = Depends(optional_admin),
):
    """Create an admin account.

    Open only while no admin exists; afterwards an admin must be signed in.
    """
    with database_errors("Error during sign-up", as_json=True), db.session() as session:
        if identity is None and auth_service.has_admins(session):
            logger.warning("admin_signup_denied")
            raise AuthRedirect(ADMIN_LOGIN_URL)

        admin = auth_service.register_admin(session, username, email, password)
        logger.info(
            "admin_registered",
            admin_id=admin.id,
            created_by=identity.subject_id if identity else None,
        )

    return RedirectResponse(url="/admin-login", status_code=status.HTTP_302_FOUND)
