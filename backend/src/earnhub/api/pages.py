"""Public pages: landing, forms and logout."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from earnhub.api.deps import get_settings, templates
from earnhub.auth.middleware import redirect_if_authenticated
from earnhub.settings import Settings

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse, dependencies=[Depends(redirect_if_authenticated)])
async def landing(request: Request):
    return templates.TemplateResponse(request, "index.html")


@router.get("/index", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(request, "index.html")


@router.get("/signup", response_class=HTMLResponse)
async def signup_form(request: Request, referral_code: str = ""):
    """Signup form, prefilled when arriving from a referral link."""
    return templates.TemplateResponse(request, "signup.html", {"referral_code": referral_code})


@router.get("/login", response_class=HTMLResponse)
async def login_form(request: Request):
    return templates.TemplateResponse(request, "login.html")


@router.get("/admin-signup", response_class=HTMLResponse)
async def admin_signup_form(request: Request):
    return templates.TemplateResponse(request, "admin_signup.html")


@router.get("/admin-login", response_class=HTMLResponse)
async def admin_login_form(request: Request):
    return templates.TemplateResponse(request, "admin_login.html")


@router.post("/logout")
async def logout(settings: Settings = Depends(get_settings)):
    """Drop the session cookie. The token itself stays valid until it expires."""
    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    response.delete_cookie(
        settings.cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response
