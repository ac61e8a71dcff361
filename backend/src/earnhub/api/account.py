"""Signed-in user pages: dashboard, daily reward and withdrawals."""

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from earnhub.api.deps import database_errors, get_db, get_settings, templates
from earnhub.api.rate_limit import CLAIM_LIMIT, WITHDRAW_LIMIT, limiter
from earnhub.auth.local import LocalAuthService, TokenPayload
from earnhub.auth.middleware import get_auth_service, require_user
from earnhub.errors import UserNotFound
from earnhub.referral.service import ReferralService
from earnhub.rewards.service import RewardService, time_until_next_claim
from earnhub.settings import Settings
from earnhub.storage.db import Database
from earnhub.storage.repo import UserRepository
from earnhub.withdrawals.service import BillingAddress, PaymentInstrument, WithdrawalService

router = APIRouter(tags=["account"])


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    identity: TokenPayload = Depends(require_user),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth_service: LocalAuthService = Depends(get_auth_service),
):
    """Balance, referral details, claim countdown and withdrawal history."""
    with database_errors("Error fetching dashboard data"), db.session() as session:
        user = UserRepository(session).get_by_id(identity.subject_id)
        if user is None:
            raise UserNotFound()

        referral = ReferralService(session, auth_service, settings).get_referral_stats(
            user.id, base_url=str(request.base_url)
        )
        withdrawals = WithdrawalService(session).list_for_user(user.id)
        countdown = time_until_next_claim(
            user.last_claim,
            datetime.utcnow(),
            timedelta(hours=settings.claim_interval_hours),
        )

        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "user": user,
                "referral": referral,
                "withdrawals": withdrawals,
                "countdown": countdown,
                "reward_amount": settings.daily_reward_amount,
            },
        )


@router.post("/claim-daily-reward")
@limiter.limit(CLAIM_LIMIT)
def claim_daily_reward(
    request: Request,
    identity: TokenPayload = Depends(require_user),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    with database_errors("Error processing daily reward claim"), db.session() as session:
        result = RewardService(session, settings).claim_daily_reward(identity.subject_id)

    if result.claimed:
        return RedirectResponse(url="/dashboard", status_code=status.HTTP_302_FOUND)

    hours, minutes = result.countdown.hours, result.countdown.minutes
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": f"You can claim your next reward in {hours} hours and {minutes} minutes.",
            "hours_remaining": hours,
            "minutes_remaining": minutes,
        },
    )


@router.get("/withdraw", response_class=HTMLResponse)
async def withdraw_form(request: Request, identity: TokenPayload = Depends(require_user)):
    return templates.TemplateResponse(request, "withdraw.html")


@router.post("/withdraw")
@limiter.limit(WITHDRAW_LIMIT)
def withdraw(
    request: Request,
    identity: TokenPayload = Depends(require_user),
    card_number: str | None = Form(default=None),
    expiration_date: str | None = Form(default=None),
    security_code: str | None = Form(default=None),
    account_name: str | None = Form(default=None),
    street_address: str | None = Form(default=None),
    country: str | None = Form(default=None),
    city: str | None = Form(default=None),
    state: str | None = Form(default=None),
    zip_code: str | None = Form(default=None),
    phone_number: str | None = Form(default=None),
    amount: str | None = Form(default=None),
    db: Database = Depends(get_db),
):
    instrument = PaymentInstrument(
        card_number=card_number,
        expiration_date=expiration_date,
        security_code=security_code,
    )
    address = BillingAddress(
        account_name=account_name,
        street_address=street_address,
        country=country,
        city=city,
        state=state,
        zip_code=zip_code,
        phone_number=phone_number,
    )

    with database_errors("Error during withdrawal"), db.session() as session:
        WithdrawalService(session).submit_withdrawal(identity.subject_id, instrument, address, amount)

    return RedirectResponse(url="/dashboard", status_code=status.HTTP_302_FOUND)
