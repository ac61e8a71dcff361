"""Admin review of users and withdrawal requests."""

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from earnhub.api.deps import database_errors, get_db, templates
from earnhub.auth.local import TokenPayload
from earnhub.auth.middleware import require_admin
from earnhub.storage.db import Database
from earnhub.storage.models import MAX_INTEGER
from earnhub.withdrawals.service import WithdrawalService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/dashboard", response_class=HTMLResponse)
def admin_dashboard(request: Request, db: Database = Depends(get_db)):
    with database_errors("Error fetching withdrawals"), db.session() as session:
        service = WithdrawalService(session)
        return templates.TemplateResponse(
            request,
            "admin_dashboard.html",
            {
                "users": service.list_users(),
                "withdrawals": service.list_withdrawals(),
            },
        )


@router.post("/withdrawals/{withdrawal_id}/approve")
def approve_withdrawal(
    withdrawal_id: int = Path(ge=1, le=MAX_INTEGER),
    identity: TokenPayload = Depends(require_admin),
    db: Database = Depends(get_db),
):
    with database_errors("Error approving withdrawal"), db.session() as session:
        WithdrawalService(session).approve_withdrawal(withdrawal_id, admin_id=identity.subject_id)

    return RedirectResponse(url="/admin/dashboard", status_code=status.HTTP_302_FOUND)
