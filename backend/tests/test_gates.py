"""Tests for the guest, user and admin gates and the page flow."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from earnhub.api.main import create_app
from earnhub.api.rate_limit import configure_limiter
from earnhub.logging_config import redact_sensitive
from earnhub.storage.models import MAX_INTEGER, WithdrawalStatus
from earnhub.storage.repo import WithdrawalRepository
from earnhub.withdrawals.service import BillingAddress, PaymentInstrument, WithdrawalService

from tests.conftest import PASSWORD


def _pending_withdrawal(database, user_id, amount=100):
    with database.session() as session:
        return WithdrawalService(session).submit_withdrawal(
            user_id,
            PaymentInstrument("4111111111111111", "12/29", "123"),
            BillingAddress(account_name="Alice"),
            amount,
        )


class TestGuestGate:
    def test_landing_renders_for_visitors(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Create account" in response.text

    def test_signed_in_user_sent_to_dashboard(self, client, make_user, user_token):
        user = make_user()
        client.cookies.set("token", user_token(user.id))

        response = client.get("/", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_signed_in_admin_sent_to_admin_dashboard(self, client, make_admin, admin_token):
        admin = make_admin()
        client.cookies.set("token", admin_token(admin.id))

        response = client.get("/", follow_redirects=False)

        assert response.headers["location"] == "/admin/dashboard"

    def test_forged_cookie_is_ignored(self, client):
        client.cookies.set("token", "forged.value.here")

        response = client.get("/", follow_redirects=False)

        assert response.status_code == 200

    def test_expired_cookie_is_ignored(self, client, auth_service):
        client.cookies.set("token", auth_service.create_access_token(1, expires_delta=timedelta(seconds=-5)))
        assert client.get("/", follow_redirects=False).status_code == 200

    @pytest.mark.parametrize("path", ["/index", "/signup", "/login", "/admin-signup", "/admin-login"])
    def test_forms_render(self, client, path):
        assert client.get(path).status_code == 200


class TestUserGate:
    def test_dashboard_without_cookie_redirects(self, client):
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/"

    def test_dashboard_with_invalid_token_redirects(self, client):
        client.cookies.set("token", "garbage")
        response = client.get("/dashboard", follow_redirects=False)
        assert response.headers["location"] == "/"

    def test_admin_token_is_not_a_user_session(self, client, make_admin, admin_token):
        admin = make_admin()
        client.cookies.set("token", admin_token(admin.id))
        response = client.get("/dashboard", follow_redirects=False)
        assert response.headers["location"] == "/"

    def test_dashboard_shows_account(self, client, make_user, user_token):
        user = make_user()
        client.cookies.set("token", user_token(user.id))

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert "alice" in response.text
        assert "2000" in response.text
        assert user.referral_code in response.text
        assert f"/signup?referral_code={user.referral_code}" in response.text

    def test_dashboard_for_missing_user_is_404(self, client, user_token):
        client.cookies.set("token", user_token(9999))

        response = client.get("/dashboard")

        assert response.status_code == 404
        assert "User not found" in response.text

    def test_database_failure_renders_500(self, client, make_user, user_token, monkeypatch):
        user = make_user()
        client.cookies.set("token", user_token(user.id))

        def broken(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))

        monkeypatch.setattr(WithdrawalRepository, "list_for_user", broken)

        response = client.get("/dashboard")

        assert response.status_code == 500
        assert "Error fetching dashboard data" in response.text
        assert "connection lost" not in response.text


class TestAdminGate:
    @pytest.mark.parametrize(
        "method, path",
        [("get", "/admin/dashboard"), ("post", "/admin/withdrawals/1/approve")],
    )
    def test_anonymous_visitors_rejected(self, client, method, path):
        response = getattr(client, method)(path, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/admin-login"

    def test_user_token_rejected(self, client, database, make_user, user_token):
        user = make_user()
        withdrawal = _pending_withdrawal(database, user.id)
        client.cookies.set("token", user_token(user.id))

        response = client.post(f"/admin/withdrawals/{withdrawal.id}/approve", follow_redirects=False)

        assert response.headers["location"] == "/admin-login"
        with database.session() as session:
            assert WithdrawalRepository(session).get_by_id(withdrawal.id).status == WithdrawalStatus.PENDING

    def test_admin_dashboard_lists_users_and_withdrawals(self, client, database, make_user, make_admin, admin_token):
        user = make_user()
        _pending_withdrawal(database, user.id, amount=321)
        client.cookies.set("token", admin_token(make_admin().id))

        response = client.get("/admin/dashboard")

        assert response.status_code == 200
        assert "alice@example.com" in response.text
        assert "321" in response.text
        assert "4111111111111111" not in response.text

    def test_admin_approves_withdrawal(self, client, database, make_user, make_admin, admin_token):
        user = make_user()
        withdrawal = _pending_withdrawal(database, user.id)
        admin = make_admin()
        client.cookies.set("token", admin_token(admin.id))

        response = client.post(f"/admin/withdrawals/{withdrawal.id}/approve", follow_redirects=False)
        again = client.post(f"/admin/withdrawals/{withdrawal.id}/approve", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/admin/dashboard"
        assert again.status_code == 302
        with database.session() as session:
            stored = WithdrawalRepository(session).get_by_id(withdrawal.id)
            assert stored.status == WithdrawalStatus.APPROVED
            assert stored.approved_by == admin.id

    def test_approve_unknown_withdrawal_is_404(self, client, make_admin, admin_token):
        client.cookies.set("token", admin_token(make_admin().id))
        response = client.post("/admin/withdrawals/777/approve")
        assert response.status_code == 404


class TestAdminSignup:
    FORM = {"username": "boss", "email": "boss@example.com", "password": PASSWORD}

    def test_first_admin_can_sign_up(self, client, auth_service, database):
        response = client.post("/admin/signup", data=self.FORM, follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/admin-login"
        with database.session() as session:
            assert auth_service.authenticate_admin(session, "boss@example.com", PASSWORD)

    def test_later_signups_need_an_admin(self, client, make_admin):
        make_admin()
        response = client.post("/admin/signup", data=self.FORM, follow_redirects=False)
        assert response.headers["location"] == "/admin-login"

    def test_admin_can_add_admins(self, client, make_admin, admin_token, auth_service, database):
        client.cookies.set("token", admin_token(make_admin().id))

        response = client.post("/admin/signup", data=self.FORM, follow_redirects=False)

        assert response.status_code == 302
        with database.session() as session:
            assert auth_service.authenticate_admin(session, "boss@example.com", PASSWORD)

    def test_duplicate_admin_email_returns_400(self, client, make_admin, admin_token):
        client.cookies.set("token", admin_token(make_admin().id))
        response = client.post("/admin/signup", data={**self.FORM, "email": "root@example.com"})
        assert response.status_code == 400


class TestEndToEnd:
    def test_signup_login_claim_withdraw_approve(self, client, database, make_admin):
        client.post(
            "/signup",
            data={"username": "zoe", "email": "zoe@example.com", "password": PASSWORD},
            follow_redirects=False,
        )
        login = client.post(
            "/login",
            data={"email": "zoe@example.com", "password": PASSWORD},
            follow_redirects=False,
        )
        assert login.status_code == 302

        assert client.post("/claim-daily-reward", follow_redirects=False).status_code == 302
        assert "2500" in client.get("/dashboard").text

        client.post(
            "/withdraw",
            data={
                "card_number": "4111111111111111",
                "expiration_date": "12/29",
                "security_code": "123",
                "amount": "1000",
            },
            follow_redirects=False,
        )
        dashboard = client.get("/dashboard").text
        assert "1500" in dashboard
        assert "Pending" in dashboard

        client.post("/logout", follow_redirects=False)
        assert client.get("/dashboard", follow_redirects=False).status_code == 302

        make_admin()
        client.post(
            "/admin-login",
            data={"email": "root@example.com", "password": PASSWORD},
            follow_redirects=False,
        )
        with database.session() as session:
            withdrawal_id = WithdrawalService(session).list_withdrawals()[0].id
        client.post(f"/admin/withdrawals/{withdrawal_id}/approve", follow_redirects=False)

        assert "Approved" in client.get("/admin/dashboard").text


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestWithdrawalIdBounds:
    @pytest.mark.parametrize("withdrawal_id", ["0", str(MAX_INTEGER + 1), "9" * 30])
    def test_out_of_range_id_is_rejected(self, client, make_admin, admin_token, withdrawal_id):
        client.cookies.set("token", admin_token(make_admin().id))

        response = client.post(f"/admin/withdrawals/{withdrawal_id}/approve", follow_redirects=False)

        assert response.status_code == 422


class TestRateLimits:
    @pytest.fixture
    def production_client(self, settings, database):
        production = settings.model_copy(update={"env": "production"})
        with TestClient(create_app(settings=production, database=database)) as client:
            yield client
        configure_limiter(settings)

    def test_signup_is_limited_in_production(self, production_client):
        statuses = [production_client.post("/signup", data={}).status_code for _ in range(6)]

        assert statuses[:5] == [400] * 5
        assert statuses[5] == 429

    def test_limits_are_off_outside_production(self, client):
        statuses = {client.post("/signup", data={}).status_code for _ in range(8)}
        assert statuses == {400}


class TestLogRedaction:
    def test_sensitive_values_are_masked(self):
        event = redact_sensitive(
            None,
            "info",
            {"event": "login_failed", "password": "hunter2", "card_number": "4111111111111111", "user_id": 3},
        )

        assert event["password"] == "[redacted]"
        assert event["card_number"] == "[redacted]"
        assert event["user_id"] == 3
