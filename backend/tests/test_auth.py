"""Tests for password hashing, session tokens and login."""

from datetime import timedelta

import pytest
from jose import jwt

from earnhub.auth.local import JWT_ALGORITHM, ROLE_ADMIN, ROLE_USER
from earnhub.errors import EmailInUse, InvalidCredentials, InvalidToken, ValidationError
from earnhub.settings import Settings, check_production_secrets

from tests.conftest import PASSWORD, TEST_SECRET


class TestPasswordHashing:
    def test_hash_and_verify(self, auth_service):
        hashed = auth_service.hash_password("CorrectP@ss1")
        assert hashed != "CorrectP@ss1"
        assert auth_service.verify_password("CorrectP@ss1", hashed) is True

    def test_wrong_password_rejected(self, auth_service):
        hashed = auth_service.hash_password("CorrectP@ss1")
        assert auth_service.verify_password("WrongP@ss1", hashed) is False

    def test_hash_is_bcrypt(self, auth_service):
        assert auth_service.hash_password("TestP@ss1").startswith("$2")

    def test_long_password_truncated_to_bcrypt_limit(self, auth_service):
        long_password = "a" * 100
        hashed = auth_service.hash_password(long_password)
        assert auth_service.verify_password("a" * 72, hashed) is True


class TestSessionToken:
    def test_create_and_verify(self, auth_service):
        token = auth_service.create_access_token(42)
        payload = auth_service.verify_token(token)
        assert payload.subject_id == 42
        assert payload.role == ROLE_USER
        assert payload.is_admin is False

    def test_admin_role(self, auth_service):
        payload = auth_service.verify_token(auth_service.create_access_token(7, role=ROLE_ADMIN))
        assert payload.subject_id == 7
        assert payload.is_admin is True

    def test_expires_after_thirty_days(self, auth_service):
        token = auth_service.create_access_token(1)
        claims = jwt.get_unverified_claims(token)
        assert claims["exp"] - claims["iat"] == int(timedelta(days=30).total_seconds())

    def test_expired_token_rejected(self, auth_service):
        token = auth_service.create_access_token(1, expires_delta=timedelta(seconds=-1))
        with pytest.raises(InvalidToken):
            auth_service.verify_token(token)

    def test_tampered_signature_rejected(self, auth_service):
        token = auth_service.create_access_token(1)
        head, body, signature = token.split(".")
        forged = ".".join([head, body, signature[::-1]])
        with pytest.raises(InvalidToken):
            auth_service.verify_token(forged)

    def test_other_secret_rejected(self, auth_service):
        token = jwt.encode({"sub": "1", "role": "user"}, "another-secret", algorithm=JWT_ALGORITHM)
        with pytest.raises(InvalidToken):
            auth_service.verify_token(token)

    def test_malformed_token_rejected(self, auth_service):
        with pytest.raises(InvalidToken):
            auth_service.verify_token("not-a-token")

    def test_unknown_role_rejected(self, auth_service):
        token = jwt.encode({"sub": "1", "role": "superuser"}, TEST_SECRET, algorithm=JWT_ALGORITHM)
        with pytest.raises(InvalidToken):
            auth_service.verify_token(token)

    def test_non_numeric_subject_rejected(self, auth_service):
        token = jwt.encode({"sub": "abc", "role": "user"}, TEST_SECRET, algorithm=JWT_ALGORITHM)
        with pytest.raises(InvalidToken):
            auth_service.verify_token(token)

    def test_unknown_role_cannot_be_issued(self, auth_service):
        with pytest.raises(ValueError):
            auth_service.create_access_token(1, role="superuser")


class TestAuthenticate:
    def test_user_credentials(self, auth_service, session, make_user):
        created = make_user(email="Bob@Example.com")
        user = auth_service.authenticate_user(session, "bob@example.com", PASSWORD)
        assert user.id == created.id

    def test_padded_email_matches_signup(self, auth_service, session, make_user, make_admin):
        created = make_user(email="  alice@example.com ")
        admin = make_admin(email=" root@example.com")

        assert auth_service.authenticate_user(session, "  alice@example.com ", PASSWORD).id == created.id
        assert auth_service.authenticate_admin(session, "root@example.com  ", PASSWORD).id == admin.id

    def test_wrong_password(self, auth_service, session, make_user):
        make_user()
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate_user(session, "alice@example.com", "nope")

    def test_unknown_email(self, auth_service, session):
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate_user(session, "ghost@example.com", PASSWORD)

    def test_blank_fields(self, auth_service, session):
        with pytest.raises(ValidationError):
            auth_service.authenticate_user(session, "", PASSWORD)

    def test_admin_is_separate_from_users(self, auth_service, session, make_user):
        make_user()
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate_admin(session, "alice@example.com", PASSWORD)

    def test_duplicate_admin_email(self, auth_service, session, make_admin):
        make_admin()
        with pytest.raises(EmailInUse):
            auth_service.register_admin(session, "again", "root@example.com", PASSWORD)


class TestLoginEndpoint:
    def test_login_sets_token_cookie(self, client, auth_service, make_user):
        user = make_user()
        response = client.post(
            "/login",
            data={"email": "alice@example.com", "password": PASSWORD},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

        set_cookie = response.headers["set-cookie"]
        assert "token=" in set_cookie
        assert "HttpOnly" in set_cookie
        assert "Secure" not in set_cookie

        token = response.cookies["token"]
        assert auth_service.verify_token(token).subject_id == user.id

    def test_wrong_password_returns_401_without_cookie(self, client, make_user):
        make_user()
        response = client.post(
            "/login",
            data={"email": "alice@example.com", "password": "wrong"},
            follow_redirects=False,
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}
        assert "set-cookie" not in response.headers

    def test_login_with_padded_email(self, client, make_user):
        make_user()
        response = client.post(
            "/login",
            data={"email": " alice@example.com ", "password": PASSWORD},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_missing_fields_returns_400(self, client):
        response = client.post("/login", data={"email": "alice@example.com"})
        assert response.status_code == 400
        assert "password" in response.json()["error"]

    def test_admin_login_redirects_to_admin_dashboard(self, client, auth_service, make_admin):
        admin = make_admin()
        response = client.post(
            "/admin-login",
            data={"email": "root@example.com", "password": PASSWORD},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/admin/dashboard"
        payload = auth_service.verify_token(response.cookies["token"])
        assert payload.subject_id == admin.id
        assert payload.is_admin

    def test_logout_clears_cookie(self, client, make_user, user_token):
        user = make_user()
        client.cookies.set("token", user_token(user.id))
        response = client.post("/logout", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert 'token=""' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]


class TestProductionSecrets:
    def test_default_secret_aborts_in_production(self):
        with pytest.raises(SystemExit):
            check_production_secrets(Settings(_env_file=None, env="production"))

    def test_short_secret_aborts_in_production(self):
        with pytest.raises(SystemExit):
            check_production_secrets(Settings(_env_file=None, env="production", jwt_secret_key="short"))

    def test_strong_secret_accepted(self):
        check_production_secrets(Settings(_env_file=None, env="production", jwt_secret_key=TEST_SECRET))

    def test_development_not_checked(self):
        check_production_secrets(Settings(_env_file=None, env="development"))
