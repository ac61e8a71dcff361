"""Referral service: signup with optional referral code and referrer bonus."""

import re
import secrets
from typing import Any

from sqlalchemy.orm import Session

from earnhub.auth.local import LocalAuthService, require_fields
from earnhub.errors import EmailInUse, UserNotFound
from earnhub.logging_config import get_logger
from earnhub.settings import Settings
from earnhub.storage.models import User
from earnhub.storage.repo import UserRepository

logger = get_logger(__name__)

MAX_PREFIX_LENGTH = 16
SUFFIX_DIGITS = 3
MAX_ATTEMPTS_PER_WIDTH = 10


def _code_prefix(email: str) -> str:
    """Alphanumeric part of the email's local part, used as the code stem."""
    local_part = email.split("@", 1)[0]
    prefix = re.sub(r"[^A-Za-z0-9]", "", local_part).lower()[:MAX_PREFIX_LENGTH]
    return prefix or "user"


def _random_suffix(digits: int) -> str:
    return str(secrets.randbelow(10 ** digits)).zfill(digits)


class ReferralService:
    """Registers users and credits whoever referred them."""

    def __init__(self, session: Session, auth_service: LocalAuthService, settings: Settings):
        self.users = UserRepository(session)
        self.auth_service = auth_service
        self.settings = settings
        self.logger = get_logger(__name__)

    def generate_code(self, email: str) -> str:
        """Generate an unused referral code from the email's local part.

        Tries a numeric suffix, widening it by one digit after every
        ``MAX_ATTEMPTS_PER_WIDTH`` collisions.
        """
        prefix = _code_prefix(email)
        digits = SUFFIX_DIGITS
        while True:
            for _ in range(MAX_ATTEMPTS_PER_WIDTH):
                code = f"{prefix}{_random_suffix(digits)}"
                if not self.users.referral_code_exists(code):
                    return code
            self.logger.warning("referral_code_collisions", prefix=prefix, digits=digits)
            digits += 1

    def register_user(
        self,
        username: str,
        email: str,
        password: str,
        referral_code: str | None = None,
    ) -> User:
        """Create an account, crediting the referrer if the code is valid.

        Unknown referral codes are ignored and the account is created
        without a referrer.

        Args:
            username: Display name
            email: Login email
            password: Plain password
            referral_code: Optional code of an existing user

        Returns:
            Created user

        Raises:
            ValidationError: If username, email or password is blank
            EmailInUse: If the email is already registered
        """
        require_fields(username=username, email=email, password=password)
        email = email.strip()

        if self.users.get_by_email(email):
            raise EmailInUse()

        password_hash = self.auth_service.hash_password(password)

        referred_by = None
        referral_code = (referral_code or "").strip()
        if referral_code:
            referrer = self.users.get_by_referral_code(referral_code)
            if referrer:
                self.users.credit(referrer.id, self.settings.referral_bonus)
                referred_by = referral_code
                self.logger.info(
                    "referral_bonus_credited",
                    referrer_id=referrer.id,
                    amount=self.settings.referral_bonus,
                )
            else:
                self.logger.info("referral_code_ignored", referral_code=referral_code)

        user = self.users.create(
            username=username.strip(),
            email=email,
            password_hash=password_hash,
            referral_code=self.generate_code(email),
            referred_by=referred_by,
            balance=self.settings.signup_bonus,
        )

        self.logger.info("user_registered", user_id=user.id, referred=referred_by is not None)
        return user

    def get_referral_stats(self, user_id: int, base_url: str = "") -> dict[str, Any]:
        """Get referral statistics for a user.

        Args:
            user_id: User ID
            base_url: Site root used to build the shareable link

        Returns:
            Dict with code, link and number of signups
        """
        user = self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFound()

        return {
            "code": user.referral_code,
            "link": f"{base_url.rstrip('/')}/signup?referral_code={user.referral_code}",
            "referrals_count": self.users.count_referred_by(user.referral_code),
        }
