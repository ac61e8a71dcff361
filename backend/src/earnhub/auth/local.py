"""Local authentication service (email/password, cookie-carried JWT)."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from earnhub.errors import EmailInUse, InvalidCredentials, InvalidToken, ValidationError
from earnhub.logging_config import get_logger
from earnhub.settings import Settings
from earnhub.storage.models import Admin, User
from earnhub.storage.repo import AdminRepository, UserRepository

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass(frozen=True)
class TokenPayload:
    """Identity decoded from a verified session token."""
    subject_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def require_fields(**fields: str | None) -> None:
    """Raise ValidationError naming every blank field."""
    missing = [name for name, value in fields.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


class LocalAuthService:
    """Authentication service for users and admins.

    Hashing and tokens need only settings; account operations take the
    request's session explicitly.
    """

    def __init__(self, settings: Settings):
        """Initialize auth service."""
        self.settings = settings
        self.logger = get_logger(__name__)

    # ==================== PASSWORD ====================

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode('utf-8')[:72].decode('utf-8', errors='ignore')

    def hash_password(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain password

        Returns:
            Hashed password
        """
        return pwd_context.hash(self._truncate_password(password))

    def verify_password(self, password: str, hashed: str) -> bool:
        """Verify a password against hash.

        Args:
            password: Plain password
            hashed: Hashed password

        Returns:
            True if matches
        """
        return pwd_context.verify(self._truncate_password(password), hashed)

    # ==================== JWT TOKENS ====================

    def create_access_token(
        self,
        subject_id: int,
        role: str = ROLE_USER,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a signed session token.

        Args:
            subject_id: User or admin ID
            role: ``user`` or ``admin``
            expires_delta: Optional lifetime (defaults to ``token_expire_days``)

        Returns:
            JWT token string
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        if expires_delta is None:
            expires_delta = timedelta(days=self.settings.token_expire_days)

        now = datetime.utcnow()
        payload = {
            "sub": str(subject_id),
            "role": role,
            "iat": now,
            "exp": now + expires_delta,
        }
        return jwt.encode(payload, self.settings.jwt_secret_key, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> TokenPayload:
        """Verify and decode a session token.

        Args:
            token: JWT token string

        Returns:
            Decoded identity

        Raises:
            InvalidToken: Bad signature, malformed, expired, or missing claims
        """
        try:
            payload = jwt.decode(token, self.settings.jwt_secret_key, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            self.logger.debug("token_verification_failed", error=str(e))
            raise InvalidToken(str(e)) from e

        role = payload.get("role")
        if role not in ROLES:
            raise InvalidToken("Unknown role")

        try:
            subject_id = int(payload.get("sub"))
        except (TypeError, ValueError) as e:
            raise InvalidToken("Invalid subject") from e

        return TokenPayload(subject_id=subject_id, role=role)

    # ==================== ACCOUNTS ====================

    def authenticate_user(self, session: Session, email: str, password: str) -> User:
        """Check a user's email and password.

        Raises:
            ValidationError: If email or password is blank
            InvalidCredentials: Unknown email or wrong password
        """
        require_fields(email=email, password=password)

        user = UserRepository(session).get_by_email(email)
        if not user or not self.verify_password(password, user.password_hash):
            self.logger.info("login_failed", role=ROLE_USER)
            raise InvalidCredentials()

        self.logger.info("user_authenticated", user_id=user.id)
        return user

    def authenticate_admin(self, session: Session, email: str, password: str) -> Admin:
        """Check an admin's email and password.

        Raises:
            ValidationError: If email or password is blank
            InvalidCredentials: Unknown email or wrong password
        """
        require_fields(email=email, password=password)

        admin = AdminRepository(session).get_by_email(email)
        if not admin or not self.verify_password(password, admin.password_hash):
            self.logger.info("login_failed", role=ROLE_ADMIN)
            raise InvalidCredentials()

        self.logger.info("admin_authenticated", admin_id=admin.id)
        return admin

    def register_admin(self, session: Session, username: str, email: str, password: str) -> Admin:
        """Create an admin account.

        Raises:
            ValidationError: If any field is blank
            EmailInUse: If an admin with this email exists
        """
        require_fields(username=username, email=email, password=password)

        admins = AdminRepository(session)
        if admins.get_by_email(email):
            raise EmailInUse()

        return admins.create(
            username=username.strip(),
            email=email.strip(),
            password_hash=self.hash_password(password),
        )

    def has_admins(self, session: Session) -> bool:
        return AdminRepository(session).count() > 0
