"""Repository layer for data access."""

from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from earnhub.logging_config import get_logger
from earnhub.storage.models import Admin, User, Withdrawal, WithdrawalStatus

logger = get_logger(__name__)


class UserRepository:
    """Repository for User entities.

    Balance mutations are single conditional UPDATE statements so that the
    check and the write cannot interleave with another request.
    """

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        referral_code: str,
        balance: int,
        referred_by: str | None = None,
    ) -> User:
        """Create a new user.

        Args:
            username: Display name
            email: Login email (stored lower-cased)
            password_hash: Hashed password
            referral_code: The user's own referral code
            balance: Starting balance
            referred_by: Referral code used at signup, if any

        Returns:
            Created user
        """
        user = User(
            username=username,
            email=email.strip().lower(),
            password_hash=password_hash,
            referral_code=referral_code,
            referred_by=referred_by,
            balance=balance,
        )
        self.session.add(user)
        self.session.flush()
        logger.info("user_created", user_id=user.id, referred=referred_by is not None)
        return user

    def get_by_id(self, user_id: int, refresh: bool = False) -> User | None:
        """Get user by ID. ``refresh`` bypasses the identity map."""
        return self.session.get(User, user_id, populate_existing=refresh)

    def get_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email.strip().lower()))

    def get_by_referral_code(self, code: str) -> User | None:
        return self.session.scalar(select(User).where(User.referral_code == code))

    def referral_code_exists(self, code: str) -> bool:
        return self.session.scalar(
            select(func.count()).select_from(User).where(User.referral_code == code)
        ) > 0

    def count_referred_by(self, code: str) -> int:
        """Count users who signed up with the given referral code."""
        return self.session.scalar(
            select(func.count()).select_from(User).where(User.referred_by == code)
        )

    def list_all(self) -> list[User]:
        """List all users, newest first."""
        return list(self.session.scalars(select(User).order_by(User.id.desc())))

    def credit(self, user_id: int, amount: int) -> bool:
        """Add ``amount`` to a user's balance.

        Returns:
            True if the user exists
        """
        result = self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def claim_if_eligible(self, user_id: int, amount: int, now: datetime, cutoff: datetime) -> bool:
        """Credit ``amount`` and stamp ``last_claim`` if the last claim is older than ``cutoff``.

        Returns:
            True if the row was updated
        """
        result = self.session.execute(
            update(User)
            .where(
                User.id == user_id,
                or_(User.last_claim.is_(None), User.last_claim <= cutoff),
            )
            .values(balance=User.balance + amount, last_claim=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def debit_if_sufficient(self, user_id: int, amount: int) -> bool:
        """Subtract ``amount`` from the balance unless it would go negative.

        Returns:
            True if the row was updated
        """
        result = self.session.execute(
            update(User)
            .where(User.id == user_id, User.balance >= amount)
            .values(balance=User.balance - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class AdminRepository:
    """Repository for Admin entities."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, username: str, email: str, password_hash: str) -> Admin:
        admin = Admin(username=username, email=email.strip().lower(), password_hash=password_hash)
        self.session.add(admin)
        self.session.flush()
        logger.info("admin_created", admin_id=admin.id)
        return admin

    def get_by_id(self, admin_id: int) -> Admin | None:
        return self.session.get(Admin, admin_id)

    def get_by_email(self, email: str) -> Admin | None:
        return self.session.scalar(select(Admin).where(Admin.email == email.strip().lower()))

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(Admin))


class WithdrawalRepository:
    """Repository for Withdrawal entities."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, user_id: int, amount: int, **fields: str | None) -> Withdrawal:
        """Create a pending withdrawal request.

        Args:
            user_id: Owning user
            amount: Requested amount
            **fields: Instrument and billing address columns

        Returns:
            Created withdrawal
        """
        withdrawal = Withdrawal(
            user_id=user_id,
            amount=amount,
            status=WithdrawalStatus.PENDING,
            **fields,
        )
        self.session.add(withdrawal)
        self.session.flush()
        return withdrawal

    def get_by_id(self, withdrawal_id: int, refresh: bool = False) -> Withdrawal | None:
        return self.session.get(Withdrawal, withdrawal_id, populate_existing=refresh)

    def list_all(self) -> list[Withdrawal]:
        """List all withdrawals, newest first."""
        return list(self.session.scalars(select(Withdrawal).order_by(Withdrawal.id.desc())))

    def list_for_user(self, user_id: int) -> list[Withdrawal]:
        return list(
            self.session.scalars(
                select(Withdrawal)
                .where(Withdrawal.user_id == user_id)
                .order_by(Withdrawal.id.desc())
            )
        )

    def approve(self, withdrawal_id: int, approved_at: datetime, admin_id: int | None) -> bool:
        """Move a pending withdrawal to Approved.

        Returns:
            True if a pending row was updated, False if it was already approved or missing
        """
        result = self.session.execute(
            update(Withdrawal)
            .where(
                Withdrawal.id == withdrawal_id,
                Withdrawal.status == WithdrawalStatus.PENDING,
            )
            .values(
                status=WithdrawalStatus.APPROVED,
                approved_at=approved_at,
                approved_by=admin_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
