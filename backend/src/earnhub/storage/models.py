"""Database models for accounts and withdrawal requests."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Largest value an Integer column holds on every supported backend
MAX_INTEGER = 2**31 - 1


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class WithdrawalStatus(str, Enum):
    """Withdrawal lifecycle. Only moves forward."""
    PENDING = "Pending"
    APPROVED = "Approved"


class User(Base):
    """End-user account holding a balance."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Referral
    referral_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    referred_by: Mapped[str | None] = mapped_column(String(32), nullable=True)

    last_claim: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    withdrawals: Mapped[list["Withdrawal"]] = relationship(
        "Withdrawal", back_populates="user", order_by="Withdrawal.id.desc()"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, balance={self.balance})>"


class Admin(Base):
    """Administrator account. Reviews withdrawal requests."""

    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, email={self.email})>"


class Withdrawal(Base):
    """A user's request to move balance out, pending admin approval."""

    __tablename__ = "withdrawals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Payment instrument
    card_number: Mapped[str] = mapped_column(String(32), nullable=False)
    expiration_date: Mapped[str] = mapped_column(String(10), nullable=False)
    security_code: Mapped[str] = mapped_column(String(4), nullable=False)

    # Billing address
    account_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    street_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[WithdrawalStatus] = mapped_column(
        SQLEnum(WithdrawalStatus, values_callable=lambda e: [m.value for m in e]),
        default=WithdrawalStatus.PENDING,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("admins.id"), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="withdrawals")

    @property
    def masked_card_number(self) -> str:
        """Card number with all but the last four digits hidden."""
        digits = self.card_number[-4:]
        return f"**** **** **** {digits}"

    def __repr__(self) -> str:
        return f"<Withdrawal(id={self.id}, user={self.user_id}, amount={self.amount}, status={self.status})>"
