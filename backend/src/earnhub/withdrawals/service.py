"""Withdrawal requests and their admin approval."""

from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from earnhub.errors import InsufficientBalance, UserNotFound, WithdrawalNotFound
from earnhub.logging_config import get_logger
from earnhub.storage.models import User, Withdrawal
from earnhub.storage.repo import UserRepository, WithdrawalRepository
from earnhub.withdrawals.validators import (
    clean_card_number,
    clean_expiration,
    clean_security_code,
    normalize_phone,
    parse_amount,
)

logger = get_logger(__name__)


@dataclass
class PaymentInstrument:
    card_number: str
    expiration_date: str
    security_code: str

    def cleaned(self) -> "PaymentInstrument":
        return PaymentInstrument(
            card_number=clean_card_number(self.card_number),
            expiration_date=clean_expiration(self.expiration_date),
            security_code=clean_security_code(self.security_code),
        )


@dataclass
class BillingAddress:
    account_name: str | None = None
    street_address: str | None = None
    country: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    phone_number: str | None = None

    def cleaned(self) -> "BillingAddress":
        fields = {key: (value.strip() or None) if value else None for key, value in asdict(self).items()}
        fields["phone_number"] = normalize_phone(self.phone_number, fields["country"])
        return BillingAddress(**fields)


class WithdrawalService:
    """Records withdrawal requests and lets admins approve them."""

    def __init__(self, session: Session):
        self.users = UserRepository(session)
        self.withdrawals = WithdrawalRepository(session)

    def submit_withdrawal(
        self,
        user_id: int,
        instrument: PaymentInstrument,
        address: BillingAddress,
        amount: int | str,
    ) -> Withdrawal:
        """Debit the balance and record a pending withdrawal request.

        Debit and insert share the caller's transaction; the debit only
        applies when the balance covers ``amount``.

        Raises:
            ValidationError: Malformed instrument or non-positive amount
            UserNotFound: If the user does not exist
            InsufficientBalance: If the balance is below ``amount``
        """
        amount = parse_amount(amount)
        instrument = instrument.cleaned()
        address = address.cleaned()

        if not self.users.debit_if_sufficient(user_id, amount):
            user = self.users.get_by_id(user_id, refresh=True)
            if user is None:
                raise UserNotFound()
            logger.info(
                "withdrawal_rejected_insufficient_balance",
                user_id=user_id,
                amount=amount,
                balance=user.balance,
            )
            raise InsufficientBalance(requested=amount, available=user.balance)

        withdrawal = self.withdrawals.create(
            user_id=user_id,
            amount=amount,
            **asdict(instrument),
            **asdict(address),
        )

        logger.info("withdrawal_submitted", user_id=user_id, withdrawal_id=withdrawal.id, amount=amount)
        return withdrawal

    def approve_withdrawal(self, withdrawal_id: int, admin_id: int | None = None) -> Withdrawal:
        """Mark a withdrawal Approved. Approving twice is a no-op.

        Raises:
            WithdrawalNotFound: If no such request exists
        """
        if self.withdrawals.approve(withdrawal_id, approved_at=datetime.utcnow(), admin_id=admin_id):
            logger.info("withdrawal_approved", withdrawal_id=withdrawal_id, admin_id=admin_id)
        else:
            logger.info("withdrawal_approve_noop", withdrawal_id=withdrawal_id)

        withdrawal = self.withdrawals.get_by_id(withdrawal_id, refresh=True)
        if withdrawal is None:
            raise WithdrawalNotFound()
        return withdrawal

    def list_withdrawals(self) -> list[Withdrawal]:
        return self.withdrawals.list_all()

    def list_for_user(self, user_id: int) -> list[Withdrawal]:
        return self.withdrawals.list_for_user(user_id)

    def list_users(self) -> list[User]:
        return self.users.list_all()
