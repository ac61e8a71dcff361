"""Daily reward claims."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from earnhub.errors import UserNotFound
from earnhub.logging_config import get_logger
from earnhub.settings import Settings
from earnhub.storage.repo import UserRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class Countdown:
    """Whole hours and minutes left before the next claim.

    ``ready`` reflects the exact remaining time, so it stays False during the
    last minute even though both display fields already read 0.
    """
    hours: int
    minutes: int
    ready: bool = False


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of a claim attempt."""
    claimed: bool
    balance: int
    countdown: Countdown


def time_until_next_claim(
    last_claim: datetime | None,
    now: datetime,
    interval: timedelta = timedelta(hours=24),
) -> Countdown:
    """Remaining wait before ``last_claim + interval``.

    The remainder is truncated to whole hours, with the leftover truncated to
    whole minutes. Never-claimed or overdue accounts get 0h 0m.
    """
    if last_claim is None:
        return Countdown(0, 0, ready=True)

    remaining = interval - (now - last_claim)
    if remaining <= timedelta(0):
        return Countdown(0, 0, ready=True)

    seconds = int(remaining.total_seconds())
    return Countdown(hours=seconds // 3600, minutes=(seconds % 3600) // 60)


class RewardService:
    """Grants the fixed daily reward at most once per claim interval."""

    def __init__(self, session: Session, settings: Settings):
        self.users = UserRepository(session)
        self.amount = settings.daily_reward_amount
        self.interval = timedelta(hours=settings.claim_interval_hours)

    def claim_daily_reward(self, user_id: int, now: datetime | None = None) -> ClaimResult:
        """Credit the daily reward if the interval has elapsed.

        Eligibility check and credit are one conditional UPDATE, so
        simultaneous claims for the same user credit once.

        Args:
            user_id: Claiming user
            now: Claim time (naive UTC), defaults to the current time

        Returns:
            ClaimResult; ``claimed`` is False when it is too early

        Raises:
            UserNotFound: If the user does not exist
        """
        now = now or datetime.utcnow()

        if self.users.claim_if_eligible(user_id, self.amount, now, cutoff=now - self.interval):
            user = self.users.get_by_id(user_id, refresh=True)
            logger.info("reward_claimed", user_id=user_id, amount=self.amount, balance=user.balance)
            return ClaimResult(
                claimed=True,
                balance=user.balance,
                countdown=time_until_next_claim(now, now, self.interval),
            )

        user = self.users.get_by_id(user_id, refresh=True)
        if user is None:
            raise UserNotFound()

        countdown = time_until_next_claim(user.last_claim, now, self.interval)
        logger.info(
            "reward_claim_too_early",
            user_id=user_id,
            hours_remaining=countdown.hours,
            minutes_remaining=countdown.minutes,
        )
        return ClaimResult(claimed=False, balance=user.balance, countdown=countdown)
