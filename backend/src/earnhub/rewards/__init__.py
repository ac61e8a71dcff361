"""Daily reward claim engine."""

from earnhub.rewards.service import ClaimResult, Countdown, RewardService, time_until_next_claim

__all__ = ["ClaimResult", "Countdown", "RewardService", "time_until_next_claim"]
