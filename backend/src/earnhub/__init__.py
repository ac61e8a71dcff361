"""EarnHub: account balances, referral bonuses, daily rewards and withdrawals."""

__version__ = "1.0.0"
