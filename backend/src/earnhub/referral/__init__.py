"""Referral system.

- New accounts start with the signup bonus
- Whoever's referral code was used at signup gets the referral bonus
"""

from earnhub.referral.service import ReferralService

__all__ = ["ReferralService"]
