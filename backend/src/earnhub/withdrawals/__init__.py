"""Withdrawal workflow."""

from earnhub.withdrawals.service import BillingAddress, PaymentInstrument, WithdrawalService

__all__ = ["BillingAddress", "PaymentInstrument", "WithdrawalService"]
