"""Persistence: models, engine/session management and repositories."""

from earnhub.storage.db import Database
from earnhub.storage.models import Admin, Base, User, Withdrawal, WithdrawalStatus
from earnhub.storage.repo import AdminRepository, UserRepository, WithdrawalRepository

__all__ = [
    "Database",
    "Base",
    "User",
    "Admin",
    "Withdrawal",
    "WithdrawalStatus",
    "UserRepository",
    "AdminRepository",
    "WithdrawalRepository",
]
