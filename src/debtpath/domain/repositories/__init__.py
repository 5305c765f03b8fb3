"""Repository protocol definitions for domain layer."""

from .debt import DebtRepository
from .profile import ProfileRepository

__all__ = [
    "DebtRepository",
    "ProfileRepository",
]
