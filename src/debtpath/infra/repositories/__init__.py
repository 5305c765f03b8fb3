"""Concrete repository implementations using SQLModel."""

from .debt import SQLModelDebtRepository, to_engine_debts
from .profile import SQLModelProfileRepository

__all__ = [
    "SQLModelDebtRepository",
    "SQLModelProfileRepository",
    "to_engine_debts",
]
