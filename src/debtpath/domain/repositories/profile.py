"""Profile repository protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProfileRepository(Protocol):
    def get_monthly_income(self, *, user_id: str) -> float:
        """Return the user's monthly income, 0.0 when unknown."""
        ...

    def set_monthly_income(self, amount: float, *, user_id: str) -> float:
        """Store the user's monthly income."""
        ...
