"""Debt repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ...models.debt import DebtRecord


@runtime_checkable
class DebtRepository(Protocol):
    """Repository for managing debt entities."""

    def get_by_id(self, debt_id: str, *, user_id: str) -> Optional[DebtRecord]:
        """Retrieve a debt by ID."""
        ...

    def list_all(self, *, user_id: str) -> list[DebtRecord]:
        """List all debts."""
        ...

    def list_active(self, *, user_id: str) -> list[DebtRecord]:
        """List debts with non-zero principal."""
        ...

    def create(self, debt: DebtRecord, *, user_id: str) -> DebtRecord:
        """Create a new debt."""
        ...

    def update(self, debt: DebtRecord, *, user_id: str) -> DebtRecord:
        """Update an existing debt."""
        ...

    def delete(self, debt_id: str, *, user_id: str) -> bool:
        """Delete a debt by ID. Returns False when nothing matched."""
        ...

    def get_total_debt(self, *, user_id: str) -> float:
        """Calculate total outstanding principal."""
        ...

    def get_weighted_rate(self, *, user_id: str) -> float:
        """Calculate balance-weighted average annual rate."""
        ...
