"""SQLModel implementation of the debt repository."""

from __future__ import annotations

from typing import Iterable, Optional

from sqlmodel import select

from ...models.debt import DebtRecord
from ...services.debts import Debt
from ..database import SessionFactory


def to_engine_debts(rows: Iterable[DebtRecord]) -> list[Debt]:
    """Snapshot stored rows as immutable engine inputs.

    Raises ``InvalidDebtError`` when a stored row holds values the engine rejects.
    """
    return [
        Debt(
            id=row.id,
            name=row.name,
            principal=float(row.principal),
            rate=float(row.rate),
            min_payment=float(row.min_payment),
        )
        for row in rows
    ]


class SQLModelDebtRepository:
    """SQLModel-based debt repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, debt_id: str, *, user_id: str) -> Optional[DebtRecord]:
        """Retrieve a debt by ID."""
        with self.session_factory() as session:
            return session.exec(
                select(DebtRecord).where(DebtRecord.id == debt_id, DebtRecord.user_id == user_id)
            ).first()

    def list_all(self, *, user_id: str) -> list[DebtRecord]:
        """List all debts in creation order."""
        with self.session_factory() as session:
            statement = (
                select(DebtRecord)
                .where(DebtRecord.user_id == user_id)
                .order_by(DebtRecord.created_at, DebtRecord.id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def list_active(self, *, user_id: str) -> list[DebtRecord]:
        """List debts with non-zero principal."""
        with self.session_factory() as session:
            statement = (
                select(DebtRecord)
                .where(DebtRecord.user_id == user_id)
                .where(DebtRecord.principal > 0)
                .order_by(DebtRecord.created_at, DebtRecord.id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def create(self, debt: DebtRecord, *, user_id: str) -> DebtRecord:
        """Create a new debt."""
        to_engine_debts([debt])  # reject rows the engine could not simulate
        with self.session_factory() as session:
            debt.user_id = user_id
            session.add(debt)
            session.commit()
            session.refresh(debt)
            return debt

    def update(self, debt: DebtRecord, *, user_id: str) -> DebtRecord:
        """Update an existing debt."""
        to_engine_debts([debt])
        with self.session_factory() as session:
            debt.user_id = user_id
            merged = session.merge(debt)
            session.commit()
            session.refresh(merged)
            return merged

    def delete(self, debt_id: str, *, user_id: str) -> bool:
        """Delete a debt by ID."""
        with self.session_factory() as session:
            debt = session.exec(
                select(DebtRecord).where(DebtRecord.id == debt_id, DebtRecord.user_id == user_id)
            ).first()
            if debt is None:
                return False
            session.delete(debt)
            session.commit()
            return True

    def get_total_debt(self, *, user_id: str) -> float:
        """Calculate total outstanding principal."""
        return sum(debt.principal for debt in self.list_all(user_id=user_id))

    def get_weighted_rate(self, *, user_id: str) -> float:
        """Calculate balance-weighted average annual rate."""
        debts = self.list_all(user_id=user_id)
        total_balance = sum(debt.principal for debt in debts)
        if total_balance == 0:
            return 0.0
        return sum(debt.principal * debt.rate for debt in debts) / total_balance
