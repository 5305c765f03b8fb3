"""Debt entities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar
from uuid import uuid4

from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return uuid4().hex


class DebtRecord(SQLModel, table=True):
    """Outstanding balance tracked for a user."""

    __tablename__: ClassVar[str] = "debt"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    name: str = Field(nullable=False, max_length=80)
    principal: float = Field(nullable=False)
    rate: float = Field(default=0.0, nullable=False)  # annual percentage
    min_payment: float = Field(default=0.0, nullable=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
