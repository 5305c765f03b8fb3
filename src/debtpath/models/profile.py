"""Per-user settings consumed by payoff suggestions."""

from __future__ import annotations

from typing import ClassVar

from sqlmodel import Field, SQLModel


class Profile(SQLModel, table=True):
    __tablename__: ClassVar[str] = "profile"

    user_id: str = Field(primary_key=True, max_length=64)
    monthly_income: float = Field(default=0.0, nullable=False)
