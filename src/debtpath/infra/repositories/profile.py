"""SQLModel implementation of the profile repository."""

from __future__ import annotations

import math

from ...models.profile import Profile
from ..database import SessionFactory


class SQLModelProfileRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_monthly_income(self, *, user_id: str) -> float:
        with self.session_factory() as session:
            profile = session.get(Profile, user_id)
            return float(profile.monthly_income) if profile else 0.0

    def set_monthly_income(self, amount: float, *, user_id: str) -> float:
        amount = float(amount)
        if not math.isfinite(amount) or amount < 0:
            raise ValueError(f"monthly income must be a non-negative number, got {amount!r}")
        with self.session_factory() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                profile = Profile(user_id=user_id, monthly_income=amount)
            else:
                profile.monthly_income = amount
            session.add(profile)
            session.commit()
            return amount
