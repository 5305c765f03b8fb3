"""DebtPath debt payoff projection package."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .services.debts import Debt, PayoffResult, Strategy, simulate

__all__ = ["BaseConfig", "DevConfig", "Debt", "PayoffResult", "Strategy", "simulate"]
