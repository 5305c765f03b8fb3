"""Comparisons, suggestions and presentation helpers built on the payoff engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

from .debts import (
    DEFAULT_MONTH_CAP,
    Debt,
    PayoffResult,
    Strategy,
    check_extra_payment,
    minimum_only,
    priority_order,
    simulate,
    total_min_payment,
)

DEFAULT_SAFE_EXTRA_RATIO = 0.2
DEFAULT_PREVIEW_MONTHS = 48


@dataclass(frozen=True, slots=True)
class SimulationBudget:
    """Monthly money available to the payoff plan."""

    total_min_payment: float
    extra_payment: float
    disposable_income: float | None = None

    @property
    def total_budget(self) -> float:
        return self.total_min_payment + self.extra_payment


@dataclass(frozen=True, slots=True)
class StrategyComparison:
    """Minimum-only baseline next to an accelerated run."""

    baseline: PayoffResult
    accelerated: PayoffResult

    @property
    def months_saved(self) -> int:
        return self.baseline.months - self.accelerated.months

    @property
    def interest_saved(self) -> float:
        return self.baseline.total_interest - self.accelerated.total_interest


@dataclass(frozen=True, slots=True)
class PlanStep:
    """One debt in the payoff plan with the payment suggested this month."""

    debt: Debt
    payment: float
    is_focus: bool


@dataclass(frozen=True, slots=True)
class PortfolioSummary:
    total_debt: float
    total_min_payment: float
    weighted_rate: float
    debt_count: int


@dataclass(frozen=True, slots=True)
class ProjectionPoint:
    """Point of the approximate pooled-balance preview (whole currency units)."""

    month: int
    balance_minimum: int
    balance_strategy: int


def round_currency(value: float) -> float:
    """Round to cents using half-up rounding. Presentation only."""

    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def simulation_budget(
    debts: Sequence[Debt], extra_payment: float, monthly_income: float | None = None
) -> SimulationBudget:
    """Return the monthly budget, capping extra at disposable income when known."""

    minimums = total_min_payment(debts)
    extra = max(float(extra_payment), 0.0)
    disposable = None
    if monthly_income is not None:
        disposable = max(float(monthly_income) - minimums, 0.0)
        extra = min(extra, disposable)
    return SimulationBudget(
        total_min_payment=minimums, extra_payment=extra, disposable_income=disposable
    )


def suggest_extra_payment(
    debts: Sequence[Debt], monthly_income: float, ratio: float = DEFAULT_SAFE_EXTRA_RATIO
) -> int:
    """Return a safe extra monthly payment: a share of income left after minimums."""

    if not 0 <= ratio <= 1:
        raise ValueError(f"ratio must be between 0 and 1, got {ratio!r}")
    leftover = float(monthly_income) - total_min_payment(debts)
    return max(0, math.floor(leftover * ratio))


def compare_strategies(
    debts: Sequence[Debt],
    extra_payment: float,
    strategy: Strategy | str = Strategy.AVALANCHE,
    month_cap: int = DEFAULT_MONTH_CAP,
    *,
    start: date | None = None,
) -> StrategyComparison:
    """Run the minimum-only baseline and the chosen strategy with extra payment."""

    start = start or date.today()
    return StrategyComparison(
        baseline=minimum_only(debts, month_cap, start=start),
        accelerated=simulate(debts, extra_payment, strategy, month_cap, start=start),
    )


def compare_all(
    debts: Sequence[Debt],
    extra_payment: float,
    month_cap: int = DEFAULT_MONTH_CAP,
    *,
    start: date | None = None,
) -> dict[Strategy, PayoffResult]:
    """Run every strategy on the same inputs."""

    start = start or date.today()
    return {
        strategy: simulate(debts, extra_payment, strategy, month_cap, start=start)
        for strategy in Strategy
    }


def payoff_plan(
    debts: Sequence[Debt], extra_payment: float, strategy: Strategy | str
) -> list[PlanStep]:
    """Order open debts by strategy; the first one receives the extra payment."""

    check_extra_payment(extra_payment)
    open_debts = [d for d in debts if d.principal > 0]
    steps: list[PlanStep] = []
    for position, debt in enumerate(priority_order(open_debts, strategy)):
        payment = debt.min_payment + (extra_payment if position == 0 else 0.0)
        steps.append(PlanStep(debt=debt, payment=payment, is_focus=position == 0))
    return steps


def portfolio_summary(debts: Sequence[Debt]) -> PortfolioSummary:
    total = sum(d.principal for d in debts)
    weighted = sum(d.rate * d.principal for d in debts) / total if total > 0 else 0.0
    return PortfolioSummary(
        total_debt=total,
        total_min_payment=total_min_payment(debts),
        weighted_rate=weighted,
        debt_count=len(debts),
    )


def approximate_projection(
    debts: Sequence[Debt], extra_payment: float, horizon: int = DEFAULT_PREVIEW_MONTHS
) -> list[ProjectionPoint]:
    """Fast chart preview pooling all debts into one balance at a blended rate.

    This ignores per-debt ordering and minimum payment caps. Use ``simulate``
    for payoff dates and interest figures.
    """
    if horizon < 0:
        raise ValueError(f"horizon must not be negative, got {horizon!r}")

    total_principal = sum(d.principal for d in debts)
    minimums = total_min_payment(debts)
    monthly_rate = (
        sum(d.rate * d.principal for d in debts) / total_principal / 100 / 12
        if total_principal > 0
        else 0.0
    )

    balance_min = total_principal
    balance_strategy = total_principal
    points: list[ProjectionPoint] = []
    for month in range(horizon + 1):
        points.append(
            ProjectionPoint(
                month=month,
                balance_minimum=max(0, _round_half_up(balance_min)),
                balance_strategy=max(0, _round_half_up(balance_strategy)),
            )
        )
        if balance_min > 0:
            balance_min = balance_min + balance_min * monthly_rate - minimums
        if balance_strategy > 0:
            balance_strategy = (
                balance_strategy + balance_strategy * monthly_rate - (minimums + extra_payment)
            )
    return points


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def summarize(result: PayoffResult) -> dict[str, Any]:
    """Return a JSON-friendly summary with presentation rounding applied."""

    return {
        "strategy": result.strategy.value,
        "months": result.months,
        "payoff_date": result.payoff_date.isoformat(),
        "total_interest": round_currency(result.total_interest),
        "extra_payment": round_currency(result.extra_payment),
        "converged": result.converged,
        "remaining_balance": round_currency(result.remaining_balance),
        "milestones": [
            {
                "debt_id": m.debt_id,
                "debt_name": m.debt_name,
                "month": m.month,
                "date": m.date.isoformat(),
            }
            for m in result.milestones
        ],
    }


__all__ = [
    "PlanStep",
    "PortfolioSummary",
    "ProjectionPoint",
    "SimulationBudget",
    "StrategyComparison",
    "approximate_projection",
    "compare_all",
    "compare_strategies",
    "payoff_plan",
    "portfolio_summary",
    "round_currency",
    "simulation_budget",
    "suggest_extra_payment",
    "summarize",
]
