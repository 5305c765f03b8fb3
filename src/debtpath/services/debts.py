"""Debt payoff projection engine (avalanche and snowball).

The engine simulates whole months. Each month interest is charged on every
open balance first, then every debt receives its minimum payment, then the
rest of the monthly budget goes to debts in strategy order. The budget is the
sum of all minimum payments plus the extra payment and stays fixed for the
whole run, so a paid-off debt's minimum rolls into the pool for the others.

Monetary values are plain floats. Balances at or below ``epsilon`` (one cent by
default) count as paid off and are snapped to zero. Nothing is rounded inside
the loop; see ``services.projections`` for presentation rounding.

Invalid debt data is rejected when a ``Debt`` is constructed rather than
clamped here, so every ``Debt`` that reaches ``simulate`` is well formed.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Sequence

from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MONTH_CAP = 600  # 50 years
DEFAULT_EPSILON = 0.01
DEFAULT_MIN_PAYMENT_RATIO = 0.02


class InvalidDebtError(ValueError):
    """Raised when debt data cannot be simulated (negative or non-finite values)."""


class Strategy(str, Enum):
    """Order in which leftover budget is applied to open debts."""

    AVALANCHE = "avalanche"
    SNOWBALL = "snowball"

    @classmethod
    def parse(cls, value: "Strategy | str") -> "Strategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid debt payoff strategy: {value!r}") from None


@dataclass(frozen=True, slots=True)
class Debt:
    """Immutable snapshot of one outstanding balance."""

    id: str
    name: str
    principal: float
    rate: float  # annual percentage, 18.99 means 18.99%/year
    min_payment: float

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise InvalidDebtError(f"Debt name must be a string, got {self.name!r}")
        if not self.name.strip():
            raise InvalidDebtError("Debt name must not be empty")
        for label in ("principal", "rate", "min_payment"):
            value = getattr(self, label)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidDebtError(f"{self.name}: {label} must be a number")
            if not math.isfinite(value):
                raise InvalidDebtError(f"{self.name}: {label} must be finite")
            if value < 0:
                raise InvalidDebtError(f"{self.name}: {label} must not be negative")


@dataclass(frozen=True, slots=True)
class Milestone:
    """The month a debt first reaches zero."""

    debt_id: str
    debt_name: str
    month: int
    date: date


@dataclass(frozen=True, slots=True)
class BalancePoint:
    """Aggregate outstanding balance after a simulated month."""

    month: int
    total_balance: float


@dataclass(frozen=True, slots=True)
class PayoffResult:
    """Outcome of a single simulation run."""

    months: int
    total_interest: float
    payoff_date: date
    strategy: Strategy
    extra_payment: float
    month_cap: int
    debt_count: int
    milestones: tuple[Milestone, ...] = field(default_factory=tuple)
    trajectory: tuple[BalancePoint, ...] = field(default_factory=tuple)

    @property
    def converged(self) -> bool:
        """False when the month cap was hit with balances still open."""
        return len(self.milestones) == self.debt_count

    @property
    def remaining_balance(self) -> float:
        return self.trajectory[-1].total_balance if self.trajectory else 0.0

    def milestone_for(self, debt_id: str) -> Milestone | None:
        for milestone in self.milestones:
            if milestone.debt_id == debt_id:
                return milestone
        return None


@dataclass(slots=True)
class _Working:
    """Mutable per-run copy of a debt."""

    index: int
    debt: Debt
    principal: float
    paid_off: bool = False


SortKey = Callable[[_Working], tuple]


def _avalanche_key(item: _Working) -> tuple:
    return (-item.debt.rate, item.index)


def _snowball_key(item: _Working) -> tuple:
    return (item.principal, item.index)


_STRATEGY_KEYS: dict[Strategy, SortKey] = {
    Strategy.AVALANCHE: _avalanche_key,
    Strategy.SNOWBALL: _snowball_key,
}


def priority_order(debts: Iterable[Debt], strategy: Strategy | str) -> list[Debt]:
    """Return ``debts`` in the order the strategy would target them today.

    Ties keep the input order.
    """
    key = _STRATEGY_KEYS[Strategy.parse(strategy)]
    items = [_Working(index=i, debt=d, principal=d.principal) for i, d in enumerate(debts)]
    return [item.debt for item in sorted(items, key=key)]


def add_months(value: date, months: int) -> date:
    """Return ``value`` shifted by whole months, clamping to the month's last day."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def default_min_payment(principal: float) -> float:
    """Minimum payment used when none was entered: 2% of principal, rounded up."""
    return float(math.ceil(principal * DEFAULT_MIN_PAYMENT_RATIO))


def total_min_payment(debts: Iterable[Debt]) -> float:
    return sum(d.min_payment for d in debts)


def check_extra_payment(extra_payment: float) -> None:
    if not math.isfinite(extra_payment) or extra_payment < 0:
        raise ValueError(f"extra_payment must be a non-negative number, got {extra_payment!r}")


def _check_arguments(extra_payment: float, month_cap: int, epsilon: float) -> None:
    check_extra_payment(extra_payment)
    if month_cap <= 0:
        raise ValueError(f"month_cap must be positive, got {month_cap!r}")
    if epsilon <= 0:
        raise ValueError(f"epsilon must be positive, got {epsilon!r}")


def simulate(
    debts: Sequence[Debt],
    extra_payment: float = 0.0,
    strategy: Strategy | str = Strategy.AVALANCHE,
    month_cap: int = DEFAULT_MONTH_CAP,
    *,
    start: date | None = None,
    epsilon: float = DEFAULT_EPSILON,
) -> PayoffResult:
    """Simulate monthly payoff of ``debts`` and return the trajectory.

    Args:
        debts: Snapshot of debts; never mutated.
        extra_payment: Amount paid each month on top of all minimums.
        strategy: ``Strategy.AVALANCHE`` (highest rate first) or
            ``Strategy.SNOWBALL`` (lowest balance first), or their string values.
        month_cap: Maximum number of months to simulate.
        start: Date the simulation is anchored to. Defaults to today.
        epsilon: Balances at or below this are treated as paid off.

    Returns:
        PayoffResult. When ``month_cap`` is reached with balances left the
        result has ``converged == False`` and ``months == month_cap``.

    Raises:
        ValueError: on a negative extra payment, non-positive cap or an
            unknown strategy.
    """
    policy = Strategy.parse(strategy)
    extra_payment = float(extra_payment)
    _check_arguments(extra_payment, month_cap, epsilon)
    start = start or date.today()
    debts = list(debts)

    if not debts:
        return PayoffResult(
            months=0,
            total_interest=0.0,
            payoff_date=start,
            strategy=policy,
            extra_payment=extra_payment,
            month_cap=month_cap,
            debt_count=0,
        )

    sort_key = _STRATEGY_KEYS[policy]
    working = [_Working(index=i, debt=d, principal=float(d.principal)) for i, d in enumerate(debts)]
    monthly_budget = total_min_payment(debts) + extra_payment
    milestones: list[Milestone] = []

    def _settle(item: _Working, month: int) -> None:
        if item.principal <= epsilon:
            item.principal = 0.0
            if not item.paid_off:
                item.paid_off = True
                milestones.append(
                    Milestone(
                        debt_id=item.debt.id,
                        debt_name=item.debt.name,
                        month=month,
                        date=add_months(start, month),
                    )
                )

    # Debts that start at (or within a cent of) zero are paid off at month 0.
    for item in working:
        _settle(item, 0)

    trajectory = [BalancePoint(month=0, total_balance=sum(w.principal for w in working))]
    total_interest = 0.0
    months = 0

    while months < month_cap and any(w.principal > epsilon for w in working):
        months += 1
        month_budget = monthly_budget

        for item in working:
            if item.principal > 0:
                interest = item.principal * (item.debt.rate / 100) / 12
                item.principal += interest
                total_interest += interest

        for item in working:
            if item.principal > 0:
                payment = min(item.debt.min_payment, item.principal)
                item.principal -= payment
                month_budget -= payment
                _settle(item, months)

        active = sorted((w for w in working if w.principal > 0), key=sort_key)
        for item in active:
            if month_budget <= 0:
                break
            payment = min(month_budget, item.principal)
            item.principal -= payment
            month_budget -= payment
            _settle(item, months)

        trajectory.append(
            BalancePoint(month=months, total_balance=sum(max(0.0, w.principal) for w in working))
        )

    result = PayoffResult(
        months=months,
        total_interest=total_interest,
        payoff_date=add_months(start, months),
        strategy=policy,
        extra_payment=extra_payment,
        month_cap=month_cap,
        debt_count=len(debts),
        milestones=tuple(milestones),
        trajectory=tuple(trajectory),
    )

    if not result.converged:
        logger.warning(
            "Payoff did not converge within %s months",
            month_cap,
            extra={
                "strategy": policy.value,
                "remaining_balance": result.remaining_balance,
                "open_debts": len(debts) - len(milestones),
            },
        )
    else:
        logger.debug(
            "Simulated %s debts: %s months, interest %.2f",
            len(debts),
            months,
            total_interest,
            extra={"strategy": policy.value},
        )
    return result


def minimum_only(
    debts: Sequence[Debt],
    month_cap: int = DEFAULT_MONTH_CAP,
    *,
    start: date | None = None,
    epsilon: float = DEFAULT_EPSILON,
) -> PayoffResult:
    """Status-quo baseline: minimums only, no extra payment."""
    return simulate(
        debts, 0.0, Strategy.AVALANCHE, month_cap, start=start, epsilon=epsilon
    )


def avalanche(
    debts: Sequence[Debt], extra_payment: float, *, start: date | None = None, **kwargs
) -> PayoffResult:
    """Return payoff projection prioritizing highest rate first."""
    return simulate(debts, extra_payment, Strategy.AVALANCHE, start=start, **kwargs)


def snowball(
    debts: Sequence[Debt], extra_payment: float, *, start: date | None = None, **kwargs
) -> PayoffResult:
    """Return payoff projection prioritizing smallest balances first."""
    return simulate(debts, extra_payment, Strategy.SNOWBALL, start=start, **kwargs)


__all__ = [
    "DEFAULT_EPSILON",
    "DEFAULT_MIN_PAYMENT_RATIO",
    "DEFAULT_MONTH_CAP",
    "BalancePoint",
    "Debt",
    "InvalidDebtError",
    "Milestone",
    "PayoffResult",
    "Strategy",
    "add_months",
    "avalanche",
    "check_extra_payment",
    "default_min_payment",
    "minimum_only",
    "priority_order",
    "simulate",
    "snowball",
    "total_min_payment",
]
