"""Command line interface for DebtPath."""

from __future__ import annotations

import json
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any

import click

from .config import BaseConfig
from .domain.repositories import DebtRepository, ProfileRepository
from .logging_config import get_logger, setup_logging
from .services.debts import (
    Debt,
    InvalidDebtError,
    PayoffResult,
    Strategy,
    default_min_payment,
)
from .services import projections

logger = get_logger(__name__)

STRATEGY_CHOICE = click.Choice([s.value for s in Strategy], case_sensitive=False)


def _parse_start(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise click.BadParameter("expected YYYY-MM-DD", param_hint="--start") from exc


def _minimum_or_default(principal: Any, min_payment: Any) -> Any:
    """Fill a missing or zero minimum payment with the 2% default."""

    is_amount = (
        isinstance(principal, (int, float))
        and not isinstance(principal, bool)
        and math.isfinite(principal)
    )
    if not min_payment and is_amount and principal > 0:
        return default_min_payment(principal)
    return 0.0 if min_payment is None else min_payment


def debts_from_json(payload: Any) -> list[Debt]:
    """Build engine debts from a JSON list (``minPayment`` or ``min_payment`` keys).

    A missing or zero minimum payment defaults to 2% of principal, rounded up.
    """

    if not isinstance(payload, list):
        raise InvalidDebtError("Debt file must contain a JSON list")
    debts: list[Debt] = []
    for index, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            raise InvalidDebtError(f"Entry {index} is not an object")
        if "principal" not in item:
            raise InvalidDebtError(f"Entry {index} is missing 'principal'")
        principal = item["principal"]
        min_payment = _minimum_or_default(
            principal, item.get("minPayment", item.get("min_payment"))
        )
        debts.append(
            Debt(
                id=str(item.get("id") or f"debt-{index}"),
                name=str(item.get("name") or f"Debt {index}"),
                principal=principal,
                rate=item.get("rate", 0.0),
                min_payment=min_payment,
            )
        )
    return debts


class CliState:
    """Lazily bootstraps config, logging and the database for commands."""

    def __init__(self) -> None:
        self._config: BaseConfig | None = None
        self._session_factory = None

    @property
    def config(self) -> BaseConfig:
        if self._config is None:
            self._config = BaseConfig()
            setup_logging(self._config)
        return self._config

    @property
    def session_factory(self):
        if self._session_factory is None:
            from .infra.database import bootstrap_database

            _, self._session_factory = bootstrap_database(self.config)
        return self._session_factory

    def debt_repository(self) -> DebtRepository:
        from .infra.repositories import SQLModelDebtRepository

        return SQLModelDebtRepository(self.session_factory)

    def profile_repository(self) -> ProfileRepository:
        from .infra.repositories import SQLModelProfileRepository

        return SQLModelProfileRepository(self.session_factory)

    def load_debts(self, debt_file: Path | None, user: str | None) -> list[Debt]:
        if debt_file is not None:
            try:
                payload = json.loads(debt_file.read_text(encoding="utf-8"))
                return debts_from_json(payload)
            except (json.JSONDecodeError, InvalidDebtError) as exc:
                raise click.ClickException(f"Invalid debt file: {exc}") from exc
        if user:
            from .infra.repositories import to_engine_debts

            try:
                return to_engine_debts(self.debt_repository().list_all(user_id=user))
            except InvalidDebtError as exc:
                raise click.ClickException(f"Stored debt is invalid: {exc}") from exc
        raise click.UsageError("Provide --file or --user.")


pass_state = click.make_pass_decorator(CliState, ensure=True)


def _source_options(func):
    func = click.option(
        "--user", "user", default=None, help="Load debts stored for this user id."
    )(func)
    func = click.option(
        "--file",
        "debt_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="JSON list of debts.",
    )(func)
    return func


def _echo_result(label: str, result: PayoffResult) -> None:
    summary = projections.summarize(result)
    click.echo(f"{label}: {summary['months']} months, debt free by {summary['payoff_date']}")
    click.echo(f"  Total interest: ${summary['total_interest']:,.2f}")
    if not result.converged:
        years = result.month_cap // 12
        click.echo(
            f"  This payment plan cannot pay off your debt within {years} years "
            f"(${summary['remaining_balance']:,.2f} left)."
        )
    for milestone in summary["milestones"]:
        click.echo(f"  - {milestone['debt_name']} paid off in month {milestone['month']} ({milestone['date']})")


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Debt payoff projections."""

    ctx.ensure_object(CliState)


@cli.command("simulate")
@_source_options
@click.option("--strategy", type=STRATEGY_CHOICE, default="avalanche", show_default=True)
@click.option("--extra", type=float, default=0.0, show_default=True, help="Extra monthly payment.")
@click.option("--cap", type=int, default=None, help="Month cap (defaults to config).")
@click.option("--start", default=None, help="Simulation start date, YYYY-MM-DD.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
@pass_state
def simulate_command(
    state: CliState,
    debt_file: Path | None,
    user: str | None,
    strategy: str,
    extra: float,
    cap: int | None,
    start: str | None,
    as_json: bool,
) -> None:
    """Project payoff under one strategy."""

    from .services.debts import simulate

    debts = state.load_debts(debt_file, user)
    try:
        result = simulate(
            debts,
            extra,
            strategy,
            state.config.MONTH_CAP if cap is None else cap,
            start=_parse_start(start),
            epsilon=state.config.PAYOFF_EPSILON,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if as_json:
        click.echo(json.dumps(projections.summarize(result), indent=2))
    else:
        _echo_result(strategy.capitalize(), result)


@cli.command("compare")
@_source_options
@click.option("--strategy", type=STRATEGY_CHOICE, default="avalanche", show_default=True)
@click.option("--extra", type=float, default=0.0, show_default=True)
@click.option("--cap", type=int, default=None)
@click.option("--start", default=None, help="Simulation start date, YYYY-MM-DD.")
@pass_state
def compare_command(
    state: CliState,
    debt_file: Path | None,
    user: str | None,
    strategy: str,
    extra: float,
    cap: int | None,
    start: str | None,
) -> None:
    """Compare minimum-only payments against the chosen strategy."""

    debts = state.load_debts(debt_file, user)
    start_date = _parse_start(start)
    month_cap = state.config.MONTH_CAP if cap is None else cap
    try:
        comparison = projections.compare_strategies(
            debts, extra, strategy, month_cap, start=start_date
        )
        both = projections.compare_all(debts, extra, month_cap, start=start_date)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    _echo_result("Minimum payments only", comparison.baseline)
    _echo_result(f"{strategy.capitalize()} + ${extra:,.2f}/mo", comparison.accelerated)
    if comparison.months_saved > 0:
        click.echo(
            f"Save {comparison.months_saved} months and "
            f"${projections.round_currency(comparison.interest_saved):,.2f} in interest."
        )
    for name, result in both.items():
        click.echo(
            f"{name.value}: {result.months} months, "
            f"${projections.round_currency(result.total_interest):,.2f} interest"
        )


@cli.command("suggest")
@_source_options
@click.option("--income", type=float, default=None, help="Monthly income (defaults to stored profile).")
@pass_state
def suggest_command(
    state: CliState, debt_file: Path | None, user: str | None, income: float | None
) -> None:
    """Suggest a safe extra monthly payment."""

    debts = state.load_debts(debt_file, user)
    if income is None:
        if not user:
            raise click.UsageError("Provide --income or --user with a stored profile.")
        income = state.profile_repository().get_monthly_income(user_id=user)
    summary = projections.portfolio_summary(debts)
    safe = projections.suggest_extra_payment(debts, income, state.config.SAFE_EXTRA_RATIO)
    click.echo(f"Total debt: ${summary.total_debt:,.2f} across {summary.debt_count} debts")
    click.echo(f"Minimum payments: ${summary.total_min_payment:,.2f}/mo")
    click.echo(f"Suggested extra payment: ${safe:,}/mo")


@cli.command("plan")
@_source_options
@click.option("--strategy", type=STRATEGY_CHOICE, default="avalanche", show_default=True)
@click.option("--extra", type=float, default=0.0, show_default=True)
@pass_state
def plan_command(
    state: CliState, debt_file: Path | None, user: str | None, strategy: str, extra: float
) -> None:
    """Show which debt to focus on this month."""

    debts = state.load_debts(debt_file, user)
    try:
        steps = projections.payoff_plan(debts, extra, strategy)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if not steps:
        click.echo("No open debts.")
        return
    for step in steps:
        marker = "*" if step.is_focus else " "
        click.echo(
            f"{marker} {step.debt.name}: pay ${step.payment:,.2f} "
            f"({step.debt.rate}% APR, ${step.debt.principal:,.2f} left)"
        )


@cli.command("preview")
@_source_options
@click.option("--extra", type=float, default=0.0, show_default=True)
@click.option("--months", type=int, default=None, help="Preview horizon (defaults to config).")
@pass_state
def preview_command(
    state: CliState, debt_file: Path | None, user: str | None, extra: float, months: int | None
) -> None:
    """Print the approximate pooled-balance preview series."""

    horizon = state.config.PREVIEW_MONTHS if months is None else months
    try:
        points = projections.approximate_projection(
            state.load_debts(debt_file, user), extra, horizon
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("month,minimum,strategy")
    for point in points:
        click.echo(f"{point.month},{point.balance_minimum},{point.balance_strategy}")


@cli.command("add-debt")
@click.option("--user", required=True)
@click.option("--name", required=True)
@click.option("--principal", type=float, required=True)
@click.option("--rate", type=float, default=0.0, show_default=True)
@click.option(
    "--min-payment",
    type=float,
    default=None,
    help="Monthly minimum (defaults to 2% of principal, rounded up).",
)
@pass_state
def add_debt_command(
    state: CliState, user: str, name: str, principal: float, rate: float, min_payment: float | None
) -> None:
    """Store a debt for a user."""

    from .models import DebtRecord

    try:
        record = state.debt_repository().create(
            DebtRecord(
                user_id=user,
                name=name,
                principal=principal,
                rate=rate,
                min_payment=_minimum_or_default(principal, min_payment),
            ),
            user_id=user,
        )
    except InvalidDebtError as exc:
        raise click.ClickException(str(exc)) from exc
    logger.info("Debt stored", extra={"debt_id": record.id, "user_id": user})
    click.echo(record.id)


@cli.command("list-debts")
@click.option("--user", required=True)
@pass_state
def list_debts_command(state: CliState, user: str) -> None:
    """List stored debts for a user."""

    for record in state.debt_repository().list_all(user_id=user):
        click.echo(
            f"{record.id}  {record.name}  ${record.principal:,.2f}  "
            f"{record.rate}%  min ${record.min_payment:,.2f}"
        )


@cli.command("remove-debt")
@click.option("--user", required=True)
@click.argument("debt_id")
@pass_state
def remove_debt_command(state: CliState, user: str, debt_id: str) -> None:
    """Delete a stored debt."""

    if not state.debt_repository().delete(debt_id, user_id=user):
        raise click.ClickException(f"Debt {debt_id} not found")
    click.echo(f"Deleted {debt_id}")


@cli.command("set-income")
@click.option("--user", required=True)
@click.argument("amount", type=float)
@pass_state
def set_income_command(state: CliState, user: str, amount: float) -> None:
    """Store monthly income used for payoff suggestions."""

    try:
        state.profile_repository().set_monthly_income(amount, user_id=user)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Monthly income set to ${amount:,.2f}")


def main() -> None:  # pragma: no cover - console entry point
    cli(obj=CliState())


if __name__ == "__main__":  # pragma: no cover
    main()
