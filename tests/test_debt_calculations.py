"""Tests for the debt payoff engine (avalanche and snowball).

These tests cover:
- Monthly interest, minimum payments and leftover allocation
- Strategy ordering and tie-breaks
- Payoff milestones and dates
- Freed-up minimum payment rollover
- Edge cases (empty input, zero balances, non-convergence, cent residue)
"""

from __future__ import annotations

import logging
from datetime import date

import pytest

from debtpath.services.debts import (
    BalancePoint,
    Debt,
    InvalidDebtError,
    Strategy,
    add_months,
    avalanche,
    default_min_payment,
    minimum_only,
    priority_order,
    simulate,
    snowball,
)
from tests.conftest import assert_float_equal, make_debt


class TestSingleDebt:
    """Single debt payoff behaviour."""

    def test_first_month_charges_interest_before_payment(self, start):
        debt = make_debt(principal=1000.0, rate=12.0, min_payment=50.0)

        result = simulate([debt], 100.0, Strategy.AVALANCHE, start=start)

        # 1000 + 10 interest - 50 minimum - 100 extra
        assert result.trajectory[0] == BalancePoint(month=0, total_balance=1000.0)
        assert_float_equal(result.trajectory[1].total_balance, 860.0)

    def test_zero_rate_pays_off_exactly(self, start):
        debt = make_debt(principal=300.0, rate=0.0, min_payment=100.0)

        result = simulate([debt], 0.0, start=start)

        assert result.months == 3
        assert result.total_interest == 0.0
        assert [p.total_balance for p in result.trajectory] == [300.0, 200.0, 100.0, 0.0]
        assert result.payoff_date == date(2025, 4, 15)
        assert len(result.milestones) == 1
        assert result.milestones[0].month == 3
        assert result.milestones[0].date == date(2025, 4, 15)
        assert result.converged

    def test_reference_scenario(self, start):
        """5000 at 18.99% with 150 minimum and 200 extra."""
        debt = make_debt(name="Visa", principal=5000.0, rate=18.99, min_payment=150.0)

        result = simulate([debt], 200.0, Strategy.AVALANCHE, 600, start=start)

        assert result.months == 17
        assert_float_equal(result.total_interest, 713.3563)
        assert len(result.milestones) == 1
        assert result.milestones[0].month == result.months
        assert result.milestones[0].debt_name == "Visa"
        assert result.payoff_date == add_months(start, result.months)
        assert result.trajectory[-1].total_balance == 0.0

    def test_cent_residue_counts_as_paid(self, start):
        debt = make_debt(principal=100.005, rate=0.0, min_payment=100.0)

        result = simulate([debt], 0.0, start=start)

        assert result.months == 1
        assert result.trajectory[-1].total_balance == 0.0
        assert result.converged

    def test_single_debt_strategies_agree(self, start):
        debt = make_debt(principal=4200.0, rate=21.5, min_payment=120.0)

        a = simulate([debt], 75.0, Strategy.AVALANCHE, start=start)
        s = simulate([debt], 75.0, Strategy.SNOWBALL, start=start)

        assert a.months == s.months
        assert a.total_interest == s.total_interest
        assert a.milestones == s.milestones
        assert a.trajectory == s.trajectory


class TestStrategyOrdering:
    """Leftover budget goes to the strategy's priority debt."""

    def test_avalanche_targets_highest_rate(self, start):
        high = make_debt(name="High", principal=500.0, rate=24.0, min_payment=0.0)
        low = make_debt(name="Low", principal=500.0, rate=12.0, min_payment=0.0)

        result = simulate([low, high], 100.0, Strategy.AVALANCHE, month_cap=1, start=start)

        # High: 510 - 100, Low: 505 untouched
        assert_float_equal(result.trajectory[1].total_balance, 410.0 + 505.0)

        only_high = simulate([high], 100.0, month_cap=1, start=start)
        assert_float_equal(only_high.trajectory[1].total_balance, 410.0)

    def test_snowball_targets_lowest_balance(self, start):
        big = make_debt(name="Big", principal=5000.0, rate=10.0, min_payment=0.0)
        small = make_debt(name="Small", principal=300.0, rate=5.0, min_payment=0.0)

        result = simulate([big, small], 400.0, Strategy.SNOWBALL, start=start)

        small_done = result.milestone_for("small")
        big_done = result.milestone_for("big")
        assert small_done is not None and big_done is not None
        assert small_done.month == 1
        assert small_done.month < big_done.month

    def test_strategies_diverge_when_rate_and_balance_disagree(self, start):
        small_low_rate = make_debt(name="Store", principal=500.0, rate=10.0, min_payment=25.0)
        large_high_rate = make_debt(name="Card", principal=5000.0, rate=20.0, min_payment=100.0)
        debts = [small_low_rate, large_high_rate]

        by_rate = avalanche(debts, 200.0, start=start)
        by_balance = snowball(debts, 200.0, start=start)

        assert by_rate.total_interest < by_balance.total_interest
        assert by_balance.milestone_for("store").month < by_rate.milestone_for("store").month

    def test_ties_keep_input_order(self, start):
        first = make_debt(name="First", principal=500.0, rate=0.0, min_payment=0.0)
        second = make_debt(name="Second", principal=500.0, rate=0.0, min_payment=0.0)

        for strategy in Strategy:
            result = simulate([first, second], 100.0, strategy, start=start)
            assert result.milestones[0].debt_name == "First"
            assert result.milestones[0].month == 5
            assert result.milestones[1].month == 10

    def test_leftover_spills_to_next_debt(self, start):
        tiny = make_debt(name="Tiny", principal=50.0, rate=0.0, min_payment=0.0)
        other = make_debt(name="Other", principal=500.0, rate=0.0, min_payment=0.0)

        result = simulate([tiny, other], 100.0, Strategy.AVALANCHE, month_cap=1, start=start)

        assert result.milestone_for("tiny").month == 1
        assert_float_equal(result.trajectory[1].total_balance, 450.0)

    def test_priority_order(self):
        a = make_debt(name="A", principal=900.0, rate=5.0)
        b = make_debt(name="B", principal=100.0, rate=25.0)
        c = make_debt(name="C", principal=400.0, rate=15.0)

        assert [d.name for d in priority_order([a, b, c], "avalanche")] == ["B", "C", "A"]
        assert [d.name for d in priority_order([a, b, c], Strategy.SNOWBALL)] == ["B", "C", "A"]
        assert [d.name for d in priority_order([a, c], "snowball")] == ["C", "A"]
        assert [d.name for d in priority_order([a, c], "avalanche")] == ["C", "A"]

    def test_strategy_accepts_strings(self, start):
        debt = make_debt()
        assert simulate([debt], 10.0, "SNOWBALL", start=start).strategy is Strategy.SNOWBALL

    def test_unknown_strategy_rejected(self, start):
        with pytest.raises(ValueError, match="Invalid debt payoff strategy"):
            simulate([make_debt()], 0.0, "proportional", start=start)


class TestRollover:
    def test_freed_minimum_rolls_into_next_debt(self, start):
        """When a debt is paid off its minimum joins the leftover budget."""
        short = make_debt(name="Short", principal=100.0, rate=0.0, min_payment=50.0)
        long = make_debt(name="Long", principal=1000.0, rate=0.0, min_payment=50.0)

        result = simulate([short, long], 0.0, Strategy.SNOWBALL, start=start)

        assert result.milestone_for("short").month == 2
        # Month 3: Long pays its own 50 plus Short's freed 50
        balances = [p.total_balance for p in result.trajectory]
        assert balances[:4] == [1100.0, 1000.0, 900.0, 800.0]
        assert result.months == 11


class TestTwoDebtScenario:
    """Card A at 24% and Loan B at 5% with 100 extra."""

    @pytest.fixture
    def debts(self) -> list[Debt]:
        return [
            Debt(id="a", name="Card A", principal=2000.0, rate=24.0, min_payment=60.0),
            Debt(id="b", name="Loan B", principal=10000.0, rate=5.0, min_payment=120.0),
        ]

    @pytest.mark.parametrize("strategy", list(Strategy))
    def test_card_paid_before_loan(self, debts, start, strategy):
        result = simulate(debts, 100.0, strategy, start=start)

        card = result.milestone_for("a")
        loan = result.milestone_for("b")
        assert card is not None and loan is not None
        assert card.month < loan.month
        assert loan.month == result.months
        assert [m.debt_id for m in result.milestones] == ["a", "b"]

    @pytest.mark.parametrize("strategy", list(Strategy))
    def test_milestone_months(self, debts, start, strategy):
        # Card A gets 160/mo until month 15; its leftover and freed minimum then go to Loan B
        result = simulate(debts, 100.0, strategy, start=start)

        assert result.milestone_for("a").month == 15
        assert result.milestone_for("b").month == 49
        assert result.months == 49
        assert result.payoff_date == date(2029, 2, 15)

    def test_both_orderings_agree_here(self, debts, start):
        by_rate = simulate(debts, 100.0, Strategy.AVALANCHE, start=start)
        by_balance = simulate(debts, 100.0, Strategy.SNOWBALL, start=start)

        assert by_rate.months == by_balance.months
        assert by_rate.milestones == by_balance.milestones
        assert_float_equal(by_rate.total_interest, by_balance.total_interest)

    def test_balance_never_increases_when_payments_cover_interest(self, debts, start):
        result = simulate(debts, 100.0, Strategy.AVALANCHE, start=start)

        balances = [p.total_balance for p in result.trajectory]
        assert all(nxt <= prev for prev, nxt in zip(balances, balances[1:]))
        assert [p.month for p in result.trajectory] == list(range(result.months + 1))

    @pytest.mark.parametrize("strategy", list(Strategy))
    def test_more_extra_never_slower_or_costlier(self, debts, start, strategy):
        runs = [simulate(debts, extra, strategy, start=start) for extra in (0, 25, 100, 250, 1000)]

        for smaller, larger in zip(runs, runs[1:]):
            assert larger.months <= smaller.months
            assert larger.total_interest <= smaller.total_interest + 1e-9

    def test_deterministic(self, debts, start):
        assert simulate(debts, 100.0, "snowball", start=start) == simulate(
            debts, 100.0, "snowball", start=start
        )

    def test_inputs_untouched(self, debts, start):
        before = list(debts)
        simulate(debts, 100.0, start=start)
        assert debts == before
        assert debts[0].principal == 2000.0


class TestEdgeCases:
    def test_empty_debts_identity(self, start):
        result = simulate([], 250.0, Strategy.SNOWBALL, 12, start=start)

        assert result.months == 0
        assert result.total_interest == 0.0
        assert result.payoff_date == start
        assert result.milestones == ()
        assert result.trajectory == ()
        assert result.converged

    def test_zero_balance_debt_is_paid_at_month_zero(self, start):
        done = make_debt(name="Done", principal=0.0, rate=20.0, min_payment=30.0)

        result = simulate([done], 0.0, start=start)

        assert result.months == 0
        assert result.payoff_date == start
        assert result.milestones[0].month == 0
        assert result.trajectory == (BalancePoint(month=0, total_balance=0.0),)

    def test_non_convergence_hits_cap(self, start, caplog):
        """Minimum below monthly interest never pays the debt down."""
        stuck = make_debt(name="Stuck", principal=10000.0, rate=24.0, min_payment=100.0)

        with caplog.at_level(logging.WARNING, logger="debtpath"):
            result = simulate([stuck], 0.0, month_cap=12, start=start)

        assert result.months == 12
        assert not result.converged
        assert result.milestones == ()
        assert len(result.trajectory) == 13
        assert result.remaining_balance > 10000.0
        assert result.payoff_date == date(2026, 1, 15)
        assert "did not converge" in caplog.text

    def test_milestone_count_bound(self, start):
        debts = [
            make_debt(name="One", principal=800.0, rate=19.0, min_payment=40.0),
            make_debt(name="Two", principal=20000.0, rate=7.0, min_payment=150.0),
        ]

        capped = simulate(debts, 50.0, month_cap=24, start=start)
        full = simulate(debts, 50.0, start=start)

        assert len(capped.milestones) < len(debts)
        assert full.months < full.month_cap
        assert len(full.milestones) == len(debts)

    def test_minimum_only_baseline(self, start):
        debt = make_debt(principal=5000.0, rate=18.99, min_payment=150.0)

        baseline = minimum_only([debt], start=start)
        accelerated = simulate([debt], 200.0, start=start)

        assert baseline.extra_payment == 0.0
        assert baseline.months > accelerated.months
        assert baseline.total_interest > accelerated.total_interest

    def test_payoff_date_clamps_to_month_end(self):
        debt = make_debt(principal=100.0, rate=0.0, min_payment=100.0)

        result = simulate([debt], 0.0, start=date(2025, 1, 31))

        assert result.payoff_date == date(2025, 2, 28)

    def test_add_months_crosses_years(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 6, 15), 0) == date(2025, 6, 15)
        assert add_months(date(2025, 6, 15), 600) == date(2075, 6, 15)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"extra_payment": -1.0},
            {"extra_payment": float("nan")},
            {"month_cap": 0},
        ],
    )
    def test_bad_arguments_rejected(self, start, kwargs):
        with pytest.raises(ValueError):
            simulate([make_debt()], start=start, **kwargs)


class TestDebtValidation:
    @pytest.mark.parametrize(
        "field,value",
        [
            ("principal", -1.0),
            ("rate", -0.5),
            ("min_payment", -25.0),
            ("principal", float("inf")),
            ("rate", float("nan")),
            ("min_payment", True),
            ("principal", "100"),
        ],
    )
    def test_invalid_fields_rejected(self, field, value):
        values = {"principal": 100.0, "rate": 5.0, "min_payment": 10.0}
        values[field] = value
        with pytest.raises(InvalidDebtError):
            Debt(id="x", name="Bad", **values)

    def test_blank_name_rejected(self):
        with pytest.raises(InvalidDebtError, match="name"):
            Debt(id="x", name="  ", principal=1.0, rate=1.0, min_payment=1.0)

    @pytest.mark.parametrize("name", [None, 42])
    def test_non_string_name_rejected(self, name):
        with pytest.raises(InvalidDebtError, match="name must be a string"):
            Debt(id="x", name=name, principal=1.0, rate=1.0, min_payment=1.0)

    @pytest.mark.parametrize(
        "principal,expected", [(5000.0, 100.0), (1234.0, 25.0), (10.0, 1.0), (0.0, 0.0)]
    )
    def test_default_min_payment_is_two_percent_rounded_up(self, principal, expected):
        assert default_min_payment(principal) == expected

    def test_invalid_debt_error_is_value_error(self):
        assert issubclass(InvalidDebtError, ValueError)

    def test_debt_is_immutable(self):
        debt = make_debt()
        with pytest.raises(AttributeError):
            debt.principal = 0.0  # type: ignore[misc]
