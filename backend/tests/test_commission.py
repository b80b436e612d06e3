# tests/test_commission.py
from __future__ import annotations

import copy
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, Overflow, getcontext
from types import SimpleNamespace

import pytest

from app.core.commission import (
    SalesStats,
    calculate_upcoming_commission,
    get_sales_stats,
    last_wednesday_cutoff,
)

UTC = timezone.utc

# Saturday; the cutoff is Wednesday 2026-10-14 23:59:59.999
SATURDAY = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)
CUTOFF = datetime(2026, 10, 14, 23, 59, 59, 999000, tzinfo=UTC)


def make_sale(**overrides):
    sale = {
        "id": "s1",
        "amount": Decimal("1000"),
        "commission_percentage": Decimal("10"),
        "closed_date_time": datetime(2026, 10, 12, 9, 0, tzinfo=UTC),
        "cancelled_date_time": None,
        "finished_date_time": None,
        "paid_out": False,
    }
    sale.update(overrides)
    return sale


# ----------------------------------------------------------
# cutoff
# ----------------------------------------------------------
@pytest.mark.parametrize(
    "now, expected_day",
    [
        (datetime(2026, 10, 14, 8, 0), date(2026, 10, 14)),   # Wednesday -> same day
        (datetime(2026, 10, 15, 8, 0), date(2026, 10, 14)),   # Thursday
        (datetime(2026, 10, 17, 8, 0), date(2026, 10, 14)),   # Saturday
        (datetime(2026, 10, 18, 8, 0), date(2026, 10, 14)),   # Sunday
        (datetime(2026, 10, 19, 8, 0), date(2026, 10, 14)),   # Monday
        (datetime(2026, 10, 20, 8, 0), date(2026, 10, 14)),   # Tuesday
        (datetime(2026, 10, 13, 23, 59), date(2026, 10, 7)),  # Tuesday -> previous week
    ],
)
def test_last_wednesday_cutoff_day(now, expected_day):
    cutoff = last_wednesday_cutoff(now)
    assert cutoff.date() == expected_day
    assert (cutoff.hour, cutoff.minute, cutoff.second, cutoff.microsecond) == (23, 59, 59, 999000)


def test_cutoff_keeps_timezone_of_now():
    tz = timezone(timedelta(hours=-5))
    cutoff = last_wednesday_cutoff(datetime(2026, 10, 17, 12, 0, tzinfo=tz))
    assert cutoff.tzinfo is tz
    assert cutoff == datetime(2026, 10, 14, 23, 59, 59, 999000, tzinfo=tz)


# ----------------------------------------------------------
# upcoming commission
# ----------------------------------------------------------
def test_sale_closed_exactly_at_cutoff_counts_half():
    sale = make_sale(closed_date_time=CUTOFF)
    assert calculate_upcoming_commission([sale], SATURDAY) == Decimal("50")


def test_sale_closed_after_cutoff_does_not_count():
    sale = make_sale(closed_date_time=CUTOFF + timedelta(milliseconds=1))
    assert calculate_upcoming_commission([sale], SATURDAY) == 0


def test_closed_and_finished_counts_both_halves():
    sale = make_sale(
        amount=Decimal("2000"),
        finished_date_time=datetime(2026, 10, 16, 15, 0, tzinfo=UTC),
    )
    assert calculate_upcoming_commission([sale], SATURDAY) == Decimal("200")


def test_finished_half_ignores_cutoff():
    # closed too late for the first half, finished counts regardless
    sale = make_sale(
        closed_date_time=datetime(2026, 10, 16, 9, 0, tzinfo=UTC),
        finished_date_time=datetime(2026, 10, 17, 9, 0, tzinfo=UTC),
    )
    assert calculate_upcoming_commission([sale], SATURDAY) == Decimal("50")


def test_missing_closed_date_only_uses_finished_half():
    sale = make_sale(closed_date_time=None, finished_date_time="2026-10-15T10:00:00Z")
    assert calculate_upcoming_commission([sale], SATURDAY) == Decimal("50")


def test_nothing_accrues_without_close_or_finish():
    sale = make_sale(closed_date_time=None)
    assert calculate_upcoming_commission([sale], SATURDAY) == 0


@pytest.mark.parametrize("field", ["amount", "commission_percentage"])
def test_zero_amount_or_rate_contributes_nothing(field):
    sale = make_sale(finished_date_time=SATURDAY, **{field: 0})
    assert calculate_upcoming_commission([sale], SATURDAY) == 0


def test_cancelled_sale_contributes_nothing():
    sale = make_sale(finished_date_time=SATURDAY)
    assert calculate_upcoming_commission([sale], SATURDAY) == Decimal("100")

    sale["cancelled_date_time"] = datetime(2026, 10, 16, tzinfo=UTC)
    assert calculate_upcoming_commission([sale], SATURDAY) == 0


def test_unparsable_cancellation_still_cancels():
    sale = make_sale(cancelled_date_time="sometime last week")
    assert calculate_upcoming_commission([sale], SATURDAY) == 0
    assert get_sales_stats([sale], SATURDAY).total_sales == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"finished_date_time": SATURDAY},
        {"closed_date_time": None, "finished_date_time": SATURDAY},
        {"closed_date_time": SATURDAY},
    ],
)
def test_marking_paid_out_never_increases(overrides):
    unpaid = make_sale(**overrides)
    paid = make_sale(paid_out=True, **overrides)

    assert calculate_upcoming_commission([paid], SATURDAY) <= calculate_upcoming_commission([unpaid], SATURDAY)
    assert calculate_upcoming_commission([paid], SATURDAY) == 0


def test_malformed_fields_degrade_instead_of_raising():
    sales = [
        make_sale(amount="not a number"),
        make_sale(commission_percentage=None),
        make_sale(amount="NaN", finished_date_time=SATURDAY),
        make_sale(closed_date_time="not-a-date", finished_date_time="also-not-a-date"),
        make_sale(closed_date_time=12345),
        make_sale(amount="500", commission_percentage="20"),
    ]
    # only the last one is valid: half of 100
    assert calculate_upcoming_commission(sales, SATURDAY) == Decimal("50")


def test_iso_strings_and_objects_are_accepted():
    as_dict = make_sale(closed_date_time="2026-10-14T23:59:59.999Z")
    as_obj = SimpleNamespace(**make_sale(closed_date_time="2026-10-10T08:00:00+00:00"))
    assert calculate_upcoming_commission([as_dict, as_obj], SATURDAY) == Decimal("100")


def test_naive_timestamps_are_read_in_the_zone_of_now():
    tz = timezone(timedelta(hours=-7))
    now = datetime(2026, 10, 17, 12, 0, tzinfo=tz)
    sale = make_sale(closed_date_time=datetime(2026, 10, 14, 23, 30))
    assert calculate_upcoming_commission([sale], now) == Decimal("50")


def test_now_defaults_to_current_time():
    sale = make_sale(closed_date_time=datetime.now() - timedelta(days=8))
    assert calculate_upcoming_commission([sale]) == Decimal("50")


def test_input_is_not_mutated():
    sales = [make_sale(finished_date_time="2026-10-15T10:00:00Z"), make_sale(cancelled_date_time=SATURDAY)]
    before = copy.deepcopy(sales)

    calculate_upcoming_commission(sales, SATURDAY)
    get_sales_stats(sales, SATURDAY)

    assert sales == before


def test_empty_sales():
    assert calculate_upcoming_commission([], SATURDAY) == 0
    assert get_sales_stats([], SATURDAY) == SalesStats(0, 0, Decimal("0"), Decimal("0"))


# ----------------------------------------------------------
# stats
# ----------------------------------------------------------
def test_stats_exclude_cancelled_and_accrual_counts_only_unpaid():
    cancelled = make_sale(id="c", amount=Decimal("700"), cancelled_date_time=datetime(2026, 10, 13, tzinfo=UTC))
    paid = make_sale(id="p", amount=Decimal("300"), paid_out=True)
    unpaid = make_sale(id="u", amount=Decimal("500"), commission_percentage=Decimal("20"))
    sales = [cancelled, paid, unpaid]

    stats = get_sales_stats(sales, SATURDAY)

    assert stats.total_sales == 2
    assert stats.total_revenue == Decimal("800")
    # gross: 30 + 100, payout state ignored
    assert stats.total_commission == Decimal("130")
    assert calculate_upcoming_commission(sales, SATURDAY) == Decimal("50")


def test_this_month_counts_from_first_day_of_month():
    sales = [
        make_sale(id="a", closed_date_time=datetime(2026, 10, 1, 0, 0, tzinfo=UTC)),
        make_sale(id="b", closed_date_time=datetime(2026, 9, 30, 23, 59, tzinfo=UTC)),
        make_sale(id="c", closed_date_time="garbage"),
        make_sale(id="d", closed_date_time=None),
        make_sale(id="e", closed_date_time="2026-10-16T08:00:00Z", cancelled_date_time="2026-10-16T09:00:00Z"),
    ]

    stats = get_sales_stats(sales, SATURDAY)

    assert stats.total_sales == 4
    assert stats.this_month_sales == 1


def test_stats_coerce_bad_numbers_to_zero():
    sales = [
        make_sale(amount="abc"),
        make_sale(amount="250.50", commission_percentage="oops"),
    ]

    stats = get_sales_stats(sales, SATURDAY)

    assert stats.total_sales == 2
    assert stats.total_revenue == Decimal("250.50")
    assert stats.total_commission == 0


# ----------------------------------------------------------
# extreme values degrade instead of raising
# ----------------------------------------------------------
def test_huge_amount_accrues_infinity_instead_of_overflowing():
    sale = make_sale(amount="1e999999", commission_percentage="50", finished_date_time=SATURDAY)

    total = calculate_upcoming_commission([sale], SATURDAY)

    assert total.is_infinite()
    assert total > 0


def test_huge_amounts_in_stats_sum_to_infinity():
    sales = [make_sale(id="a", amount="9e999999"), make_sale(id="b", amount="9e999999")]

    stats = get_sales_stats(sales, SATURDAY)

    assert stats.total_sales == 2
    assert stats.total_revenue.is_infinite()
    assert stats.total_commission.is_infinite()


def test_extreme_numbers_leave_decimal_context_untouched():
    get_sales_stats([make_sale(amount="9e999999")], SATURDAY)
    assert getcontext().traps[Overflow]


@pytest.mark.parametrize(
    "overrides",
    [
        {"closed_date_time": "0001-01-01T00:00:00+23:59"},
        {"closed_date_time": None, "finished_date_time": "9999-12-31T23:59:00-23:59"},
    ],
)
def test_aware_dates_past_calendar_limits_are_disqualified(overrides):
    now = datetime(2026, 10, 17, 12, 0)  # naive
    sale = make_sale(**overrides)

    assert calculate_upcoming_commission([sale], now) == 0
    assert get_sales_stats([sale], now).this_month_sales == 0


def test_cutoff_clamps_to_first_representable_day():
    # 0001-01-01 is a Monday; the previous Wednesday does not exist
    now = datetime(1, 1, 1, 8, 0)
    cutoff = last_wednesday_cutoff(now)
    assert cutoff == datetime(1, 1, 1, 23, 59, 59, 999000)

    sale = make_sale(closed_date_time=datetime(1, 1, 1, 0, 0))
    assert calculate_upcoming_commission([sale], now) == Decimal("50")
    assert get_sales_stats([sale], now).this_month_sales == 1
