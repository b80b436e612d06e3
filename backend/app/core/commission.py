# app/core/commission.py
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation, Overflow, getcontext, localcontext
from typing import Any, Optional

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO = Decimal("2")

# End of the cutoff day, millisecond precision.
END_OF_DAY = time(23, 59, 59, 999000)

WEDNESDAY = 3  # 0=Sunday .. 6=Saturday


def _lenient_arithmetic():
    """
    Decimal context for the aggregates: overflow yields Infinity and
    invalid operations yield NaN instead of raising.
    """
    ctx = getcontext().copy()
    ctx.traps[Overflow] = False
    ctx.traps[InvalidOperation] = False
    return localcontext(ctx)


@dataclass(frozen=True)
class SalesStats:
    total_sales: int
    this_month_sales: int
    total_revenue: Decimal
    total_commission: Decimal


def _field(sale: Any, name: str) -> Any:
    if isinstance(sale, Mapping):
        return sale.get(name)
    return getattr(sale, name, None)


def _to_decimal(value: Any) -> Decimal:
    """
    Coerce a numeric field to Decimal.
    Missing, unparsable or non-finite values become 0.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return d if d.is_finite() else ZERO


def _to_datetime(value: Any, now: datetime) -> Optional[datetime]:
    """
    Parse a timestamp field into something comparable with `now`.
    Returns None when the value is absent or cannot be parsed.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    # naive values are read in now's zone; aware values follow a naive now into local time
    if now.tzinfo is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=now.tzinfo)
    if now.tzinfo is None and dt.tzinfo is not None:
        try:
            return dt.astimezone().replace(tzinfo=None)
        except (OverflowError, OSError):
            # shifted past the calendar limits
            return None
    return dt


def _is_cancelled(sale: Any) -> bool:
    return bool(_field(sale, "cancelled_date_time"))


def _day_of_week(d: date) -> int:
    # Python weekday() is Monday=0; the cutoff rule counts from Sunday=0.
    return (d.weekday() + 1) % 7


def last_wednesday_cutoff(now: datetime) -> datetime:
    """
    Most recent Wednesday (today included) at 23:59:59.999, in now's tzinfo.
    """
    dow = _day_of_week(now.date())
    days_back = dow - WEDNESDAY if dow >= WEDNESDAY else dow + 4
    if now.date().toordinal() - days_back < date.min.toordinal():
        cutoff_day = date.min
    else:
        cutoff_day = now.date() - timedelta(days=days_back)
    return datetime.combine(cutoff_day, END_OF_DAY, tzinfo=now.tzinfo)


def start_of_month(now: datetime) -> datetime:
    return datetime.combine(now.date().replace(day=1), time.min, tzinfo=now.tzinfo)


def _amount_and_rate(sale: Any) -> tuple[Decimal, Decimal]:
    return _to_decimal(_field(sale, "amount")), _to_decimal(_field(sale, "commission_percentage"))


def _commission(amount: Decimal, pct: Decimal) -> Decimal:
    return amount * pct / HUNDRED


def commission_of(sale: Any) -> Decimal:
    """Gross commission of one sale; callers hold the lenient context."""
    return _commission(*_amount_and_rate(sale))


def calculate_upcoming_commission(sales: Iterable[Any], now: Optional[datetime] = None) -> Decimal:
    """
    Commission owed but not yet paid out, as of `now`.

    Half of a sale's commission accrues once it closed on or before the last
    Wednesday cutoff, the other half once it is finished. Paid-out and
    cancelled sales accrue nothing.
    """
    if now is None:
        now = datetime.now()
    cutoff = last_wednesday_cutoff(now)

    total = ZERO
    with _lenient_arithmetic():
        for sale in sales:
            if _is_cancelled(sale):
                continue

            amount, pct = _amount_and_rate(sale)
            if amount <= 0 or pct <= 0:
                continue

            if bool(_field(sale, "paid_out")):
                continue

            half = _commission(amount, pct) / TWO

            closed = _to_datetime(_field(sale, "closed_date_time"), now)
            if closed is not None and closed <= cutoff:
                total += half

            finished = _to_datetime(_field(sale, "finished_date_time"), now)
            if finished is not None:
                total += half

    return total


def get_sales_stats(sales: Iterable[Any], now: Optional[datetime] = None) -> SalesStats:
    """
    Aggregate counts and gross totals over non-cancelled sales.
    total_commission is gross: no payout or cutoff gating.
    """
    if now is None:
        now = datetime.now()
    month_start = start_of_month(now)

    total_sales = 0
    this_month = 0
    revenue = ZERO
    commission = ZERO

    with _lenient_arithmetic():
        for sale in sales:
            if _is_cancelled(sale):
                continue

            total_sales += 1
            revenue += _to_decimal(_field(sale, "amount"))
            commission += commission_of(sale)

            closed = _to_datetime(_field(sale, "closed_date_time"), now)
            if closed is not None and closed >= month_start:
                this_month += 1

    return SalesStats(
        total_sales=total_sales,
        this_month_sales=this_month,
        total_revenue=revenue,
        total_commission=commission,
    )
