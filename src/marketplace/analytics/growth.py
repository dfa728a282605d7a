"""Period-over-period sales growth for a supplier.

For a time range (week, month, quarter, year) the current window runs from
``now`` minus the range up to ``now``; the previous window is the same
length and ends where the current one starts.

Revenue only counts line items of delivered orders. The order count is
every order the supplier had items on in the window, whatever its status.
"""

import calendar
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.utils.globals import current_domain

from marketplace.order.order import Order, OrderStatus

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


class TimeRange(Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclass(frozen=True)
class Window:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SupplierSale:
    """One of a supplier's line items, stamped with its order's date and status."""

    order_id: str
    created_at: datetime
    line_total: float
    order_status: str

    @property
    def is_delivered(self) -> bool:
        return self.order_status == OrderStatus.DELIVERED.value


@dataclass(frozen=True)
class PeriodMetrics:
    revenue: float
    order_count: int
    average_order_value: float


@dataclass
class GrowthReport:
    supplier_id: str
    time_range: str
    current: PeriodMetrics
    previous: PeriodMetrics
    revenue_growth: str
    order_growth: str
    average_order_value_growth: str
    sales: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "supplier_id": self.supplier_id,
            "time_range": self.time_range,
            "revenue": round(self.current.revenue, 2),
            "order_count": self.current.order_count,
            "average_order_value": round(self.current.average_order_value, 2),
            "previous_revenue": round(self.previous.revenue, 2),
            "previous_order_count": self.previous.order_count,
            "previous_average_order_value": round(self.previous.average_order_value, 2),
            "revenue_growth": self.revenue_growth,
            "order_growth": self.order_growth,
            "average_order_value_growth": self.average_order_value_growth,
            "sales": self.sales,
        }


def growth_percent(current: float, previous: float) -> str:
    """``"+12.5%"`` style growth from ``previous`` to ``current``."""
    if previous == 0:
        return "+100%" if current > 0 else "0%"
    growth = (current - previous) / previous * 100
    return f"+{growth:.1f}%" if growth >= 0 else f"{growth:.1f}%"


def _round_half_up(amount: float) -> int:
    return math.floor(amount + 0.5)


def _shift_months(moment: datetime, months: int) -> datetime:
    """Move ``moment`` back by whole calendar months, clamping the day."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _range_start(time_range: TimeRange, end: datetime) -> datetime:
    if time_range == TimeRange.WEEK:
        return end - timedelta(days=7)
    if time_range == TimeRange.MONTH:
        return _shift_months(end, 1)
    if time_range == TimeRange.QUARTER:
        return _shift_months(end, 3)
    return _shift_months(end, 12)


def windows_for(time_range: TimeRange, now: datetime) -> tuple[Window, Window]:
    """Current and previous window for ``time_range`` ending at ``now``."""
    start = _range_start(time_range, now)
    previous_start = _range_start(time_range, start)
    return Window(start=start, end=now), Window(start=previous_start, end=start)


def period_metrics(sales: list[SupplierSale]) -> PeriodMetrics:
    revenue = sum(sale.line_total for sale in sales if sale.is_delivered)
    order_count = len({sale.order_id for sale in sales})
    average = revenue / order_count if order_count else 0.0
    return PeriodMetrics(revenue=revenue, order_count=order_count, average_order_value=average)


def sales_buckets(time_range: TimeRange, sales: list[SupplierSale], window: Window) -> list[dict]:
    """Delivered revenue per chart bucket, rounded to whole units."""
    delivered = [sale for sale in sales if sale.is_delivered]

    if time_range == TimeRange.WEEK:
        totals = dict.fromkeys(DAY_NAMES, 0.0)
        for sale in delivered:
            totals[DAY_NAMES[sale.created_at.weekday()]] += sale.line_total
        return [{"name": day, "sales": _round_half_up(totals[day])} for day in DAY_NAMES]

    if time_range == TimeRange.MONTH:
        buckets = []
        for week in range(4):
            week_start = window.start + timedelta(days=7 * week)
            week_end = week_start + timedelta(days=6)
            total = sum(sale.line_total for sale in delivered if week_start <= sale.created_at <= week_end)
            buckets.append({"name": f"Week {week + 1}", "sales": _round_half_up(total)})
        return buckets

    # Buckets are keyed by month name only, so the same month of two
    # different years lands in one bucket
    totals = dict.fromkeys(MONTH_NAMES, 0.0)
    for sale in delivered:
        totals[MONTH_NAMES[sale.created_at.month - 1]] += sale.line_total

    if time_range == TimeRange.QUARTER:
        current_month = window.end.month - 1
        months = [MONTH_NAMES[(current_month - offset) % 12] for offset in (2, 1, 0)]
    else:
        months = MONTH_NAMES
    return [{"name": month, "sales": _round_half_up(totals[month])} for month in months]


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def sales_for_supplier(orders: list[Order], supplier_id: str) -> list[SupplierSale]:
    supplier_id = str(supplier_id)
    return [
        SupplierSale(
            order_id=str(order.id),
            created_at=_aware(order.created_at),
            line_total=item.line_total,
            order_status=order.status,
        )
        for order in orders
        if order.created_at is not None
        for item in order.items
        if str(item.supplier_id) == supplier_id
    ]


def supplier_growth(
    supplier_id: str,
    time_range: TimeRange | str,
    sales: list[SupplierSale],
    now: datetime | None = None,
) -> GrowthReport:
    """Growth report for one supplier from their sales."""
    time_range = TimeRange(time_range)
    now = now or datetime.now(UTC)
    current_window, previous_window = windows_for(time_range, now)

    current_sales = [s for s in sales if current_window.start <= s.created_at <= current_window.end]
    previous_sales = [s for s in sales if previous_window.start <= s.created_at < previous_window.end]

    current = period_metrics(current_sales)
    previous = period_metrics(previous_sales)

    return GrowthReport(
        supplier_id=str(supplier_id),
        time_range=time_range.value,
        current=current,
        previous=previous,
        revenue_growth=growth_percent(current.revenue, previous.revenue),
        order_growth=growth_percent(current.order_count, previous.order_count),
        average_order_value_growth=growth_percent(current.average_order_value, previous.average_order_value),
        sales=sales_buckets(time_range, current_sales, current_window),
    )


def supplier_growth_report(supplier_id: str, time_range: TimeRange | str, now: datetime | None = None) -> GrowthReport:
    """Load the stored orders and build ``supplier_growth`` for them."""
    orders = current_domain.repository_for(Order).all_orders()
    return supplier_growth(supplier_id, time_range, sales_for_supplier(orders, supplier_id), now=now)
