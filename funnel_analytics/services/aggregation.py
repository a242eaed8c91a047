"""
Monthly Aggregation Service

Reduces raw event collections (call bookings, sales, published videos) into one
MonthlyMetrics record per calendar month. This is the leaf of the analytics
pipeline: trends, funnel drop-offs and insights all read MonthlyMetrics.

Derived Metrics:
- showUpRate = callsAccepted / callsBooked * 100
- viewToWebsite = websiteVisitors / youtubeViews * 100
- websiteToCall = callsBooked / websiteVisitors * 100
- callToAccepted = callsAccepted / callsBooked * 100
- acceptedToSale = closed accepted calls / callsAccepted * 100
  (a sale counts toward the month its call was booked, via Sale.callId)
- newCashCollected.total = paidInFull + installments
- totalCashCollected = newCashCollected.total + recurring installment cash

Every ratio goes through safe_rate: a zero denominator yields 0.0, never NaN
or infinity. The functions here are pure; the same events always produce the
same metrics.
"""

import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from funnel_analytics.models import (
    CallBooking,
    CallStatus,
    CashCollected,
    ConversionRates,
    MonthlyMetrics,
    Sale,
    SaleType,
    YouTubeVideo,
)


# Months an installment plan keeps paying after the sale closes
INSTALLMENT_PLAN_MONTHS: int = 3


# =============================================================================
# Numeric Helpers (shared by every analytics module)
# =============================================================================


def safe_rate(numerator: float, denominator: float, scale: float = 100.0) -> float:
    """
    Guarded ratio used for every rate in the service.

    Args:
        numerator: Count or amount on top
        denominator: Count or amount below
        scale: Multiplier applied to the ratio (100 for percentages, 1 for plain ratios)

    Returns:
        numerator / denominator * scale, or 0.0 when the denominator is zero
        or the result would not be finite
    """
    if not denominator:
        return 0.0
    result = numerator / denominator * scale
    if not math.isfinite(result):
        return 0.0
    return result


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, like the dashboard does."""
    return int(math.floor(value + 0.5))


def round_currency(amount: float) -> float:
    """Round a dollar amount to cents."""
    return round(amount + 0.0, 2)


def month_of(timestamp: datetime) -> str:
    """Calendar month key (YYYY-MM) of a timestamp."""
    return f"{timestamp.year:04d}-{timestamp.month:02d}"


# =============================================================================
# Filtering
# =============================================================================


def calls_in_month(calls: Iterable[CallBooking], month: str) -> List[CallBooking]:
    return [c for c in calls if month_of(c.bookedAt) == month]


def sales_in_month(sales: Iterable[Sale], month: str) -> List[Sale]:
    return [s for s in sales if month_of(s.closedAt) == month]


def videos_in_month(videos: Iterable[YouTubeVideo], month: str) -> List[YouTubeVideo]:
    return [v for v in videos if month_of(v.publishedAt) == month]


# =============================================================================
# Aggregation
# =============================================================================


def summarize_cash(sales: Sequence[Sale]) -> CashCollected:
    """
    Split new cash by payment type.

    The total is computed from the two rounded parts so that
    total == paidInFull + installments holds to the cent.
    """
    paid_in_full = round_currency(
        sum(s.amount for s in sales if s.type == SaleType.PAID_IN_FULL)
    )
    installments = round_currency(
        sum(s.amount for s in sales if s.type == SaleType.INSTALLMENT)
    )
    return CashCollected(
        paidInFull=paid_in_full,
        installments=installments,
        total=round_currency(paid_in_full + installments),
    )


def aggregate(
    month: str,
    calls: Sequence[CallBooking],
    sales: Sequence[Sale],
    videos: Sequence[YouTubeVideo],
    website_visitors: int = 0,
    recurring_cash: float = 0.0,
) -> MonthlyMetrics:
    """
    Build the MonthlyMetrics record for one calendar month.

    Each input collection is filtered to the records whose timestamp falls in
    `month` (bookedAt for calls, closedAt for sales, publishedAt for videos).
    The close rate is the exception: it joins sales to this month's accepted
    calls on callId, whichever month the sale closed in.

    Args:
        month: Calendar month key, YYYY-MM
        calls: Call bookings (any months)
        sales: Closed sales (any months)
        videos: Published videos (any months)
        website_visitors: Website visitors for the month, from traffic analytics
        recurring_cash: Installment payments collected this month on earlier sales

    Returns:
        MonthlyMetrics with all rates guarded against zero denominators
    """
    month_calls = calls_in_month(calls, month)
    month_sales = sales_in_month(sales, month)
    month_videos = videos_in_month(videos, month)

    youtube_views = sum(v.views for v in month_videos)
    youtube_unique_views = sum(v.uniqueViews for v in month_videos)
    calls_booked = len(month_calls)
    accepted_ids = {c.id for c in month_calls if c.status == CallStatus.ACCEPTED}
    calls_accepted = sum(1 for c in month_calls if c.status == CallStatus.ACCEPTED)
    # One per accepted call, however many sales it has
    sales_closed = len({s.callId for s in sales if s.callId in accepted_ids})

    new_cash = summarize_cash(month_sales)
    show_up_rate = safe_rate(calls_accepted, calls_booked)

    return MonthlyMetrics(
        month=month,
        youtubeViews=youtube_views,
        youtubeUniqueViews=youtube_unique_views,
        websiteVisitors=website_visitors,
        callsBooked=calls_booked,
        callsAccepted=calls_accepted,
        showUpRate=show_up_rate,
        newCashCollected=new_cash,
        totalCashCollected=round_currency(new_cash.total + recurring_cash),
        conversionRates=ConversionRates(
            viewToWebsite=safe_rate(website_visitors, youtube_views),
            websiteToCall=safe_rate(calls_booked, website_visitors),
            callToAccepted=show_up_rate,
            acceptedToSale=safe_rate(sales_closed, calls_accepted),
        ),
    )


def _month_index(month: str) -> int:
    year, month_number = (int(part) for part in month.split('-'))
    return year * 12 + month_number - 1


def recurring_installment_cash(
    sales: Iterable[Sale],
    month: str,
    plan_months: int = INSTALLMENT_PLAN_MONTHS,
) -> float:
    """
    Installment payments collected in `month` on sales closed earlier.

    An installment plan keeps collecting amount / plan_months in each of the
    plan_months months after the sale closed.
    """
    target = _month_index(month)
    collected = 0.0
    for sale in sales:
        if sale.type != SaleType.INSTALLMENT:
            continue
        elapsed = target - _month_index(month_of(sale.closedAt))
        if 1 <= elapsed <= plan_months:
            collected += sale.amount / plan_months
    return round_currency(collected)


def discover_months(
    calls: Iterable[CallBooking],
    sales: Iterable[Sale],
    videos: Iterable[YouTubeVideo],
) -> List[str]:
    """All calendar months that have at least one event, ascending."""
    months = {month_of(c.bookedAt) for c in calls}
    months.update(month_of(s.closedAt) for s in sales)
    months.update(month_of(v.publishedAt) for v in videos)
    return sorted(months)


def aggregate_series(
    calls: Sequence[CallBooking],
    sales: Sequence[Sale],
    videos: Sequence[YouTubeVideo],
    website_visitors: Optional[Dict[str, int]] = None,
    recurring_cash: Optional[Dict[str, float]] = None,
    months: Optional[Sequence[str]] = None,
) -> List[MonthlyMetrics]:
    """
    Aggregate a whole month series.

    Args:
        calls, sales, videos: Raw event collections
        website_visitors: Visitors keyed by month; missing months count as 0
        recurring_cash: Recurring installment cash keyed by month
        months: Explicit months to build; defaults to every month with events

    Returns:
        One MonthlyMetrics per month, in ascending month order
    """
    website_visitors = website_visitors or {}
    recurring_cash = recurring_cash or {}
    target_months = sorted(months) if months is not None else discover_months(calls, sales, videos)

    return [
        aggregate(
            month,
            calls,
            sales,
            videos,
            website_visitors=website_visitors.get(month, 0),
            recurring_cash=recurring_cash.get(month, 0.0),
        )
        for month in target_months
    ]
