"""
Attribution Engine

Assigns downstream calls, sales and revenue back to the video or country that
originated them.

Video Attribution:
    Calls are matched to a video by videoId and booking month. Sales carry no
    video reference and are joined through callId, so a sale only counts for a
    video when its call does. Monthly views are estimated as a fixed share of
    lifetime views (Settings.monthly_view_share) until per-month view data is
    available from the channel API.

Country Attribution:
    A fixed list of markets is rolled up from sales and calls by country code.
    Markets without a single call are dropped, not zero-filled. Growth compares
    revenue to an optional previous-period sales list.

All sorts are descending and stable: ties keep input order.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from funnel_analytics.models import (
    CallBooking,
    CallStatus,
    CountryMetrics,
    CountrySortKey,
    Sale,
    VideoMonthTotals,
    VideoPerformance,
    VideoSortKey,
    YouTubeVideo,
)
from funnel_analytics.services.aggregation import (
    month_of,
    round_currency,
    round_half_up,
    safe_rate,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_MONTHLY_VIEW_SHARE: float = 0.15

# Markets tracked on the country breakdown, in display order
COUNTRY_NAMES: Dict[str, str] = {
    'US': 'United States',
    'CA': 'Canada',
    'UK': 'United Kingdom',
    'AU': 'Australia',
    'DE': 'Germany',
    'FR': 'France',
    'NL': 'Netherlands',
    'SG': 'Singapore',
}

VIDEO_SORT_FIELDS: Dict[VideoSortKey, Callable[[VideoPerformance], float]] = {
    VideoSortKey.REVENUE: lambda v: v.revenueFromThisVideo,
    VideoSortKey.VIEWS: lambda v: v.monthlyViews,
    VideoSortKey.CONVERSION: lambda v: v.viewToCallRate,
}

COUNTRY_SORT_FIELDS: Dict[CountrySortKey, Callable[[CountryMetrics], float]] = {
    CountrySortKey.REVENUE: lambda c: c.totalRevenue,
    CountrySortKey.SALES: lambda c: c.totalSales,
    CountrySortKey.CONVERSION: lambda c: c.conversionRate,
    CountrySortKey.GROWTH: lambda c: c.growth,
}


# =============================================================================
# Video Attribution
# =============================================================================


def estimate_monthly_views(video: YouTubeVideo, share: float = DEFAULT_MONTHLY_VIEW_SHARE) -> int:
    return round_half_up(video.views * share)


def build_video_record(
    video: YouTubeVideo,
    calls: Sequence[CallBooking],
    sales: Sequence[Sale],
    month: str,
    monthly_view_share: float = DEFAULT_MONTHLY_VIEW_SHARE,
) -> VideoPerformance:
    """
    Attribute one month of calls and sales to a single video.

    Args:
        video: Video being attributed
        calls: All call bookings (any video, any month)
        sales: All sales (joined to calls by callId)
        month: Calendar month key, YYYY-MM
        monthly_view_share: Fraction of lifetime views assigned to the month

    Returns:
        VideoPerformance with zero counts and rates when the video had no
        calls that month
    """
    video_calls = [
        c for c in calls
        if c.videoId == video.id and month_of(c.bookedAt) == month
    ]
    accepted_calls = [c for c in video_calls if c.status == CallStatus.ACCEPTED]
    call_ids = {c.id for c in video_calls}
    video_sales = [s for s in sales if s.callId in call_ids]

    monthly_views = estimate_monthly_views(video, monthly_view_share)
    revenue = round_currency(sum(s.amount for s in video_sales))

    record = video.model_dump()
    record.update(
        revenuePerView=safe_rate(revenue, monthly_views, scale=1.0),
        monthlyViews=monthly_views,
        callsFromThisVideo=len(video_calls),
        acceptedCallsFromThisVideo=len(accepted_calls),
        salesFromThisVideo=len(video_sales),
        revenueFromThisVideo=revenue,
        viewToCallRate=safe_rate(len(video_calls), monthly_views),
        callToSaleRate=safe_rate(len(video_sales), len(video_calls)),
        month=month,
    )
    return VideoPerformance(**record)


def attribute_videos(
    videos: Sequence[YouTubeVideo],
    calls: Sequence[CallBooking],
    sales: Sequence[Sale],
    month: str,
    sort_by: VideoSortKey = VideoSortKey.REVENUE,
    monthly_view_share: float = DEFAULT_MONTHLY_VIEW_SHARE,
) -> List[VideoPerformance]:
    """
    Per-video performance for one month, sorted descending by sort_by.

    Each video is computed independently from the shared inputs.
    """
    performances = [
        build_video_record(video, calls, sales, month, monthly_view_share)
        for video in videos
    ]
    key = VIDEO_SORT_FIELDS[VideoSortKey(sort_by)]
    return sorted(performances, key=key, reverse=True)


def month_totals(performances: Sequence[VideoPerformance]) -> VideoMonthTotals:
    """Summary card totals across a month's video performances."""
    return VideoMonthTotals(
        views=sum(p.monthlyViews for p in performances),
        calls=sum(p.callsFromThisVideo for p in performances),
        revenue=round_currency(sum(p.revenueFromThisVideo for p in performances)),
        sales=sum(p.salesFromThisVideo for p in performances),
    )


def available_months(calls: Sequence[CallBooking], limit: int = 6) -> List[str]:
    """Most recent distinct booking months, newest first."""
    months = sorted({month_of(c.bookedAt) for c in calls}, reverse=True)
    return months[:limit]


# =============================================================================
# Country Attribution
# =============================================================================


def _revenue_by_country(sales: Sequence[Sale]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for sale in sales:
        totals[sale.country] = totals.get(sale.country, 0.0) + sale.amount
    return totals


def attribute_countries(
    sales: Sequence[Sale],
    calls: Sequence[CallBooking],
    previous_sales: Optional[Sequence[Sale]] = None,
    sort_by: CountrySortKey = CountrySortKey.REVENUE,
) -> List[CountryMetrics]:
    """
    Revenue, conversion and market share per tracked country.

    Args:
        sales: Sales in the reporting period
        calls: Call bookings in the reporting period
        previous_sales: Sales in the preceding period, for growth
        sort_by: Descending sort key

    Returns:
        CountryMetrics for every tracked country with at least one call
    """
    total_revenue = sum(s.amount for s in sales)
    revenue_by_country = _revenue_by_country(sales)
    previous_revenue = _revenue_by_country(previous_sales) if previous_sales else {}

    results: List[CountryMetrics] = []
    for code, name in COUNTRY_NAMES.items():
        country_calls = sum(1 for c in calls if c.country == code)
        if country_calls == 0:
            continue

        country_sales = sum(1 for s in sales if s.country == code)
        revenue = revenue_by_country.get(code, 0.0)
        prior = previous_revenue.get(code, 0.0)

        results.append(CountryMetrics(
            country=name,
            countryCode=code,
            totalSales=country_sales,
            totalRevenue=round_currency(revenue),
            totalCalls=country_calls,
            conversionRate=safe_rate(country_sales, country_calls),
            avgDealSize=round_currency(safe_rate(revenue, country_sales, scale=1.0)),
            marketShare=safe_rate(revenue, total_revenue),
            growth=safe_rate(revenue - prior, prior),
        ))

    untracked = set(revenue_by_country) - set(COUNTRY_NAMES)
    if untracked:
        logger.debug(f"Sales from untracked countries excluded: {sorted(untracked)}")

    key = COUNTRY_SORT_FIELDS[CountrySortKey(sort_by)]
    return sorted(results, key=key, reverse=True)
