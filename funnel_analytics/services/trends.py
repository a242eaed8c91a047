"""
Trend Analyzer Service

Month-over-month comparison, record-high detection and time-range slicing over
a MonthlyMetrics series.

compare_months() emits one TrendRecord per tracked metric:
    change        = current - previous
    changePercent = change / previous * 100   (0 when previous is 0)
    status        = up | down | stable

Severity thresholds are fixed business rules:
    Show-up Rate: < 70 critical, < 80 warning, else good
    Close Rate:   < 15 critical, < 25 warning, else good
Volume metrics (views, visitors, calls, revenue) are always "good".

A first month (no previous) is a normal case, not an error: change and
changePercent are 0 and status is stable.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from funnel_analytics.models import (
    MonthlyMetrics,
    TimeRange,
    TrendRecord,
    TrendSeverity,
    TrendStatus,
)
from funnel_analytics.services.aggregation import safe_rate


# =============================================================================
# CONSTANTS - Severity Bands
# =============================================================================

# (critical_below, warning_below)
SHOW_UP_RATE_BANDS: Tuple[float, float] = (70.0, 80.0)
CLOSE_RATE_BANDS: Tuple[float, float] = (15.0, 25.0)

# Metrics scanned for record highs, keyed by the name used in the dashboard
RECORD_HIGH_METRICS: Dict[str, Callable[[MonthlyMetrics], float]] = {
    'youtubeViews': lambda m: m.youtubeViews,
    'websiteVisitors': lambda m: m.websiteVisitors,
    'callsBooked': lambda m: m.callsBooked,
    'newCashCollected': lambda m: m.newCashCollected.total,
    'totalCashCollected': lambda m: m.totalCashCollected,
}

TIME_RANGE_MONTHS: Dict[TimeRange, Optional[int]] = {
    TimeRange.ALL: None,
    TimeRange.LAST_6: 6,
    TimeRange.LAST_3: 3,
    TimeRange.CURRENT: 1,
}


# =============================================================================
# Month-over-Month
# =============================================================================


def month_over_month_change(current: float, previous: Optional[float]) -> float:
    """
    Percentage change from previous to current.

    Returns 0.0 when there is no previous value or the previous value is 0.
    """
    if previous is None:
        return 0.0
    return safe_rate(current - previous, previous)


def trend_status(current: float, previous: Optional[float]) -> TrendStatus:
    if previous is None:
        return TrendStatus.STABLE
    if current > previous:
        return TrendStatus.UP
    if current < previous:
        return TrendStatus.DOWN
    return TrendStatus.STABLE


def classify_severity(value: float, bands: Optional[Tuple[float, float]]) -> TrendSeverity:
    """Classify a rate against (critical_below, warning_below) bands."""
    if bands is None:
        return TrendSeverity.GOOD
    critical_below, warning_below = bands
    if value < critical_below:
        return TrendSeverity.CRITICAL
    if value < warning_below:
        return TrendSeverity.WARNING
    return TrendSeverity.GOOD


def _trend_record(
    metric: str,
    current: float,
    previous: Optional[float],
    bands: Optional[Tuple[float, float]] = None,
) -> TrendRecord:
    change = current - previous if previous is not None else 0.0
    return TrendRecord(
        metric=metric,
        current=current,
        previous=previous,
        change=change,
        changePercent=month_over_month_change(current, previous),
        status=trend_status(current, previous),
        severity=classify_severity(current, bands),
    )


# Display name, value getter, severity bands
TRACKED_METRICS: List[Tuple[str, Callable[[MonthlyMetrics], float], Optional[Tuple[float, float]]]] = [
    ('YouTube Views', lambda m: m.youtubeViews, None),
    ('Website Visitors', lambda m: m.websiteVisitors, None),
    ('Calls Booked', lambda m: m.callsBooked, None),
    ('Revenue', lambda m: m.newCashCollected.total, None),
    ('Show-up Rate', lambda m: m.showUpRate, SHOW_UP_RATE_BANDS),
    ('Close Rate', lambda m: m.conversionRates.acceptedToSale, CLOSE_RATE_BANDS),
]


def compare_months(
    current: MonthlyMetrics,
    previous: Optional[MonthlyMetrics] = None,
) -> List[TrendRecord]:
    """
    Compare a month against the one before it.

    Args:
        current: Month being reported
        previous: Preceding month, or None for the first month of a series

    Returns:
        TrendRecords in display order: YouTube Views, Website Visitors,
        Calls Booked, Revenue, Show-up Rate, Close Rate
    """
    return [
        _trend_record(
            name,
            float(getter(current)),
            float(getter(previous)) if previous is not None else None,
            bands,
        )
        for name, getter, bands in TRACKED_METRICS
    ]


# =============================================================================
# Record Highs
# =============================================================================


def is_record_high(value: float, series: Sequence[float]) -> bool:
    """
    True when value equals the series maximum.

    Every month tied at the maximum counts as a record high. An empty series
    has no record.
    """
    if not series:
        return False
    return value == max(series)


def find_record_highs(history: Sequence[MonthlyMetrics]) -> Dict[str, float]:
    """Maximum value of each record-tracked metric across the series."""
    if not history:
        return {name: 0.0 for name in RECORD_HIGH_METRICS}
    return {
        name: float(max(getter(m) for m in history))
        for name, getter in RECORD_HIGH_METRICS.items()
    }


def record_high_flags(history: Sequence[MonthlyMetrics]) -> List[Dict[str, Union[str, bool]]]:
    """
    Per-month record-high flags.

    Returns:
        One dict per month: {"month": "YYYY-MM", "<metric>": bool, ...}
    """
    highs = find_record_highs(history)
    flags: List[Dict[str, Union[str, bool]]] = []
    for month in history:
        row: Dict[str, Union[str, bool]] = {'month': month.month}
        for name, getter in RECORD_HIGH_METRICS.items():
            row[name] = float(getter(month)) == highs[name]
        flags.append(row)
    return flags


# =============================================================================
# Time Range Slicing
# =============================================================================


def filter_time_range(
    history: Sequence[MonthlyMetrics],
    time_range: Union[TimeRange, str, None],
) -> List[MonthlyMetrics]:
    """
    Slice a month series (assumed ascending) to a trailing window.

    Unknown range values return the full series.
    """
    try:
        key = TimeRange(time_range) if time_range is not None else TimeRange.ALL
    except ValueError:
        key = TimeRange.ALL

    months = TIME_RANGE_MONTHS[key]
    if months is None:
        return list(history)
    return list(history[-months:])
