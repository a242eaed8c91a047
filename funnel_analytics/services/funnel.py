"""
Funnel Drop-off Detector

Checks the four stage-to-stage transitions of the latest month against fixed
business thresholds and reports the ones converting too low.

| Transition       | Rate                      | Flag below | Expected | high  | medium |
|------------------|---------------------------|-----------:|---------:|------:|-------:|
| View → Website   | visitors / views * 100    | 8          | 10       | < 5   | < 8    |
| Website → Call   | calls / visitors * 100    | 15         | 20       | < 10  | < 15   |
| Call → Show-up   | showUpRate                | 70         | 75       | < 60  | < 70   |
| Show → Close     | acceptedToSale            | 20         | 25       | < 15  | < 20   |

All comparisons are strict: a rate exactly at the flag threshold is not
reported. Output is ordered high, medium, low, keeping table order for ties.

Also builds the five-stage funnel breakdown and the per-product revenue split
shown next to it.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from funnel_analytics.models import (
    DropoffPoint,
    DropoffSeverity,
    FunnelStage,
    MonthlyMetrics,
    Sale,
)
from funnel_analytics.services.aggregation import (
    month_of,
    round_currency,
    round_half_up,
    safe_rate,
)


@dataclass(frozen=True)
class FunnelTransition:
    """One checked transition with its thresholds."""
    stage: str
    from_stage: str
    rate: Callable[[MonthlyMetrics], float]
    flag_below: float
    expected: float
    high_below: float
    medium_below: float


FUNNEL_TRANSITIONS: List[FunnelTransition] = [
    FunnelTransition(
        stage='View → Website',
        from_stage='YouTube Views',
        rate=lambda m: safe_rate(m.websiteVisitors, m.youtubeViews),
        flag_below=8.0,
        expected=10.0,
        high_below=5.0,
        medium_below=8.0,
    ),
    FunnelTransition(
        stage='Website → Call',
        from_stage='Website Visitors',
        rate=lambda m: safe_rate(m.callsBooked, m.websiteVisitors),
        flag_below=15.0,
        expected=20.0,
        high_below=10.0,
        medium_below=15.0,
    ),
    FunnelTransition(
        stage='Call → Show-up',
        from_stage='Calls Booked',
        rate=lambda m: m.showUpRate,
        flag_below=70.0,
        expected=75.0,
        high_below=60.0,
        medium_below=70.0,
    ),
    FunnelTransition(
        stage='Show → Close',
        from_stage='Calls Accepted',
        rate=lambda m: m.conversionRates.acceptedToSale,
        flag_below=20.0,
        expected=25.0,
        high_below=15.0,
        medium_below=20.0,
    ),
]

DROPOFF_SEVERITY_ORDER: Dict[DropoffSeverity, int] = {
    DropoffSeverity.HIGH: 0,
    DropoffSeverity.MEDIUM: 1,
    DropoffSeverity.LOW: 2,
}


def _severity(rate: float, transition: FunnelTransition) -> DropoffSeverity:
    if rate < transition.high_below:
        return DropoffSeverity.HIGH
    if rate < transition.medium_below:
        return DropoffSeverity.MEDIUM
    return DropoffSeverity.LOW


def detect_dropoffs(latest: MonthlyMetrics) -> List[DropoffPoint]:
    """
    Flag funnel transitions converting below their thresholds.

    Args:
        latest: The month to check

    Returns:
        DropoffPoints ordered by severity (high first); empty when the funnel
        is healthy
    """
    points: List[DropoffPoint] = []
    for transition in FUNNEL_TRANSITIONS:
        rate = transition.rate(latest)
        if not rate < transition.flag_below:
            continue
        points.append(DropoffPoint(
            stage=transition.stage,
            fromStage=transition.from_stage,
            conversionRate=rate,
            expectedRate=transition.expected,
            variance=rate - transition.expected,
            severity=_severity(rate, transition),
        ))

    return sorted(points, key=lambda p: DROPOFF_SEVERITY_ORDER[p.severity])


def build_funnel_stages(latest: MonthlyMetrics) -> List[FunnelStage]:
    """
    Five-stage funnel for a month with stage-to-stage conversion.

    Sales Closed is reconstructed from the close rate and accepted calls.
    """
    sales_closed = round_half_up(
        latest.conversionRates.acceptedToSale * latest.callsAccepted / 100
    )
    values = [
        ('YouTube Views', latest.youtubeViews),
        ('Website Visitors', latest.websiteVisitors),
        ('Calls Booked', latest.callsBooked),
        ('Calls Accepted', latest.callsAccepted),
        ('Sales Closed', sales_closed),
    ]

    stages: List[FunnelStage] = []
    for index, (name, value) in enumerate(values):
        conversion = None
        if index > 0:
            conversion = safe_rate(value, values[index - 1][1])
        stages.append(FunnelStage(name=name, value=value, conversion=conversion))
    return stages


def product_breakdown(sales: Sequence[Sale], month: str) -> Dict[str, float]:
    """Revenue per product for sales closed in the month, largest first."""
    totals: Dict[str, float] = {}
    for sale in sales:
        if month_of(sale.closedAt) != month:
            continue
        totals[sale.product] = totals.get(sale.product, 0.0) + sale.amount

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return {product: round_currency(amount) for product, amount in ordered}
