"""
Campaign and Traffic Source Metrics

Derived engagement, cost and ROI figures for email campaigns and traffic
sources. Nothing here is stored on the source records; every figure is
recomputed from the raw counters.

Email:
    openRate     = uniqueOpens / sent * 100
    clickRate    = uniqueClicks / uniqueOpens * 100
    deliveryRate = delivered / sent * 100
    cost         = sent * cost_per_send
    roi          = (revenue - cost) / cost * 100

Traffic:
    cost         = costPerAcquisition * visitors   (0 for organic sources)
    roi          = (revenue - cost) / cost * 100   (0 when cost is 0)
    revenueShare = revenue / total revenue * 100
"""

from typing import Callable, Dict, List, Optional, Sequence

from funnel_analytics.models import (
    CampaignSortKey,
    EmailCampaign,
    EmailCampaignMetrics,
    EmailCampaignTotals,
    EmailCampaignType,
    LeadMedium,
    LeadPlatform,
    TrafficSortKey,
    TrafficSourceAttribution,
    TrafficSourceMetrics,
    TrafficTotals,
)
from funnel_analytics.services.aggregation import round_currency, safe_rate


DEFAULT_EMAIL_COST_PER_SEND: float = 0.10


def roi_percent(revenue: float, cost: float) -> float:
    """Return on spend as a percentage; 0 when nothing was spent."""
    return safe_rate(revenue - cost, cost)


# =============================================================================
# Email Campaigns
# =============================================================================


CAMPAIGN_SORT_FIELDS: Dict[CampaignSortKey, Callable[[EmailCampaign], float]] = {
    CampaignSortKey.REVENUE: lambda c: c.conversions.revenue,
    CampaignSortKey.OPENS: lambda c: c.engagement.uniqueOpens,
    CampaignSortKey.CLICKS: lambda c: c.engagement.uniqueClicks,
    CampaignSortKey.CONVERSIONS: lambda c: c.conversions.callsBooked,
}


def campaign_metrics(
    campaign: EmailCampaign,
    cost_per_send: float = DEFAULT_EMAIL_COST_PER_SEND,
) -> EmailCampaignMetrics:
    sent = campaign.recipients.sent
    unique_opens = campaign.engagement.uniqueOpens
    revenue = campaign.conversions.revenue
    cost = round_currency(sent * cost_per_send)

    return EmailCampaignMetrics(
        campaignId=campaign.id,
        name=campaign.name,
        type=campaign.type,
        status=campaign.status,
        sent=sent,
        openRate=safe_rate(unique_opens, sent),
        clickRate=safe_rate(campaign.engagement.uniqueClicks, unique_opens),
        deliveryRate=safe_rate(campaign.recipients.delivered, sent),
        callsBooked=campaign.conversions.callsBooked,
        revenue=revenue,
        cost=cost,
        roi=roi_percent(revenue, cost),
    )


def campaign_totals(campaigns: Sequence[EmailCampaign]) -> EmailCampaignTotals:
    sent = sum(c.recipients.sent for c in campaigns)
    opens = sum(c.engagement.uniqueOpens for c in campaigns)
    clicks = sum(c.engagement.uniqueClicks for c in campaigns)
    return EmailCampaignTotals(
        sent=sent,
        opens=opens,
        clicks=clicks,
        callsBooked=sum(c.conversions.callsBooked for c in campaigns),
        revenue=round_currency(sum(c.conversions.revenue for c in campaigns)),
        openRate=safe_rate(opens, sent),
        clickRate=safe_rate(clicks, opens),
    )


def aggregate_open_rate(campaigns: Sequence[EmailCampaign]) -> float:
    """Unique opens over sends across every campaign (%)."""
    return campaign_totals(campaigns).openRate


def analyze_campaigns(
    campaigns: Sequence[EmailCampaign],
    campaign_type: Optional[EmailCampaignType] = None,
    sort_by: CampaignSortKey = CampaignSortKey.REVENUE,
    cost_per_send: float = DEFAULT_EMAIL_COST_PER_SEND,
) -> List[EmailCampaignMetrics]:
    """
    Filter, sort and derive metrics for a list of email campaigns.

    Args:
        campaigns: Raw campaigns
        campaign_type: Keep only this campaign type when given
        sort_by: Descending sort key over the raw counters
        cost_per_send: Estimated cost of one send in dollars

    Returns:
        EmailCampaignMetrics in sorted order
    """
    selected = [
        c for c in campaigns
        if campaign_type is None or c.type == campaign_type
    ]
    key = CAMPAIGN_SORT_FIELDS[CampaignSortKey(sort_by)]
    ordered = sorted(selected, key=key, reverse=True)
    return [campaign_metrics(c, cost_per_send) for c in ordered]


# =============================================================================
# Traffic Sources
# =============================================================================


TRAFFIC_SORT_FIELDS: Dict[TrafficSortKey, Callable[[TrafficSourceMetrics], float]] = {
    TrafficSortKey.REVENUE: lambda s: s.revenue,
    TrafficSortKey.VISITORS: lambda s: s.visitors,
    TrafficSortKey.CONVERSION: lambda s: s.conversionRate,
    TrafficSortKey.ROI: lambda s: s.roi,
}


def source_cost(source: TrafficSourceAttribution) -> float:
    if source.costPerAcquisition is None:
        return 0.0
    return round_currency(source.costPerAcquisition * source.visitors)


def traffic_totals(sources: Sequence[TrafficSourceAttribution]) -> TrafficTotals:
    return TrafficTotals(
        visitors=sum(s.visitors for s in sources),
        callsBooked=sum(s.callsBooked for s in sources),
        salesClosed=sum(s.salesClosed for s in sources),
        revenue=round_currency(sum(s.revenue for s in sources)),
    )


def analyze_traffic_sources(
    sources: Sequence[TrafficSourceAttribution],
    platform: Optional[LeadPlatform] = None,
    medium: Optional[LeadMedium] = None,
    sort_by: TrafficSortKey = TrafficSortKey.REVENUE,
) -> List[TrafficSourceMetrics]:
    """
    Cost, ROI and revenue share per traffic source.

    Revenue share is computed against the filtered selection, so shares of the
    returned rows sum to 100 whenever any revenue exists.
    """
    selected = filter_traffic_sources(sources, platform, medium)
    total_revenue = sum(s.revenue for s in selected)

    metrics: List[TrafficSourceMetrics] = []
    for source in selected:
        cost = source_cost(source)
        metrics.append(TrafficSourceMetrics(
            platform=source.source.platform,
            medium=source.source.medium,
            campaign=source.source.campaign,
            visitors=source.visitors,
            callsBooked=source.callsBooked,
            salesClosed=source.salesClosed,
            revenue=source.revenue,
            conversionRate=safe_rate(source.salesClosed, source.visitors),
            cost=cost,
            roi=roi_percent(source.revenue, cost),
            revenueShare=safe_rate(source.revenue, total_revenue),
        ))

    key = TRAFFIC_SORT_FIELDS[TrafficSortKey(sort_by)]
    return sorted(metrics, key=key, reverse=True)


def filter_traffic_sources(
    sources: Sequence[TrafficSourceAttribution],
    platform: Optional[LeadPlatform] = None,
    medium: Optional[LeadMedium] = None,
) -> List[TrafficSourceAttribution]:
    return [
        s for s in sources
        if (platform is None or s.source.platform == platform)
        and (medium is None or s.source.medium == medium)
    ]
