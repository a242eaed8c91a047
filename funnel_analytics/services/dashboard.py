"""
Dashboard Assembly Service

Builds the DashboardData payload served by GET /api/dashboard:

1. Load raw events: CSV feeds from EVENTS_DIR when configured, otherwise the
   seeded mock generator
2. Replace mock records with live integration data where credentials exist
   (YouTube video stats, Kajabi products/email stats, Cal.com bookings)
3. Aggregate the monthly series, including recurring installment cash
4. Generate insights (LLM with rule-based fallback) and evaluate thresholds
   against the latest month
5. Attach integration status and the build timestamp

build_fallback_dashboard is the last resort used by the route when assembly
fails outright: plain mock data with every integration marked "error".
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from funnel_analytics.core.config import Settings
from funnel_analytics.models import (
    ApiStatus,
    ConnectionStatus,
    DashboardData,
    EventFeed,
    MonthlyMetrics,
    TimeRange,
)
from funnel_analytics.services.aggregation import (
    aggregate_series,
    discover_months,
    recurring_installment_cash,
)
from funnel_analytics.services.alerts import evaluate_thresholds
from funnel_analytics.services.api_clients import (
    error_api_status,
    fetch_calcom_calls,
    fetch_kajabi_data,
    fetch_youtube_videos,
)
from funnel_analytics.services.ingestion import load_event_feeds
from funnel_analytics.services.insights import generate_ai_insights
from funnel_analytics.services.mock_data import EventBundle, generate_mock_events
from funnel_analytics.services.trends import filter_time_range

logger = logging.getLogger(__name__)


def load_events(settings: Settings) -> EventBundle:
    """
    Raw events for the dashboard.

    CSV feeds replace the generated calls, sales and videos only when all
    three loaded cleanly; campaigns, traffic sources and thresholds always
    come from the generator.
    """
    bundle = generate_mock_events(settings.mock_seed)
    if not settings.events_dir:
        return bundle

    records, results = load_event_feeds(settings.events_dir)
    failed = [r for r in results if not r.success]
    if failed:
        for result in failed:
            logger.warning(
                f"Event feed '{result.feed}' failed validation with "
                f"{len(result.errors)} errors, keeping mock events"
            )
        return bundle

    bundle.calls = records[EventFeed.CALLS]
    bundle.sales = records[EventFeed.SALES]
    bundle.videos = records[EventFeed.VIDEOS]
    logger.info(
        f"Loaded event feeds from {settings.events_dir}: {len(bundle.calls)} calls, "
        f"{len(bundle.sales)} sales, {len(bundle.videos)} videos"
    )
    return bundle


def build_monthly_series(bundle: EventBundle) -> List[MonthlyMetrics]:
    """Monthly metrics for every month with events, recurring cash included."""
    months = discover_months(bundle.calls, bundle.sales, bundle.videos)
    recurring: Dict[str, float] = {
        month: recurring_installment_cash(bundle.sales, month) for month in months
    }
    return aggregate_series(
        bundle.calls,
        bundle.sales,
        bundle.videos,
        website_visitors=bundle.website_visitors,
        recurring_cash=recurring,
        months=months,
    )


async def build_dashboard_data(
    settings: Settings,
    now: Optional[datetime] = None,
) -> DashboardData:
    """
    Assemble the full dashboard payload.

    Integration failures never propagate: each falls back to its mock data
    and reports "error" in apiStatus.
    """
    bundle = load_events(settings)

    videos, youtube_status = await fetch_youtube_videos(settings, bundle.videos)
    kajabi, kajabi_status = await fetch_kajabi_data(settings, bundle.kajabi)
    calls, calcom_status = await fetch_calcom_calls(settings, bundle.calls)
    bundle.videos = videos
    bundle.kajabi = kajabi
    bundle.calls = calls

    monthly_metrics = build_monthly_series(bundle)
    insights = await generate_ai_insights(monthly_metrics, settings)

    alerts = []
    if monthly_metrics:
        alerts = evaluate_thresholds(
            bundle.thresholds,
            monthly_metrics[-1],
            videos=bundle.videos,
            campaigns=bundle.email_campaigns,
            as_of=now,
        )

    api_status = ApiStatus(
        youtube=youtube_status,
        kajabi=kajabi_status,
        calcom=calcom_status,
        openai=ConnectionStatus.CONNECTED if settings.openai_api_key else ConnectionStatus.MOCK,
    )

    logger.info(
        f"Built dashboard: {len(monthly_metrics)} months, {len(insights)} insights, "
        f"{len(alerts)} alerts"
    )

    return DashboardData(
        monthlyMetrics=monthly_metrics,
        videos=bundle.videos,
        calls=bundle.calls,
        sales=bundle.sales,
        kajabiData=bundle.kajabi,
        aiInsights=insights,
        emailCampaigns=bundle.email_campaigns,
        realTimeAlerts=alerts,
        performanceThresholds=bundle.thresholds,
        trafficSources=bundle.traffic_sources,
        apiStatus=api_status,
        lastUpdated=now or datetime.now(timezone.utc),
    )


def build_fallback_dashboard(seed: int = 42) -> DashboardData:
    """Mock-only payload with every integration reported as "error"."""
    bundle = generate_mock_events(seed)
    return DashboardData(
        monthlyMetrics=build_monthly_series(bundle),
        videos=bundle.videos,
        calls=bundle.calls,
        sales=bundle.sales,
        kajabiData=bundle.kajabi,
        aiInsights=[],
        emailCampaigns=bundle.email_campaigns,
        realTimeAlerts=[],
        performanceThresholds=bundle.thresholds,
        trafficSources=bundle.traffic_sources,
        apiStatus=error_api_status(),
        lastUpdated=datetime.now(timezone.utc),
    )


def filter_dashboard(data: DashboardData, time_range: TimeRange) -> DashboardData:
    """Restrict the monthly series to a trailing window; other sections are unchanged."""
    return data.model_copy(
        update={'monthlyMetrics': filter_time_range(data.monthlyMetrics, time_range)}
    )
