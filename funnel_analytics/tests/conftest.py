"""
Pytest Configuration and Shared Fixtures for Funnel Analytics Tests.

This module provides fixtures and helpers shared by every test module:
- Hand-built event records (calls, sales, videos) small enough to check by hand
- A MonthlyMetrics builder for trend, funnel and insight tests
- Email campaign and traffic source records
- Settings with every integration unconfigured (mock mode)
- A FastAPI TestClient wired to those settings

Async tests use pytest-asyncio; async test classes carry
`@pytest.mark.asyncio`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from funnel_analytics.core.config import Settings
from funnel_analytics.core.dependencies import get_alert_feed_dependency, get_settings_dependency
from funnel_analytics.main import app
from funnel_analytics.models import (
    CallBooking,
    CallStatus,
    CashCollected,
    ConversionRates,
    DetailedLeadSource,
    EmailCampaign,
    EmailCampaignStatus,
    EmailCampaignType,
    EmailConversions,
    EmailEngagement,
    EmailRecipients,
    LeadMedium,
    LeadPlatform,
    MonthlyMetrics,
    Sale,
    SaleType,
    TrafficSourceAttribution,
    YouTubeVideo,
)
from funnel_analytics.services.alerts import AlertFeed


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - integration: tests that exercise several services end to end
    """
    config.addinivalue_line(
        'markers',
        'integration: marks tests that run the full dashboard pipeline'
    )


# ============================================================
# HELPERS
# ============================================================

def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def build_metrics(
    month: str = '2024-11',
    youtube_views: int = 100000,
    website_visitors: int = 10000,
    calls_booked: int = 200,
    calls_accepted: int = 160,
    revenue: float = 50000.0,
    show_up_rate: Optional[float] = None,
    view_to_website: float = 10.0,
    website_to_call: float = 2.0,
    accepted_to_sale: float = 30.0,
    total_cash: Optional[float] = None,
) -> MonthlyMetrics:
    """
    Build a MonthlyMetrics record with explicit rates.

    Rates are passed in rather than derived so tests can place a month on
    either side of a threshold directly.
    """
    if show_up_rate is None:
        show_up_rate = calls_accepted / calls_booked * 100 if calls_booked else 0.0
    return MonthlyMetrics(
        month=month,
        youtubeViews=youtube_views,
        youtubeUniqueViews=int(youtube_views * 0.7),
        websiteVisitors=website_visitors,
        callsBooked=calls_booked,
        callsAccepted=calls_accepted,
        showUpRate=show_up_rate,
        newCashCollected=CashCollected(
            paidInFull=revenue * 0.6,
            installments=revenue * 0.4,
            total=revenue,
        ),
        totalCashCollected=total_cash if total_cash is not None else revenue,
        conversionRates=ConversionRates(
            viewToWebsite=view_to_website,
            websiteToCall=website_to_call,
            callToAccepted=show_up_rate,
            acceptedToSale=accepted_to_sale,
        ),
    )


def build_campaign(
    campaign_id: str = 'campaign_1',
    campaign_type: EmailCampaignType = EmailCampaignType.NURTURE,
    sent: int = 1000,
    delivered: int = 950,
    unique_opens: int = 400,
    unique_clicks: int = 100,
    calls_booked: int = 20,
    revenue: float = 6000.0,
) -> EmailCampaign:
    return EmailCampaign(
        id=campaign_id,
        name=f"Campaign {campaign_id}",
        subject='Subject line',
        type=campaign_type,
        status=EmailCampaignStatus.SENT,
        sentAt=utc(2024, 11, 5),
        recipients=EmailRecipients(total=sent, sent=sent, delivered=delivered),
        engagement=EmailEngagement(
            opens=unique_opens,
            uniqueOpens=unique_opens,
            clicks=unique_clicks,
            uniqueClicks=unique_clicks,
        ),
        conversions=EmailConversions(callsBooked=calls_booked, sales=4, revenue=revenue),
    )


def build_traffic_source(
    platform: LeadPlatform,
    medium: LeadMedium,
    visitors: int,
    revenue: float,
    cpa: Optional[float] = None,
    calls_booked: int = 10,
    sales_closed: int = 2,
) -> TrafficSourceAttribution:
    return TrafficSourceAttribution(
        source=DetailedLeadSource(platform=platform, medium=medium, campaign=f"{platform.value} {medium.value}"),
        visitors=visitors,
        callsBooked=calls_booked,
        salesClosed=sales_closed,
        revenue=revenue,
        costPerAcquisition=cpa,
    )


def create_csv_bytes(df: pd.DataFrame) -> bytes:
    """DataFrame as UTF-8 CSV bytes, without the index, for ingestion tests."""
    return df.to_csv(index=False).encode('utf-8')


# ============================================================
# EVENT FIXTURES
# ============================================================

@pytest.fixture
def sample_calls() -> List[CallBooking]:
    """
    Six call bookings across two months and two videos.

    2024-10: call_1 (video_1, accepted, US), call_2 (video_1, no-show, US)
    2024-11: call_3 (video_1, accepted, US), call_4 (video_2, accepted, UK),
             call_5 (video_2, cancelled, UK), call_6 (video_2, accepted, CA)
    """
    rows = [
        ('call_1', 'video_1', utc(2024, 10, 3), CallStatus.ACCEPTED, 'US'),
        ('call_2', 'video_1', utc(2024, 10, 9), CallStatus.NO_SHOW, 'US'),
        ('call_3', 'video_1', utc(2024, 11, 2), CallStatus.ACCEPTED, 'US'),
        ('call_4', 'video_2', utc(2024, 11, 4), CallStatus.ACCEPTED, 'UK'),
        ('call_5', 'video_2', utc(2024, 11, 8), CallStatus.CANCELLED, 'UK'),
        ('call_6', 'video_2', utc(2024, 11, 20), CallStatus.ACCEPTED, 'CA'),
    ]
    return [
        CallBooking(id=call_id, videoId=video_id, bookedAt=booked_at, status=status, country=country)
        for call_id, video_id, booked_at, status, country in rows
    ]


@pytest.fixture
def sample_sales() -> List[Sale]:
    """
    Three sales joined to accepted calls.

    2024-10: sale_1 on call_1, 3000 paid in full (US)
    2024-11: sale_2 on call_3, 1500 installment (US)
             sale_3 on call_4, 3000 paid in full (UK)
    """
    return [
        Sale(id='sale_1', callId='call_1', amount=3000.0, type=SaleType.PAID_IN_FULL,
             product='Business Accelerator Program', closedAt=utc(2024, 10, 5), country='US'),
        Sale(id='sale_2', callId='call_3', amount=1500.0, type=SaleType.INSTALLMENT,
             product='High-Ticket Coaching Mastermind', closedAt=utc(2024, 11, 6), country='US'),
        Sale(id='sale_3', callId='call_4', amount=3000.0, type=SaleType.PAID_IN_FULL,
             product='High-Ticket Coaching Mastermind', closedAt=utc(2024, 11, 7), country='UK'),
    ]


@pytest.fixture
def sample_videos() -> List[YouTubeVideo]:
    """video_1 published 2024-10 (20,000 views), video_2 published 2024-11 (10,000 views)."""
    return [
        YouTubeVideo(id='video_1', title='How I Built a Coaching Business',
                     publishedAt=utc(2024, 10, 1), views=20000, uniqueViews=14000,
                     callsBooked=3, callsAccepted=2, salesClosed=2, revenue=4500.0),
        YouTubeVideo(id='video_2', title='The Psychology of High-Ticket Sales',
                     publishedAt=utc(2024, 11, 1), views=10000, uniqueViews=7000,
                     callsBooked=3, callsAccepted=2, salesClosed=1, revenue=3000.0),
    ]


@pytest.fixture
def sample_campaigns() -> List[EmailCampaign]:
    return [
        build_campaign('campaign_1', EmailCampaignType.WELCOME, sent=1000, unique_opens=500,
                       unique_clicks=100, revenue=9000.0),
        build_campaign('campaign_2', EmailCampaignType.PROMOTIONAL, sent=2000, unique_opens=600,
                       unique_clicks=60, revenue=4000.0),
        build_campaign('campaign_3', EmailCampaignType.NURTURE, sent=0, delivered=0,
                       unique_opens=0, unique_clicks=0, calls_booked=0, revenue=0.0),
    ]


@pytest.fixture
def sample_traffic_sources() -> List[TrafficSourceAttribution]:
    return [
        build_traffic_source(LeadPlatform.YOUTUBE, LeadMedium.ORGANIC, visitors=5000, revenue=30000.0),
        build_traffic_source(LeadPlatform.YOUTUBE, LeadMedium.PAID, visitors=1000, revenue=12000.0, cpa=4.0),
        build_traffic_source(LeadPlatform.GOOGLE, LeadMedium.PAID, visitors=2000, revenue=8000.0, cpa=5.0),
    ]


@pytest.fixture
def metrics_series() -> List[MonthlyMetrics]:
    """Three months of steadily growing metrics."""
    return [
        build_metrics('2024-09', youtube_views=80000, calls_booked=150, calls_accepted=120, revenue=40000.0),
        build_metrics('2024-10', youtube_views=90000, calls_booked=180, calls_accepted=144, revenue=45000.0),
        build_metrics('2024-11', youtube_views=100000, calls_booked=200, calls_accepted=160, revenue=50000.0),
    ]


# ============================================================
# SETTINGS AND APP FIXTURES
# ============================================================

@pytest.fixture
def mock_settings() -> Settings:
    """Settings with every integration unconfigured, ignoring any local .env."""
    return Settings(
        _env_file=None,
        youtube_api_key=None,
        kajabi_api_key=None,
        calcom_api_key=None,
        openai_api_key=None,
        events_dir=None,
        mock_seed=42,
    )


@pytest.fixture
def alert_feed() -> AlertFeed:
    return AlertFeed(max_queue_size=10)


@pytest.fixture
def client(mock_settings: Settings, alert_feed: AlertFeed) -> Generator[TestClient, None, None]:
    """TestClient with settings and alert feed overridden."""
    app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    app.dependency_overrides[get_alert_feed_dependency] = lambda: alert_feed
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def metrics_payload(metrics: MonthlyMetrics) -> Dict[str, Any]:
    """JSON-ready dict of a MonthlyMetrics record."""
    return metrics.model_dump(mode='json')
