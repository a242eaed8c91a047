"""
Mock Event Generator

Produces a seeded, internally consistent set of raw events for local
development and for integrations without credentials:

- 6 months of call bookings (2024-06 .. 2024-11) spread over 10 videos
- Sales closed only on accepted calls, in the call's month and country
- Video lifetime counters derived from the generated calls and sales
- Email campaigns, traffic sources, performance thresholds and Kajabi data

Because sales reference real accepted calls, every downstream join (video
attribution, country rollups) lines up. The same seed always yields the same
events.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import numpy as np

from funnel_analytics.models import (
    CallBooking,
    CallStatus,
    DetailedLeadSource,
    EmailCampaign,
    EmailCampaignStatus,
    EmailCampaignType,
    EmailConversions,
    EmailEngagement,
    EmailRecipients,
    KajabiData,
    KajabiEmailStats,
    KajabiProduct,
    LeadMedium,
    LeadPlatform,
    PerformanceThreshold,
    Sale,
    SaleType,
    ThresholdMetric,
    ThresholdOperator,
    ThresholdTimeframe,
    TrafficLifetime,
    TrafficSourceAttribution,
    YouTubeVideo,
)
from funnel_analytics.services.aggregation import month_of, safe_rate

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MOCK_MONTHS: List[str] = ['2024-06', '2024-07', '2024-08', '2024-09', '2024-10', '2024-11']

VIDEO_TITLES: List[str] = [
    "How I Built a 7-Figure Coaching Business in 12 Months",
    "The Secret Sales Framework That Changed Everything",
    "5 Mistakes That Kill Your Coaching Business",
    "Why Most Coaches Fail (And How to Avoid It)",
    "From Broke to 6-Figures: My Complete Journey",
    "The Psychology of High-Ticket Sales",
    "Building Systems That Scale Your Coaching",
    "Client Transformation Stories That Sell",
    "Overcoming Imposter Syndrome as a Coach",
    "The Future of Online Coaching in 2024",
]

COUNTRIES: List[str] = ['US', 'CA', 'UK', 'AU', 'DE', 'FR', 'NL', 'SG']

PRODUCTS: List[str] = [
    'High-Ticket Coaching Mastermind',
    'Business Accelerator Program',
    'Elite Mentorship Package',
    'VIP Done-For-You Service',
]

CALL_COUNT: int = 500
SALE_COUNT: int = 150

# accepted x3, no-show, cancelled
CALL_STATUS_WEIGHTS: Dict[CallStatus, float] = {
    CallStatus.ACCEPTED: 0.6,
    CallStatus.NO_SHOW: 0.2,
    CallStatus.CANCELLED: 0.2,
}

HIGH_TICKET_PRICE: float = 3000.0
DISCOUNT_PRICE: float = 1500.0

# Monthly growth of bookings and traffic
MONTHLY_GROWTH: float = 0.15
BASE_WEBSITE_VISITORS: int = 8000

PLATFORMS: List[LeadPlatform] = [
    LeadPlatform.YOUTUBE,
    LeadPlatform.GOOGLE,
    LeadPlatform.FACEBOOK,
    LeadPlatform.LINKEDIN,
    LeadPlatform.DIRECT,
]
MEDIUMS: List[LeadMedium] = [
    LeadMedium.ORGANIC,
    LeadMedium.PAID,
    LeadMedium.SOCIAL,
    LeadMedium.EMAIL,
]

EMAIL_CAMPAIGNS: List[Dict] = [
    {
        'name': 'Welcome Series - New Subscribers',
        'type': EmailCampaignType.WELCOME,
        'subject': 'Welcome! Your coaching journey starts here...',
        'linkedVideoId': 'video_1',
    },
    {
        'name': 'Webinar Follow-up Sequence',
        'type': EmailCampaignType.FOLLOW_UP,
        'subject': "Did you catch our masterclass? Here's what you missed",
        'linkedVideoId': 'video_2',
    },
    {
        'name': 'Black Friday 2024 Promotion',
        'type': EmailCampaignType.PROMOTIONAL,
        'subject': 'LAST CHANCE: 50% off coaching programs (ends tonight)',
    },
    {
        'name': 'Monthly Newsletter - Success Stories',
        'type': EmailCampaignType.NURTURE,
        'subject': 'Amazing transformations from our coaching community',
    },
    {
        'name': 'Cart Abandonment Recovery',
        'type': EmailCampaignType.ABANDONED_CART,
        'subject': 'Complete your enrollment - your spot is waiting',
    },
    {
        'name': 'Free Training Announcement',
        'type': EmailCampaignType.WEBINAR,
        'subject': 'LIVE: How to scale your business to 7-figures',
        'linkedVideoId': 'video_3',
    },
]

TRAFFIC_SOURCES: List[Dict] = [
    {'platform': LeadPlatform.YOUTUBE, 'medium': LeadMedium.ORGANIC, 'campaign': 'Organic YouTube Growth'},
    {'platform': LeadPlatform.YOUTUBE, 'medium': LeadMedium.PAID, 'campaign': 'YouTube Ads Campaign', 'cpa': 25.50},
    {'platform': LeadPlatform.GOOGLE, 'medium': LeadMedium.ORGANIC, 'campaign': 'SEO Content Marketing'},
    {'platform': LeadPlatform.GOOGLE, 'medium': LeadMedium.PAID, 'campaign': 'Google Ads - Coaching Keywords', 'cpa': 45.20},
    {'platform': LeadPlatform.FACEBOOK, 'medium': LeadMedium.PAID, 'campaign': 'Facebook Lead Gen', 'cpa': 38.75},
    {'platform': LeadPlatform.LINKEDIN, 'medium': LeadMedium.ORGANIC, 'campaign': 'LinkedIn Thought Leadership'},
    {'platform': LeadPlatform.DIRECT, 'medium': LeadMedium.DIRECT, 'campaign': 'Direct Traffic'},
    {'platform': LeadPlatform.REFERRAL, 'medium': LeadMedium.AFFILIATE, 'campaign': 'Affiliate Partners', 'cpa': 85.00},
]


# =============================================================================
# Event Bundle
# =============================================================================


@dataclass
class EventBundle:
    """Raw events plus the configuration records the dashboard ships with."""
    calls: List[CallBooking] = field(default_factory=list)
    sales: List[Sale] = field(default_factory=list)
    videos: List[YouTubeVideo] = field(default_factory=list)
    email_campaigns: List[EmailCampaign] = field(default_factory=list)
    traffic_sources: List[TrafficSourceAttribution] = field(default_factory=list)
    thresholds: List[PerformanceThreshold] = field(default_factory=list)
    website_visitors: Dict[str, int] = field(default_factory=dict)
    kajabi: KajabiData = field(default_factory=KajabiData)


# =============================================================================
# Generators
# =============================================================================


def _month_start(month: str) -> datetime:
    year, month_number = (int(part) for part in month.split('-'))
    return datetime(year, month_number, 1, tzinfo=timezone.utc)


def _timestamp_in_month(rng: np.random.Generator, month: str, min_day: int = 1) -> datetime:
    day = int(rng.integers(min_day, 29))
    hour = int(rng.integers(8, 20))
    return _month_start(month) + timedelta(days=day - 1, hours=hour)


def _month_weights() -> np.ndarray:
    growth = 1 + np.arange(len(MOCK_MONTHS)) * MONTHLY_GROWTH
    return growth / np.sum(growth)


def generate_calls(rng: np.random.Generator, count: int = CALL_COUNT) -> List[CallBooking]:
    statuses = list(CALL_STATUS_WEIGHTS)
    status_weights = np.array(list(CALL_STATUS_WEIGHTS.values()))
    month_weights = _month_weights()

    calls: List[CallBooking] = []
    for index in range(count):
        month = MOCK_MONTHS[int(rng.choice(len(MOCK_MONTHS), p=month_weights))]
        booked_at = _timestamp_in_month(rng, month)
        calls.append(CallBooking(
            id=f"call_{index + 1}",
            videoId=f"video_{int(rng.integers(1, len(VIDEO_TITLES) + 1))}",
            bookedAt=booked_at,
            status=statuses[int(rng.choice(len(statuses), p=status_weights))],
            country=COUNTRIES[int(rng.integers(0, len(COUNTRIES)))],
            leadSource=DetailedLeadSource(
                platform=PLATFORMS[int(rng.integers(0, len(PLATFORMS)))],
                medium=MEDIUMS[int(rng.integers(0, len(MEDIUMS)))],
                campaign=f"Campaign {index % 10 + 1}",
                timestamp=booked_at,
                landingPage='/coaching-application',
                sessionId=f"session_{index + 1}",
            ),
        ))
    return calls


def generate_sales(
    rng: np.random.Generator,
    calls: List[CallBooking],
    count: int = SALE_COUNT,
) -> List[Sale]:
    """
    Close sales on a random subset of accepted calls.

    Each sale closes in its call's month, on or after the booking day, and
    inherits the call's country. At most one sale per call.
    """
    accepted = [c for c in calls if c.status == CallStatus.ACCEPTED]
    count = min(count, len(accepted))
    chosen = rng.choice(len(accepted), size=count, replace=False)

    sales: List[Sale] = []
    for index, call_index in enumerate(sorted(int(i) for i in chosen)):
        call = accepted[call_index]
        closed_at = _timestamp_in_month(rng, month_of(call.bookedAt), min_day=call.bookedAt.day)
        closed_at = max(closed_at, call.bookedAt)
        sales.append(Sale(
            id=f"sale_{index + 1}",
            callId=call.id,
            amount=HIGH_TICKET_PRICE if rng.random() > 0.6 else DISCOUNT_PRICE,
            type=SaleType.PAID_IN_FULL if rng.random() > 0.3 else SaleType.INSTALLMENT,
            product=PRODUCTS[int(rng.integers(0, len(PRODUCTS)))],
            closedAt=closed_at,
            country=call.country,
        ))
    return sales


def generate_videos(
    rng: np.random.Generator,
    calls: List[CallBooking],
    sales: List[Sale],
) -> List[YouTubeVideo]:
    """Videos whose lifetime counters match the generated calls and sales."""
    sales_by_call = {s.callId: s for s in sales}

    videos: List[YouTubeVideo] = []
    for index, title in enumerate(VIDEO_TITLES):
        video_id = f"video_{index + 1}"
        video_calls = [c for c in calls if c.videoId == video_id]
        accepted = [c for c in video_calls if c.status == CallStatus.ACCEPTED]
        video_sales = [sales_by_call[c.id] for c in video_calls if c.id in sales_by_call]
        revenue = float(np.sum([s.amount for s in video_sales])) if video_sales else 0.0

        views = int(rng.integers(15000, 50000))
        published_month = MOCK_MONTHS[index % len(MOCK_MONTHS)]

        videos.append(YouTubeVideo(
            id=video_id,
            title=title,
            publishedAt=_timestamp_in_month(rng, published_month),
            views=views,
            uniqueViews=int(views * 0.7),
            leadsGenerated=int(views * 0.003),
            callsBooked=len(video_calls),
            callsAccepted=len(accepted),
            salesClosed=len(video_sales),
            revenue=revenue,
            conversionRate=safe_rate(len(video_sales), views),
            revenuePerView=safe_rate(revenue, views, scale=1.0),
        ))

    return sorted(videos, key=lambda v: v.revenue, reverse=True)


def generate_website_visitors() -> Dict[str, int]:
    return {
        month: int(BASE_WEBSITE_VISITORS * (1 + index * MONTHLY_GROWTH))
        for index, month in enumerate(MOCK_MONTHS)
    }


def generate_email_campaigns(rng: np.random.Generator) -> List[EmailCampaign]:
    campaigns: List[EmailCampaign] = []
    for index, template in enumerate(EMAIL_CAMPAIGNS):
        sent_status = rng.random() > 0.3
        total = int(2000 + rng.random() * 8000)
        sent = min(total, int(1800 + rng.random() * 7500))
        delivered = min(sent, int(1700 + rng.random() * 7000))
        unique_opens = min(delivered, int(600 + rng.random() * 3000))
        unique_clicks = min(unique_opens, int(80 + rng.random() * 400))

        campaigns.append(EmailCampaign(
            id=f"campaign_{index + 1}",
            name=template['name'],
            subject=template['subject'],
            type=template['type'],
            status=EmailCampaignStatus.SENT if sent_status else EmailCampaignStatus.SCHEDULED,
            sentAt=datetime(2024, 11, int(rng.integers(1, 31)), tzinfo=timezone.utc) if sent_status else None,
            scheduledFor=None if sent_status else datetime(2024, 12, int(rng.integers(1, 31)), tzinfo=timezone.utc),
            recipients=EmailRecipients(
                total=total,
                sent=sent,
                delivered=delivered,
                bounced=int(20 + rng.random() * 80),
                failed=int(5 + rng.random() * 20),
            ),
            engagement=EmailEngagement(
                opens=unique_opens + int(rng.random() * 1000),
                uniqueOpens=unique_opens,
                clicks=unique_clicks + int(rng.random() * 200),
                uniqueClicks=unique_clicks,
                unsubscribes=int(5 + rng.random() * 25),
                spam=int(2 + rng.random() * 10),
            ),
            conversions=EmailConversions(
                callsBooked=int(15 + rng.random() * 45),
                sales=int(3 + rng.random() * 12),
                revenue=float(int(9000 + rng.random() * 36000)),
            ),
            previewText='Preview text for better open rates...',
            tags=['coaching', 'business', template['type'].value],
            linkedVideoId=template.get('linkedVideoId'),
            followUpSequence=int(rng.integers(1, 6)),
        ))
    return campaigns


def generate_traffic_sources(rng: np.random.Generator) -> List[TrafficSourceAttribution]:
    first_seen = _month_start(MOCK_MONTHS[0])
    last_seen = _month_start(MOCK_MONTHS[-1]) + timedelta(days=29)

    sources: List[TrafficSourceAttribution] = []
    for index, template in enumerate(TRAFFIC_SOURCES):
        visitors = int(500 + rng.random() * 5000)
        calls_booked = int(visitors * (0.008 + rng.random() * 0.012))
        sales_closed = int(calls_booked * (0.15 + rng.random() * 0.25))
        revenue = round(sales_closed * (2000 + rng.random() * 3000), 2)

        sources.append(TrafficSourceAttribution(
            source=DetailedLeadSource(
                platform=template['platform'],
                medium=template['medium'],
                campaign=template['campaign'],
                source=template['platform'].value,
                landingPage='/coaching-application',
                sessionId=f"session_{index + 1}",
            ),
            visitors=visitors,
            callsBooked=calls_booked,
            salesClosed=sales_closed,
            conversionRate=safe_rate(sales_closed, visitors),
            revenue=revenue,
            costPerAcquisition=template.get('cpa'),
            lifetime=TrafficLifetime(
                firstSeen=first_seen,
                lastSeen=last_seen,
                totalVisits=visitors + int(rng.random() * 2000),
                totalRevenue=revenue + int(rng.random() * 50000),
            ),
        ))
    return sources


def default_thresholds() -> List[PerformanceThreshold]:
    return [
        PerformanceThreshold(
            id='threshold_1',
            metric=ThresholdMetric.CONVERSION_RATE,
            threshold=2.0,
            operator=ThresholdOperator.GREATER_THAN,
            timeframe=ThresholdTimeframe.DAILY,
        ),
        PerformanceThreshold(
            id='threshold_2',
            metric=ThresholdMetric.CALL_SHOW_RATE,
            threshold=75.0,
            operator=ThresholdOperator.GREATER_THAN,
            timeframe=ThresholdTimeframe.HOURLY,
        ),
        PerformanceThreshold(
            id='threshold_3',
            metric=ThresholdMetric.EMAIL_OPEN_RATE,
            threshold=45.0,
            operator=ThresholdOperator.GREATER_THAN,
            alertOnBreach=False,
            timeframe=ThresholdTimeframe.DAILY,
        ),
        PerformanceThreshold(
            id='threshold_4',
            metric=ThresholdMetric.REVENUE_PER_VIEW,
            threshold=0.15,
            operator=ThresholdOperator.GREATER_THAN,
            isActive=False,
            timeframe=ThresholdTimeframe.WEEKLY,
        ),
        PerformanceThreshold(
            id='threshold_5',
            metric=ThresholdMetric.VIDEO_PERFORMANCE,
            threshold=10000.0,
            operator=ThresholdOperator.GREATER_THAN,
            alertOnBreach=False,
            timeframe=ThresholdTimeframe.DAILY,
        ),
    ]


def mock_kajabi_data(email_campaigns: List[EmailCampaign]) -> KajabiData:
    return KajabiData(
        products=[
            KajabiProduct(id='prod_1', name='High-Ticket Coaching Mastermind', price=3000, sales=45, revenue=135000),
            KajabiProduct(id='prod_2', name='Business Accelerator Program', price=1500, sales=60, revenue=90000),
            KajabiProduct(id='prod_3', name='Elite Mentorship Package', price=5000, sales=20, revenue=100000),
            KajabiProduct(id='prod_4', name='VIP Done-For-You Service', price=10000, sales=8, revenue=80000),
        ],
        contacts=15420,
        emailStats=KajabiEmailStats(opens=8500, clicks=1200, openRate=55.2, clickRate=14.1),
        emailCampaigns=email_campaigns,
    )


def generate_mock_events(seed: int = 42) -> EventBundle:
    """
    Generate a full, consistent mock event bundle.

    Args:
        seed: Seed for numpy's default_rng; equal seeds give equal bundles

    Returns:
        EventBundle with calls, sales, videos, campaigns, traffic sources,
        thresholds, per-month website visitors and Kajabi data
    """
    rng = np.random.default_rng(seed)

    calls = generate_calls(rng)
    sales = generate_sales(rng, calls)
    videos = generate_videos(rng, calls, sales)
    campaigns = generate_email_campaigns(rng)
    traffic_sources = generate_traffic_sources(rng)

    logger.debug(
        f"Generated mock events (seed={seed}): {len(calls)} calls, "
        f"{len(sales)} sales, {len(videos)} videos"
    )

    return EventBundle(
        calls=calls,
        sales=sales,
        videos=videos,
        email_campaigns=campaigns,
        traffic_sources=traffic_sources,
        thresholds=default_thresholds(),
        website_visitors=generate_website_visitors(),
        kajabi=mock_kajabi_data(campaigns),
    )
