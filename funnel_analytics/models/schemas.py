"""
Pydantic request/response models for the Funnel Analytics backend.

This module provides type-safe validation and serialization for every data
contract the service deals with:

- Raw event records supplied by mock generators, CSV feeds or API clients
  (CallBooking, Sale, YouTubeVideo, EmailCampaign, TrafficSourceAttribution)
- Aggregated and derived analytics (MonthlyMetrics, TrendRecord,
  VideoPerformance, CountryMetrics, DropoffPoint, FunnelStage, AIInsight)
- Alerting (PerformanceThreshold, RealTimeAlert)
- The dashboard payload and API request/response bodies
- Feed ingestion reporting (ValidationError, IngestionResult)

Field names are camelCase so the JSON produced here is the JSON the dashboard
frontend reads. Event and analytics models are frozen: every derived entity is
a fresh computation over its inputs and is never mutated in place.

All models use Pydantic v2 syntax.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from funnel_analytics.models.enums import (
    AlertSeverity,
    AlertType,
    CallStatus,
    CampaignSortKey,
    ConnectionStatus,
    CountrySortKey,
    DropoffSeverity,
    EmailCampaignStatus,
    EmailCampaignType,
    InsightImpact,
    InsightType,
    LeadMedium,
    LeadPlatform,
    SaleType,
    ThresholdMetric,
    ThresholdOperator,
    ThresholdTimeframe,
    TimeRange,
    TrafficSortKey,
    TrendSeverity,
    TrendStatus,
    VideoSortKey,
)


FROZEN = ConfigDict(frozen=True)


# =============================================================================
# Event Records
# =============================================================================


class DetailedLeadSource(BaseModel):
    """
    Marketing attribution for a single lead.

    Only platform and medium are required; the remaining UTM-style fields are
    filled in when the tracking pixel captured them.
    """
    model_config = FROZEN

    platform: LeadPlatform = Field(..., description="Originating platform")
    medium: LeadMedium = Field(..., description="Marketing medium")
    campaign: Optional[str] = Field(default=None, description="Campaign name")
    source: Optional[str] = Field(default=None, description="utm_source")
    content: Optional[str] = Field(default=None, description="utm_content")
    term: Optional[str] = Field(default=None, description="utm_term")
    timestamp: Optional[datetime] = Field(default=None, description="First touch time")
    landingPage: Optional[str] = Field(default=None, description="Landing page path")
    sessionId: Optional[str] = Field(default=None, description="Analytics session ID")


class CallBooking(BaseModel):
    """
    A sales call booked through the scheduling tool.

    Immutable once created; the lifecycle ends at a terminal status.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "call_1",
                "videoId": "video_3",
                "bookedAt": "2024-11-04T15:00:00Z",
                "status": "accepted",
                "country": "US",
                "leadSource": {"platform": "youtube", "medium": "organic"},
            }
        },
    )

    id: str = Field(..., min_length=1, description="Booking identifier")
    videoId: str = Field(..., description="Video the lead came from")
    bookedAt: datetime = Field(..., description="Time the call was booked")
    status: CallStatus = Field(..., description="Booking status")
    country: str = Field(..., description="ISO-like country code (US, UK, ...)")
    leadSource: Optional[DetailedLeadSource] = Field(
        default=None,
        description="Attribution of the lead that booked the call",
    )


class Sale(BaseModel):
    """
    A closed sale. Sales carry no direct video reference: they are joined to
    videos through `callId`.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "sale_1",
                "callId": "call_1",
                "amount": 3000.0,
                "type": "paid-in-full",
                "product": "High-Ticket Coaching Mastermind",
                "closedAt": "2024-11-06T18:30:00Z",
                "country": "US",
            }
        },
    )

    id: str = Field(..., min_length=1, description="Sale identifier")
    callId: str = Field(..., description="Call the sale was closed on")
    amount: float = Field(..., ge=0.0, description="Sale amount in dollars")
    type: SaleType = Field(..., description="Paid in full or installment plan")
    product: str = Field(..., description="Product name")
    closedAt: datetime = Field(..., description="Time the sale was closed")
    country: str = Field(..., description="Buyer country code")


class YouTubeVideo(BaseModel):
    """
    Lifetime performance of a published video.

    conversionRate = salesClosed / views * 100; revenuePerView = revenue / views.
    Well-formed records satisfy callsAccepted <= callsBooked and
    salesClosed <= callsAccepted.
    """
    model_config = FROZEN

    id: str = Field(..., min_length=1, description="Video identifier")
    title: str = Field(..., description="Video title")
    publishedAt: datetime = Field(..., description="Publish time")
    views: int = Field(..., ge=0, description="Lifetime views")
    uniqueViews: int = Field(default=0, ge=0, description="Lifetime unique views")
    leadsGenerated: int = Field(default=0, ge=0)
    callsBooked: int = Field(default=0, ge=0)
    callsAccepted: int = Field(default=0, ge=0)
    salesClosed: int = Field(default=0, ge=0)
    revenue: float = Field(default=0.0, ge=0.0)
    conversionRate: float = Field(default=0.0, ge=0.0, description="Sales per 100 views")
    revenuePerView: float = Field(default=0.0, ge=0.0, description="Revenue per view ($)")


class EmailRecipients(BaseModel):
    model_config = FROZEN

    total: int = Field(default=0, ge=0)
    sent: int = Field(..., ge=0)
    delivered: int = Field(..., ge=0)
    bounced: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)


class EmailEngagement(BaseModel):
    model_config = FROZEN

    opens: int = Field(default=0, ge=0)
    uniqueOpens: int = Field(..., ge=0)
    clicks: int = Field(default=0, ge=0)
    uniqueClicks: int = Field(..., ge=0)
    unsubscribes: int = Field(default=0, ge=0)
    spam: int = Field(default=0, ge=0)


class EmailConversions(BaseModel):
    model_config = FROZEN

    callsBooked: int = Field(..., ge=0)
    sales: int = Field(default=0, ge=0)
    revenue: float = Field(..., ge=0.0)


class EmailCampaign(BaseModel):
    """
    An email campaign with its delivery, engagement and conversion counters.

    Open rate, click rate and ROI are derived in services.campaigns and never
    stored on the record.
    """
    model_config = FROZEN

    id: str = Field(..., min_length=1)
    name: str
    subject: str
    type: EmailCampaignType
    status: EmailCampaignStatus
    sentAt: Optional[datetime] = None
    scheduledFor: Optional[datetime] = None
    recipients: EmailRecipients
    engagement: EmailEngagement
    conversions: EmailConversions
    previewText: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    linkedVideoId: Optional[str] = None
    followUpSequence: Optional[int] = None


class TrafficLifetime(BaseModel):
    model_config = FROZEN

    firstSeen: datetime
    lastSeen: datetime
    totalVisits: int = Field(..., ge=0)
    totalRevenue: float = Field(..., ge=0.0)


class TrafficSourceAttribution(BaseModel):
    """Visitor-to-revenue rollup for one traffic source."""
    model_config = FROZEN

    source: DetailedLeadSource
    visitors: int = Field(..., ge=0)
    callsBooked: int = Field(..., ge=0)
    salesClosed: int = Field(..., ge=0)
    conversionRate: float = Field(default=0.0, ge=0.0, description="Sales per 100 visitors")
    revenue: float = Field(..., ge=0.0)
    costPerAcquisition: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Paid media cost per visitor; absent for organic sources",
    )
    lifetime: Optional[TrafficLifetime] = None


# =============================================================================
# Monthly Metrics
# =============================================================================


class CashCollected(BaseModel):
    """New cash split by payment type. total == paidInFull + installments."""
    model_config = FROZEN

    paidInFull: float = Field(..., ge=0.0)
    installments: float = Field(..., ge=0.0)
    total: float = Field(..., ge=0.0)


class ConversionRates(BaseModel):
    """Stage-to-stage funnel conversion percentages."""
    model_config = FROZEN

    viewToWebsite: float = Field(..., ge=0.0)
    websiteToCall: float = Field(..., ge=0.0)
    callToAccepted: float = Field(..., ge=0.0)
    acceptedToSale: float = Field(..., ge=0.0)


class MonthlyMetrics(BaseModel):
    """
    Funnel metrics for one calendar month.

    Produced by services.aggregation.aggregate from raw event collections.
    showUpRate = callsAccepted / callsBooked * 100, 0 when nothing was booked.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "month": "2024-11",
                "youtubeViews": 125000,
                "youtubeUniqueViews": 87500,
                "websiteVisitors": 20000,
                "callsBooked": 300,
                "callsAccepted": 240,
                "showUpRate": 80.0,
                "newCashCollected": {
                    "paidInFull": 112500.0,
                    "installments": 62500.0,
                    "total": 175000.0,
                },
                "totalCashCollected": 212500.0,
                "conversionRates": {
                    "viewToWebsite": 16.0,
                    "websiteToCall": 1.5,
                    "callToAccepted": 80.0,
                    "acceptedToSale": 29.2,
                },
            }
        },
    )

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="Calendar month YYYY-MM")
    youtubeViews: int = Field(..., ge=0)
    youtubeUniqueViews: int = Field(..., ge=0)
    websiteVisitors: int = Field(..., ge=0)
    callsBooked: int = Field(..., ge=0)
    callsAccepted: int = Field(..., ge=0)
    showUpRate: float = Field(..., ge=0.0)
    newCashCollected: CashCollected
    totalCashCollected: float = Field(..., ge=0.0)
    conversionRates: ConversionRates


# =============================================================================
# Derived Analytics
# =============================================================================


class TrendRecord(BaseModel):
    """Month-over-month comparison of a single metric."""
    model_config = FROZEN

    metric: str = Field(..., description="Display name of the metric")
    current: float
    previous: Optional[float] = Field(
        default=None,
        description="Previous month value; None for the first month of a series",
    )
    change: float
    changePercent: float
    status: TrendStatus
    severity: TrendSeverity


class VideoPerformance(YouTubeVideo):
    """
    A video's attributed performance for one month.

    revenuePerView is recomputed from the month's attributed revenue and
    monthly views, shadowing the lifetime value on YouTubeVideo.
    """
    monthlyViews: int = Field(..., ge=0)
    callsFromThisVideo: int = Field(..., ge=0)
    acceptedCallsFromThisVideo: int = Field(..., ge=0)
    salesFromThisVideo: int = Field(..., ge=0)
    revenueFromThisVideo: float = Field(..., ge=0.0)
    viewToCallRate: float = Field(..., ge=0.0)
    callToSaleRate: float = Field(..., ge=0.0)
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")


class VideoMonthTotals(BaseModel):
    model_config = FROZEN

    views: int = 0
    calls: int = 0
    revenue: float = 0.0
    sales: int = 0


class CountryMetrics(BaseModel):
    """Revenue and conversion rollup for one country."""
    model_config = FROZEN

    country: str = Field(..., description="Country display name")
    countryCode: str
    totalSales: int = Field(..., ge=0)
    totalRevenue: float = Field(..., ge=0.0)
    totalCalls: int = Field(..., ge=0)
    conversionRate: float = Field(..., ge=0.0)
    avgDealSize: float = Field(..., ge=0.0)
    marketShare: float = Field(..., ge=0.0)
    growth: float = Field(
        ...,
        description="Revenue change vs. the previous period (%), 0 without history",
    )


class DropoffPoint(BaseModel):
    """A funnel transition converting below its flag threshold."""
    model_config = FROZEN

    stage: str
    fromStage: str
    conversionRate: float
    expectedRate: float
    variance: float = Field(..., description="conversionRate - expectedRate")
    severity: DropoffSeverity


class FunnelStage(BaseModel):
    model_config = FROZEN

    name: str
    value: float = Field(..., ge=0.0)
    conversion: Optional[float] = Field(
        default=None,
        description="Conversion from the previous stage (%); None for the first stage",
    )


class EmailCampaignMetrics(BaseModel):
    """Derived engagement and ROI figures for one email campaign."""
    model_config = FROZEN

    campaignId: str
    name: str
    type: EmailCampaignType
    status: EmailCampaignStatus
    sent: int
    openRate: float
    clickRate: float
    deliveryRate: float
    callsBooked: int
    revenue: float
    cost: float
    roi: float


class EmailCampaignTotals(BaseModel):
    model_config = FROZEN

    sent: int = 0
    opens: int = 0
    clicks: int = 0
    callsBooked: int = 0
    revenue: float = 0.0
    openRate: float = 0.0
    clickRate: float = 0.0


class TrafficSourceMetrics(BaseModel):
    """Derived cost, ROI and revenue share for one traffic source."""
    model_config = FROZEN

    platform: LeadPlatform
    medium: LeadMedium
    campaign: Optional[str] = None
    visitors: int
    callsBooked: int
    salesClosed: int
    revenue: float
    conversionRate: float
    cost: float
    roi: float
    revenueShare: float


class TrafficTotals(BaseModel):
    model_config = FROZEN

    visitors: int = 0
    callsBooked: int = 0
    salesClosed: int = 0
    revenue: float = 0.0


class AIInsight(BaseModel):
    """A human-readable insight. Produced, never persisted."""
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "type": "trend",
                "title": "Strong Revenue Growth",
                "description": "Revenue increased by 30.0% this month. Excellent momentum!",
                "impact": "high",
                "action": "Scale successful strategies and maintain current content production pace",
            }
        },
    )

    type: InsightType
    title: str = Field(..., min_length=1)
    description: str
    impact: InsightImpact
    action: Optional[str] = None


# =============================================================================
# Alerting
# =============================================================================


class PerformanceThreshold(BaseModel):
    """A configured expectation on a dashboard metric."""
    model_config = FROZEN

    id: str
    metric: ThresholdMetric
    threshold: float
    operator: ThresholdOperator
    isActive: bool = True
    alertOnBreach: bool = True
    timeframe: ThresholdTimeframe = ThresholdTimeframe.DAILY


class AlertThresholdDetail(BaseModel):
    model_config = FROZEN

    metric: str
    expected: float
    actual: float
    variance: float = Field(..., description="(actual - expected) / expected * 100")


class RealTimeAlert(BaseModel):
    model_config = FROZEN

    id: str
    type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    isRead: bool = False
    actionRequired: bool = False
    suggestedActions: List[str] = Field(default_factory=list)
    relatedVideoId: Optional[str] = None
    relatedCampaignId: Optional[str] = None
    threshold: Optional[AlertThresholdDetail] = None


# =============================================================================
# Dashboard Payload
# =============================================================================


class ApiStatus(BaseModel):
    """Connection status of each external integration."""
    youtube: ConnectionStatus = ConnectionStatus.MOCK
    kajabi: ConnectionStatus = ConnectionStatus.MOCK
    calcom: ConnectionStatus = ConnectionStatus.MOCK
    openai: ConnectionStatus = ConnectionStatus.MOCK


class KajabiProduct(BaseModel):
    id: str
    name: str
    price: float = Field(..., ge=0.0)
    sales: int = Field(..., ge=0)
    revenue: float = Field(..., ge=0.0)


class KajabiEmailStats(BaseModel):
    opens: int = 0
    clicks: int = 0
    openRate: float = 0.0
    clickRate: float = 0.0


class KajabiData(BaseModel):
    products: List[KajabiProduct] = Field(default_factory=list)
    contacts: int = 0
    emailStats: KajabiEmailStats = Field(default_factory=KajabiEmailStats)
    emailCampaigns: List[EmailCampaign] = Field(default_factory=list)


class DashboardData(BaseModel):
    """Full aggregated dataset returned by GET /api/dashboard."""
    monthlyMetrics: List[MonthlyMetrics] = Field(default_factory=list)
    videos: List[YouTubeVideo] = Field(default_factory=list)
    calls: List[CallBooking] = Field(default_factory=list)
    sales: List[Sale] = Field(default_factory=list)
    kajabiData: KajabiData = Field(default_factory=KajabiData)
    aiInsights: List[AIInsight] = Field(default_factory=list)
    emailCampaigns: List[EmailCampaign] = Field(default_factory=list)
    realTimeAlerts: List[RealTimeAlert] = Field(default_factory=list)
    performanceThresholds: List[PerformanceThreshold] = Field(default_factory=list)
    trafficSources: List[TrafficSourceAttribution] = Field(default_factory=list)
    apiStatus: Optional[ApiStatus] = None
    lastUpdated: Optional[datetime] = None


# =============================================================================
# API Request / Response Bodies
# =============================================================================


class DashboardFilterRequest(BaseModel):
    timeRange: TimeRange = Field(default=TimeRange.ALL, description="Monthly series slice")


class AIInsightsRequest(BaseModel):
    """
    Body of POST /api/ai-insights.

    Older dashboard builds send the series under `metrics`; both keys are accepted.
    """
    monthlyMetrics: List[MonthlyMetrics] = Field(
        ...,
        validation_alias=AliasChoices("monthlyMetrics", "metrics"),
    )


class AIInsightsResponse(BaseModel):
    insights: List[AIInsight]
    generatedAt: datetime
    dataPoints: int = Field(..., ge=0, description="Number of months analysed")


class TrendsRequest(BaseModel):
    current: MonthlyMetrics
    previous: Optional[MonthlyMetrics] = None


class RecordHighsRequest(BaseModel):
    monthlyMetrics: List[MonthlyMetrics]


class RecordHighsResponse(BaseModel):
    highs: Dict[str, float] = Field(..., description="Series maximum per tracked metric")
    flags: List[Dict[str, Any]] = Field(..., description="Per-month record-high flags")


class ProductBreakdownRequest(BaseModel):
    sales: List[Sale]
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")


class VideoAttributionRequest(BaseModel):
    videos: List[YouTubeVideo]
    calls: List[CallBooking]
    sales: List[Sale]
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    sortBy: VideoSortKey = VideoSortKey.REVENUE


class VideoAttributionResponse(BaseModel):
    month: str
    videos: List[VideoPerformance]
    totals: VideoMonthTotals
    availableMonths: List[str] = Field(default_factory=list, description="Recent booking months, newest first")


class CountryAttributionRequest(BaseModel):
    sales: List[Sale]
    calls: List[CallBooking]
    previousSales: Optional[List[Sale]] = None
    sortBy: CountrySortKey = CountrySortKey.REVENUE


class EmailCampaignsRequest(BaseModel):
    campaigns: List[EmailCampaign]
    campaignType: Optional[EmailCampaignType] = None
    sortBy: CampaignSortKey = CampaignSortKey.REVENUE


class EmailCampaignsResponse(BaseModel):
    campaigns: List[EmailCampaignMetrics]
    totals: EmailCampaignTotals


class TrafficSourcesRequest(BaseModel):
    sources: List[TrafficSourceAttribution]
    platform: Optional[LeadPlatform] = None
    medium: Optional[LeadMedium] = None
    sortBy: TrafficSortKey = TrafficSortKey.REVENUE


class TrafficSourcesResponse(BaseModel):
    sources: List[TrafficSourceMetrics]
    totals: TrafficTotals


class AlertsRequest(BaseModel):
    thresholds: List[PerformanceThreshold]
    latest: MonthlyMetrics
    videos: List[YouTubeVideo] = Field(default_factory=list)
    campaigns: List[EmailCampaign] = Field(default_factory=list)


# =============================================================================
# Feed Ingestion
# =============================================================================


class ValidationError(BaseModel):
    """
    Validation error detail.

    Used for reporting data validation issues during feed ingestion.
    """
    field: str = Field(..., description="Field with validation error")
    message: str = Field(..., description="Error message")
    row_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="Row number where error occurred",
    )


class IngestionResult(BaseModel):
    """Result of loading one event feed."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "feed": "calls",
                "success": True,
                "rows_processed": 500,
                "errors": [],
            }
        }
    )

    feed: str = Field(..., description="Feed name (calls, sales, videos)")
    success: bool = Field(..., description="Whether the feed loaded without errors")
    rows_processed: int = Field(..., ge=0, description="Number of rows read")
    errors: List[ValidationError] = Field(
        default_factory=list,
        description="Validation errors encountered",
    )
