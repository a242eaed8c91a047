"""
Package initialization file for backend models.

Re-exports all Pydantic schemas and enumerations from schemas.py and enums.py
so other modules can import data models without knowing the internal layout:

    from funnel_analytics.models import (
        CallBooking,
        MonthlyMetrics,
        TrendStatus,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from funnel_analytics.models.enums import (
    # Event records
    CallStatus,
    SaleType,
    LeadPlatform,
    LeadMedium,
    EmailCampaignType,
    EmailCampaignStatus,
    # Derived analytics
    TrendStatus,
    TrendSeverity,
    DropoffSeverity,
    InsightType,
    InsightImpact,
    # Sorting and slicing
    VideoSortKey,
    CountrySortKey,
    CampaignSortKey,
    TrafficSortKey,
    TimeRange,
    # Alerting
    AlertType,
    AlertSeverity,
    ThresholdMetric,
    ThresholdOperator,
    ThresholdTimeframe,
    # Integrations
    ConnectionStatus,
    EventFeed,
)


# =============================================================================
# Schemas
# =============================================================================

from funnel_analytics.models.schemas import (
    # -------------------------------------------------------------------------
    # Event records
    # -------------------------------------------------------------------------
    DetailedLeadSource,
    CallBooking,
    Sale,
    YouTubeVideo,
    EmailRecipients,
    EmailEngagement,
    EmailConversions,
    EmailCampaign,
    TrafficLifetime,
    TrafficSourceAttribution,

    # -------------------------------------------------------------------------
    # Monthly metrics
    # -------------------------------------------------------------------------
    CashCollected,
    ConversionRates,
    MonthlyMetrics,

    # -------------------------------------------------------------------------
    # Derived analytics
    # -------------------------------------------------------------------------
    TrendRecord,
    VideoPerformance,
    VideoMonthTotals,
    CountryMetrics,
    DropoffPoint,
    FunnelStage,
    EmailCampaignMetrics,
    EmailCampaignTotals,
    TrafficSourceMetrics,
    TrafficTotals,
    AIInsight,

    # -------------------------------------------------------------------------
    # Alerting
    # -------------------------------------------------------------------------
    PerformanceThreshold,
    AlertThresholdDetail,
    RealTimeAlert,

    # -------------------------------------------------------------------------
    # Dashboard payload
    # -------------------------------------------------------------------------
    ApiStatus,
    KajabiProduct,
    KajabiEmailStats,
    KajabiData,
    DashboardData,

    # -------------------------------------------------------------------------
    # API bodies
    # -------------------------------------------------------------------------
    DashboardFilterRequest,
    AIInsightsRequest,
    AIInsightsResponse,
    TrendsRequest,
    RecordHighsRequest,
    RecordHighsResponse,
    ProductBreakdownRequest,
    VideoAttributionRequest,
    VideoAttributionResponse,
    CountryAttributionRequest,
    EmailCampaignsRequest,
    EmailCampaignsResponse,
    TrafficSourcesRequest,
    TrafficSourcesResponse,
    AlertsRequest,

    # -------------------------------------------------------------------------
    # Feed ingestion
    # -------------------------------------------------------------------------
    ValidationError,
    IngestionResult,
)


__all__ = [
    # Enums
    "CallStatus",
    "SaleType",
    "LeadPlatform",
    "LeadMedium",
    "EmailCampaignType",
    "EmailCampaignStatus",
    "TrendStatus",
    "TrendSeverity",
    "DropoffSeverity",
    "InsightType",
    "InsightImpact",
    "VideoSortKey",
    "CountrySortKey",
    "CampaignSortKey",
    "TrafficSortKey",
    "TimeRange",
    "AlertType",
    "AlertSeverity",
    "ThresholdMetric",
    "ThresholdOperator",
    "ThresholdTimeframe",
    "ConnectionStatus",
    "EventFeed",
    # Event records
    "DetailedLeadSource",
    "CallBooking",
    "Sale",
    "YouTubeVideo",
    "EmailRecipients",
    "EmailEngagement",
    "EmailConversions",
    "EmailCampaign",
    "TrafficLifetime",
    "TrafficSourceAttribution",
    # Monthly metrics
    "CashCollected",
    "ConversionRates",
    "MonthlyMetrics",
    # Derived analytics
    "TrendRecord",
    "VideoPerformance",
    "VideoMonthTotals",
    "CountryMetrics",
    "DropoffPoint",
    "FunnelStage",
    "EmailCampaignMetrics",
    "EmailCampaignTotals",
    "TrafficSourceMetrics",
    "TrafficTotals",
    "AIInsight",
    # Alerting
    "PerformanceThreshold",
    "AlertThresholdDetail",
    "RealTimeAlert",
    # Dashboard payload
    "ApiStatus",
    "KajabiProduct",
    "KajabiEmailStats",
    "KajabiData",
    "DashboardData",
    # API bodies
    "DashboardFilterRequest",
    "AIInsightsRequest",
    "AIInsightsResponse",
    "TrendsRequest",
    "RecordHighsRequest",
    "RecordHighsResponse",
    "ProductBreakdownRequest",
    "VideoAttributionRequest",
    "VideoAttributionResponse",
    "CountryAttributionRequest",
    "EmailCampaignsRequest",
    "EmailCampaignsResponse",
    "TrafficSourcesRequest",
    "TrafficSourcesResponse",
    "AlertsRequest",
    # Feed ingestion
    "ValidationError",
    "IngestionResult",
]
