"""
Funnel Analytics Services Module

This module contains the business logic of the funnel analytics backend.
Every analytics service is a set of pure functions over Pydantic models;
only the integration clients, the insights generator and the dashboard
assembler perform I/O.

Services:
- aggregation: Raw events -> MonthlyMetrics per calendar month
- trends: Month-over-month comparison, record highs, time-range slicing
- attribution: Per-video and per-country revenue attribution
- campaigns: Email campaign and traffic source ROI analysis
- funnel: Funnel stages, drop-off detection, product breakdown
- alerts: Threshold evaluation and the real-time AlertFeed
- insights: Rule-based and LLM-generated insights
- formatting: Display formatting for currency, counts and percentages
- ingestion: CSV event feed validation and loading (pandas)
- mock_data: Seeded, internally consistent mock events
- api_clients: YouTube, Kajabi and Cal.com clients (httpx)
- dashboard: Full dashboard payload assembly

All services are consumed by the API layer (funnel_analytics/api/).
"""

# =============================================================================
# Aggregation Service Exports
# Monthly rollup of calls, sales and videos with guarded conversion rates
# and recurring installment cash
# =============================================================================

from funnel_analytics.services.aggregation import (
    safe_rate,
    round_half_up,
    month_of,
    summarize_cash,
    aggregate,
    aggregate_series,
    discover_months,
    recurring_installment_cash,
    INSTALLMENT_PLAN_MONTHS,
)

# =============================================================================
# Trend Service Exports
# Month-over-month change, status, severity bands and record highs
# =============================================================================

from funnel_analytics.services.trends import (
    month_over_month_change,
    trend_status,
    classify_severity,
    compare_months,
    is_record_high,
    find_record_highs,
    record_high_flags,
    filter_time_range,
)

# =============================================================================
# Attribution Service Exports
# Video revenue attribution through the call -> sale join, country rollups
# =============================================================================

from funnel_analytics.services.attribution import (
    estimate_monthly_views,
    build_video_record,
    attribute_videos,
    month_totals,
    available_months,
    attribute_countries,
    COUNTRY_NAMES,
)

# =============================================================================
# Campaign Service Exports
# Email campaign engagement/ROI and traffic source cost/ROI analysis
# =============================================================================

from funnel_analytics.services.campaigns import (
    roi_percent,
    campaign_metrics,
    campaign_totals,
    aggregate_open_rate,
    analyze_campaigns,
    analyze_traffic_sources,
    filter_traffic_sources,
    traffic_totals,
)

# =============================================================================
# Funnel Service Exports
# =============================================================================

from funnel_analytics.services.funnel import (
    detect_dropoffs,
    build_funnel_stages,
    product_breakdown,
    FUNNEL_TRANSITIONS,
)

# =============================================================================
# Alert Service Exports
# Threshold evaluation and pub/sub delivery of real-time alerts
# =============================================================================

from funnel_analytics.services.alerts import (
    evaluate_thresholds,
    is_breached,
    breach_variance,
    AlertFeed,
    get_alert_feed,
)

# =============================================================================
# Formatting Exports
# =============================================================================

from funnel_analytics.services.formatting import (
    format_currency,
    format_number,
    format_compact,
    format_percentage,
)

# =============================================================================
# Ingestion Service Exports
# pandas-based CSV feed validation and record conversion
# =============================================================================

from funnel_analytics.services.ingestion import (
    ingest_csv,
    validate_columns,
    validate_required_values,
    validate_unique_ids,
    validate_data_types,
    validate_enum_values,
    dataframe_to_records,
    load_feed,
    load_event_feeds,
)

# =============================================================================
# Mock Data Exports
# =============================================================================

from funnel_analytics.services.mock_data import (
    EventBundle,
    generate_mock_events,
)

# =============================================================================
# Insights Service Exports
# Rule-based insights plus OpenAI-generated insights with fallback
# =============================================================================

from funnel_analytics.services.insights import (
    generate_insights,
    generate_ai_insights,
    parse_ai_insights,
    build_insights_prompt,
)

# =============================================================================
# Integration Client Exports
# =============================================================================

from funnel_analytics.services.api_clients import (
    YouTubeClient,
    KajabiClient,
    CalComClient,
    IntegrationError,
    fetch_youtube_videos,
    fetch_kajabi_data,
    fetch_calcom_calls,
    get_api_status,
)

# =============================================================================
# Dashboard Service Exports
# =============================================================================

from funnel_analytics.services.dashboard import (
    build_dashboard_data,
    build_fallback_dashboard,
    build_monthly_series,
    filter_dashboard,
    load_events,
)


__all__ = [
    # Aggregation
    "safe_rate",
    "round_half_up",
    "month_of",
    "summarize_cash",
    "aggregate",
    "aggregate_series",
    "discover_months",
    "recurring_installment_cash",
    "INSTALLMENT_PLAN_MONTHS",
    # Trends
    "month_over_month_change",
    "trend_status",
    "classify_severity",
    "compare_months",
    "is_record_high",
    "find_record_highs",
    "record_high_flags",
    "filter_time_range",
    # Attribution
    "estimate_monthly_views",
    "build_video_record",
    "attribute_videos",
    "month_totals",
    "available_months",
    "attribute_countries",
    "COUNTRY_NAMES",
    # Campaigns
    "roi_percent",
    "campaign_metrics",
    "campaign_totals",
    "aggregate_open_rate",
    "analyze_campaigns",
    "analyze_traffic_sources",
    "filter_traffic_sources",
    "traffic_totals",
    # Funnel
    "detect_dropoffs",
    "build_funnel_stages",
    "product_breakdown",
    "FUNNEL_TRANSITIONS",
    # Alerts
    "evaluate_thresholds",
    "is_breached",
    "breach_variance",
    "AlertFeed",
    "get_alert_feed",
    # Formatting
    "format_currency",
    "format_number",
    "format_compact",
    "format_percentage",
    # Ingestion
    "ingest_csv",
    "validate_columns",
    "validate_required_values",
    "validate_unique_ids",
    "validate_data_types",
    "validate_enum_values",
    "dataframe_to_records",
    "load_feed",
    "load_event_feeds",
    # Mock data
    "EventBundle",
    "generate_mock_events",
    # Insights
    "generate_insights",
    "generate_ai_insights",
    "parse_ai_insights",
    "build_insights_prompt",
    # Integrations
    "YouTubeClient",
    "KajabiClient",
    "CalComClient",
    "IntegrationError",
    "fetch_youtube_videos",
    "fetch_kajabi_data",
    "fetch_calcom_calls",
    "get_api_status",
    # Dashboard
    "build_dashboard_data",
    "build_fallback_dashboard",
    "build_monthly_series",
    "filter_dashboard",
    "load_events",
]
