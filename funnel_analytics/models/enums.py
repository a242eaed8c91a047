"""
Enumeration definitions for the Funnel Analytics backend.

All enums inherit from both `str` and `Enum` so Pydantic models serialize them
as their plain string values, keeping the JSON contract identical to what the
dashboard frontend already consumes.

Groups:
- Event records: CallStatus, SaleType, LeadPlatform, LeadMedium
- Email marketing: EmailCampaignType, EmailCampaignStatus
- Derived analytics: TrendStatus, TrendSeverity, DropoffSeverity, InsightType, InsightImpact
- Sorting and slicing: VideoSortKey, CountrySortKey, CampaignSortKey, TrafficSortKey, TimeRange
- Alerting: AlertType, AlertSeverity, ThresholdMetric, ThresholdOperator, ThresholdTimeframe
- Integrations: ConnectionStatus, EventFeed
"""

from enum import Enum


class CallStatus(str, Enum):
    """
    Lifecycle status of a booked sales call.

    Only ACCEPTED counts as "showed up" for show-up rate purposes.
    """
    BOOKED = "booked"
    ACCEPTED = "accepted"
    NO_SHOW = "no-show"
    CANCELLED = "cancelled"


class SaleType(str, Enum):
    """Payment structure of a closed sale."""
    PAID_IN_FULL = "paid-in-full"
    INSTALLMENT = "installment"


class LeadPlatform(str, Enum):
    """Platform a lead originated from."""
    YOUTUBE = "youtube"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    DIRECT = "direct"
    REFERRAL = "referral"


class LeadMedium(str, Enum):
    """Marketing medium a lead arrived through."""
    ORGANIC = "organic"
    PAID = "paid"
    SOCIAL = "social"
    EMAIL = "email"
    AFFILIATE = "affiliate"
    DIRECT = "direct"


class EmailCampaignType(str, Enum):
    WELCOME = "welcome"
    NURTURE = "nurture"
    PROMOTIONAL = "promotional"
    FOLLOW_UP = "follow-up"
    ABANDONED_CART = "abandoned-cart"
    WEBINAR = "webinar"


class EmailCampaignStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    PAUSED = "paused"


class TrendStatus(str, Enum):
    """
    Direction of a month-over-month change.

    - up: current > previous
    - down: current < previous
    - stable: equal, or no previous month to compare against
    """
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class TrendSeverity(str, Enum):
    """Health classification of a trended metric's current value."""
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class DropoffSeverity(str, Enum):
    """
    Severity of a funnel drop-off.

    Ordered high > medium > low; see DROPOFF_SEVERITY_ORDER in services.funnel.
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InsightType(str, Enum):
    TREND = "trend"
    RECOMMENDATION = "recommendation"
    ALERT = "alert"


class InsightImpact(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class VideoSortKey(str, Enum):
    """Sort order for video attribution (all descending)."""
    REVENUE = "revenue"
    VIEWS = "views"
    CONVERSION = "conversion"


class CountrySortKey(str, Enum):
    """Sort order for country attribution (all descending)."""
    REVENUE = "revenue"
    SALES = "sales"
    CONVERSION = "conversion"
    GROWTH = "growth"


class CampaignSortKey(str, Enum):
    REVENUE = "revenue"
    OPENS = "opens"
    CLICKS = "clicks"
    CONVERSIONS = "conversions"


class TrafficSortKey(str, Enum):
    REVENUE = "revenue"
    VISITORS = "visitors"
    CONVERSION = "conversion"
    ROI = "roi"


class TimeRange(str, Enum):
    """
    Time slicing options for the monthly metrics series.

    - all: every month
    - last6 / last3: trailing six / three months
    - current: latest month only
    """
    ALL = "all"
    LAST_6 = "last6"
    LAST_3 = "last3"
    CURRENT = "current"


class AlertType(str, Enum):
    PERFORMANCE = "performance"
    CONVERSION = "conversion"
    REVENUE = "revenue"
    ENGAGEMENT = "engagement"
    SYSTEM = "system"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


class ThresholdMetric(str, Enum):
    """
    Metrics that can carry a performance threshold.

    - conversion_rate: website-to-call conversion (%)
    - call_show_rate: show-up rate (%)
    - email_open_rate: unique opens over sends across campaigns (%)
    - revenue_per_view: video revenue per view ($)
    - video_performance: views of the best performing video
    """
    CONVERSION_RATE = "conversion_rate"
    CALL_SHOW_RATE = "call_show_rate"
    EMAIL_OPEN_RATE = "email_open_rate"
    REVENUE_PER_VIEW = "revenue_per_view"
    VIDEO_PERFORMANCE = "video_performance"


class ThresholdOperator(str, Enum):
    """Expected relation between the observed value and the threshold."""
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EQUALS = "equals"


class ThresholdTimeframe(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ConnectionStatus(str, Enum):
    """
    Data source status for an external integration.

    - connected: credentials configured and last call succeeded
    - mock: no credentials, static mock data served
    - error: credentials configured but the call failed
    """
    CONNECTED = "connected"
    MOCK = "mock"
    ERROR = "error"


class EventFeed(str, Enum):
    """
    CSV event feeds loadable from EVENTS_DIR.

    Each feed is read from <events_dir>/<value>.csv.
    """
    CALLS = "calls"
    SALES = "sales"
    VIDEOS = "videos"
