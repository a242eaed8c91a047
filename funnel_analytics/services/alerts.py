"""
Performance Alerts

Two pieces:

1. evaluate_thresholds(): a pure function turning configured
   PerformanceThresholds into RealTimeAlerts for the metrics that violate
   them. Only thresholds that are active and have alertOnBreach set are
   checked. The operator states what a healthy value looks like:
       greater_than -> actual > threshold is healthy
       less_than    -> actual < threshold is healthy
       equals       -> actual == threshold is healthy
   variance = (actual - expected) / expected * 100 (0 when expected is 0).
   |variance| >= 20 is critical, anything else a warning.

2. AlertFeed: an asyncio publish/subscribe channel. Producers publish alerts;
   each subscriber owns a bounded queue and reads at its own pace. There is
   no shared alert list and no timer mutating state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import AsyncIterator, Callable, Dict, List, Optional, Sequence, Set

from funnel_analytics.models import (
    AlertSeverity,
    AlertThresholdDetail,
    AlertType,
    EmailCampaign,
    MonthlyMetrics,
    PerformanceThreshold,
    RealTimeAlert,
    ThresholdMetric,
    ThresholdOperator,
    YouTubeVideo,
)
from funnel_analytics.services.aggregation import safe_rate
from funnel_analytics.services.campaigns import aggregate_open_rate
from funnel_analytics.services.formatting import format_compact, format_currency, format_percentage

logger = logging.getLogger(__name__)


CRITICAL_VARIANCE_PERCENT: float = 20.0

DEFAULT_SUBSCRIBER_QUEUE_SIZE: int = 100


# =============================================================================
# Metric Sources
# =============================================================================


@dataclass(frozen=True)
class MetricSnapshot:
    """Observed values that thresholds are checked against."""
    latest: MonthlyMetrics
    videos: Sequence[YouTubeVideo] = ()
    campaigns: Sequence[EmailCampaign] = ()

    @property
    def top_video(self) -> Optional[YouTubeVideo]:
        if not self.videos:
            return None
        return max(self.videos, key=lambda v: v.views)


@dataclass(frozen=True)
class MetricRule:
    label: str
    alert_type: AlertType
    observe: Callable[[MetricSnapshot], float]
    suggested_actions: List[str] = field(default_factory=list)
    display: Callable[[float], str] = format_percentage


def _revenue_per_view(snapshot: MetricSnapshot) -> float:
    revenue = sum(v.revenue for v in snapshot.videos)
    views = sum(v.views for v in snapshot.videos)
    return safe_rate(revenue, views, scale=1.0)


def _top_video_views(snapshot: MetricSnapshot) -> float:
    top = snapshot.top_video
    return float(top.views) if top is not None else 0.0


METRIC_RULES: Dict[ThresholdMetric, MetricRule] = {
    ThresholdMetric.CONVERSION_RATE: MetricRule(
        label='Website to Call Conversion',
        alert_type=AlertType.CONVERSION,
        observe=lambda s: s.latest.conversionRates.websiteToCall,
        suggested_actions=[
            'Review landing page messaging and call-to-action placement',
            'Check booking page load time and form friction',
        ],
    ),
    ThresholdMetric.CALL_SHOW_RATE: MetricRule(
        label='Call Show-up Rate',
        alert_type=AlertType.PERFORMANCE,
        observe=lambda s: s.latest.showUpRate,
        suggested_actions=[
            'Send additional reminder emails 2 hours before calls',
            'Implement SMS reminder system',
            'Review call booking confirmation process',
        ],
    ),
    ThresholdMetric.EMAIL_OPEN_RATE: MetricRule(
        label='Email Open Rate',
        alert_type=AlertType.ENGAGEMENT,
        observe=lambda s: aggregate_open_rate(s.campaigns),
        suggested_actions=[
            'A/B test subject lines',
            'Clean inactive contacts from the list',
        ],
    ),
    ThresholdMetric.REVENUE_PER_VIEW: MetricRule(
        label='Revenue per View',
        alert_type=AlertType.REVENUE,
        observe=_revenue_per_view,
        suggested_actions=[
            'Strengthen in-video calls to action',
            'Promote the highest converting videos',
        ],
        display=lambda value: format_currency(value, places=2),
    ),
    ThresholdMetric.VIDEO_PERFORMANCE: MetricRule(
        label='Top Video Views',
        alert_type=AlertType.PERFORMANCE,
        observe=_top_video_views,
        suggested_actions=[
            'Create follow-up videos on the best performing topics',
            'Review thumbnails and titles of recent uploads',
        ],
        display=format_compact,
    ),
}

OPERATOR_WORDING: Dict[ThresholdOperator, str] = {
    ThresholdOperator.GREATER_THAN: 'below',
    ThresholdOperator.LESS_THAN: 'above',
    ThresholdOperator.EQUALS: 'off',
}


# =============================================================================
# Threshold Evaluation
# =============================================================================


def is_breached(actual: float, threshold: PerformanceThreshold) -> bool:
    """True when the observed value violates the threshold's expectation."""
    if threshold.operator == ThresholdOperator.GREATER_THAN:
        return not actual > threshold.threshold
    if threshold.operator == ThresholdOperator.LESS_THAN:
        return not actual < threshold.threshold
    return actual != threshold.threshold


def breach_variance(actual: float, expected: float) -> float:
    return safe_rate(actual - expected, expected)


def build_alert(
    threshold: PerformanceThreshold,
    actual: float,
    snapshot: MetricSnapshot,
    as_of: datetime,
) -> RealTimeAlert:
    rule = METRIC_RULES[threshold.metric]
    variance = breach_variance(actual, threshold.threshold)
    severity = (
        AlertSeverity.CRITICAL
        if abs(variance) >= CRITICAL_VARIANCE_PERCENT
        else AlertSeverity.WARNING
    )
    wording = OPERATOR_WORDING[threshold.operator]

    related_video_id = None
    if threshold.metric == ThresholdMetric.VIDEO_PERFORMANCE and snapshot.top_video is not None:
        related_video_id = snapshot.top_video.id

    return RealTimeAlert(
        id=f"alert_{threshold.id}",
        type=rule.alert_type,
        severity=severity,
        title=f"{rule.label} {wording} target",
        message=(
            f"{rule.label} is {rule.display(actual)} against a {threshold.timeframe.value} "
            f"target of {rule.display(threshold.threshold)} ({variance:+.1f}%)."
        ),
        data={'metric': threshold.metric.value, 'month': snapshot.latest.month},
        timestamp=as_of,
        actionRequired=severity == AlertSeverity.CRITICAL,
        suggestedActions=list(rule.suggested_actions),
        relatedVideoId=related_video_id,
        threshold=AlertThresholdDetail(
            metric=rule.label,
            expected=threshold.threshold,
            actual=actual,
            variance=variance,
        ),
    )


def evaluate_thresholds(
    thresholds: Sequence[PerformanceThreshold],
    latest: MonthlyMetrics,
    videos: Sequence[YouTubeVideo] = (),
    campaigns: Sequence[EmailCampaign] = (),
    as_of: Optional[datetime] = None,
) -> List[RealTimeAlert]:
    """
    Check every enabled threshold against the latest observed values.

    Args:
        thresholds: Configured thresholds
        latest: Most recent month of metrics
        videos: Videos for revenue-per-view and top-video checks
        campaigns: Email campaigns for the open-rate check
        as_of: Alert timestamp; defaults to now (UTC)

    Returns:
        One alert per breached threshold, in threshold order
    """
    as_of = as_of or datetime.now(timezone.utc)
    snapshot = MetricSnapshot(latest=latest, videos=videos, campaigns=campaigns)

    alerts: List[RealTimeAlert] = []
    for threshold in thresholds:
        if not (threshold.isActive and threshold.alertOnBreach):
            continue
        actual = METRIC_RULES[threshold.metric].observe(snapshot)
        if is_breached(actual, threshold):
            alerts.append(build_alert(threshold, actual, snapshot, as_of))

    return alerts


# =============================================================================
# Alert Feed
# =============================================================================


class AlertFeed:
    """
    Publish/subscribe channel for RealTimeAlerts.

    Each subscriber gets its own bounded asyncio.Queue. When a subscriber
    falls behind and its queue is full, the oldest pending alert is dropped
    so publishers never block.
    """

    def __init__(self, max_queue_size: int = DEFAULT_SUBSCRIBER_QUEUE_SIZE):
        self._max_queue_size = max_queue_size
        self._subscribers: Set[asyncio.Queue] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        async with self._lock:
            self._subscribers.add(queue)
        logger.info(f"Alert subscriber added ({len(self._subscribers)} active)")
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        async with self._lock:
            self._subscribers.discard(queue)
        logger.info(f"Alert subscriber removed ({len(self._subscribers)} active)")

    async def publish(self, alert: RealTimeAlert) -> int:
        """
        Deliver an alert to every current subscriber.

        Returns:
            Number of subscribers the alert was queued for
        """
        async with self._lock:
            subscribers = list(self._subscribers)

        for queue in subscribers:
            if queue.full():
                dropped = queue.get_nowait()
                logger.warning(f"Alert subscriber queue full, dropped {dropped.id}")
            queue.put_nowait(alert)

        return len(subscribers)

    async def publish_many(self, alerts: Sequence[RealTimeAlert]) -> int:
        delivered = 0
        for alert in alerts:
            delivered += await self.publish(alert)
        return delivered

    async def stream(self) -> AsyncIterator[RealTimeAlert]:
        """Subscribe and yield alerts until the consumer stops iterating."""
        queue = await self.subscribe()
        try:
            while True:
                yield await queue.get()
        finally:
            await self.unsubscribe(queue)


@lru_cache()
def get_alert_feed() -> AlertFeed:
    """Process-wide AlertFeed singleton."""
    return AlertFeed()
