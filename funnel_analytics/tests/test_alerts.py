"""
Tests for threshold alerts and the AlertFeed publish/subscribe channel.
"""

import asyncio

import pytest

from funnel_analytics.models import (
    AlertSeverity,
    AlertType,
    PerformanceThreshold,
    ThresholdMetric,
    ThresholdOperator,
)
from funnel_analytics.services.alerts import (
    AlertFeed,
    breach_variance,
    evaluate_thresholds,
    is_breached,
)
from funnel_analytics.tests.conftest import build_metrics, utc


AS_OF = utc(2024, 11, 30)


def threshold(metric, value, operator=ThresholdOperator.GREATER_THAN, **kwargs):
    return PerformanceThreshold(
        id=kwargs.pop('id', f"t_{metric.value}"),
        metric=metric,
        threshold=value,
        operator=operator,
        **kwargs,
    )


class TestIsBreached:

    def test_greater_than(self):
        t = threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0)
        assert is_breached(70.0, t)
        assert is_breached(75.0, t)
        assert not is_breached(76.0, t)

    def test_less_than(self):
        t = threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0, ThresholdOperator.LESS_THAN)
        assert is_breached(80.0, t)
        assert not is_breached(70.0, t)

    def test_equals(self):
        t = threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0, ThresholdOperator.EQUALS)
        assert not is_breached(75.0, t)
        assert is_breached(74.0, t)

    def test_variance_guarded(self):
        assert breach_variance(5.0, 0.0) == 0.0
        assert breach_variance(50.0, 100.0) == pytest.approx(-50.0)


class TestEvaluateThresholds:

    def test_show_rate_breach(self):
        latest = build_metrics(show_up_rate=50.0)
        alerts = evaluate_thresholds([threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0, id='threshold_2')],
                                     latest, as_of=AS_OF)
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.id == 'alert_threshold_2'
        assert alert.type == AlertType.PERFORMANCE
        assert alert.title == 'Call Show-up Rate below target'
        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.actionRequired is True
        assert alert.timestamp == AS_OF
        assert alert.data == {'metric': 'call_show_rate', 'month': '2024-11'}
        assert alert.threshold.expected == 75.0
        assert alert.threshold.actual == 50.0
        assert alert.threshold.variance == pytest.approx(-100 / 3)
        assert alert.suggestedActions
        assert alert.message == 'Call Show-up Rate is 50.0% against a daily target of 75.0% (-33.3%).'

    def test_small_variance_is_warning(self):
        latest = build_metrics(show_up_rate=72.0)
        alert = evaluate_thresholds([threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0)], latest, as_of=AS_OF)[0]
        assert alert.severity == AlertSeverity.WARNING
        assert alert.actionRequired is False

    def test_healthy_metrics_raise_nothing(self):
        latest = build_metrics(show_up_rate=80.0, website_to_call=3.0)
        thresholds = [
            threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0),
            threshold(ThresholdMetric.CONVERSION_RATE, 2.0),
        ]
        assert evaluate_thresholds(thresholds, latest, as_of=AS_OF) == []

    def test_inactive_and_silent_thresholds_skipped(self):
        latest = build_metrics(show_up_rate=10.0)
        thresholds = [
            threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0, id='off', isActive=False),
            threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0, id='quiet', alertOnBreach=False),
        ]
        assert evaluate_thresholds(thresholds, latest, as_of=AS_OF) == []

    def test_less_than_wording(self):
        latest = build_metrics(show_up_rate=95.0)
        alert = evaluate_thresholds(
            [threshold(ThresholdMetric.CALL_SHOW_RATE, 90.0, ThresholdOperator.LESS_THAN)],
            latest,
            as_of=AS_OF,
        )[0]
        assert alert.title == 'Call Show-up Rate above target'

    def test_top_video_threshold(self, sample_videos):
        alerts = evaluate_thresholds(
            [threshold(ThresholdMetric.VIDEO_PERFORMANCE, 30000.0)],
            build_metrics(),
            videos=sample_videos,
            as_of=AS_OF,
        )
        assert alerts[0].relatedVideoId == 'video_1'
        assert alerts[0].threshold.actual == 20000.0
        assert alerts[0].message == 'Top Video Views is 20K against a daily target of 30K (-33.3%).'

    def test_revenue_per_view(self, sample_videos):
        # 7500 revenue over 30000 views
        alerts = evaluate_thresholds(
            [threshold(ThresholdMetric.REVENUE_PER_VIEW, 0.5)],
            build_metrics(),
            videos=sample_videos,
            as_of=AS_OF,
        )
        assert alerts[0].type == AlertType.REVENUE
        assert alerts[0].threshold.actual == pytest.approx(0.25)
        assert alerts[0].message == 'Revenue per View is $0.25 against a daily target of $0.50 (-50.0%).'

    def test_email_open_rate(self, sample_campaigns):
        alerts = evaluate_thresholds(
            [threshold(ThresholdMetric.EMAIL_OPEN_RATE, 45.0)],
            build_metrics(),
            campaigns=sample_campaigns,
            as_of=AS_OF,
        )
        assert alerts[0].type == AlertType.ENGAGEMENT
        assert alerts[0].threshold.actual == pytest.approx(1100 / 3000 * 100)
        assert alerts[0].severity == AlertSeverity.WARNING

    def test_alerts_keep_threshold_order(self):
        latest = build_metrics(show_up_rate=10.0, website_to_call=0.5)
        thresholds = [
            threshold(ThresholdMetric.CONVERSION_RATE, 2.0, id='a'),
            threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0, id='b'),
        ]
        assert [a.id for a in evaluate_thresholds(thresholds, latest, as_of=AS_OF)] == ['alert_a', 'alert_b']


# =============================================================================
# AlertFeed
# =============================================================================

def make_alert(alert_id: str):
    latest = build_metrics(show_up_rate=10.0)
    alert = evaluate_thresholds([threshold(ThresholdMetric.CALL_SHOW_RATE, 75.0)], latest, as_of=AS_OF)[0]
    return alert.model_copy(update={'id': alert_id})


@pytest.mark.asyncio
class TestAlertFeed:

    async def test_publish_without_subscribers(self, alert_feed: AlertFeed):
        assert await alert_feed.publish(make_alert('a1')) == 0

    async def test_every_subscriber_receives(self, alert_feed: AlertFeed):
        first = await alert_feed.subscribe()
        second = await alert_feed.subscribe()

        delivered = await alert_feed.publish(make_alert('a1'))

        assert delivered == 2
        assert first.get_nowait().id == 'a1'
        assert second.get_nowait().id == 'a1'

    async def test_unsubscribe(self, alert_feed: AlertFeed):
        queue = await alert_feed.subscribe()
        await alert_feed.unsubscribe(queue)
        assert alert_feed.subscriber_count == 0
        assert await alert_feed.publish(make_alert('a1')) == 0

    async def test_full_queue_drops_oldest(self):
        feed = AlertFeed(max_queue_size=2)
        queue = await feed.subscribe()

        for alert_id in ('a1', 'a2', 'a3'):
            await feed.publish(make_alert(alert_id))

        assert queue.qsize() == 2
        assert [queue.get_nowait().id for _ in range(2)] == ['a2', 'a3']

    async def test_publish_many(self, alert_feed: AlertFeed):
        queue = await alert_feed.subscribe()
        delivered = await alert_feed.publish_many([make_alert('a1'), make_alert('a2')])
        assert delivered == 2
        assert queue.qsize() == 2

    async def test_stream(self, alert_feed: AlertFeed):
        stream = alert_feed.stream()
        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0)
        assert alert_feed.subscriber_count == 1

        await alert_feed.publish(make_alert('a1'))
        received = await asyncio.wait_for(pending, timeout=1)

        assert received.id == 'a1'
        await stream.aclose()
        assert alert_feed.subscriber_count == 0
