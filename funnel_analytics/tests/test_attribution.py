"""
Tests for video and country attribution.

The sample events (see conftest) give, for 2024-11:
    video_1: 1 call (accepted), 1 sale of 1500
    video_2: 3 calls (2 accepted), 1 sale of 3000
"""

import pytest

from funnel_analytics.models import CallBooking, CountrySortKey, Sale, SaleType, VideoSortKey
from funnel_analytics.services.attribution import (
    attribute_countries,
    attribute_videos,
    available_months,
    build_video_record,
    estimate_monthly_views,
    month_totals,
)
from funnel_analytics.tests.conftest import utc


class TestEstimateMonthlyViews:

    def test_default_share(self, sample_videos):
        assert estimate_monthly_views(sample_videos[0]) == 3000

    def test_rounds_half_up(self, sample_videos):
        video = sample_videos[0].model_copy(update={'views': 10})
        assert estimate_monthly_views(video, 0.25) == 3  # 2.5 -> 3


class TestBuildVideoRecord:

    def test_sales_joined_through_calls(self, sample_videos, sample_calls, sample_sales):
        record = build_video_record(sample_videos[1], sample_calls, sample_sales, '2024-11')

        assert record.monthlyViews == 1500
        assert record.callsFromThisVideo == 3
        assert record.acceptedCallsFromThisVideo == 2
        assert record.salesFromThisVideo == 1
        assert record.revenueFromThisVideo == 3000.0
        assert record.revenuePerView == 2.0
        assert record.viewToCallRate == pytest.approx(0.2)
        assert record.callToSaleRate == pytest.approx(100 / 3)
        assert record.month == '2024-11'

    def test_keeps_lifetime_fields(self, sample_videos, sample_calls, sample_sales):
        record = build_video_record(sample_videos[1], sample_calls, sample_sales, '2024-11')
        assert record.id == 'video_2'
        assert record.views == 10000
        assert record.revenue == 3000.0

    def test_month_without_calls(self, sample_videos, sample_calls, sample_sales):
        record = build_video_record(sample_videos[1], sample_calls, sample_sales, '2024-10')
        assert record.callsFromThisVideo == 0
        assert record.salesFromThisVideo == 0
        assert record.revenueFromThisVideo == 0.0
        assert record.callToSaleRate == 0.0

    def test_sale_on_other_video_call_not_counted(self, sample_videos, sample_calls):
        stray = Sale(id='sale_x', callId='call_4', amount=999.0, type=SaleType.PAID_IN_FULL,
                     product='p', closedAt=utc(2024, 11, 9), country='UK')
        record = build_video_record(sample_videos[0], sample_calls, [stray], '2024-11')
        assert record.salesFromThisVideo == 0

    def test_zero_views(self, sample_calls, sample_sales, sample_videos):
        video = sample_videos[1].model_copy(update={'views': 0})
        record = build_video_record(video, sample_calls, sample_sales, '2024-11')
        assert record.monthlyViews == 0
        assert record.viewToCallRate == 0.0
        assert record.revenuePerView == 0.0


class TestAttributeVideos:

    def test_sorted_by_revenue(self, sample_videos, sample_calls, sample_sales):
        records = attribute_videos(sample_videos, sample_calls, sample_sales, '2024-11')
        assert [r.id for r in records] == ['video_2', 'video_1']

    def test_sorted_by_views(self, sample_videos, sample_calls, sample_sales):
        records = attribute_videos(
            sample_videos, sample_calls, sample_sales, '2024-11', sort_by=VideoSortKey.VIEWS
        )
        assert [r.id for r in records] == ['video_1', 'video_2']

    def test_sort_is_stable_on_ties(self, sample_videos):
        records = attribute_videos(sample_videos, [], [], '2024-11')
        assert [r.id for r in records] == ['video_1', 'video_2']

    def test_custom_view_share(self, sample_videos, sample_calls, sample_sales):
        records = attribute_videos(
            sample_videos, sample_calls, sample_sales, '2024-11',
            sort_by=VideoSortKey.VIEWS, monthly_view_share=0.5,
        )
        assert records[0].monthlyViews == 10000

    def test_month_totals(self, sample_videos, sample_calls, sample_sales):
        totals = month_totals(attribute_videos(sample_videos, sample_calls, sample_sales, '2024-11'))
        assert totals.views == 4500
        assert totals.calls == 4
        assert totals.sales == 2
        assert totals.revenue == 4500.0


def test_available_months_newest_first(sample_calls):
    assert available_months(sample_calls) == ['2024-11', '2024-10']
    assert available_months(sample_calls, limit=1) == ['2024-11']


class TestAttributeCountries:

    def test_rollup(self, sample_sales, sample_calls):
        countries = {c.countryCode: c for c in attribute_countries(sample_sales, sample_calls)}

        assert set(countries) == {'US', 'UK', 'CA'}
        us = countries['US']
        assert us.country == 'United States'
        assert us.totalCalls == 3
        assert us.totalSales == 2
        assert us.totalRevenue == 4500.0
        assert us.conversionRate == pytest.approx(200 / 3)
        assert us.avgDealSize == 2250.0
        assert us.marketShare == pytest.approx(60.0)

    def test_country_without_sales(self, sample_sales, sample_calls):
        canada = {c.countryCode: c for c in attribute_countries(sample_sales, sample_calls)}['CA']
        assert canada.totalSales == 0
        assert canada.avgDealSize == 0.0
        assert canada.conversionRate == 0.0

    def test_market_share_sums_to_100(self, sample_sales, sample_calls):
        countries = attribute_countries(sample_sales, sample_calls)
        assert sum(c.marketShare for c in countries) == pytest.approx(100.0)

    def test_sorted_by_revenue(self, sample_sales, sample_calls):
        assert [c.countryCode for c in attribute_countries(sample_sales, sample_calls)] == ['US', 'UK', 'CA']

    def test_sorted_by_conversion(self, sample_sales, sample_calls):
        countries = attribute_countries(sample_sales, sample_calls, sort_by=CountrySortKey.CONVERSION)
        assert [c.countryCode for c in countries] == ['US', 'UK', 'CA']

    def test_growth_against_previous_period(self, sample_sales, sample_calls):
        previous = [
            Sale(id='old_1', callId='old_call', amount=3000.0, type=SaleType.PAID_IN_FULL,
                 product='p', closedAt=utc(2024, 9, 10), country='US'),
        ]
        countries = {
            c.countryCode: c
            for c in attribute_countries(sample_sales, sample_calls, previous_sales=previous)
        }
        assert countries['US'].growth == pytest.approx(50.0)
        assert countries['UK'].growth == 0.0

    def test_no_history_means_no_growth(self, sample_sales, sample_calls):
        assert all(c.growth == 0.0 for c in attribute_countries(sample_sales, sample_calls))

    def test_untracked_country_excluded(self, sample_sales):
        calls = [CallBooking(id='c', videoId='v', bookedAt=utc(2024, 11, 1), status='accepted', country='BR')]
        assert attribute_countries(sample_sales, calls) == []
