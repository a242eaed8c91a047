"""
Test Module for Event Feed Ingestion Service.

Covers:
- Required column validation per feed (calls, sales, videos)
- Unique id enforcement
- Date, numeric and enum value checks
- Normalization of enum spelling and country codes
- Conversion of validated frames into event models
- Loading feeds from an events directory
"""

from io import BytesIO

import pandas as pd
import pytest

from funnel_analytics.models import (
    CallBooking,
    CallStatus,
    EventFeed,
    LeadMedium,
    LeadPlatform,
    Sale,
    SaleType,
    YouTubeVideo,
)
from funnel_analytics.services.ingestion import (
    CALLS_REQUIRED_COLUMNS,
    SALES_REQUIRED_COLUMNS,
    VIDEOS_REQUIRED_COLUMNS,
    dataframe_to_records,
    ingest_csv,
    load_event_feeds,
    load_feed,
    validate_columns,
    validate_data_types,
    validate_enum_values,
    validate_required_values,
    validate_unique_ids,
)
from funnel_analytics.tests.conftest import create_csv_bytes


# =============================================================================
# TEST FIXTURES (Local to this module)
# =============================================================================

@pytest.fixture
def calls_df() -> pd.DataFrame:
    return pd.DataFrame({
        'id': ['call_1', 'call_2', 'call_3'],
        'videoId': ['video_1', 'video_1', 'video_2'],
        'bookedAt': ['2024-11-02T12:00:00Z', '2024-11-04T09:30:00Z', '2024-11-08T16:00:00Z'],
        'status': ['accepted', 'no-show', 'cancelled'],
        'country': ['US', 'US', 'UK'],
    })


@pytest.fixture
def sales_df() -> pd.DataFrame:
    return pd.DataFrame({
        'id': ['sale_1', 'sale_2'],
        'callId': ['call_1', 'call_3'],
        'amount': [3000.0, 1500.0],
        'type': ['paid-in-full', 'installment'],
        'product': ['Business Accelerator Program', 'High-Ticket Coaching Mastermind'],
        'closedAt': ['2024-11-05T12:00:00Z', '2024-11-10T12:00:00Z'],
        'country': ['US', 'UK'],
    })


@pytest.fixture
def videos_df() -> pd.DataFrame:
    return pd.DataFrame({
        'id': ['video_1', 'video_2'],
        'title': ['How I Built a 7-Figure Business', 'Sales Psychology Secrets'],
        'publishedAt': ['2024-10-01T00:00:00Z', '2024-11-01T00:00:00Z'],
        'views': [20000, 10000],
    })


def ingest_frame(df: pd.DataFrame, feed: EventFeed):
    return ingest_csv(BytesIO(create_csv_bytes(df)), feed)


# =============================================================================
# TEST CLASS: Required Columns
# =============================================================================

class TestRequiredColumns:

    def test_required_column_lists(self):
        assert CALLS_REQUIRED_COLUMNS == ['id', 'videoId', 'bookedAt', 'status', 'country']
        assert 'amount' in SALES_REQUIRED_COLUMNS
        assert VIDEOS_REQUIRED_COLUMNS == ['id', 'title', 'publishedAt', 'views']

    def test_valid_calls(self, calls_df: pd.DataFrame):
        assert validate_columns(calls_df, EventFeed.CALLS) == []

    def test_missing_column(self, calls_df: pd.DataFrame):
        errors = validate_columns(calls_df.drop(columns=['videoId']), EventFeed.CALLS)
        assert len(errors) == 1
        assert errors[0].field == 'videoId'
        assert 'missing' in errors[0].message.lower()

    def test_multiple_missing(self, sales_df: pd.DataFrame):
        errors = validate_columns(sales_df.drop(columns=['amount', 'product']), EventFeed.SALES)
        assert {e.field for e in errors} == {'amount', 'product'}

    def test_extra_columns_allowed(self, videos_df: pd.DataFrame):
        df = videos_df.copy()
        df['channel'] = ['main', 'main']
        assert validate_columns(df, EventFeed.VIDEOS) == []

    def test_ingest_stops_on_missing_columns(self, calls_df: pd.DataFrame):
        df, errors = ingest_frame(calls_df.drop(columns=['status']), EventFeed.CALLS)
        assert df is None
        assert [e.field for e in errors] == ['status']


# =============================================================================
# TEST CLASS: Row Validation
# =============================================================================

class TestRowValidation:

    def test_duplicate_ids(self, calls_df: pd.DataFrame):
        df = calls_df.copy()
        df.loc[2, 'id'] = 'call_1'
        errors = validate_unique_ids(df, EventFeed.CALLS)
        assert len(errors) == 1
        assert errors[0].field == 'id'
        assert errors[0].row_number == 1
        assert 'Found 2 rows' in errors[0].message

    def test_unique_ids_pass(self, sales_df: pd.DataFrame):
        assert validate_unique_ids(sales_df, EventFeed.SALES) == []

    def test_invalid_date(self, sales_df: pd.DataFrame):
        df = sales_df.copy()
        df.loc[1, 'closedAt'] = 'not-a-date'
        errors = validate_data_types(df, EventFeed.SALES)
        assert len(errors) == 1
        assert errors[0].field == 'closedAt'
        assert errors[0].row_number == 2

    def test_non_numeric_amount(self, sales_df: pd.DataFrame):
        df = sales_df.copy()
        df['amount'] = ['3000', 'lots']
        errors = validate_data_types(df, EventFeed.SALES)
        assert [e.field for e in errors] == ['amount']
        assert 'non-numeric' in errors[0].message

    def test_negative_amount(self, sales_df: pd.DataFrame):
        df = sales_df.copy()
        df.loc[0, 'amount'] = -100.0
        errors = validate_data_types(df, EventFeed.SALES)
        assert len(errors) == 1
        assert 'negative' in errors[0].message
        assert errors[0].row_number == 1

    def test_blank_required_value(self, sales_df: pd.DataFrame):
        df = sales_df.copy()
        df.loc[1, 'product'] = None
        errors = validate_required_values(df, EventFeed.SALES)
        assert len(errors) == 1
        assert errors[0].field == 'product'
        assert errors[0].row_number == 2
        assert 'blank' in errors[0].message

    def test_whitespace_required_value(self, videos_df: pd.DataFrame):
        df = videos_df.copy()
        df.loc[0, 'title'] = '   '
        errors = validate_required_values(df, EventFeed.VIDEOS)
        assert [e.field for e in errors] == ['title']

    def test_required_values_present(self, calls_df: pd.DataFrame):
        assert validate_required_values(calls_df, EventFeed.CALLS) == []

    def test_blank_optional_count_passes(self, videos_df: pd.DataFrame):
        df = videos_df.copy()
        df['revenue'] = [4500.0, None]
        assert validate_data_types(df, EventFeed.VIDEOS) == []

    def test_invalid_status(self, calls_df: pd.DataFrame):
        df = calls_df.copy()
        df.loc[0, 'status'] = 'rescheduled'
        errors = validate_enum_values(df, EventFeed.CALLS)
        assert len(errors) == 1
        assert errors[0].field == 'status'
        assert 'rescheduled' in errors[0].message

    def test_invalid_sale_type(self, sales_df: pd.DataFrame):
        df = sales_df.copy()
        df.loc[1, 'type'] = 'subscription'
        errors = validate_enum_values(df, EventFeed.SALES)
        assert [e.field for e in errors] == ['type']

    def test_blank_optional_enum_passes(self, calls_df: pd.DataFrame):
        df = calls_df.copy()
        df['platform'] = ['youtube', None, None]
        df['medium'] = ['organic', None, None]
        assert validate_enum_values(df, EventFeed.CALLS) == []


# =============================================================================
# TEST CLASS: CSV Ingestion
# =============================================================================

class TestIngestCsv:

    def test_valid_file(self, calls_df: pd.DataFrame):
        df, errors = ingest_frame(calls_df, EventFeed.CALLS)
        assert errors == []
        assert len(df) == 3

    def test_normalizes_enums_and_countries(self, calls_df: pd.DataFrame):
        raw = calls_df.copy()
        raw['status'] = ['Accepted ', 'NO-SHOW', 'cancelled']
        raw['country'] = ['us', ' uk', 'UK']
        df, errors = ingest_frame(raw, EventFeed.CALLS)
        assert errors == []
        assert df['status'].tolist() == ['accepted', 'no-show', 'cancelled']
        assert df['country'].tolist() == ['US', 'UK', 'UK']

    def test_header_only_file(self):
        df, errors = ingest_csv(BytesIO(b'id,videoId,bookedAt,status,country\n'), EventFeed.CALLS)
        assert df is None
        assert errors[0].field == 'file'
        assert 'empty' in errors[0].message

    def test_empty_file(self):
        df, errors = ingest_csv(BytesIO(b''), EventFeed.CALLS)
        assert df is None
        assert errors[0].field == 'file'

    def test_collects_every_row_error(self, sales_df: pd.DataFrame):
        raw = sales_df.copy()
        raw['id'] = ['sale_1', 'sale_1']
        raw['type'] = ['paid-in-full', 'barter']
        df, errors = ingest_frame(raw, EventFeed.SALES)
        assert df is None
        assert {e.field for e in errors} == {'id', 'type'}

    def test_reads_from_path(self, tmp_path, videos_df: pd.DataFrame):
        path = tmp_path / 'videos.csv'
        path.write_bytes(create_csv_bytes(videos_df))
        df, errors = ingest_csv(path, EventFeed.VIDEOS)
        assert errors == []
        assert df['id'].tolist() == ['video_1', 'video_2']


# =============================================================================
# TEST CLASS: Record Conversion
# =============================================================================

class TestDataframeToRecords:

    def test_calls(self, calls_df: pd.DataFrame):
        df, _ = ingest_frame(calls_df, EventFeed.CALLS)
        calls = dataframe_to_records(df, EventFeed.CALLS)
        assert all(isinstance(c, CallBooking) for c in calls)
        assert calls[1].status == CallStatus.NO_SHOW
        assert calls[0].bookedAt.year == 2024
        assert calls[0].bookedAt.tzinfo is not None
        assert calls[0].leadSource is None

    def test_call_lead_source(self, calls_df: pd.DataFrame):
        raw = calls_df.copy()
        raw['platform'] = ['youtube', None, 'google']
        raw['medium'] = ['paid', None, 'organic']
        raw['campaign'] = ['fall_launch', None, None]
        df, errors = ingest_frame(raw, EventFeed.CALLS)
        assert errors == []

        calls = dataframe_to_records(df, EventFeed.CALLS)
        assert calls[0].leadSource.platform == LeadPlatform.YOUTUBE
        assert calls[0].leadSource.medium == LeadMedium.PAID
        assert calls[0].leadSource.campaign == 'fall_launch'
        assert calls[1].leadSource is None
        assert calls[2].leadSource.campaign is None

    def test_sales(self, sales_df: pd.DataFrame):
        df, _ = ingest_frame(sales_df, EventFeed.SALES)
        sales = dataframe_to_records(df, EventFeed.SALES)
        assert all(isinstance(s, Sale) for s in sales)
        assert sales[0].type == SaleType.PAID_IN_FULL
        assert sales[1].amount == 1500.0

    def test_videos_default_counts(self, videos_df: pd.DataFrame):
        df, _ = ingest_frame(videos_df, EventFeed.VIDEOS)
        videos = dataframe_to_records(df, EventFeed.VIDEOS)
        assert all(isinstance(v, YouTubeVideo) for v in videos)
        assert videos[0].views == 20000
        assert videos[0].uniqueViews == 0
        assert videos[0].revenue == 0.0
        assert videos[0].revenuePerView == 0.0

    def test_video_revenue_per_view(self, videos_df: pd.DataFrame):
        raw = videos_df.copy()
        raw['revenue'] = [5000.0, 0.0]
        raw['salesClosed'] = [2, 0]
        df, _ = ingest_frame(raw, EventFeed.VIDEOS)
        video = dataframe_to_records(df, EventFeed.VIDEOS)[0]
        assert video.revenuePerView == pytest.approx(0.25)
        assert video.conversionRate == pytest.approx(0.01)


# =============================================================================
# TEST CLASS: Feed Loading
# =============================================================================

class TestLoadFeeds:

    def test_load_feed(self, tmp_path, sales_df: pd.DataFrame):
        path = tmp_path / 'sales.csv'
        path.write_bytes(create_csv_bytes(sales_df))

        records, result = load_feed(path, EventFeed.SALES)

        assert result.success is True
        assert result.feed == 'sales'
        assert result.rows_processed == 2
        assert len(records) == 2

    def test_load_feed_rejected(self, tmp_path, sales_df: pd.DataFrame):
        path = tmp_path / 'sales.csv'
        path.write_bytes(create_csv_bytes(sales_df.drop(columns=['amount'])))

        records, result = load_feed(path, EventFeed.SALES)

        assert records == []
        assert result.success is False
        assert result.errors[0].field == 'amount'

    def test_load_feed_blank_product_rejected(self, tmp_path, sales_df: pd.DataFrame):
        raw = sales_df.copy()
        raw.loc[0, 'product'] = None
        path = tmp_path / 'sales.csv'
        path.write_bytes(create_csv_bytes(raw))

        records, result = load_feed(path, EventFeed.SALES)

        assert records == []
        assert result.success is False
        assert result.errors[0].field == 'product'
        assert result.errors[0].row_number == 1

    def test_load_event_feeds(self, tmp_path, calls_df, sales_df, videos_df):
        (tmp_path / 'calls.csv').write_bytes(create_csv_bytes(calls_df))
        (tmp_path / 'sales.csv').write_bytes(create_csv_bytes(sales_df))
        (tmp_path / 'videos.csv').write_bytes(create_csv_bytes(videos_df))

        records, results = load_event_feeds(tmp_path)

        assert all(r.success for r in results)
        assert len(records[EventFeed.CALLS]) == 3
        assert len(records[EventFeed.SALES]) == 2
        assert len(records[EventFeed.VIDEOS]) == 2

    def test_missing_files_reported(self, tmp_path, calls_df):
        (tmp_path / 'calls.csv').write_bytes(create_csv_bytes(calls_df))

        records, results = load_event_feeds(tmp_path)

        by_feed = {r.feed: r for r in results}
        assert by_feed['calls'].success is True
        assert by_feed['sales'].success is False
        assert 'not found' in by_feed['sales'].errors[0].message
        assert records[EventFeed.VIDEOS] == []
