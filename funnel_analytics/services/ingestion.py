"""
Event Feed Ingestion Service

Loads raw event records (call bookings, sales, videos) from CSV exports so the
analytics pipeline can run over real data instead of the mock generator.

Feeds:
- calls.csv:  id, videoId, bookedAt, status, country
              (+ optional platform, medium, campaign for the lead source)
- sales.csv:  id, callId, amount, type, product, closedAt, country
- videos.csv: id, title, publishedAt, views
              (+ optional uniqueViews, leadsGenerated, callsBooked,
               callsAccepted, salesClosed, revenue)

Key Features:
- Required column validation per feed
- Unique id enforcement
- Date, numeric and enum value validation
- Validation never raises: every function returns its errors as
  ValidationError models and ingestion returns (None, errors) on failure

Row numbers in errors are 1-based data rows (the header is not counted).
"""

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union

import pandas as pd

from funnel_analytics.models import (
    CallBooking,
    CallStatus,
    DetailedLeadSource,
    EventFeed,
    IngestionResult,
    LeadMedium,
    LeadPlatform,
    Sale,
    SaleType,
    ValidationError,
    YouTubeVideo,
)
from funnel_analytics.services.aggregation import safe_rate

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Required Columns
# =============================================================================

CALLS_REQUIRED_COLUMNS: List[str] = ['id', 'videoId', 'bookedAt', 'status', 'country']

SALES_REQUIRED_COLUMNS: List[str] = ['id', 'callId', 'amount', 'type', 'product', 'closedAt', 'country']

VIDEOS_REQUIRED_COLUMNS: List[str] = ['id', 'title', 'publishedAt', 'views']

REQUIRED_COLUMNS: Dict[EventFeed, List[str]] = {
    EventFeed.CALLS: CALLS_REQUIRED_COLUMNS,
    EventFeed.SALES: SALES_REQUIRED_COLUMNS,
    EventFeed.VIDEOS: VIDEOS_REQUIRED_COLUMNS,
}

# =============================================================================
# CONSTANTS - Typed Columns
# =============================================================================

DATE_COLUMNS: Dict[EventFeed, List[str]] = {
    EventFeed.CALLS: ['bookedAt'],
    EventFeed.SALES: ['closedAt'],
    EventFeed.VIDEOS: ['publishedAt'],
}

VIDEO_COUNT_COLUMNS: List[str] = [
    'views',
    'uniqueViews',
    'leadsGenerated',
    'callsBooked',
    'callsAccepted',
    'salesClosed',
]

NUMERIC_COLUMNS: Dict[EventFeed, List[str]] = {
    EventFeed.CALLS: [],
    EventFeed.SALES: ['amount'],
    EventFeed.VIDEOS: VIDEO_COUNT_COLUMNS + ['revenue'],
}

ENUM_COLUMNS: Dict[EventFeed, Dict[str, List[str]]] = {
    EventFeed.CALLS: {
        'status': [s.value for s in CallStatus],
        'platform': [p.value for p in LeadPlatform],
        'medium': [m.value for m in LeadMedium],
    },
    EventFeed.SALES: {
        'type': [t.value for t in SaleType],
    },
    EventFeed.VIDEOS: {},
}

# Error messages list at most this many offending rows
MAX_REPORTED_ROWS: int = 5


def _row_numbers(df: pd.DataFrame, mask: pd.Series) -> List[int]:
    """1-based row numbers of the first offending rows."""
    return [int(i) + 1 for i in df[mask].index.tolist()[:MAX_REPORTED_ROWS]]


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_columns(df: pd.DataFrame, feed: EventFeed) -> List[ValidationError]:
    """
    Validate that all required columns are present in the DataFrame.

    Args:
        df: The pandas DataFrame to validate
        feed: Which event feed the frame holds

    Returns:
        List of ValidationError objects for any missing columns
    """
    errors: List[ValidationError] = []
    columns = set(df.columns)
    for col in REQUIRED_COLUMNS[feed]:
        if col not in columns:
            errors.append(ValidationError(
                field=col,
                message=f"Required column '{col}' is missing for the {feed.value} feed",
                row_number=None,
            ))
    return errors


def validate_unique_ids(df: pd.DataFrame, feed: EventFeed) -> List[ValidationError]:
    """Validate that no record id appears twice."""
    duplicated_mask = df.duplicated(subset=['id'], keep=False)
    duplicate_count = int(duplicated_mask.sum())
    if duplicate_count == 0:
        return []

    rows = _row_numbers(df, duplicated_mask)
    return [ValidationError(
        field='id',
        message=(
            f"Found {duplicate_count} rows sharing an id in the {feed.value} feed. "
            f"First duplicate rows: {rows}"
        ),
        row_number=rows[0],
    )]


def validate_required_values(df: pd.DataFrame, feed: EventFeed) -> List[ValidationError]:
    """
    Validate that required columns have no blank cells.

    Must run on the raw frame: normalization turns blanks into the string 'nan'.
    """
    errors: List[ValidationError] = []
    for col in REQUIRED_COLUMNS[feed]:
        if col not in df.columns:
            continue
        values = df[col]
        blank_mask = values.isna() | (values.astype(str).str.strip() == '')
        blank_count = int(blank_mask.sum())
        if blank_count > 0:
            rows = _row_numbers(df, blank_mask)
            errors.append(ValidationError(
                field=col,
                message=f"Found {blank_count} blank values in required column '{col}'. First blank rows: {rows}",
                row_number=rows[0],
            ))
    return errors


def validate_data_types(df: pd.DataFrame, feed: EventFeed) -> List[ValidationError]:
    """
    Validate that columns have the correct data types.

    Checks:
    - Date columns parse as timestamps
    - Numeric columns are numeric and not negative
    """
    errors: List[ValidationError] = []

    for col in DATE_COLUMNS[feed]:
        if col not in df.columns:
            continue
        parsed = pd.to_datetime(df[col], errors='coerce', utc=True)
        invalid_mask = parsed.isna()
        invalid_count = int(invalid_mask.sum())
        if invalid_count > 0:
            rows = _row_numbers(df, invalid_mask)
            errors.append(ValidationError(
                field=col,
                message=f"Found {invalid_count} invalid date values. First invalid rows: {rows}",
                row_number=rows[0],
            ))

    for col in NUMERIC_COLUMNS[feed]:
        if col not in df.columns:
            continue
        numeric_series = pd.to_numeric(df[col], errors='coerce')
        invalid_mask = numeric_series.isna()
        if col not in REQUIRED_COLUMNS[feed]:
            invalid_mask = invalid_mask & df[col].notna()
        invalid_count = int(invalid_mask.sum())
        if invalid_count > 0:
            rows = _row_numbers(df, invalid_mask)
            errors.append(ValidationError(
                field=col,
                message=f"Found {invalid_count} non-numeric values in column '{col}'. First invalid rows: {rows}",
                row_number=rows[0],
            ))
            continue

        negative_mask = numeric_series < 0
        negative_count = int(negative_mask.sum())
        if negative_count > 0:
            rows = _row_numbers(df, negative_mask)
            errors.append(ValidationError(
                field=col,
                message=f"Found {negative_count} negative values in column '{col}'. First invalid rows: {rows}",
                row_number=rows[0],
            ))

    return errors


def validate_enum_values(df: pd.DataFrame, feed: EventFeed) -> List[ValidationError]:
    """Validate enum columns against their allowed values. Blank optional cells pass."""
    errors: List[ValidationError] = []

    for col, allowed in ENUM_COLUMNS[feed].items():
        if col not in df.columns:
            continue
        values = df[col]
        invalid_mask = ~values.isin(allowed)
        if col not in REQUIRED_COLUMNS[feed]:
            invalid_mask = invalid_mask & values.notna()
        invalid_count = int(invalid_mask.sum())
        if invalid_count > 0:
            bad_values = sorted(set(values[invalid_mask].astype(str)))[:MAX_REPORTED_ROWS]
            rows = _row_numbers(df, invalid_mask)
            errors.append(ValidationError(
                field=col,
                message=(
                    f"Found {invalid_count} invalid values in column '{col}': {bad_values}. "
                    f"Allowed: {allowed}"
                ),
                row_number=rows[0],
            ))

    return errors


def _normalize_dataframe(df: pd.DataFrame, feed: EventFeed) -> pd.DataFrame:
    """
    Normalize column names and enum spelling for processing.

    Column names are stripped. Enum cells are lower-cased and stripped so
    "Accepted " and "accepted" load the same. Country codes are upper-cased.
    """
    df_normalized = df.copy()
    df_normalized.columns = df_normalized.columns.str.strip()

    for col in ENUM_COLUMNS[feed]:
        if col in df_normalized.columns:
            df_normalized[col] = df_normalized[col].where(
                df_normalized[col].isna(),
                df_normalized[col].astype(str).str.strip().str.lower(),
            )

    if 'country' in df_normalized.columns:
        df_normalized['country'] = df_normalized['country'].astype(str).str.strip().str.upper()

    for col in ('id', 'videoId', 'callId'):
        if col in df_normalized.columns:
            df_normalized[col] = df_normalized[col].astype(str).str.strip()

    return df_normalized


# =============================================================================
# INGESTION FUNCTIONS
# =============================================================================

def ingest_csv(
    file: Union[BinaryIO, str, Path],
    feed: EventFeed,
) -> Tuple[Optional[pd.DataFrame], List[ValidationError]]:
    """
    Parse and validate a CSV event feed.

    Steps:
    1. Parse CSV using pandas
    2. Validate required columns and blank cells (stop here on any error)
    3. Normalize
    4. Validate unique ids, data types and enum values

    Args:
        file: Binary file object or path to a CSV file
        feed: Which event feed the file holds

    Returns:
        Tuple of (validated DataFrame or None, list of validation errors)
    """
    errors: List[ValidationError] = []

    try:
        if hasattr(file, 'read'):
            content = file.read()
            if isinstance(content, bytes):
                file_like = io.BytesIO(content)
            else:
                file_like = io.StringIO(content)
        else:
            file_like = file

        df = pd.read_csv(file_like)

        if df.empty:
            errors.append(ValidationError(
                field='file',
                message='CSV file is empty or contains no data rows',
                row_number=None,
            ))
            return None, errors

        logger.info(f"Parsed {feed.value} CSV with {len(df)} rows and {len(df.columns)} columns")

    except (OSError, ValueError, pd.errors.ParserError) as e:
        errors.append(ValidationError(
            field='file',
            message=f'Failed to parse CSV file: {str(e)}',
            row_number=None,
        ))
        return None, errors

    df.columns = df.columns.str.strip()
    column_errors = validate_columns(df, feed)
    errors.extend(column_errors)
    if column_errors:
        return None, errors

    blank_errors = validate_required_values(df, feed)
    errors.extend(blank_errors)
    if blank_errors:
        return None, errors

    df = _normalize_dataframe(df, feed)

    errors.extend(validate_unique_ids(df, feed))
    errors.extend(validate_data_types(df, feed))
    errors.extend(validate_enum_values(df, feed))

    if errors:
        return None, errors

    return df, errors


# =============================================================================
# RECORD CONVERSION
# =============================================================================

def _optional(row: Dict[str, Any], key: str) -> Optional[Any]:
    value = row.get(key)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return value


def _count(row: Dict[str, Any], key: str) -> int:
    value = _optional(row, key)
    return int(value) if value is not None else 0


def _timestamp(value: Any) -> datetime:
    return pd.Timestamp(value).to_pydatetime()


def _call_from_row(row: Dict[str, Any]) -> CallBooking:
    lead_source = None
    platform = _optional(row, 'platform')
    medium = _optional(row, 'medium')
    if platform is not None and medium is not None:
        lead_source = DetailedLeadSource(
            platform=platform,
            medium=medium,
            campaign=_optional(row, 'campaign'),
        )
    return CallBooking(
        id=row['id'],
        videoId=row['videoId'],
        bookedAt=_timestamp(row['bookedAt']),
        status=row['status'],
        country=row['country'],
        leadSource=lead_source,
    )


def _sale_from_row(row: Dict[str, Any]) -> Sale:
    return Sale(
        id=row['id'],
        callId=row['callId'],
        amount=float(row['amount']),
        type=row['type'],
        product=row['product'],
        closedAt=_timestamp(row['closedAt']),
        country=row['country'],
    )


def _video_from_row(row: Dict[str, Any]) -> YouTubeVideo:
    views = _count(row, 'views')
    sales_closed = _count(row, 'salesClosed')
    revenue_value = _optional(row, 'revenue')
    revenue = float(revenue_value) if revenue_value is not None else 0.0
    return YouTubeVideo(
        id=row['id'],
        title=str(row['title']),
        publishedAt=_timestamp(row['publishedAt']),
        views=views,
        uniqueViews=_count(row, 'uniqueViews'),
        leadsGenerated=_count(row, 'leadsGenerated'),
        callsBooked=_count(row, 'callsBooked'),
        callsAccepted=_count(row, 'callsAccepted'),
        salesClosed=sales_closed,
        revenue=revenue,
        conversionRate=safe_rate(sales_closed, views),
        revenuePerView=safe_rate(revenue, views, scale=1.0),
    )


ROW_CONVERTERS = {
    EventFeed.CALLS: _call_from_row,
    EventFeed.SALES: _sale_from_row,
    EventFeed.VIDEOS: _video_from_row,
}


def dataframe_to_records(df: pd.DataFrame, feed: EventFeed) -> List[Any]:
    """Convert a validated feed DataFrame into event models."""
    converter = ROW_CONVERTERS[feed]
    return [converter(row) for row in df.to_dict(orient='records')]


def load_feed(path: Union[str, Path], feed: EventFeed) -> Tuple[List[Any], IngestionResult]:
    """
    Load one CSV feed file into event models.

    Returns:
        (records, result). records is empty whenever result.success is False.
    """
    df, errors = ingest_csv(path, feed)
    if df is None:
        logger.warning(f"Feed {feed.value} rejected with {len(errors)} validation errors")
        return [], IngestionResult(feed=feed.value, success=False, rows_processed=0, errors=errors)

    records = dataframe_to_records(df, feed)
    logger.info(f"Loaded {len(records)} {feed.value} records from {path}")
    return records, IngestionResult(
        feed=feed.value,
        success=True,
        rows_processed=len(records),
        errors=[],
    )


def load_event_feeds(
    events_dir: Union[str, Path],
) -> Tuple[Dict[EventFeed, List[Any]], List[IngestionResult]]:
    """
    Load calls.csv, sales.csv and videos.csv from a directory.

    A missing file is reported as a failed IngestionResult rather than raised.

    Returns:
        (records keyed by feed, one IngestionResult per feed)
    """
    base = Path(events_dir)
    records: Dict[EventFeed, List[Any]] = {}
    results: List[IngestionResult] = []

    for feed in EventFeed:
        path = base / f"{feed.value}.csv"
        if not path.exists():
            records[feed] = []
            results.append(IngestionResult(
                feed=feed.value,
                success=False,
                rows_processed=0,
                errors=[ValidationError(field='file', message=f"Feed file not found: {path}")],
            ))
            continue
        records[feed], result = load_feed(path, feed)
        results.append(result)

    return records, results
