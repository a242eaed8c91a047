"""
External Integration Clients

Thin async clients for the three data sources behind the dashboard:

- YouTube Data API v3: channel statistics and per-video view counts
- Kajabi: products and email campaign statistics
- Cal.com: call bookings

Each integration is optional. Without credentials the caller keeps its mock
data and the integration reports "mock". With credentials, a failed request or
an unexpected payload is logged and the caller keeps its mock data with status
"error". Nothing in this module raises to the dashboard route.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import ValidationError as PydanticValidationError

from funnel_analytics.core.config import Settings
from funnel_analytics.models import (
    ApiStatus,
    CallBooking,
    CallStatus,
    ConnectionStatus,
    KajabiData,
    KajabiEmailStats,
    KajabiProduct,
    YouTubeVideo,
)
from funnel_analytics.services.aggregation import safe_rate

logger = logging.getLogger(__name__)


YOUTUBE_API_BASE_URL = 'https://www.googleapis.com/youtube/v3'

# Cal.com booking status -> call status
CALCOM_STATUS_MAP: Dict[str, CallStatus] = {
    'accepted': CallStatus.ACCEPTED,
    'confirmed': CallStatus.ACCEPTED,
    'completed': CallStatus.ACCEPTED,
    'cancelled': CallStatus.CANCELLED,
    'rejected': CallStatus.CANCELLED,
    'no-show': CallStatus.NO_SHOW,
    'no_show': CallStatus.NO_SHOW,
}

DEFAULT_BOOKING_COUNTRY = 'US'

# Errors that mean "the integration answered with something unusable"
PAYLOAD_ERRORS = (KeyError, TypeError, ValueError, PydanticValidationError)


class IntegrationError(Exception):
    """Raised by a client when an integration request fails."""

    def __init__(self, integration: str, message: str):
        self.integration = integration
        super().__init__(f"{integration}: {message}")


class IntegrationClient:
    """
    Base class holding the shared httpx client setup.

    Args:
        settings: Application settings (credentials, base URLs, timeout)
        transport: Optional httpx transport, used in tests to stub responses
    """

    name = 'integration'

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    @property
    def api_key(self) -> Optional[str]:
        raise NotImplementedError

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _bearer_headers(self) -> Dict[str, str]:
        return {
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': 'application/json',
        }

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise IntegrationError(self.name, f"HTTP {e.response.status_code} from {url}") from e
        except httpx.HTTPError as e:
            raise IntegrationError(self.name, f"request to {url} failed: {e}") from e


# =============================================================================
# YouTube
# =============================================================================


class YouTubeClient(IntegrationClient):
    name = 'youtube'

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.youtube_api_key

    async def get_channel_stats(self) -> Dict[str, int]:
        data = await self._get_json(
            f"{YOUTUBE_API_BASE_URL}/channels",
            params={'part': 'statistics', 'id': self.settings.youtube_channel_id, 'key': self.api_key},
        )
        statistics = data['items'][0]['statistics']
        return {
            'subscriberCount': int(statistics.get('subscriberCount', 0)),
            'viewCount': int(statistics.get('viewCount', 0)),
            'videoCount': int(statistics.get('videoCount', 0)),
        }

    async def get_video_stats(self, video_ids: Sequence[str]) -> List[Dict[str, Any]]:
        data = await self._get_json(
            f"{YOUTUBE_API_BASE_URL}/videos",
            params={'part': 'statistics,snippet', 'id': ','.join(video_ids), 'key': self.api_key},
        )
        return [
            {
                'id': item['id'],
                'title': item['snippet']['title'],
                'publishedAt': item['snippet']['publishedAt'],
                'views': int(item['statistics'].get('viewCount', 0)),
            }
            for item in data.get('items', [])
        ]


def merge_video_stats(
    live_stats: Sequence[Dict[str, Any]],
    known_videos: Sequence[YouTubeVideo],
) -> List[YouTubeVideo]:
    """
    Combine live view counts with the funnel counters already known per video.

    Videos missing from the live response keep their known record.
    """
    known = {v.id: v for v in known_videos}
    merged: Dict[str, YouTubeVideo] = dict(known)

    for stats in live_stats:
        base = known.get(stats['id'])
        record = base.model_dump() if base is not None else {'id': stats['id']}
        views = stats['views']
        revenue = record.get('revenue', 0.0)
        record.update(
            title=stats['title'],
            publishedAt=stats['publishedAt'],
            views=views,
            uniqueViews=int(views * 0.7),
            conversionRate=safe_rate(record.get('salesClosed', 0), views),
            revenuePerView=safe_rate(revenue, views, scale=1.0),
        )
        merged[stats['id']] = YouTubeVideo(**record)

    return sorted(merged.values(), key=lambda v: v.revenue, reverse=True)


async def fetch_youtube_videos(
    settings: Settings,
    fallback: Sequence[YouTubeVideo],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[List[YouTubeVideo], ConnectionStatus]:
    client = YouTubeClient(settings, transport)
    if not client.configured:
        logger.info("YouTube API key not configured, using mock video data")
        return list(fallback), ConnectionStatus.MOCK

    try:
        live_stats = await client.get_video_stats(settings.youtube_video_ids)
        videos = merge_video_stats(live_stats, fallback)
        logger.info(f"Fetched live statistics for {len(live_stats)} videos")
        return videos, ConnectionStatus.CONNECTED
    except IntegrationError as e:
        logger.error(f"YouTube API error: {e}", exc_info=True)
    except PAYLOAD_ERRORS as e:
        logger.error(f"Unexpected YouTube payload: {e}", exc_info=True)

    return list(fallback), ConnectionStatus.ERROR


# =============================================================================
# Kajabi
# =============================================================================


class KajabiClient(IntegrationClient):
    name = 'kajabi'

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.kajabi_api_key

    async def get_products(self) -> List[KajabiProduct]:
        data = await self._get_json(
            f"{self.settings.kajabi_base_url}/products",
            headers=self._bearer_headers(),
        )
        return [KajabiProduct(**product) for product in data.get('products', [])]

    async def get_email_stats(self) -> KajabiEmailStats:
        data = await self._get_json(
            f"{self.settings.kajabi_base_url}/email_campaigns/stats",
            headers=self._bearer_headers(),
        )
        stats = data.get('stats', {})
        return KajabiEmailStats(
            opens=stats.get('opens', 0),
            clicks=stats.get('clicks', 0),
            openRate=stats.get('openRate', 0.0),
            clickRate=stats.get('clickRate', 0.0),
        )


async def fetch_kajabi_data(
    settings: Settings,
    fallback: KajabiData,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[KajabiData, ConnectionStatus]:
    client = KajabiClient(settings, transport)
    if not client.configured:
        logger.info("Kajabi API key not configured, using mock product data")
        return fallback, ConnectionStatus.MOCK

    try:
        products = await client.get_products()
        email_stats = await client.get_email_stats()
        data = fallback.model_copy(update={'products': products, 'emailStats': email_stats})
        return data, ConnectionStatus.CONNECTED
    except IntegrationError as e:
        logger.error(f"Kajabi API error: {e}", exc_info=True)
    except PAYLOAD_ERRORS as e:
        logger.error(f"Unexpected Kajabi payload: {e}", exc_info=True)

    return fallback, ConnectionStatus.ERROR


# =============================================================================
# Cal.com
# =============================================================================


def booking_to_call(booking: Dict[str, Any]) -> CallBooking:
    """
    Map a Cal.com booking onto a CallBooking.

    The originating video and the lead's country are read from the booking
    metadata written by the booking form.
    """
    metadata = booking.get('metadata') or {}
    raw_status = str(booking.get('status', '')).lower()
    return CallBooking(
        id=str(booking['id']),
        videoId=str(metadata.get('video', '')),
        bookedAt=booking['startTime'],
        status=CALCOM_STATUS_MAP.get(raw_status, CallStatus.BOOKED),
        country=str(metadata.get('country', DEFAULT_BOOKING_COUNTRY)).upper(),
    )


class CalComClient(IntegrationClient):
    name = 'calcom'

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.calcom_api_key

    async def get_bookings(self, start: datetime, end: datetime) -> List[CallBooking]:
        data = await self._get_json(
            f"{self.settings.calcom_base_url}/bookings",
            params={'startTime': start.isoformat(), 'endTime': end.isoformat()},
            headers=self._bearer_headers(),
        )
        return [booking_to_call(b) for b in data.get('bookings', [])]


async def fetch_calcom_calls(
    settings: Settings,
    fallback: Sequence[CallBooking],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[List[CallBooking], ConnectionStatus]:
    """
    Live bookings covering the same date range as the fallback calls.
    """
    client = CalComClient(settings, transport)
    if not client.configured or not fallback:
        if not client.configured:
            logger.info("Cal.com API key not configured, using mock booking data")
        return list(fallback), ConnectionStatus.MOCK

    start = min(c.bookedAt for c in fallback)
    end = max(c.bookedAt for c in fallback)
    try:
        calls = await client.get_bookings(start, end)
        logger.info(f"Fetched {len(calls)} Cal.com bookings")
        return calls, ConnectionStatus.CONNECTED
    except IntegrationError as e:
        logger.error(f"Cal.com API error: {e}", exc_info=True)
    except PAYLOAD_ERRORS as e:
        logger.error(f"Unexpected Cal.com payload: {e}", exc_info=True)

    return list(fallback), ConnectionStatus.ERROR


# =============================================================================
# Status
# =============================================================================


def _configured_status(key: Optional[str]) -> ConnectionStatus:
    return ConnectionStatus.CONNECTED if key else ConnectionStatus.MOCK


def get_api_status(settings: Settings) -> ApiStatus:
    """Connection status from configured credentials alone (no network calls)."""
    return ApiStatus(
        youtube=_configured_status(settings.youtube_api_key),
        kajabi=_configured_status(settings.kajabi_api_key),
        calcom=_configured_status(settings.calcom_api_key),
        openai=_configured_status(settings.openai_api_key),
    )


def error_api_status() -> ApiStatus:
    return ApiStatus(
        youtube=ConnectionStatus.ERROR,
        kajabi=ConnectionStatus.ERROR,
        calcom=ConnectionStatus.ERROR,
        openai=ConnectionStatus.ERROR,
    )
