"""
Settings and environment management module for the Funnel Analytics backend.

Centralized configuration using pydantic-settings, which loads values from
environment variables and a .env file.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for local development (everything optional)
- Singleton pattern via @lru_cache for efficient access
- Optional credentials for the YouTube, Kajabi, Cal.com and OpenAI integrations;
  each integration serves mock data when its key is absent

Environment Variables:
- YOUTUBE_API_KEY / YOUTUBE_CHANNEL_ID: YouTube Data API v3 access
- KAJABI_API_KEY: Kajabi products, sales and email stats
- CALCOM_API_KEY: Cal.com bookings
- OPENAI_API_KEY / OPENAI_MODEL: LLM-generated insights
- EVENTS_DIR: Directory of calls.csv / sales.csv / videos.csv event feeds
- MOCK_SEED: Seed for the mock event generator

Usage:
    from funnel_analytics.core.config import get_settings

    settings = get_settings()
    share = settings.monthly_view_share
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        youtube_api_key: YouTube Data API key. Mock video stats when absent.
        youtube_channel_id: Channel whose statistics are fetched.
        youtube_video_ids: Videos whose statistics are fetched.
        kajabi_api_key: Kajabi API key. Mock products/sales when absent.
        calcom_api_key: Cal.com API key. Mock bookings when absent.
        openai_api_key: OpenAI key. Rule-based insights when absent.
        openai_model: Chat model used for insights.
        events_dir: Optional directory holding CSV event feeds.
        mock_seed: Seed for the deterministic mock event generator.
        monthly_view_share: Fraction of lifetime views attributed to a single month.
        email_cost_per_send: Estimated cost of one email send, in dollars.
        http_timeout_seconds: Timeout for outbound integration calls.
        cors_origins: Origins allowed to call the API from a browser.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Integrations (all optional)
    # =========================================================================

    youtube_api_key: Optional[str] = None
    youtube_channel_id: str = 'UC_default_channel'
    youtube_video_ids: List[str] = ['video_1', 'video_2', 'video_3']

    kajabi_api_key: Optional[str] = None
    kajabi_base_url: str = 'https://api.kajabi.com'

    calcom_api_key: Optional[str] = None
    calcom_base_url: str = 'https://api.cal.com/v1'

    openai_api_key: Optional[str] = None
    openai_model: str = 'gpt-4o-mini'

    # Outbound HTTP timeout shared by every integration client
    http_timeout_seconds: float = 10.0

    # =========================================================================
    # Event Sources
    # =========================================================================

    # When set, calls.csv / sales.csv / videos.csv in this directory replace
    # the generated mock events
    events_dir: Optional[str] = None

    mock_seed: int = 42

    # =========================================================================
    # Analytics Defaults
    # =========================================================================

    # Per-month view data is not available from the channel API, so monthly
    # views are estimated as a fixed share of lifetime views
    monthly_view_share: float = 0.15

    # ROI for email campaigns uses an estimated per-send cost
    email_cost_per_send: float = 0.10

    # =========================================================================
    # HTTP
    # =========================================================================

    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
