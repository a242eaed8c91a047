"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- FastAPI dependency injection utilities

Re-exports key components so other modules can write:

    from funnel_analytics.core import get_settings, SettingsDep

Instead of:

    from funnel_analytics.core.config import get_settings
    from funnel_analytics.core.dependencies import SettingsDep

Components Re-exported:
    Settings: Pydantic settings class with all configuration parameters
    get_settings: Function returning the cached Settings singleton
    get_settings_dependency: FastAPI dependency returning Settings
    get_alert_feed_dependency: FastAPI dependency returning the AlertFeed
    SettingsDep: Type alias for Settings dependency injection
    AlertFeedDep: Type alias for AlertFeed dependency injection
"""

# =============================================================================
# Re-exports from funnel_analytics.core.config
# =============================================================================
from funnel_analytics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from funnel_analytics.core.dependencies
# =============================================================================
from funnel_analytics.core.dependencies import (
    get_settings_dependency,
    get_alert_feed_dependency,
    SettingsDep,
    AlertFeedDep,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'get_alert_feed_dependency',
    'SettingsDep',
    'AlertFeedDep',
]
