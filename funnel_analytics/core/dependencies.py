"""
FastAPI dependency injection module for the Funnel Analytics backend.

Provides reusable FastAPI dependencies so endpoint handlers never reach for
module-level singletons directly. Tests swap any of them through
`app.dependency_overrides`.

Key Dependencies Provided:
- get_settings_dependency / SettingsDep: the cached Settings singleton
- get_alert_feed_dependency / AlertFeedDep: the process-wide alert channel

Usage Examples:
    @router.post("/videos")
    async def attribute(request: VideoAttributionRequest, settings: SettingsDep):
        share = settings.monthly_view_share
        ...

    # In tests
    app.dependency_overrides[get_settings_dependency] = lambda: test_settings
"""

from typing import Annotated

from fastapi import Depends

from funnel_analytics.core.config import Settings, get_settings
from funnel_analytics.services.alerts import AlertFeed, get_alert_feed


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so FastAPI's override mechanism can
    replace it in tests:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Alert Feed Dependency
# =============================================================================

def get_alert_feed_dependency() -> AlertFeed:
    """Return the process-wide AlertFeed."""
    return get_alert_feed()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(feed: AlertFeedDep)
AlertFeedDep = Annotated[AlertFeed, Depends(get_alert_feed_dependency)]
