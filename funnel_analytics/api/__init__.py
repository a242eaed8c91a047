"""
Funnel Analytics API package initialization.

This package contains FastAPI router modules:
- dashboard: Full dashboard payload and time-range slicing
- ai_insights: Insight generation for a monthly series
- analytics: One endpoint per analytics operation, plus the alert stream
"""

from fastapi import APIRouter

# Import router modules
from funnel_analytics.api.dashboard import router as dashboard_router
from funnel_analytics.api.ai_insights import router as ai_insights_router
from funnel_analytics.api.analytics import router as analytics_router

# Create main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(ai_insights_router, prefix="/ai-insights", tags=["ai-insights"])
api_router.include_router(analytics_router, prefix="/analytics", tags=["analytics"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "dashboard_router",
    "ai_insights_router",
    "analytics_router",
]
