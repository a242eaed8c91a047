"""
FastAPI router module for the dashboard payload.

Endpoints:
- GET /api/dashboard: Full aggregated dataset (events, monthly metrics,
  insights, alerts, integration status)
- POST /api/dashboard: Same payload with the monthly series sliced to a
  time range ({"timeRange": "all" | "last6" | "last3" | "current"})

The dashboard never returns an error status. When assembly fails the route
serves plain mock data with every integration reported as "error", so the
frontend can always render.
"""

import logging

from fastapi import APIRouter

from funnel_analytics.core.dependencies import SettingsDep
from funnel_analytics.models import DashboardData, DashboardFilterRequest
from funnel_analytics.services.dashboard import (
    build_dashboard_data,
    build_fallback_dashboard,
    filter_dashboard,
)


logger = logging.getLogger(__name__)

router = APIRouter()


async def _dashboard_or_fallback(settings) -> DashboardData:
    try:
        return await build_dashboard_data(settings)
    except Exception as e:
        logger.error(f"Dashboard assembly failed, serving mock data: {e}", exc_info=True)
        return build_fallback_dashboard(settings.mock_seed)


@router.get("", response_model=DashboardData)
async def get_dashboard(settings: SettingsDep) -> DashboardData:
    """
    Return the full dashboard dataset.

    Events come from the CSV feed directory when EVENTS_DIR is set, otherwise
    from the seeded mock generator; live integration data replaces mock
    records wherever credentials are configured.
    """
    return await _dashboard_or_fallback(settings)


@router.post("", response_model=DashboardData)
async def filter_dashboard_data(
    request: DashboardFilterRequest,
    settings: SettingsDep,
) -> DashboardData:
    """Return the dashboard dataset with monthlyMetrics limited to request.timeRange."""
    data = await _dashboard_or_fallback(settings)
    return filter_dashboard(data, request.timeRange)
