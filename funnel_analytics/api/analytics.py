"""
FastAPI router module for the analytics endpoints.

Each endpoint exposes one analytics operation over a JSON body, so the
dashboard (or any other client) can run the computations on its own data.

Key Endpoints:
- POST /api/analytics/trends: Month-over-month trend records
- POST /api/analytics/record-highs: Series maxima and per-month record flags
- POST /api/analytics/dropoffs: Funnel transitions converting below threshold
- POST /api/analytics/funnel: Five-stage funnel with stage conversion
- POST /api/analytics/products: Revenue per product for a month
- POST /api/analytics/videos: Per-video attribution for a month
- POST /api/analytics/countries: Per-country revenue and conversion
- POST /api/analytics/email-campaigns: Email engagement and ROI
- POST /api/analytics/traffic-sources: Traffic source cost, ROI and share
- POST /api/analytics/alerts: Threshold breaches, published to the alert feed
- WS   /api/analytics/alerts/stream: Live alert feed

Error Handling:
- Invalid bodies are rejected with 400 (see main.py validation handler)
- Unexpected failures return 500; HTTPExceptions pass through untouched
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from funnel_analytics.core.dependencies import AlertFeedDep, SettingsDep
from funnel_analytics.models import (
    AlertsRequest,
    CountryAttributionRequest,
    CountryMetrics,
    DropoffPoint,
    EmailCampaignsRequest,
    EmailCampaignsResponse,
    FunnelStage,
    MonthlyMetrics,
    ProductBreakdownRequest,
    RealTimeAlert,
    RecordHighsRequest,
    RecordHighsResponse,
    TrafficSourcesRequest,
    TrafficSourcesResponse,
    TrendRecord,
    TrendsRequest,
    VideoAttributionRequest,
    VideoAttributionResponse,
)
from funnel_analytics.services.alerts import evaluate_thresholds
from funnel_analytics.services.attribution import (
    attribute_countries,
    attribute_videos,
    available_months,
    month_totals,
)
from funnel_analytics.services.campaigns import (
    analyze_campaigns,
    analyze_traffic_sources,
    campaign_totals,
    filter_traffic_sources,
    traffic_totals,
)
from funnel_analytics.services.funnel import build_funnel_stages, detect_dropoffs, product_breakdown
from funnel_analytics.services.trends import compare_months, find_record_highs, record_high_flags


logger = logging.getLogger(__name__)

router = APIRouter()


def _internal_error(operation: str, error: Exception) -> HTTPException:
    logger.error(f"Error computing {operation}: {error}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Failed to compute {operation}: {error}")


# =============================================================================
# Trends
# =============================================================================


@router.post("/trends", response_model=List[TrendRecord])
async def trends(request: TrendsRequest) -> List[TrendRecord]:
    """Compare `current` against `previous` (omit previous for the first month)."""
    try:
        return compare_months(request.current, request.previous)
    except Exception as e:
        raise _internal_error("trends", e)


@router.post("/record-highs", response_model=RecordHighsResponse)
async def record_highs(request: RecordHighsRequest) -> RecordHighsResponse:
    try:
        return RecordHighsResponse(
            highs=find_record_highs(request.monthlyMetrics),
            flags=record_high_flags(request.monthlyMetrics),
        )
    except Exception as e:
        raise _internal_error("record highs", e)


# =============================================================================
# Funnel
# =============================================================================


@router.post("/dropoffs", response_model=List[DropoffPoint])
async def dropoffs(latest: MonthlyMetrics) -> List[DropoffPoint]:
    """Drop-off points for a month, most severe first. Empty when the funnel is healthy."""
    try:
        return detect_dropoffs(latest)
    except Exception as e:
        raise _internal_error("drop-offs", e)


@router.post("/funnel", response_model=List[FunnelStage])
async def funnel(latest: MonthlyMetrics) -> List[FunnelStage]:
    try:
        return build_funnel_stages(latest)
    except Exception as e:
        raise _internal_error("funnel stages", e)


@router.post("/products", response_model=Dict[str, float])
async def products(request: ProductBreakdownRequest) -> Dict[str, float]:
    try:
        return product_breakdown(request.sales, request.month)
    except Exception as e:
        raise _internal_error("product breakdown", e)


# =============================================================================
# Attribution
# =============================================================================


@router.post("/videos", response_model=VideoAttributionResponse)
async def videos(request: VideoAttributionRequest, settings: SettingsDep) -> VideoAttributionResponse:
    """
    Attribute calls, sales and revenue to each video for request.month.

    Sales are joined to videos through their call; monthly views are
    estimated as MONTHLY_VIEW_SHARE of lifetime views.
    """
    try:
        performances = attribute_videos(
            request.videos,
            request.calls,
            request.sales,
            request.month,
            sort_by=request.sortBy,
            monthly_view_share=settings.monthly_view_share,
        )
        return VideoAttributionResponse(
            month=request.month,
            videos=performances,
            totals=month_totals(performances),
            availableMonths=available_months(request.calls),
        )
    except Exception as e:
        raise _internal_error("video attribution", e)


@router.post("/countries", response_model=List[CountryMetrics])
async def countries(request: CountryAttributionRequest) -> List[CountryMetrics]:
    try:
        return attribute_countries(
            request.sales,
            request.calls,
            previous_sales=request.previousSales,
            sort_by=request.sortBy,
        )
    except Exception as e:
        raise _internal_error("country attribution", e)


# =============================================================================
# Campaigns and Traffic
# =============================================================================


@router.post("/email-campaigns", response_model=EmailCampaignsResponse)
async def email_campaigns(request: EmailCampaignsRequest, settings: SettingsDep) -> EmailCampaignsResponse:
    try:
        selected = [
            c for c in request.campaigns
            if request.campaignType is None or c.type == request.campaignType
        ]
        return EmailCampaignsResponse(
            campaigns=analyze_campaigns(
                request.campaigns,
                campaign_type=request.campaignType,
                sort_by=request.sortBy,
                cost_per_send=settings.email_cost_per_send,
            ),
            totals=campaign_totals(selected),
        )
    except Exception as e:
        raise _internal_error("email campaign metrics", e)


@router.post("/traffic-sources", response_model=TrafficSourcesResponse)
async def traffic_sources(request: TrafficSourcesRequest) -> TrafficSourcesResponse:
    try:
        selected = filter_traffic_sources(request.sources, request.platform, request.medium)
        return TrafficSourcesResponse(
            sources=analyze_traffic_sources(
                request.sources,
                platform=request.platform,
                medium=request.medium,
                sort_by=request.sortBy,
            ),
            totals=traffic_totals(selected),
        )
    except Exception as e:
        raise _internal_error("traffic source metrics", e)


# =============================================================================
# Alerts
# =============================================================================


@router.post("/alerts", response_model=List[RealTimeAlert])
async def alerts(request: AlertsRequest, feed: AlertFeedDep) -> List[RealTimeAlert]:
    """
    Evaluate thresholds against the latest month.

    Every alert raised is also published to connected alert stream clients.
    """
    if not request.thresholds:
        raise HTTPException(status_code=400, detail="At least one threshold is required")

    try:
        raised = evaluate_thresholds(
            request.thresholds,
            request.latest,
            videos=request.videos,
            campaigns=request.campaigns,
        )
        delivered = await feed.publish_many(raised)
        logger.info(f"Raised {len(raised)} alerts ({delivered} deliveries)")
        return raised
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("alerts", e)


async def _forward_alerts(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        alert: RealTimeAlert = await queue.get()
        await websocket.send_json({
            "type": "alert",
            "alert": alert.model_dump(mode="json"),
        })


async def _stop_forwarder(forwarder: asyncio.Task) -> None:
    """Cancel the forwarding task and collect its outcome."""
    forwarder.cancel()
    try:
        await forwarder
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.warning(f"Alert forwarding stopped with error: {e}")


@router.websocket("/alerts/stream")
async def alert_stream(websocket: WebSocket, feed: AlertFeedDep):
    """
    WebSocket stream of real-time alerts.

    PROTOCOL:
        1. Server sends {"type": "connected", ...} on accept
        2. Server pushes {"type": "alert", "alert": {...}} for each published alert
        3. Client may send {"type": "ping"}; server answers {"type": "pong"}
    """
    await websocket.accept()
    queue = await feed.subscribe()
    forwarder = asyncio.create_task(_forward_alerts(websocket, queue))

    try:
        await websocket.send_json({
            "type": "connected",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

        while True:
            try:
                data = await websocket.receive_json()
                if data.get("type") == "ping":
                    await websocket.send_json({
                        "type": "pong",
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    })
            except WebSocketDisconnect:
                break
            except Exception as e:
                logger.warning(f"Alert stream receive error: {e}")
                break

    finally:
        await _stop_forwarder(forwarder)
        await feed.unsubscribe(queue)
