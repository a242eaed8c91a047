"""
FastAPI router module for AI insights.

Endpoint:
- POST /api/ai-insights: Insights for a monthly metrics series

Request body:
    {"monthlyMetrics": [MonthlyMetrics, ...]}   ("metrics" is accepted too)

Response:
    {"insights": [AIInsight, ...], "generatedAt": "...", "dataPoints": 6}

A body whose series is missing or not a list of MonthlyMetrics is rejected
with 400 before any analysis runs. Failures while generating insights are not
surfaced: the response carries the rule-based insights for the same series.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from funnel_analytics.core.dependencies import SettingsDep
from funnel_analytics.models import AIInsightsRequest, AIInsightsResponse
from funnel_analytics.services.insights import generate_ai_insights, generate_insights


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=AIInsightsResponse)
async def create_ai_insights(
    request: AIInsightsRequest,
    settings: SettingsDep,
) -> AIInsightsResponse:
    """
    Generate insights for the posted monthly series.

    Uses the configured OpenAI model when OPENAI_API_KEY is set and at least
    two months are present; otherwise (or on any failure) the rule-based
    generator.
    """
    history = request.monthlyMetrics

    try:
        insights = await generate_ai_insights(history, settings)
    except Exception as e:
        logger.error(f"Insight generation failed, using rule-based insights: {e}", exc_info=True)
        insights = generate_insights(history)

    return AIInsightsResponse(
        insights=insights,
        generatedAt=datetime.now(timezone.utc),
        dataPoints=len(history),
    )
