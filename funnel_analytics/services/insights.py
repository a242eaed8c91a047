"""
Insight Generator

Turns the monthly metrics series into a short list of human-readable insights.

Two paths produce the same output shape (List[AIInsight]):

1. Rule-based (generate_insights): deterministic, compares the last two
   months against fixed thresholds. Rules are independent and evaluated in
   this order:
       - revenue growth > 20%            -> trend, high
       - revenue growth < -10%           -> alert, high
       - show-up rate < 80%              -> recommendation, medium
       - accepted-to-sale rate < 25%     -> recommendation, high
   A series shorter than two months yields a single "Need More Data" item.

2. LLM-backed (generate_ai_insights): used when OPENAI_API_KEY is configured
   and at least two months exist. The model is asked for a JSON array; the
   reply is validated into AIInsight models. Transport errors, unparseable
   replies and schema mismatches all fall back to the rule-based output for
   the same series. This path never raises.
"""

import json
import logging
from typing import List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from funnel_analytics.core.config import Settings
from funnel_analytics.models import (
    AIInsight,
    InsightImpact,
    InsightType,
    MonthlyMetrics,
)
from funnel_analytics.services.formatting import format_percentage
from funnel_analytics.services.trends import month_over_month_change

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS - Rule Thresholds
# =============================================================================

REVENUE_GROWTH_THRESHOLD: float = 20.0
REVENUE_DECLINE_THRESHOLD: float = -10.0
SHOW_UP_RATE_TARGET: float = 80.0
CLOSE_RATE_TARGET: float = 25.0

MIN_MONTHS_FOR_ANALYSIS: int = 2

SYSTEM_PROMPT = (
    "You are a business analytics expert specializing in coaching businesses. "
    "Provide actionable insights based on funnel data."
)

INSIGHTS_PROMPT = """
Analyze this coaching business funnel data and provide 3-4 actionable insights:

Current Month: {current}
Previous Month: {previous}

Focus on:
1. Revenue trends and opportunities
2. Conversion rate optimization
3. Funnel bottlenecks
4. Specific action items

Respond with a JSON array only. Each item has the keys: type (trend, recommendation
or alert), title, description, impact (high, medium or low), action.
"""

_insight_list = TypeAdapter(List[AIInsight])


# =============================================================================
# Rule-Based Generator
# =============================================================================


def need_more_data_insight() -> AIInsight:
    return AIInsight(
        type=InsightType.RECOMMENDATION,
        title='Need More Data',
        description='Collect more monthly data to generate meaningful insights.',
        impact=InsightImpact.MEDIUM,
        action='Continue tracking metrics for trend analysis',
    )


def revenue_growth(current: MonthlyMetrics, previous: MonthlyMetrics) -> float:
    """New-cash growth in percent; 0 when the previous month had no revenue."""
    return month_over_month_change(
        current.newCashCollected.total,
        previous.newCashCollected.total,
    )


def generate_insights(history: Sequence[MonthlyMetrics]) -> List[AIInsight]:
    """
    Rule-based insights for the last two months of a series.

    Args:
        history: Monthly metrics in ascending month order

    Returns:
        Zero or more insights in rule order, or the single "Need More Data"
        insight when fewer than two months are available
    """
    if len(history) < MIN_MONTHS_FOR_ANALYSIS:
        return [need_more_data_insight()]

    current = history[-1]
    previous = history[-2]
    insights: List[AIInsight] = []

    growth = revenue_growth(current, previous)
    if growth > REVENUE_GROWTH_THRESHOLD:
        insights.append(AIInsight(
            type=InsightType.TREND,
            title='Strong Revenue Growth',
            description=f'Revenue increased by {format_percentage(growth)} this month. Excellent momentum!',
            impact=InsightImpact.HIGH,
            action='Scale successful strategies and maintain current content production pace',
        ))
    elif growth < REVENUE_DECLINE_THRESHOLD:
        insights.append(AIInsight(
            type=InsightType.ALERT,
            title='Revenue Decline Alert',
            description=f'Revenue decreased by {format_percentage(abs(growth))} this month.',
            impact=InsightImpact.HIGH,
            action='Review recent changes in marketing strategy and video content themes',
        ))

    if current.showUpRate < SHOW_UP_RATE_TARGET:
        insights.append(AIInsight(
            type=InsightType.RECOMMENDATION,
            title='Improve Call Show-up Rate',
            description=f'Show-up rate is {format_percentage(current.showUpRate)}, below optimal 80%+.',
            impact=InsightImpact.MEDIUM,
            action='Implement SMS reminders and improve pre-call qualification process',
        ))

    close_rate = current.conversionRates.acceptedToSale
    if close_rate < CLOSE_RATE_TARGET:
        insights.append(AIInsight(
            type=InsightType.RECOMMENDATION,
            title='Optimize Sales Conversion',
            description=f'Call-to-sale conversion is {format_percentage(close_rate)}, room for improvement.',
            impact=InsightImpact.HIGH,
            action='Review sales scripts and provide additional closing training',
        ))

    return insights


# =============================================================================
# LLM-Backed Generator
# =============================================================================


def build_insights_prompt(history: Sequence[MonthlyMetrics]) -> str:
    return INSIGHTS_PROMPT.format(
        current=json.dumps(history[-1].model_dump(mode='json'), indent=2),
        previous=json.dumps(history[-2].model_dump(mode='json'), indent=2),
    )


def parse_ai_insights(content: Optional[str]) -> List[AIInsight]:
    """
    Validate a model reply into AIInsight models.

    Markdown code fences around the JSON are tolerated.

    Raises:
        json.JSONDecodeError: Reply is not JSON
        pydantic.ValidationError: Reply is JSON but not a list of insights
    """
    text = (content or '').strip()
    if '```json' in text:
        text = text.split('```json')[1].split('```')[0]
    elif '```' in text:
        text = text.split('```')[1].split('```')[0]
    return _insight_list.validate_python(json.loads(text.strip()))


def get_openai_client(settings: Settings) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.http_timeout_seconds,
    )


async def generate_ai_insights(
    history: Sequence[MonthlyMetrics],
    settings: Settings,
) -> List[AIInsight]:
    """
    Insights from the configured chat model, with rule-based fallback.

    Args:
        history: Monthly metrics in ascending month order
        settings: Application settings (OpenAI key and model)

    Returns:
        Model-generated insights, or generate_insights(history) when no key
        is configured, the series is too short, or the call fails in any way
    """
    if not settings.openai_api_key:
        logger.info("OpenAI key not configured, using rule-based insights")
        return generate_insights(history)

    if len(history) < MIN_MONTHS_FOR_ANALYSIS:
        return generate_insights(history)

    try:
        client = get_openai_client(settings)
        response = await client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_insights_prompt(history)},
            ],
            max_tokens=1000,
            temperature=0.7,
        )
        insights = parse_ai_insights(response.choices[0].message.content)
        if not insights:
            logger.warning("OpenAI returned no insights, using rule-based insights")
            return generate_insights(history)

        logger.info(f"Generated {len(insights)} insights with {settings.openai_model}")
        return insights

    except json.JSONDecodeError as e:
        logger.warning(f"OpenAI reply was not valid JSON, using rule-based insights: {e}")
    except PydanticValidationError as e:
        logger.warning(f"OpenAI reply did not match the insight schema, using rule-based insights: {e}")
    except OpenAIError as e:
        logger.error(f"OpenAI API error: {e}", exc_info=True)
    except Exception as e:
        logger.error(f"Unexpected error generating AI insights: {e}", exc_info=True)

    return generate_insights(history)
