"""
Display formatting for dashboard figures.

Matches what the dashboard renders:
- format_currency: US dollars, no cents by default, thousands separators ($12,500)
- format_number: thousands separators (12,500)
- format_compact: 1.2M / 15K for metric cards
- format_percentage: one decimal place (12.5%)

Halves round away from zero, as the browser's number formatter does.
Alert messages and insight descriptions are rendered with these helpers.
"""

from decimal import ROUND_HALF_UP, Decimal


def _round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def format_currency(amount: float, places: int = 0) -> str:
    rounded = _round_half_up(amount, places)
    sign = '-' if rounded < 0 else ''
    return f"{sign}${abs(rounded):,.{places}f}"


def format_number(value: float) -> str:
    return f"{_round_half_up(value):,.0f}"


def format_compact(value: float) -> str:
    """Metric card style: 1.2M above a million, 15K above a thousand."""
    if value >= 1_000_000:
        return f"{_round_half_up(value / 1_000_000, 1)}M"
    if value >= 1_000:
        return f"{_round_half_up(value / 1_000)}K"
    return format_number(value)


def format_percentage(value: float, places: int = 1) -> str:
    return f"{_round_half_up(value, places)}%"
