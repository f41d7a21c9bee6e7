"""Text templates for outbound chat messages."""

from . import config
from .trend import DOWN, PriceSeries, TrendResult

CHART_UP = "\U0001f4c8"
CHART_DOWN = "\U0001f4c9"
DATE_FORMAT = "%d.%m.%Y"


def trend_emoji(direction: str) -> str:
    """Return the chart emoji for a trend direction."""
    return CHART_DOWN if direction == DOWN else CHART_UP


def format_trend(category: str, trend: TrendResult) -> str:
    """Return a one line price update like ``📉 Petrol: 19.10.2026 22.45 (-0.16)``."""
    name = config.FUEL_NAMES[category]
    day = trend.as_of.strftime(DATE_FORMAT)
    return (
        f"{trend_emoji(trend.direction)} {name}: {day} "
        f"{trend.current_price} ({trend.delta:+.2f})"
    )


def format_table(category: str, series: PriceSeries) -> str:
    """Return a MarkdownV2 message with one ``date<TAB>price`` row per point."""
    name = config.FUEL_NAMES[category]
    rows = [
        f"{config.date_for_timestamp(ts).strftime(DATE_FORMAT)}\t{price}"
        for ts, price in series
    ]
    body = "\n".join(rows)
    return f"*{name} Prices Table*\n\n```\n{body}\n```"


def contact_text() -> str:
    """Return the HTML contact card built from the developer settings."""
    lines = []
    if config.DEVELOPER_NAME:
        lines.append(f"<b>Developer:</b> {config.DEVELOPER_NAME}")
    for item in config.DEVELOPER_LINKS.split(","):
        label, sep, url = item.strip().partition("=")
        if sep and url:
            lines.append(f'<a href="{url.strip()}">{label.strip()}</a>')
    if not lines:
        return "No contact details configured."
    return "\n".join(lines)
