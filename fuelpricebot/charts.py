"""Rendering of price history charts."""

from datetime import datetime
from io import BytesIO
from typing import List
from zoneinfo import ZoneInfo

import matplotlib
from matplotlib import dates as mdates
from matplotlib import pyplot as plt

from . import config
from .trend import PriceSeries

matplotlib.use("Agg")


def chart_times(series: PriceSeries) -> List[datetime]:
    """Return the points of ``series`` as datetimes in the configured zone."""
    tz = ZoneInfo(config.TIMEZONE)
    return [datetime.fromtimestamp(ts / 1000, tz) for ts, _ in series]


def render_price_chart(series: PriceSeries, title: str) -> bytes:
    """Return a PNG line chart of ``series`` from oldest to newest point."""
    points = sorted(series)
    tz = ZoneInfo(config.TIMEZONE)
    times = chart_times(points)
    prices = [float(price) for _, price in points]
    plt.figure(figsize=(6, 3))
    plt.plot(times, prices, marker="o", markersize=3)
    ax = plt.gca()
    ax.xaxis.set_major_locator(mdates.AutoDateLocator(tz=tz))
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%d.%m", tz=tz))
    plt.xlabel("Date")
    plt.ylabel("Price, MDL")
    plt.title(title)
    plt.grid(alpha=0.3)
    plt.tight_layout()
    buf = BytesIO()
    plt.savefig(buf, format="png")
    plt.close()
    return buf.getvalue()
