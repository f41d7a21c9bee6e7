"""Asynchronous helpers for querying the ANRE fuel price table.

Every call issues exactly one HTTP request; results are never cached and
failed requests are not retried.
"""

import asyncio
from datetime import date, timedelta
from decimal import InvalidOperation
from typing import Any, Optional

import aiohttp

from . import config
from .errors import UpstreamError
from .trend import PriceSeries, TrendResult, to_decimal, trend_from_series


def build_params(category: str, from_date: date, to_date: date) -> dict:
    """Return the query parameters for a price table request."""
    try:
        fuel_id = config.FUEL_IDS[category]
    except KeyError:
        raise ValueError(f"unknown fuel category: {category}") from None
    return {
        "firstDate": from_date.isoformat(),
        "secondDate": to_date.isoformat(),
        "fuelId": fuel_id,
    }


def parse_series(payload: Any) -> PriceSeries:
    """Return the ``data`` pairs of a price table response.

    Raises
    ------
    ValueError
        If ``payload`` does not hold a non-empty list of
        ``[timestamp, price]`` pairs.
    """
    if not isinstance(payload, dict):
        raise ValueError("response is not an object")
    rows = payload.get("data")
    if not isinstance(rows, list) or not rows:
        raise ValueError("response has no price data")
    series: PriceSeries = []
    for row in rows:
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            raise ValueError(f"malformed price row: {row!r}")
        try:
            timestamp, price = int(row[0]), to_decimal(row[1])
        except (TypeError, ValueError, OverflowError, InvalidOperation):
            raise ValueError(f"malformed price row: {row!r}") from None
        if not price.is_finite():
            raise ValueError(f"non-finite price: {row!r}")
        series.append((timestamp, price))
    return series


async def fetch_prices(
    category: str,
    from_date: date,
    to_date: date,
    session: Optional[aiohttp.ClientSession] = None,
) -> PriceSeries:
    """Return the newest-first price series of ``category``.

    Parameters
    ----------
    category:
        Fuel category key, one of ``config.FUEL_IDS``.
    from_date, to_date:
        Inclusive date range of the query.
    session:
        Existing ``ClientSession`` to use. If omitted a new one is created.

    Raises
    ------
    UpstreamError
        When the request fails, times out or returns unusable data.
    """
    params = build_params(category, from_date, to_date)
    where = f"category={category} range={from_date}..{to_date}"
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()
    try:
        timeout = aiohttp.ClientTimeout(total=config.REQUEST_TIMEOUT)
        async with session.get(config.FUEL_URL, params=params, timeout=timeout) as resp:
            config.logger.info("api_request %s status=%s", where, resp.status)
            if resp.status != 200:
                raise UpstreamError(f"{where}: HTTP {resp.status}")
            payload = await resp.json(content_type=None)
        return parse_series(payload)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        config.logger.error("api request failed %s: %r", where, exc)
        raise UpstreamError(f"{where}: {exc!r}") from exc
    except ValueError as exc:
        config.logger.error("unexpected api response %s: %s", where, exc)
        raise UpstreamError(f"{where}: {exc}") from exc
    finally:
        if owns_session:
            await session.close()


async def fetch_trend(
    category: str,
    today: date,
    session: Optional[aiohttp.ClientSession] = None,
) -> TrendResult:
    """Return today's price and its change against the previous point."""
    start = today - timedelta(days=config.TREND_LOOKBACK_DAYS)
    series = await fetch_prices(category, start, today, session=session)
    return trend_from_series(series, today)


def series_to_json(series: PriceSeries) -> list:
    """Return ``series`` as JSON friendly ``[timestamp, price]`` lists."""
    return [[ts, float(price)] for ts, price in series]
