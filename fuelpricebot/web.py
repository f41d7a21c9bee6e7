"""HTTP endpoints exposing the raw fuel price series."""

from datetime import date, timedelta
from typing import Optional

from aiohttp import web

from . import api, config
from .errors import UpstreamError


def _parse_date(value: Optional[str], default: date) -> date:
    if not value:
        return default
    return date.fromisoformat(value)


async def price_handler(request: web.Request) -> web.Response:
    """Return the price series of a fuel category for a date range."""
    category = request.match_info["category"]
    if category not in config.FUEL_IDS:
        raise web.HTTPNotFound()
    today = config.today()
    try:
        start = _parse_date(
            request.query.get("from"), today - timedelta(days=config.WEB_DEFAULT_DAYS)
        )
        end = _parse_date(request.query.get("to"), today)
    except ValueError:
        return web.json_response(
            {"error": "dates must be formatted as YYYY-MM-DD"}, status=400
        )
    try:
        series = await api.fetch_prices(category, start, end)
    except UpstreamError as exc:
        return web.json_response({"error": str(exc)}, status=502)
    return web.json_response(
        {
            "category": category,
            "from": start.isoformat(),
            "to": end.isoformat(),
            "data": api.series_to_json(series),
        }
    )


def create_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/anre/{category}-price", price_handler)
    return app


async def start_server() -> Optional[web.AppRunner]:
    """Serve the price endpoints when ``WEB_PORT`` is configured."""
    if config.WEB_PORT is None:
        return None
    runner = web.AppRunner(create_app())
    await runner.setup()
    site = web.TCPSite(runner, config.WEB_HOST, config.WEB_PORT)
    await site.start()
    config.logger.info("price api listening on %s:%s", config.WEB_HOST, config.WEB_PORT)
    return runner
