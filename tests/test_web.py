from datetime import date
from decimal import Decimal

import pytest
from aiohttp import test_utils

import fuelpricebot.api as api
import fuelpricebot.config as config
from fuelpricebot import web
from fuelpricebot.errors import UpstreamError


def make_client():
    return test_utils.TestClient(test_utils.TestServer(web.create_app()))


@pytest.fixture
def calls(monkeypatch):
    captured = []

    async def fake_fetch_prices(category, from_date, to_date, session=None):
        captured.append((category, from_date, to_date))
        return [(1733140800000, Decimal("22.45"))]

    monkeypatch.setattr(api, "fetch_prices", fake_fetch_prices)
    monkeypatch.setattr(config, "today", lambda: date(2024, 12, 2))
    return captured


@pytest.mark.asyncio
async def test_price_endpoint_defaults(calls):
    async with make_client() as client:
        resp = await client.get("/anre/petrol-price")
        assert resp.status == 200
        body = await resp.json()
    assert calls == [("petrol", date(2024, 11, 24), date(2024, 12, 2))]
    assert body == {
        "category": "petrol",
        "from": "2024-11-24",
        "to": "2024-12-02",
        "data": [[1733140800000, 22.45]],
    }


@pytest.mark.asyncio
async def test_price_endpoint_range(calls):
    async with make_client() as client:
        resp = await client.get(
            "/anre/diesel-price", params={"from": "2024-11-18", "to": "2024-12-01"}
        )
        assert resp.status == 200
    assert calls == [("diesel", date(2024, 11, 18), date(2024, 12, 1))]


@pytest.mark.asyncio
async def test_price_endpoint_bad_date(calls):
    async with make_client() as client:
        resp = await client.get("/anre/petrol-price", params={"from": "18.11.2024"})
        assert resp.status == 400
    assert calls == []


@pytest.mark.asyncio
async def test_price_endpoint_unknown_fuel(calls):
    async with make_client() as client:
        resp = await client.get("/anre/kerosene-price")
        assert resp.status == 404


@pytest.mark.asyncio
async def test_price_endpoint_upstream_error(monkeypatch):
    async def failing_fetch_prices(category, from_date, to_date, session=None):
        raise UpstreamError("HTTP 503")

    monkeypatch.setattr(api, "fetch_prices", failing_fetch_prices)
    async with make_client() as client:
        resp = await client.get("/anre/petrol-price")
        assert resp.status == 502
        body = await resp.json()
    assert body == {"error": "HTTP 503"}
