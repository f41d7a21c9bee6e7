from datetime import date
from decimal import Decimal

import pytest

import fuelpricebot.api as api
import fuelpricebot.config as config
import fuelpricebot.scheduler as scheduler
from fuelpricebot.errors import DeliveryError, RecipientUnreachable, UpstreamError
from fuelpricebot.handlers import BotServices
from fuelpricebot.storage import SubscriberStore


class DummyTransport:
    def __init__(self, failing=(), unreachable=()):
        self.failing = set(failing)
        self.unreachable = set(unreachable)
        self.sent = []

    async def send_text(self, chat_id, text, **kwargs):
        if chat_id in self.unreachable:
            raise RecipientUnreachable(chat_id, "Forbidden: bot was blocked")
        if chat_id in self.failing:
            raise DeliveryError(chat_id, "Timed out")
        self.sent.append((chat_id, text))

    async def send_image(self, chat_id, image):
        self.sent.append((chat_id, image))


def make_services(tmp_path, chat_ids, transport=None):
    daily = SubscriberStore(str(tmp_path / "daily.txt"))
    for chat_id in chat_ids:
        daily.add(chat_id)
    sessions = SubscriberStore(str(tmp_path / "sessions.txt"))
    return BotServices(
        daily=daily, sessions=sessions, transport=transport or DummyTransport()
    )


@pytest.fixture
def upstream_calls(monkeypatch):
    calls = []

    async def fake_fetch_prices(category, from_date, to_date, session=None):
        calls.append(category)
        return [(1733140800000, Decimal("12.34")), (1733054400000, Decimal("12.50"))]

    monkeypatch.setattr(api, "fetch_prices", fake_fetch_prices)
    return calls


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 1, 50])
async def test_one_query_per_category(tmp_path, upstream_calls, count):
    services = make_services(tmp_path, range(1, count + 1))
    stats = await scheduler.send_daily_update(services)
    assert sorted(upstream_calls) == ["diesel", "petrol"]
    assert stats["sent"] == count
    # two messages per subscriber, petrol then diesel
    assert len(services.transport.sent) == 2 * count


@pytest.mark.asyncio
async def test_failure_is_isolated_per_recipient(tmp_path, upstream_calls):
    transport = DummyTransport(failing={1})
    services = make_services(tmp_path, [1, 2], transport)
    stats = await scheduler.send_daily_update(services)
    assert [chat_id for chat_id, _ in transport.sent] == [2, 2]
    assert stats == {"sent": 1, "failed": 1, "evicted": 0}
    assert 1 in services.daily


@pytest.mark.asyncio
async def test_unreachable_recipient_is_evicted(tmp_path, upstream_calls):
    transport = DummyTransport(unreachable={1})
    services = make_services(tmp_path, [1, 2], transport)
    stats = await scheduler.send_daily_update(services)
    assert stats["evicted"] == 1
    assert services.daily.ids() == [2]
    assert (tmp_path / "daily.txt").read_text(encoding="utf-8") == "2"
    assert {chat_id for chat_id, _ in transport.sent} == {2}


@pytest.mark.asyncio
async def test_upstream_failure_abandons_firing(tmp_path, monkeypatch):
    async def failing_fetch_prices(category, from_date, to_date, session=None):
        raise UpstreamError(f"category={category}: HTTP 503")

    monkeypatch.setattr(api, "fetch_prices", failing_fetch_prices)
    services = make_services(tmp_path, [1, 2])
    stats = await scheduler.send_daily_update(services)
    assert stats == {"sent": 0, "failed": 0, "evicted": 0}
    assert services.transport.sent == []
    assert services.daily.ids() == [1, 2]


@pytest.mark.asyncio
async def test_update_text(tmp_path, upstream_calls, monkeypatch):
    monkeypatch.setattr(config, "today", lambda: date(2024, 12, 2))
    services = make_services(tmp_path, [7])
    await scheduler.send_daily_update(services)
    texts = [text for _, text in services.transport.sent]
    assert texts[0].endswith("Petrol: 02.12.2024 12.34 (-0.16)")
    assert texts[1].endswith("Diesel: 02.12.2024 12.34 (-0.16)")


@pytest.mark.asyncio
async def test_setup_scheduler_registers_daily_job(tmp_path):
    services = make_services(tmp_path, [])
    jobs = scheduler.setup_scheduler(services)
    try:
        job = jobs.get_job("notifications")
        assert job is not None
        fields = {field.name: str(field) for field in job.trigger.fields}
        assert fields["hour"] == "12"
        assert fields["minute"] == "0"
        assert str(job.trigger.timezone) == "Europe/Chisinau"
    finally:
        jobs.shutdown(wait=False)


@pytest.mark.asyncio
async def test_eviction_write_failure_does_not_stop_firing(
    tmp_path, upstream_calls, monkeypatch
):
    transport = DummyTransport(unreachable={1})
    services = make_services(tmp_path, [1, 2], transport)

    def failing_remove(chat_id):
        raise OSError("disk full")

    monkeypatch.setattr(services.daily, "remove", failing_remove)
    stats = await scheduler.send_daily_update(services)
    assert stats["sent"] == 1
    assert {chat_id for chat_id, _ in transport.sent} == {2}
