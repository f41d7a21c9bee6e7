"""Daily price notifications for subscribed chats."""

import asyncio
from typing import Dict, List

import aiohttp
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from . import api, config, messages
from .errors import DeliveryError, RecipientUnreachable, UpstreamError
from .handlers import BotServices, evict


async def fetch_updates() -> List[str]:
    """Return one price update text per fuel category.

    Exactly one upstream query is made per category.
    """
    today = config.today()
    texts: List[str] = []
    async with aiohttp.ClientSession() as session:
        for category in config.FUEL_IDS:
            trend = await api.fetch_trend(category, today, session=session)
            texts.append(messages.format_trend(category, trend))
    return texts


async def send_daily_update(services: BotServices) -> Dict[str, int]:
    """Send today's prices to every chat in the daily store.

    A failed upstream query abandons the whole run. Delivery failures are
    isolated per chat; unreachable chats are removed from the store.
    """
    config.logger.info("Sending scheduled updates...")
    stats = {"sent": 0, "failed": 0, "evicted": 0}
    try:
        texts = await fetch_updates()
    except UpstreamError as exc:
        config.logger.error("scheduled update abandoned: %s", exc)
        return stats

    semaphore = asyncio.Semaphore(config.DELIVERY_CONCURRENCY)

    async def deliver(chat_id: int) -> None:
        async with semaphore:
            try:
                for text in texts:
                    await services.transport.send_text(chat_id, text)
            except RecipientUnreachable as exc:
                config.logger.warning("dropping unreachable chat %s: %s", chat_id, exc)
                evict(services, chat_id)
                stats["evicted"] += 1
            except DeliveryError as exc:
                config.logger.error(
                    "scheduled update to chat %s failed: %s", chat_id, exc
                )
                stats["failed"] += 1
            else:
                stats["sent"] += 1

    await asyncio.gather(*(deliver(chat_id) for chat_id in services.daily.ids()))
    config.logger.info(
        "scheduled update finished sent=%s failed=%s evicted=%s",
        stats["sent"],
        stats["failed"],
        stats["evicted"],
    )
    return stats


def setup_scheduler(services: BotServices) -> AsyncIOScheduler:
    """Return a started scheduler firing the daily update once per day."""
    scheduler = AsyncIOScheduler(timezone=config.TIMEZONE)
    scheduler.add_job(
        send_daily_update,
        "cron",
        hour=config.NOTIFY_HOUR,
        minute=config.NOTIFY_MINUTE,
        timezone=config.TIMEZONE,
        args=(services,),
        id="notifications",
        coalesce=True,
        max_instances=2,
        misfire_grace_time=3600,
    )
    scheduler.start()
    return scheduler
