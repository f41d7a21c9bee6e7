"""Main entry point for starting the Telegram bot."""

import asyncio
import signal

from telegram import BotCommand
from telegram.ext import ApplicationBuilder, MessageHandler, filters

from . import config, handlers, scheduler, web
from .storage import SubscriberStore
from .transport import TelegramTransport


async def main() -> None:
    """Run the Telegram bot until the process receives a stop signal."""
    token = config.TELEGRAM_TOKEN
    if not token:
        raise RuntimeError("TELEGRAM_TOKEN not set")

    daily = SubscriberStore(config.SCHEDULED_CHATS_FILE, "scheduled chats")
    sessions = SubscriberStore(config.SESSIONS_FILE, "sessions")
    daily.load()
    sessions.load()

    app = ApplicationBuilder().token(token).build()
    services = handlers.BotServices(
        daily=daily, sessions=sessions, transport=TelegramTransport(app.bot)
    )
    app.bot_data["services"] = services

    app.add_handler(MessageHandler(filters.TEXT, handlers.menu))
    app.add_error_handler(handlers.error_handler)

    jobs = scheduler.setup_scheduler(services)
    runner = await web.start_server()

    await app.initialize()
    await app.bot.set_my_commands([BotCommand("start", "Show menu")])
    await app.start()
    await app.updater.start_polling()
    config.logger.info(f"{config.BOT_NAME} started")

    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        asyncio.get_running_loop().add_signal_handler(sig, stop_event.set)

    await stop_event.wait()
    await app.updater.stop()
    await app.stop()
    await app.shutdown()
    jobs.shutdown()
    if runner:
        await runner.cleanup()
    config.logger.info(f"{config.BOT_NAME} stopped")


def run() -> None:
    asyncio.run(main())
