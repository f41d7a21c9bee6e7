"""Telegram message handlers used by the bot."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import aiohttp
from telegram import KeyboardButton, ReplyKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from . import api, charts, config, messages
from .errors import DeliveryError, RecipientUnreachable, UpstreamError
from .storage import SubscriberStore
from .transport import TelegramTransport

FUEL_EMOJI = "\u26fd"
TABLE_EMOJI = "\U0001f4ca"
ALARM_EMOJI = "\u23f0"
CROSS_EMOJI = "\u274c"
DEVELOPER_EMOJI = "\U0001f468\U0001f3fb\u200d\U0001f4bb"
WELCOME_EMOJI = "\U0001f44b"
ERROR_EMOJI = "\u26a0\ufe0f"

START = "/start"
PETROL = f"{FUEL_EMOJI} Petrol Price"
PETROL_TABLE = f"{TABLE_EMOJI} Petrol Table"
DIESEL = f"{FUEL_EMOJI} Diesel Price"
DIESEL_TABLE = f"{TABLE_EMOJI} Diesel Table"
REMIND_DAILY = f"{ALARM_EMOJI} Remind me daily"
REMOVE_REMINDER = f"{CROSS_EMOJI} Dont remind me anymore"
CONTACT_DEVELOPER = f"{DEVELOPER_EMOJI} Contact the developer"

PRICE_BUTTONS = {PETROL: "petrol", DIESEL: "diesel"}
TABLE_BUTTONS = {PETROL_TABLE: "petrol", DIESEL_TABLE: "diesel"}

UNKNOWN_TEXT = "Unknown command. Please use the keyboard actions."


@dataclass
class BotServices:
    """Objects shared by the message handlers and the daily job."""

    daily: SubscriberStore
    sessions: SubscriberStore
    transport: TelegramTransport


def get_keyboard(subscribed: bool) -> ReplyKeyboardMarkup:
    """Return the main reply keyboard for a chat."""
    subscription = REMOVE_REMINDER if subscribed else REMIND_DAILY
    keyboard = [
        [KeyboardButton(PETROL), KeyboardButton(PETROL_TABLE)],
        [KeyboardButton(DIESEL), KeyboardButton(DIESEL_TABLE)],
        [KeyboardButton(subscription)],
        [KeyboardButton(CONTACT_DEVELOPER)],
    ]
    return ReplyKeyboardMarkup(keyboard, resize_keyboard=True)


def evict(services: BotServices, chat_id: int) -> bool:
    """Drop an unreachable chat from the daily store."""
    try:
        return services.daily.remove(chat_id)
    except OSError as exc:
        config.logger.error("could not drop chat %s: %s", chat_id, exc)
        return False


async def reply(
    services: BotServices,
    chat_id: int,
    text: str,
    *,
    parse_mode: Optional[str] = None,
    reply_markup: Optional[ReplyKeyboardMarkup] = None,
) -> bool:
    """Send ``text`` to ``chat_id`` and return whether it was delivered."""
    try:
        await services.transport.send_text(
            chat_id, text, parse_mode=parse_mode, reply_markup=reply_markup
        )
    except RecipientUnreachable as exc:
        config.logger.warning("dropping unreachable chat %s: %s", chat_id, exc)
        evict(services, chat_id)
        return False
    except DeliveryError as exc:
        config.logger.error("Error sending message to chat %s: %s", chat_id, exc)
        return False
    return True


async def reply_image(services: BotServices, chat_id: int, image: bytes) -> bool:
    """Send a PNG image to ``chat_id`` and return whether it was delivered."""
    try:
        await services.transport.send_image(chat_id, image)
    except RecipientUnreachable as exc:
        config.logger.warning("dropping unreachable chat %s: %s", chat_id, exc)
        evict(services, chat_id)
        return False
    except DeliveryError as exc:
        config.logger.error("Error sending photo to chat %s: %s", chat_id, exc)
        return False
    return True


async def start(services: BotServices, chat_id: int) -> None:
    """Record the session and show the main keyboard."""
    services.sessions.add(chat_id)
    await reply(
        services,
        chat_id,
        f"{WELCOME_EMOJI} Welcome! Choose an action:",
        reply_markup=get_keyboard(chat_id in services.daily),
    )


async def send_price(services: BotServices, chat_id: int, category: str) -> None:
    """Send today's price and its change for ``category``."""
    trend = await api.fetch_trend(category, config.today())
    await reply(services, chat_id, messages.format_trend(category, trend))


async def send_table(services: BotServices, chat_id: int, category: str) -> None:
    """Send the recent price table followed by a monthly chart."""
    today = config.today()
    async with aiohttp.ClientSession() as session:
        recent = await api.fetch_prices(
            category,
            today - timedelta(days=config.DAYS_TO_SHOW),
            today,
            session=session,
        )
        delivered = await reply(
            services,
            chat_id,
            messages.format_table(category, recent),
            parse_mode=ParseMode.MARKDOWN_V2,
        )
        if not delivered:
            return
        try:
            history = await api.fetch_prices(
                category,
                today - timedelta(days=config.CHART_DAYS),
                today,
                session=session,
            )
        except UpstreamError as exc:
            config.logger.error("chart for chat %s skipped: %s", chat_id, exc)
            return
    image = charts.render_price_chart(history, f"{config.FUEL_NAMES[category]} price")
    await reply_image(services, chat_id, image)


async def subscribe(services: BotServices, chat_id: int) -> None:
    services.daily.add(chat_id)
    await reply(
        services,
        chat_id,
        "You will now receive daily updates!",
        reply_markup=get_keyboard(True),
    )


async def unsubscribe(services: BotServices, chat_id: int) -> None:
    services.daily.remove(chat_id)
    await reply(
        services,
        chat_id,
        "Daily reminders disabled.",
        reply_markup=get_keyboard(False),
    )


async def contact(services: BotServices, chat_id: int) -> None:
    await reply(services, chat_id, messages.contact_text(), parse_mode=ParseMode.HTML)


async def dispatch(services: BotServices, chat_id: int, text: str) -> None:
    """Route an incoming text message to its action."""
    text = text.strip()
    category = PRICE_BUTTONS.get(text) or TABLE_BUTTONS.get(text)
    try:
        if text == START:
            await start(services, chat_id)
        elif text in PRICE_BUTTONS:
            await send_price(services, chat_id, category)
        elif text in TABLE_BUTTONS:
            await send_table(services, chat_id, category)
        elif text == REMIND_DAILY:
            await subscribe(services, chat_id)
        elif text == REMOVE_REMINDER:
            await unsubscribe(services, chat_id)
        elif text == CONTACT_DEVELOPER:
            await contact(services, chat_id)
        else:
            await reply(services, chat_id, UNKNOWN_TEXT)
    except UpstreamError as exc:
        config.logger.error("price request for chat %s failed: %s", chat_id, exc)
        name = config.FUEL_NAMES.get(category, "Fuel")
        await reply(
            services,
            chat_id,
            f"{ERROR_EMOJI} {name} prices are unavailable right now, "
            "please try again later.",
        )
    except OSError as exc:
        config.logger.error("saving subscribers for chat %s failed: %s", chat_id, exc)
        await reply(
            services,
            chat_id,
            f"{ERROR_EMOJI} Your settings could not be saved, please try again later.",
        )


async def menu(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle text messages and keyboard button presses."""
    if not update.message or not update.message.text:
        return
    services: BotServices = context.bot_data["services"]
    await dispatch(services, update.effective_chat.id, update.message.text)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors raised while processing updates."""
    config.logger.error(
        "error while handling update %s", update, exc_info=context.error
    )
