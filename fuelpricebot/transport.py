"""Outbound Telegram delivery with typed failure signals."""

from io import BytesIO
from typing import Optional

from aiolimiter import AsyncLimiter
from telegram import Bot, ReplyKeyboardMarkup
from telegram.error import BadRequest, Forbidden, TelegramError

from . import config
from .errors import DeliveryError, RecipientUnreachable


def _is_chat_missing(exc: BadRequest) -> bool:
    return "chat not found" in exc.message.lower()


class TelegramTransport:
    """Send texts and images to chats, throttled to Telegram's bot limit."""

    def __init__(self, bot: Bot, limiter: Optional[AsyncLimiter] = None) -> None:
        self.bot = bot
        self.limiter = limiter or AsyncLimiter(config.MESSAGES_PER_SECOND, 1)

    async def send_text(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: Optional[str] = None,
        reply_markup: Optional[ReplyKeyboardMarkup] = None,
    ) -> None:
        async with self.limiter:
            try:
                await self.bot.send_message(
                    chat_id=chat_id,
                    text=text,
                    parse_mode=parse_mode,
                    reply_markup=reply_markup,
                )
            except TelegramError as exc:
                raise self._delivery_error(chat_id, exc) from exc

    async def send_image(self, chat_id: int, image: bytes) -> None:
        async with self.limiter:
            try:
                await self.bot.send_photo(chat_id=chat_id, photo=BytesIO(image))
            except TelegramError as exc:
                raise self._delivery_error(chat_id, exc) from exc

    @staticmethod
    def _delivery_error(chat_id: int, exc: TelegramError) -> DeliveryError:
        if isinstance(exc, Forbidden) or (
            isinstance(exc, BadRequest) and _is_chat_missing(exc)
        ):
            return RecipientUnreachable(chat_id, exc.message)
        return DeliveryError(chat_id, exc.message)
