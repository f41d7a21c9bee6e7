"""Exceptions raised by the bot's price, delivery and storage layers."""


class FuelPriceBotError(Exception):
    """Base class for all bot errors."""


class UpstreamError(FuelPriceBotError):
    """The price source could not be queried or returned unusable data."""


class DeliveryError(FuelPriceBotError):
    """A message could not be delivered to a chat."""

    def __init__(self, chat_id: int, message: str) -> None:
        super().__init__(f"chat {chat_id}: {message}")
        self.chat_id = chat_id


class RecipientUnreachable(DeliveryError):
    """The chat can never be reached again (bot blocked, chat deleted)."""


class StoreCorruptError(FuelPriceBotError):
    """A subscriber file exists but cannot be read as text."""
