"""Configuration and helper utilities for FuelPriceBot.

This module loads environment variables, configures logging and exposes
constants used across the bot.
"""

import logging
import os
import re
from datetime import date, datetime
from logging.handlers import WatchedFileHandler
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


def parse_duration(value: str) -> int:
    """Return seconds for a duration string like '15m' or '1h'."""
    if value.isdigit():
        return int(value)
    match = re.fullmatch(r"(\d+)([dhms])", value.lower())
    if not match:
        raise ValueError("invalid interval format")
    num, unit = match.groups()
    factor = {"d": 86400, "h": 3600, "m": 60, "s": 1}[unit]
    return int(num) * factor


def parse_clock(value: str) -> Tuple[int, int]:
    """Return ``(hour, minute)`` for a wall-clock string like '12:00'."""
    match = re.fullmatch(r"(\d{1,2}):(\d{2})", value.strip())
    if not match:
        raise ValueError("invalid time format")
    hour, minute = (int(part) for part in match.groups())
    if hour > 23 or minute > 59:
        raise ValueError("invalid time format")
    return hour, minute


def parse_port(value: Optional[str]) -> Optional[int]:
    """Return a TCP port or ``None`` when ``value`` is empty."""
    if not value:
        return None
    return int(value)


BOT_NAME = "FuelPriceBot"
TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN")

ANRE_BASE_URL = os.getenv("ANRE_BASE_URL") or "https://anre.md"
FUEL_URL = f"{ANRE_BASE_URL}/oil-get-table"
FUEL_IDS = {"petrol": 2, "diesel": 3}
FUEL_NAMES = {"petrol": "Petrol", "diesel": "Diesel"}
REQUEST_TIMEOUT = parse_duration(os.getenv("REQUEST_TIMEOUT", "10s"))

TIMEZONE = os.getenv("TIMEZONE", "Europe/Chisinau")
NOTIFY_HOUR, NOTIFY_MINUTE = parse_clock(os.getenv("NOTIFY_TIME", "12:00"))
TREND_LOOKBACK_DAYS = 2
DAYS_TO_SHOW = int(os.getenv("DAYS_TO_SHOW", "7"))
CHART_DAYS = int(os.getenv("CHART_DAYS", "30"))
DELIVERY_CONCURRENCY = int(os.getenv("DELIVERY_CONCURRENCY", "10"))
MESSAGES_PER_SECOND = int(os.getenv("MESSAGES_PER_SECOND", "30"))

SCHEDULED_CHATS_FILE = os.getenv("SCHEDULED_CHATS_FILE", "scheduled_chats.txt")
SESSIONS_FILE = os.getenv("SESSIONS_FILE", "sessions.txt")

WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = parse_port(os.getenv("WEB_PORT"))
WEB_DEFAULT_DAYS = 8

DEVELOPER_NAME = os.getenv("DEVELOPER_NAME", "")
# comma separated "label=url" pairs
DEVELOPER_LINKS = os.getenv("DEVELOPER_LINKS", "")


def today() -> date:
    """Return the current calendar date in the configured time zone."""
    return datetime.now(ZoneInfo(TIMEZONE)).date()


def date_for_timestamp(millis: int) -> date:
    """Return the calendar date of an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(millis / 1000, ZoneInfo(TIMEZONE)).date()


LOG_FILE = os.getenv("LOG_FILE")
_handlers = [logging.StreamHandler()]
if LOG_FILE:
    _handlers.append(WatchedFileHandler(LOG_FILE))

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=_handlers,
    force=True,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("apscheduler.executors").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)
