"""Shared fixtures for tests."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Settings are read on import of medbot.config
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="medbot-test-"))

import pytest

from medbot.bot.router import EventRouter
from medbot.data.storage import ProfileStore
from medbot.services.inventory import InventoryManager
from medbot.services.notification_manager import NotificationManager
from medbot.services.pending import PendingAckTracker

USER_ID = 123456789
TIMEZONE_OFFSET = "+07:00"

# 2024-01-01 08:00 at +07:00
START_UTC = datetime(2024, 1, 1, 1, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = START_UTC):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set_local(self, hours: int, minutes: int = 0) -> datetime:
        """Move to HH:MM deployment time on the start day."""
        self.now = START_UTC.replace(hour=0, minute=0) + timedelta(
            hours=hours - 7, minutes=minutes
        )
        return self.now


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data.

    Yields:
        Path: Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_data_dir):
    return ProfileStore(data_dir=str(temp_data_dir))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return PendingAckTracker(ttl=timedelta(minutes=30), clock=clock)


@pytest.fixture
def inventory(store):
    return InventoryManager(store)


@pytest.fixture
def notification_manager():
    return NotificationManager(pending_minutes=30)


@pytest.fixture
def event_router(inventory, tracker, notification_manager, clock):
    """Create EventRouter wired to the fake clock.

    Returns:
        EventRouter: Router in the +07:00 deployment timezone
    """
    return EventRouter(
        inventory=inventory,
        tracker=tracker,
        notifications=notification_manager,
        timezone_offset=TIMEZONE_OFFSET,
        slot_window_hours=2,
        clock=clock,
    )


@pytest.fixture
def mock_bot():
    """Create mock Bot.

    Returns:
        MagicMock: Mocked Telegram Bot with common methods
    """
    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=MagicMock(message_id=12345))
    return bot


@pytest.fixture
def mock_message():
    """Create mock Message.

    Returns:
        MagicMock: Mocked Telegram Message
    """
    message = MagicMock()
    message.from_user.id = USER_ID
    message.text = "meds"
    message.answer = AsyncMock()
    return message


@pytest.fixture
def mock_callback_query():
    """Create mock CallbackQuery.

    Returns:
        MagicMock: Mocked Telegram CallbackQuery
    """
    callback = MagicMock()
    callback.from_user.id = USER_ID
    callback.data = "taken:1"
    callback.answer = AsyncMock()
    callback.message = MagicMock()
    callback.message.edit_reply_markup = AsyncMock()
    callback.message.answer = AsyncMock()
    return callback
