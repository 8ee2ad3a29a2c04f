"""Integration tests for the reminder scheduler."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from aiogram.exceptions import TelegramForbiddenError
from aiogram.types import InlineKeyboardMarkup

from medbot.services.scheduler import ReminderScheduler

USER_ID = 123456789

# Deployment time is +07:00
AT_0800 = datetime(2024, 1, 1, 1, 0, tzinfo=timezone.utc)
AT_2000 = datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc)
AT_2100 = datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def scheduler(mock_bot, store, tracker, notification_manager, clock):
    """Create ReminderScheduler for testing.

    Returns:
        ReminderScheduler: Scheduler in the +07:00 deployment timezone
    """
    return ReminderScheduler(
        bot=mock_bot,
        store=store,
        tracker=tracker,
        notification_manager=notification_manager,
        timezone_offset="+07:00",
        daily_summary_time="21:00",
        clock=clock,
    )


@pytest.mark.asyncio
async def test_reminder_sent_and_pending_armed(scheduler, inventory, tracker, mock_bot):
    # Given: User with a slot 1 medicine
    await inventory.add_medicine(USER_ID, "Paracetamol", 30, pills_per_dose=2)

    # When: Scheduler runs at 08:00
    processed = await scheduler.tick(AT_0800)

    # Then: One reminder with a "Taken" button for slot 1
    assert processed is True
    assert mock_bot.send_message.call_count == 1
    kwargs = mock_bot.send_message.call_args.kwargs
    assert kwargs["chat_id"] == USER_ID
    assert "Paracetamol" in kwargs["text"]
    assert isinstance(kwargs["reply_markup"], InlineKeyboardMarkup)
    assert kwargs["reply_markup"].inline_keyboard[0][0].callback_data == "taken:1"

    # And: The pending acknowledgment is armed for slot 1
    assert tracker.peek(USER_ID).time_slot == 1


@pytest.mark.asyncio
async def test_same_minute_is_processed_once(scheduler, inventory, mock_bot):
    await inventory.add_medicine(USER_ID, "Paracetamol", 30)

    await scheduler.tick(AT_0800)
    repeated = await scheduler.tick(AT_0800.replace(second=40))

    assert repeated is False
    assert mock_bot.send_message.call_count == 1


@pytest.mark.asyncio
async def test_no_reminder_off_schedule(scheduler, inventory, tracker, mock_bot):
    await inventory.add_medicine(USER_ID, "Paracetamol", 30)

    await scheduler.tick(AT_0800.replace(minute=1))

    mock_bot.send_message.assert_not_called()
    assert tracker.peek(USER_ID) is None


@pytest.mark.asyncio
async def test_empty_slot_sends_nothing(scheduler, inventory, tracker, mock_bot):
    # Only slot 1 has medicines, slot 2 fires at 20:00
    await inventory.add_medicine(USER_ID, "Paracetamol", 30, time_slot=1)

    await scheduler.tick(AT_2000)

    mock_bot.send_message.assert_not_called()
    assert tracker.peek(USER_ID) is None


@pytest.mark.asyncio
async def test_failed_send_does_not_arm(scheduler, inventory, tracker, mock_bot):
    await inventory.add_medicine(USER_ID, "Paracetamol", 30)
    mock_bot.send_message.side_effect = TelegramForbiddenError(
        method=MagicMock(), message="Forbidden: bot was blocked by the user"
    )

    await scheduler.tick(AT_0800)

    assert tracker.peek(USER_ID) is None


@pytest.mark.asyncio
async def test_failure_for_one_user_does_not_stop_others(scheduler, inventory, tracker, mock_bot):
    await inventory.add_medicine(111, "Aspirin", 10)
    await inventory.add_medicine(222, "Aspirin", 10)
    sent = MagicMock(message_id=1)
    mock_bot.send_message.side_effect = [RuntimeError("boom"), sent]

    await scheduler.tick(AT_0800)

    assert tracker.peek(111) is None
    assert tracker.peek(222).time_slot == 1


@pytest.mark.asyncio
async def test_custom_slot_time(scheduler, inventory, tracker, mock_bot):
    await inventory.add_medicine(USER_ID, "Metformin", 30, time_slot=2)
    await inventory.set_slot_time(USER_ID, 2, "20.30")

    await scheduler.tick(AT_2000)
    await scheduler.tick(AT_2000.replace(minute=30))

    assert mock_bot.send_message.call_count == 1
    assert tracker.peek(USER_ID).time_slot == 2


@pytest.mark.asyncio
async def test_tick_sweeps_expired_entries(scheduler, tracker, clock):
    tracker.arm(USER_ID, 1)
    clock.advance(minutes=45)

    await scheduler.tick(AT_0800.replace(minute=45))

    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_daily_summary(scheduler, inventory, mock_bot):
    await inventory.add_medicine(USER_ID, "Paracetamol", 8)
    await inventory.get_profile(999)  # user without medicines

    await scheduler.tick(AT_2100)

    assert mock_bot.send_message.call_count == 1
    kwargs = mock_bot.send_message.call_args.kwargs
    assert kwargs["chat_id"] == USER_ID
    assert "Daily stock summary" in kwargs["text"]
    assert "🟡 Paracetamol: 8 left" in kwargs["text"]
