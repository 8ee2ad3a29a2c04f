"""Integration tests for acknowledging reminders with stickers and text."""

import pytest

from medbot.bot.router import STICKER, TEXT, InboundEvent
from medbot.utils import StorageError

USER_ID = 123456789


def sticker() -> InboundEvent:
    return InboundEvent(user_id=USER_ID, kind=STICKER)


def text(payload: str) -> InboundEvent:
    return InboundEvent(user_id=USER_ID, kind=TEXT, payload=payload)


async def remaining(inventory, medicine_id: int = 1) -> int:
    profile = await inventory.get_profile(USER_ID)
    return profile.get_medicine_by_id(medicine_id).remaining_pills


@pytest.mark.asyncio
async def test_sticker_after_reminder_records_pending_slot(event_router, inventory, tracker, clock):
    """Reminder at 08:00, sticker at 08:15 records slot 1 and clears the pending entry."""
    # Given: Paracetamol 30 pills, 2 per dose, reminder sent at 08:00
    await inventory.add_medicine(USER_ID, "Paracetamol", 30, pills_per_dose=2)
    tracker.arm(USER_ID, 1)

    # When: User sends a sticker 15 minutes later
    clock.advance(minutes=15)
    replies = await event_router.handle(sticker())

    # Then: Dose is recorded and the pending entry is gone
    assert replies[0].startswith("✅ Dose recorded!")
    assert "Paracetamol: 28 left" in replies[0]
    assert await remaining(inventory) == 28
    assert tracker.peek(USER_ID) is None


@pytest.mark.asyncio
async def test_second_sticker_falls_back_to_clock_window(event_router, inventory, tracker, clock):
    """Without a pending entry, 08:16 is inside the slot 1 window and is recorded again."""
    await inventory.add_medicine(USER_ID, "Paracetamol", 30, pills_per_dose=2)
    tracker.arm(USER_ID, 1)
    clock.advance(minutes=15)
    await event_router.handle(sticker())

    clock.advance(minutes=1)
    replies = await event_router.handle(sticker())

    assert replies[0].startswith("✅ Dose recorded!")
    assert await remaining(inventory) == 26


@pytest.mark.asyncio
async def test_text_acknowledgment(event_router, inventory, tracker, clock):
    await inventory.add_medicine(USER_ID, "Metformin", 20, time_slot=2)
    clock.set_local(20, 0)
    tracker.arm(USER_ID, 2)

    clock.advance(minutes=5)
    replies = await event_router.handle(text("Taken"))

    assert "Slot 2: 20:00" in replies[0]
    assert await remaining(inventory) == 19


@pytest.mark.asyncio
async def test_sticker_outside_any_window_asks_for_slot(event_router, inventory, clock):
    await inventory.add_medicine(USER_ID, "Paracetamol", 30)
    clock.set_local(14, 0)

    replies = await event_router.handle(sticker())

    assert replies == ['❓ Which dose is this for?\n\nType "take 1" (08:00) or "take 2" (20:00).']
    assert await remaining(inventory) == 30


@pytest.mark.asyncio
async def test_expired_pending_with_ambiguous_window_asks_for_slot(event_router, inventory, tracker, clock):
    """Pending entry armed at 08:00 is gone at 08:31 and both slots are within the window."""
    await inventory.add_medicine(USER_ID, "Paracetamol", 30)
    await inventory.set_slot_time(USER_ID, 2, "09:00")
    tracker.arm(USER_ID, 1)

    clock.advance(minutes=31)
    replies = await event_router.handle(sticker())

    assert replies[0].startswith("❓ Which dose is this for?")
    assert await remaining(inventory) == 30


@pytest.mark.asyncio
async def test_pending_entry_wins_over_clock(event_router, inventory, tracker, clock):
    """Pending slot 2 is used even when the clock points at slot 1."""
    await inventory.add_medicine(USER_ID, "Morning", 30, time_slot=1)
    await inventory.add_medicine(USER_ID, "Evening", 30, time_slot=2)
    tracker.arm(USER_ID, 2)

    clock.advance(minutes=10)
    await event_router.handle(sticker())

    assert await remaining(inventory, 1) == 30
    assert await remaining(inventory, 2) == 29


@pytest.mark.asyncio
async def test_low_stock_alert_follows_confirmation(event_router, inventory, tracker, clock):
    await inventory.add_medicine(USER_ID, "Aspirin", 11)
    tracker.arm(USER_ID, 1)

    replies = await event_router.handle(sticker())

    assert len(replies) == 2
    assert "running low: 10 left" in replies[1]


@pytest.mark.asyncio
async def test_storage_failure_keeps_pending_entry(event_router, inventory, store, tracker, clock, monkeypatch):
    await inventory.add_medicine(USER_ID, "Paracetamol", 30)
    tracker.arm(USER_ID, 1)

    async def failing_put(user_id, profile):
        raise StorageError(user_id, "disk full")

    monkeypatch.setattr(store, "put", failing_put)

    replies = await event_router.handle(sticker())

    assert replies == ["⚠️ Could not save your data right now. Nothing was changed, please try again."]
    assert tracker.peek(USER_ID).time_slot == 1


@pytest.mark.asyncio
async def test_explicit_take_clears_matching_pending_only(event_router, inventory, tracker):
    await inventory.add_medicine(USER_ID, "Morning", 30, time_slot=1)
    await inventory.add_medicine(USER_ID, "Evening", 30, time_slot=2)
    tracker.arm(USER_ID, 1)

    await event_router.handle(text("take 2"))
    assert tracker.peek(USER_ID).time_slot == 1

    await event_router.handle(text("take 1"))
    assert tracker.peek(USER_ID) is None


@pytest.mark.asyncio
async def test_late_dose(event_router, inventory, clock):
    await inventory.add_medicine(USER_ID, "Paracetamol", 30)
    clock.set_local(13, 0)

    picker = await event_router.handle(text("late"))
    replies = await event_router.handle(text("late 1"))

    assert "Which dose did you take late?" in picker[0]
    assert replies[0].startswith("✅ Dose recorded! (late)")
    assert await remaining(inventory) == 29


@pytest.mark.asyncio
async def test_take_without_medicines(event_router):
    replies = await event_router.handle(text("take 1"))

    assert replies[0].startswith("❌ You have no medicines yet.")
