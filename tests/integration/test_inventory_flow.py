"""Integration tests for inventory commands through the event router."""

import pytest

from medbot.bot.router import STICKER, TEXT, InboundEvent

USER_ID = 123456789


async def send(event_router, payload: str) -> list[str]:
    return await event_router.handle(InboundEvent(user_id=USER_ID, kind=TEXT, payload=payload))


@pytest.mark.asyncio
async def test_add_and_list(event_router, inventory):
    replies = await send(event_router, "add Metformin 60 per 2 slot 2")

    assert replies[0].startswith("✅ Medicine added!")
    assert "Slot 2 (20:00)" in replies[0]

    status = await send(event_router, "meds")
    assert "1. ✅ Metformin" in status[0]

    profile = await inventory.get_profile(USER_ID)
    medicine = profile.medicines[0]
    assert (medicine.total_pills, medicine.remaining_pills, medicine.pills_per_dose, medicine.time_slot) == (60, 60, 2, 2)


@pytest.mark.asyncio
async def test_duplicate_name_is_rejected(event_router, inventory):
    await send(event_router, "add Aspirin 30")

    replies = await send(event_router, "add aspirin 10")

    assert replies == ['❌ "aspirin" is already in your list']
    profile = await inventory.get_profile(USER_ID)
    assert len(profile.medicines) == 1


@pytest.mark.asyncio
async def test_zero_quantity_is_rejected(event_router, store):
    replies = await send(event_router, "add Aspirin 0")

    assert replies == ["❌ Quantity must be greater than 0"]


@pytest.mark.asyncio
async def test_refill_by_index_and_name(event_router, inventory):
    await send(event_router, "add Aspirin 30")
    await send(event_router, "add Vitamin C 10")

    picker = await send(event_router, "refill")
    assert "1. Aspirin (30 left)" in picker[0]
    assert "2. Vitamin C (10 left)" in picker[0]

    by_index = await send(event_router, "refill 1 20")
    by_name = await send(event_router, "refill vitamin c 5")

    assert "Now: 50 pills" in by_index[0]
    assert "Now: 15 pills" in by_name[0]
    profile = await inventory.get_profile(USER_ID)
    assert profile.medicines[0].total_pills == 30


@pytest.mark.asyncio
async def test_refill_unknown_medicine(event_router):
    await send(event_router, "add Aspirin 30")

    replies = await send(event_router, "refill 5 20")

    assert replies == ['❌ Medicine "5" not found']


@pytest.mark.asyncio
async def test_refill_reenables_alerts(event_router, inventory, tracker):
    await send(event_router, "add Aspirin 11")
    first = await send(event_router, "take 1")
    assert "running low" in first[1]

    await send(event_router, "refill 1 1")
    again = await send(event_router, "take 1")

    assert "running low: 10 left" in again[1]


@pytest.mark.asyncio
async def test_delete_with_confirmation(event_router, inventory):
    await send(event_router, "add Aspirin 30")
    await send(event_router, "add Metformin 60")

    prompt = await send(event_router, "delete metformin")
    assert prompt[0].startswith("⚠️ Delete this medicine?")

    replies = await send(event_router, "yes")

    assert replies == ['✅ "Metformin" was deleted.']
    profile = await inventory.get_profile(USER_ID)
    assert [med.name for med in profile.medicines] == ["Aspirin"]


@pytest.mark.asyncio
async def test_delete_cancelled_by_other_text(event_router, inventory):
    await send(event_router, "add Aspirin 30")
    await send(event_router, "delete 1")

    replies = await send(event_router, "meds")

    assert replies == ["❌ Deletion cancelled."]
    profile = await inventory.get_profile(USER_ID)
    assert len(profile.medicines) == 1

    # The next message is handled normally again
    status = await send(event_router, "meds")
    assert "Aspirin" in status[0]


@pytest.mark.asyncio
async def test_delete_cancelled_by_sticker(event_router, inventory):
    await send(event_router, "add Aspirin 30")
    await send(event_router, "delete 1")

    replies = await event_router.handle(InboundEvent(user_id=USER_ID, kind=STICKER))

    assert replies == ["❌ Deletion cancelled."]
    profile = await inventory.get_profile(USER_ID)
    assert profile.medicines[0].remaining_pills == 30


@pytest.mark.asyncio
async def test_stale_delete_confirmation_is_dropped(event_router, inventory, clock):
    await send(event_router, "add Aspirin 30")
    await send(event_router, "delete 1")

    clock.advance(minutes=31)
    replies = await send(event_router, "meds")

    assert "Aspirin" in replies[0]
    profile = await inventory.get_profile(USER_ID)
    assert len(profile.medicines) == 1


@pytest.mark.asyncio
async def test_stale_reset_confirmation_is_dropped(event_router, store, clock):
    await send(event_router, "add Aspirin 30")
    await send(event_router, "reset")

    clock.advance(minutes=31)
    replies = await send(event_router, "confirm reset")

    assert not replies[0].startswith("✅ All your data was deleted.")
    assert store.exists(USER_ID)



@pytest.mark.asyncio
async def test_delete_unknown_reference(event_router):
    await send(event_router, "add Aspirin 30")

    replies = await send(event_router, "delete 3")

    assert replies[0].startswith('❌ Medicine "3" not found.')


@pytest.mark.asyncio
async def test_list_commands_without_medicines(event_router):
    assert await send(event_router, "refill") == ["❌ You have no medicines yet."]
    assert await send(event_router, "delete") == ["❌ You have no medicines yet."]


@pytest.mark.asyncio
async def test_reset_with_confirmation(event_router, store, tracker):
    await send(event_router, "add Aspirin 30")
    tracker.arm(USER_ID, 1)

    prompt = await send(event_router, "reset")
    assert "Medicines: 1" in prompt[0]

    replies = await send(event_router, "confirm reset")

    assert replies[0].startswith("✅ All your data was deleted.")
    assert not store.exists(USER_ID)
    assert tracker.peek(USER_ID) is None


@pytest.mark.asyncio
async def test_reset_needs_exact_phrase(event_router, store):
    await send(event_router, "add Aspirin 30")
    await send(event_router, "reset")

    replies = await send(event_router, "yes")

    assert replies == ["❌ Reset cancelled."]
    assert store.exists(USER_ID)


@pytest.mark.asyncio
async def test_reset_without_data(event_router):
    assert await send(event_router, "reset") == ["❌ There is no data to reset."]


@pytest.mark.asyncio
async def test_change_slot_time(event_router, inventory):
    replies = await send(event_router, "time 1 7.30")

    assert replies[0].startswith("✅ Slot 1 is now at 07:30")
    profile = await inventory.get_profile(USER_ID)
    assert profile.settings.time1 == "07:30"

    times = await send(event_router, "times")
    assert "1. 🕐 07:30" in times[0]


@pytest.mark.asyncio
async def test_slots_cannot_share_time(event_router):
    replies = await send(event_router, "time 2 08:00")

    assert replies == ["❌ Slot 1 is already set to 08:00"]


@pytest.mark.asyncio
async def test_invalid_time(event_router):
    replies = await send(event_router, "time 1 25:00")

    assert replies == ["❌ Invalid time format: 25:00"]


@pytest.mark.asyncio
async def test_register_once(event_router, inventory):
    first = await send(event_router, "register HN12345")
    second = await send(event_router, "register HN99999")

    assert first[0].startswith("✅ Registered!")
    assert second[0].startswith("❌ You are already registered.")
    profile = await inventory.get_profile(USER_ID)
    assert profile.patient_code == "HN12345"


@pytest.mark.asyncio
async def test_help_and_unknown(event_router):
    help_text = await send(event_router, "help add")
    unknown = await send(event_router, "what is this")

    assert "add [name] [pills]" in help_text[0]
    assert unknown[0].startswith("❓ Sorry, I did not understand that.")
