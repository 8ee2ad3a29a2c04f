"""Inventory manager for medication bot."""

from typing import Optional

from loguru import logger

from medbot.data.models import TIME_SLOTS, Medicine, UserProfile, UserSettings
from medbot.data.storage import ProfileStore
from medbot.services.dose_recorder import (
    SlotDoseResult,
    refill_medicine,
    remove_medicine,
    take_all_for_slot,
)
from medbot.utils import log_operation, normalize_time


class InventoryManager:
    """Manager for profile read-modify-write operations.

    Handles all operations that change a user's profile:
    - Registering a patient code
    - Adding, refilling and deleting medicines
    - Changing slot times
    - Recording slot-wide doses
    - Resetting the profile

    Every method loads the profile, mutates it and saves it back. Nothing is
    saved when validation fails.
    """

    def __init__(self, store: ProfileStore):
        """Initialize inventory manager.

        Args:
            store: ProfileStore instance for persistence
        """
        self.store = store
        logger.debug("InventoryManager initialized")

    async def get_profile(self, user_id: int) -> UserProfile:
        return await self.store.get(user_id)

    async def register(self, user_id: int, patient_code: str) -> tuple[UserProfile, bool]:
        """Attach a patient code to the profile.

        Returns:
            Tuple of (profile, registered) where registered is False when the
            profile already had a code
        """
        profile = await self.store.get(user_id)
        if profile.patient_code:
            logger.info(f"User {user_id} already registered as {profile.patient_code}")
            return profile, False

        profile.patient_code = patient_code
        await self.store.put(user_id, profile)
        log_operation("patient_registered", user_id=user_id, patient_code=patient_code)
        return profile, True

    async def add_medicine(
        self,
        user_id: int,
        name: str,
        quantity: int,
        pills_per_dose: int = 1,
        time_slot: int = 1,
    ) -> Medicine:
        """Add medicine to user's inventory.

        Args:
            user_id: Telegram user ID
            name: Medicine name
            quantity: Number of pills supplied
            pills_per_dose: Pills per dose
            time_slot: Slot 1 or 2

        Returns:
            Created Medicine instance

        Raises:
            ValueError: If arguments are invalid or the name already exists
        """
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")
        if pills_per_dose <= 0:
            raise ValueError("Pills per dose must be greater than 0")
        if time_slot not in TIME_SLOTS:
            raise ValueError("Time slot must be 1 or 2")

        profile = await self.store.get(user_id)

        name_lower = name.lower()
        if any(med.name.lower() == name_lower for med in profile.medicines):
            logger.warning(f"Skipping duplicate medicine for user {user_id}: {name}")
            raise ValueError(f'"{name}" is already in your list')

        medicine = profile.add_medicine(
            name=name,
            quantity=quantity,
            pills_per_dose=pills_per_dose,
            time_slot=time_slot,
        )
        await self.store.put(user_id, profile)

        log_operation(
            "medicine_added",
            user_id=user_id,
            medicine_id=medicine.id,
            name=name,
            quantity=quantity,
            time_slot=time_slot,
        )
        return medicine

    async def refill(self, user_id: int, reference: str, quantity: int) -> Medicine:
        """Refill medicine referenced by list number or name.

        Raises:
            ValueError: If medicine not found or quantity invalid
        """
        profile = await self.store.get(user_id)
        medicine = profile.find_medicine(reference)
        if medicine is None:
            raise ValueError(f'Medicine "{reference}" not found')

        refill_medicine(profile, medicine.id, quantity)
        await self.store.put(user_id, profile)

        log_operation(
            "medicine_refilled",
            user_id=user_id,
            medicine_id=medicine.id,
            quantity=quantity,
            remaining=medicine.remaining_pills,
        )
        return medicine

    async def delete(self, user_id: int, medicine_id: int) -> Optional[Medicine]:
        """Delete medicine by ID.

        Returns:
            Removed Medicine, or None if it no longer exists
        """
        profile = await self.store.get(user_id)
        removed = remove_medicine(profile, medicine_id)
        if removed is None:
            logger.warning(f"Medicine {medicine_id} not found for user {user_id}")
            return None

        await self.store.put(user_id, profile)
        log_operation("medicine_deleted", user_id=user_id, medicine_id=medicine_id, name=removed.name)
        return removed

    async def set_slot_time(self, user_id: int, slot: int, raw_time: str) -> UserSettings:
        """Change the time of a dosing slot.

        Raises:
            ValueError: If slot or time is invalid, or the other slot uses the same time
        """
        if slot not in TIME_SLOTS:
            raise ValueError("Time slot must be 1 or 2")
        new_time = normalize_time(raw_time)

        profile = await self.store.get(user_id)
        other_slot = 2 if slot == 1 else 1
        if profile.settings.time_for_slot(other_slot) == new_time:
            raise ValueError(f"Slot {other_slot} is already set to {new_time}")

        profile.settings.set_time_for_slot(slot, new_time)
        await self.store.put(user_id, profile)

        log_operation("slot_time_changed", user_id=user_id, slot=slot, time=new_time)
        return profile.settings

    async def take_slot(self, user_id: int, slot: int) -> tuple[UserProfile, SlotDoseResult]:
        """Record doses for every stocked medicine of a slot and save.

        Returns:
            Tuple of (profile, result)
        """
        profile = await self.store.get(user_id)
        result = take_all_for_slot(profile, slot)

        if result.records:
            await self.store.put(user_id, profile)

        log_operation(
            "slot_taken",
            user_id=user_id,
            slot=slot,
            taken=len(result.taken),
            failed=len(result.failed),
            alerts=len(result.alerts),
        )
        return profile, result

    async def reset(self, user_id: int) -> bool:
        deleted = await self.store.delete(user_id)
        log_operation("profile_reset", user_id=user_id, deleted=deleted)
        return deleted
