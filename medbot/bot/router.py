"""Inbound event routing for medication bot.

The router turns a normalized chat event into profile changes and reply
texts. It does not know about Telegram; the aiogram handlers feed it events
and send back whatever it returns.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from medbot.bot import commands
from medbot.bot.commands import Command
from medbot.services.inventory import InventoryManager
from medbot.services.notification_manager import DIVIDER, NotificationManager
from medbot.services.pending import Clock, PendingAckTracker, utc_now
from medbot.utils import (
    StorageError,
    format_error_for_user,
    get_local_time,
    infer_slot,
    log_operation,
)

TEXT = "text"
STICKER = "sticker"

CONFIRM_DELETE = "delete"
CONFIRM_RESET = "reset"


@dataclass(frozen=True)
class InboundEvent:
    user_id: int
    kind: str
    payload: str = ""


@dataclass(frozen=True)
class PendingConfirmation:
    action: str
    created_at: datetime
    medicine_id: Optional[int] = None
    medicine_name: Optional[str] = None


class EventRouter:
    """Resolves inbound events to commands and runs them.

    Args:
        inventory: Profile read-modify-write operations
        tracker: Pending acknowledgments armed by the scheduler
        notifications: Message formatter
        timezone_offset: Deployment timezone offset, e.g. "+07:00"
        slot_window_hours: Window for inferring the slot from the clock
        clock: Source of the current UTC time
    """

    def __init__(
        self,
        inventory: InventoryManager,
        tracker: PendingAckTracker,
        notifications: NotificationManager,
        timezone_offset: str,
        slot_window_hours: int = 2,
        clock: Clock = utc_now,
    ):
        self.inventory = inventory
        self.tracker = tracker
        self.notifications = notifications
        self.timezone_offset = timezone_offset
        self.slot_window_hours = slot_window_hours
        self._clock = clock
        self._confirmations: dict[int, PendingConfirmation] = {}

        self._handlers = {
            commands.Help: self._help,
            commands.Register: self._register,
            commands.AddMedicine: self._add_medicine,
            commands.ShowStatus: self._show_status,
            commands.ShowTimes: self._show_times,
            commands.SetTime: self._set_time,
            commands.TakeSlot: self._take_slot,
            commands.ListLateSlots: self._list_late_slots,
            commands.Acknowledge: self._acknowledge,
            commands.ListRefill: self._list_refill,
            commands.Refill: self._refill,
            commands.ListDelete: self._list_delete,
            commands.Delete: self._delete,
            commands.Reset: self._reset,
            commands.Unknown: self._unknown,
        }

    async def handle(self, event: InboundEvent) -> list[str]:
        """Process one inbound event.

        A pending delete/reset confirmation consumes the next event,
        whatever its content. Once older than the tracker ttl it is
        dropped and the event is processed normally.

        Returns:
            Reply texts in sending order
        """
        log_operation("event_received", user_id=event.user_id, kind=event.kind)

        confirmation = self._confirmations.pop(event.user_id, None)
        if confirmation is not None:
            if self._clock() - confirmation.created_at > self.tracker.ttl:
                logger.info(
                    f"Expired {confirmation.action} confirmation for user {event.user_id}"
                )
            else:
                _, replies = await self._run_guarded(
                    event.user_id, self._resolve_confirmation(event, confirmation)
                )
                return replies

        if event.kind == STICKER:
            command = commands.Acknowledge()
        elif event.kind == TEXT:
            command = commands.parse_command(event.payload)
        else:
            logger.warning(f"Unsupported event kind from user {event.user_id}: {event.kind}")
            return []

        return await self.dispatch(event.user_id, command)

    async def dispatch(self, user_id: int, command: Command) -> list[str]:
        logger.info(f"Dispatching {type(command).__name__} for user {user_id}")
        handler = self._handlers[type(command)]
        _, replies = await self._run_guarded(user_id, handler(user_id, command))
        return replies

    async def press_taken(self, user_id: int, slot: int) -> tuple[bool, list[str]]:
        """Record the slot of a reminder's "Taken" button.

        Returns:
            Whether the dose was saved, and the reply texts
        """
        logger.info(f"Taken button for slot {slot} from user {user_id}")
        return await self._run_guarded(
            user_id, self._take_slot(user_id, commands.TakeSlot(slot=slot))
        )

    async def _run_guarded(self, user_id: int, operation) -> tuple[bool, list[str]]:
        try:
            return True, await operation
        except StorageError as e:
            logger.error(f"Storage failure for user {user_id}: {e}")
            return False, [format_error_for_user(e)]
        except ValueError as e:
            logger.info(f"Rejected command from user {user_id}: {e}")
            return False, [f"❌ {e}"]

    def _local_now(self) -> datetime:
        return get_local_time(self.timezone_offset, self._clock())

    # Dose recording

    async def _acknowledge(self, user_id: int, command: commands.Acknowledge) -> list[str]:
        pending = self.tracker.peek(user_id)
        now = self._local_now()

        if pending is not None:
            slot = pending.time_slot
            logger.info(f"Acknowledgment from user {user_id} resolved to pending slot {slot}")
        else:
            profile = await self.inventory.get_profile(user_id)
            slot = infer_slot(
                profile.settings.time1,
                profile.settings.time2,
                now,
                self.slot_window_hours,
            )
            if slot is None:
                logger.info(f"Acknowledgment from user {user_id} could not be resolved")
                return [
                    "❓ Which dose is this for?\n\n"
                    f'Type "take 1" ({profile.settings.time1}) '
                    f'or "take 2" ({profile.settings.time2}).'
                ]
            logger.info(f"Acknowledgment from user {user_id} inferred as slot {slot}")

        replies = await self._record_slot(user_id, slot, now, late=False)
        self.tracker.clear(user_id)
        return replies

    async def _take_slot(self, user_id: int, command: commands.TakeSlot) -> list[str]:
        replies = await self._record_slot(user_id, command.slot, self._local_now(), late=command.late)

        pending = self.tracker.peek(user_id)
        if pending is not None and pending.time_slot == command.slot:
            self.tracker.clear(user_id)
        return replies

    async def _record_slot(self, user_id: int, slot: int, now: datetime, late: bool) -> list[str]:
        profile, result = await self.inventory.take_slot(user_id, slot)

        if not profile.medicines:
            return [
                "❌ You have no medicines yet.\n\n"
                "💡 Add one first: add [name] [pills]"
            ]

        replies = [
            self.notifications.format_slot_result(
                result,
                profile.settings.time_for_slot(slot),
                now,
                late=late,
            )
        ]
        replies.extend(self.notifications.format_alert(alert) for alert in result.alerts)
        return replies

    async def _list_late_slots(self, user_id: int, command: commands.ListLateSlots) -> list[str]:
        profile = await self.inventory.get_profile(user_id)
        return [self.notifications.format_late_picker(profile)]

    # Inventory

    async def _add_medicine(self, user_id: int, command: commands.AddMedicine) -> list[str]:
        medicine = await self.inventory.add_medicine(
            user_id,
            name=command.name,
            quantity=command.quantity,
            pills_per_dose=command.pills_per_dose,
            time_slot=command.time_slot,
        )
        profile = await self.inventory.get_profile(user_id)
        slot_time = profile.settings.time_for_slot(medicine.time_slot)
        return [
            f"✅ Medicine added!\n{DIVIDER}\n"
            f"💊 {medicine.name}\n"
            f"📦 {medicine.remaining_pills} pills, {medicine.pills_per_dose} per dose\n"
            f"⏰ Slot {medicine.time_slot} ({slot_time})\n\n"
            '💡 Type "meds" to see all medicines'
        ]

    async def _show_status(self, user_id: int, command: commands.ShowStatus) -> list[str]:
        profile = await self.inventory.get_profile(user_id)
        return [self.notifications.format_status(profile)]

    async def _list_refill(self, user_id: int, command: commands.ListRefill) -> list[str]:
        profile = await self.inventory.get_profile(user_id)
        if not profile.medicines:
            return ["❌ You have no medicines yet."]
        return [self.notifications.format_medicine_picker(profile, "refill", "refill 1 30")]

    async def _refill(self, user_id: int, command: commands.Refill) -> list[str]:
        medicine = await self.inventory.refill(user_id, command.reference, command.quantity)
        return [
            f"✅ Refilled!\n{DIVIDER}\n"
            f"💊 {medicine.name}\n"
            f"📦 +{command.quantity} pills\n"
            f"📊 Now: {medicine.remaining_pills} pills"
        ]

    async def _list_delete(self, user_id: int, command: commands.ListDelete) -> list[str]:
        profile = await self.inventory.get_profile(user_id)
        if not profile.medicines:
            return ["❌ You have no medicines yet."]
        return [self.notifications.format_medicine_picker(profile, "delete", "delete 1")]

    async def _delete(self, user_id: int, command: commands.Delete) -> list[str]:
        profile = await self.inventory.get_profile(user_id)
        medicine = profile.find_medicine(command.reference)
        if medicine is None:
            return [f'❌ Medicine "{command.reference}" not found.\n\n💡 Type "delete" to see the list']

        self._confirmations[user_id] = PendingConfirmation(
            action=CONFIRM_DELETE,
            created_at=self._clock(),
            medicine_id=medicine.id,
            medicine_name=medicine.name,
        )
        return [
            f"⚠️ Delete this medicine?\n{DIVIDER}\n"
            f"💊 {medicine.name}\n"
            f"📦 {medicine.remaining_pills} left\n\n"
            '✅ Type "yes" to delete\n'
            "❌ Anything else cancels"
        ]

    # Settings and account

    async def _show_times(self, user_id: int, command: commands.ShowTimes) -> list[str]:
        profile = await self.inventory.get_profile(user_id)
        return [self.notifications.format_times(profile)]

    async def _set_time(self, user_id: int, command: commands.SetTime) -> list[str]:
        user_settings = await self.inventory.set_slot_time(user_id, command.slot, command.time)
        return [
            f"✅ Slot {command.slot} is now at {user_settings.time_for_slot(command.slot)}\n\n"
            f"1. 🕐 {user_settings.time1}\n"
            f"2. 🕐 {user_settings.time2}"
        ]

    async def _register(self, user_id: int, command: commands.Register) -> list[str]:
        profile, registered = await self.inventory.register(user_id, command.patient_code)
        if not registered:
            return [
                f"❌ You are already registered.\n📋 Patient code: {profile.patient_code}\n\n"
                '💡 To start over type "reset"'
            ]
        return [
            f"✅ Registered!\n{DIVIDER}\n"
            f"📋 Patient code: {profile.patient_code}\n"
            f"⏰ Reminders: {profile.settings.time1}, {profile.settings.time2}\n\n"
            "💡 Next: add [name] [pills]"
        ]

    async def _reset(self, user_id: int, command: commands.Reset) -> list[str]:
        if not self.inventory.store.exists(user_id):
            return ["❌ There is no data to reset."]

        profile = await self.inventory.get_profile(user_id)
        self._confirmations[user_id] = PendingConfirmation(
            action=CONFIRM_RESET, created_at=self._clock()
        )
        return [
            f"⚠️ Reset all data?\n{DIVIDER}\n"
            f"❌ Medicines: {len(profile.medicines)}\n"
            "❌ Reminder times and alerts\n\n"
            "This cannot be undone.\n\n"
            '✅ Type "confirm reset" to delete everything\n'
            "❌ Anything else cancels"
        ]

    async def _resolve_confirmation(
        self,
        event: InboundEvent,
        confirmation: PendingConfirmation,
    ) -> list[str]:
        text = event.payload if event.kind == TEXT else ""

        if confirmation.action == CONFIRM_DELETE:
            if not commands.is_confirmation(text):
                return ["❌ Deletion cancelled."]
            removed = await self.inventory.delete(event.user_id, confirmation.medicine_id)
            if removed is None:
                return [f'❌ Medicine "{confirmation.medicine_name}" no longer exists.']
            return [f'✅ "{removed.name}" was deleted.']

        if confirmation.action == CONFIRM_RESET:
            if not commands.is_reset_confirmation(text):
                return ["❌ Reset cancelled."]
            await self.inventory.reset(event.user_id)
            self.tracker.clear(event.user_id)
            return ["✅ All your data was deleted.\n\n💡 Start again any time: add [name] [pills]"]

        logger.warning(f"Unknown confirmation action for user {event.user_id}: {confirmation.action}")
        return []

    # Misc

    async def _help(self, user_id: int, command: commands.Help) -> list[str]:
        return [self.notifications.format_help(command.topic)]

    async def _unknown(self, user_id: int, command: commands.Unknown) -> list[str]:
        return ['❓ Sorry, I did not understand that.\n\n💡 Type "help" to see all commands']
