"""Reminder scheduler for medication bot."""

import asyncio
from datetime import datetime
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError, TelegramNotFound
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from medbot.data.models import TIME_SLOTS, UserProfile
from medbot.data.storage import ProfileStore
from medbot.services.notification_manager import NotificationManager
from medbot.services.pending import Clock, PendingAckTracker, utc_now
from medbot.utils import format_clock, get_local_time, log_operation, logger


class ReminderScheduler:
    """Background scheduler for medication reminders.

    Runs as a background task that wakes every ``interval_seconds`` and
    does the per-minute work at most once for each wall-clock minute.

    Features:
    - Sends one reminder per user and slot when the slot time is reached
    - Skips slots with no assigned medicines
    - Arms the pending acknowledgment only after a reminder was delivered
    - Sweeps expired pending acknowledgments
    - Sends a daily stock summary at ``daily_summary_time``
    - Handles Telegram API errors gracefully
    """

    def __init__(
        self,
        bot: Bot,
        store: ProfileStore,
        tracker: PendingAckTracker,
        notification_manager: NotificationManager,
        timezone_offset: str,
        daily_summary_time: Optional[str] = None,
        interval_seconds: int = 20,
        clock: Clock = utc_now,
    ):
        """Initialize reminder scheduler.

        Args:
            bot: Telegram Bot instance
            store: ProfileStore instance
            tracker: Pending acknowledgment tracker to arm
            notification_manager: Message formatter
            timezone_offset: Deployment timezone offset, e.g. "+07:00"
            daily_summary_time: Local "HH:MM" for the daily summary, None disables it
            interval_seconds: Sleep between loop iterations
            clock: Source of the current UTC time
        """
        self.bot = bot
        self.store = store
        self.tracker = tracker
        self.notification_manager = notification_manager
        self.timezone_offset = timezone_offset
        self.daily_summary_time = daily_summary_time
        self.interval_seconds = interval_seconds
        self._clock = clock

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._last_minute: Optional[str] = None

        logger.info("ReminderScheduler initialized")

    async def start(self):
        """Start the scheduler loop."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._scheduler_loop())
        logger.info("Scheduler started")

    async def stop(self):
        """Stop the scheduler gracefully."""
        if not self._running:
            logger.warning("Scheduler not running")
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Scheduler stopped")

    async def _scheduler_loop(self):
        logger.info(f"Scheduler loop started (interval: {self.interval_seconds}s)")

        while self._running:
            try:
                await self.tick()
            except Exception as e:
                logger.exception(f"Error in scheduler loop: {type(e).__name__}")

            await asyncio.sleep(self.interval_seconds)

    async def tick(self, now: Optional[datetime] = None) -> bool:
        """Run the per-minute work unless this minute was already handled.

        Args:
            now: Current UTC time, defaults to the scheduler clock

        Returns:
            True if the minute was processed, False if it was a repeat
        """
        local_now = get_local_time(self.timezone_offset, now or self._clock())
        minute_key = local_now.strftime("%Y-%m-%d %H:%M")
        if minute_key == self._last_minute:
            return False
        self._last_minute = minute_key

        swept = self.tracker.sweep()
        if swept:
            logger.debug(f"Expired {swept} pending acknowledgment(s)")

        await self.check_and_send_reminders(local_now)

        if self.daily_summary_time and format_clock(local_now) == self.daily_summary_time:
            await self.send_daily_summaries()

        return True

    async def check_and_send_reminders(self, local_now: datetime):
        """Check all users and send reminders whose slot time is ``local_now``."""
        current_time = format_clock(local_now)
        user_ids = self.store.get_all_user_ids()

        if not user_ids:
            logger.debug("No users found")
            return

        logger.debug(f"Checking {len(user_ids)} user(s) at {current_time}")

        for user_id in user_ids:
            try:
                await self.process_user_reminders(user_id, current_time)
            except Exception as e:
                # Continue with other users even if one fails
                logger.exception(
                    f"Error processing reminders for user {user_id}: {type(e).__name__}"
                )

    async def process_user_reminders(self, user_id: int, current_time: str) -> list[int]:
        """Send due reminders for a single user.

        Args:
            user_id: Telegram user ID
            current_time: Local "HH:MM"

        Returns:
            Slots whose reminder was delivered
        """
        profile = await self.store.get(user_id)
        delivered = []

        for slot in TIME_SLOTS:
            if profile.settings.time_for_slot(slot) != current_time:
                continue

            if not profile.medicines_for_slot(slot):
                logger.debug(f"No medicines in slot {slot} for user {user_id}")
                continue

            if await self.send_reminder(user_id, profile, slot):
                self.tracker.arm(user_id, slot)
                delivered.append(slot)

        return delivered

    async def send_reminder(self, user_id: int, profile: UserProfile, slot: int) -> bool:
        """Send reminder message with inline keyboard.

        Returns:
            True if Telegram accepted the message
        """
        try:
            message_text = self.notification_manager.format_reminder_message(profile, slot)
            keyboard_data = self.notification_manager.create_reminder_keyboard(slot)

            keyboard = InlineKeyboardMarkup(
                inline_keyboard=[
                    [
                        InlineKeyboardButton(
                            text=button["text"],
                            callback_data=button["callback_data"],
                        )
                        for button in row
                    ]
                    for row in keyboard_data["inline_keyboard"]
                ]
            )

            message = await self.bot.send_message(
                chat_id=user_id,
                text=message_text,
                reply_markup=keyboard,
            )

            log_operation(
                "reminder_sent",
                user_id=user_id,
                slot=slot,
                medicines_count=len(profile.medicines_for_slot(slot)),
                message_id=message.message_id,
            )
            return True

        except TelegramForbiddenError as e:
            logger.warning(f"User {user_id} blocked the bot: {e}")
        except TelegramNotFound as e:
            logger.warning(f"Chat {user_id} not found: {e}")
        except TelegramBadRequest as e:
            logger.error(f"Bad request when sending reminder to user {user_id}: {e}")
        except Exception as e:
            logger.exception(f"Error sending reminder to user {user_id}: {type(e).__name__}")
        return False

    async def send_daily_summaries(self) -> int:
        """Send the stock summary to every user with medicines.

        Returns:
            Number of summaries delivered
        """
        sent = 0
        for user_id in self.store.get_all_user_ids():
            try:
                profile = await self.store.get(user_id)
                text = self.notification_manager.format_daily_summary(profile)
                if text is None:
                    continue
                await self.bot.send_message(chat_id=user_id, text=text)
                sent += 1
            except TelegramForbiddenError as e:
                logger.warning(f"User {user_id} blocked the bot: {e}")
            except Exception as e:
                logger.exception(f"Error sending daily summary to user {user_id}: {type(e).__name__}")

        log_operation("daily_summary_sent", users=sent)
        return sent
