"""Telegram bot initialization and setup."""

from dataclasses import dataclass
from datetime import timedelta

from aiogram import Bot, Dispatcher
from loguru import logger

from medbot.bot import handlers
from medbot.bot.router import EventRouter
from medbot.config import Settings
from medbot.data.storage import ProfileStore
from medbot.services.inventory import InventoryManager
from medbot.services.notification_manager import NotificationManager
from medbot.services.pending import PendingAckTracker
from medbot.services.scheduler import ReminderScheduler
from medbot.utils import normalize_time


@dataclass
class BotServices:
    """Service instances shared by the handlers and the scheduler."""

    store: ProfileStore
    tracker: PendingAckTracker
    inventory: InventoryManager
    notifications: NotificationManager
    event_router: EventRouter
    scheduler: ReminderScheduler


def build_services(bot: Bot, settings: Settings) -> BotServices:
    store = ProfileStore(settings.data_dir)
    tracker = PendingAckTracker(ttl=timedelta(minutes=settings.pending_ack_minutes))
    inventory = InventoryManager(store)
    notifications = NotificationManager(pending_minutes=settings.pending_ack_minutes)

    event_router = EventRouter(
        inventory=inventory,
        tracker=tracker,
        notifications=notifications,
        timezone_offset=settings.timezone_offset,
        slot_window_hours=settings.slot_window_hours,
    )
    scheduler = ReminderScheduler(
        bot=bot,
        store=store,
        tracker=tracker,
        notification_manager=notifications,
        timezone_offset=settings.timezone_offset,
        daily_summary_time=(
            normalize_time(settings.daily_summary_time) if settings.daily_summary_time else None
        ),
        interval_seconds=settings.scheduler_interval_seconds,
    )

    return BotServices(
        store=store,
        tracker=tracker,
        inventory=inventory,
        notifications=notifications,
        event_router=event_router,
        scheduler=scheduler,
    )


def init_bot(settings: Settings) -> tuple[Bot, Dispatcher, BotServices]:
    """Initialize bot and dispatcher with all services.

    Services reach the handlers through dispatcher workflow data, so the
    handlers receive ``event_router`` as a keyword argument.

    Returns:
        Tuple of (Bot, Dispatcher, BotServices)
    """
    logger.info("Initializing bot...")

    bot = Bot(token=settings.telegram_bot_token)
    dp = Dispatcher()

    services = build_services(bot, settings)
    dp["event_router"] = services.event_router
    dp["settings"] = settings

    dp.include_router(handlers.router)

    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    logger.info("Bot initialized successfully")
    return bot, dp, services


async def on_startup(bot: Bot, settings: Settings):
    """Handler called when bot starts."""
    logger.info("Bot started")
    logger.info(f"Data directory: {settings.data_dir}")
    logger.info(f"Timezone: {settings.timezone_offset}")

    bot_info = await bot.get_me()
    logger.info(f"Bot username: @{bot_info.username}")
    logger.info(f"Bot ID: {bot_info.id}")


async def on_shutdown():
    """Handler called when bot shuts down."""
    logger.info("Bot shutting down...")
