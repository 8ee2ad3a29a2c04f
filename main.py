"""Main entry point for medication bot."""

import asyncio
import signal
import sys

from aiogram import Bot, Dispatcher
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

from medbot.bot.bot import init_bot
from medbot.config import Settings, settings
from medbot.utils import logger, setup_logger


async def start_webhook(bot: Bot, dp: Dispatcher, settings: Settings) -> web.AppRunner:
    """Register the webhook with Telegram and serve updates over aiohttp."""
    app = web.Application()
    SimpleRequestHandler(dispatcher=dp, bot=bot).register(app, path=settings.webhook_path)
    setup_application(app, dp, bot=bot)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host=settings.webapp_host, port=settings.webapp_port)
    await site.start()

    webhook_url = settings.webhook_url.rstrip("/") + settings.webhook_path
    await bot.set_webhook(
        url=webhook_url,
        allowed_updates=dp.resolve_used_update_types(),
        drop_pending_updates=True,
    )
    logger.info(f"Webhook set: {webhook_url}")
    logger.info(f"Listening on {settings.webapp_host}:{settings.webapp_port}")
    return runner


async def main():
    """Main application entry point."""
    setup_logger(console_level=settings.log_level)

    logger.info("=" * 60)
    logger.info("Starting Medication Bot")
    logger.info("=" * 60)

    logger.info(f"Data directory: {settings.data_dir}")
    logger.info(f"Timezone: {settings.timezone_offset}")
    logger.info(f"Scheduler interval: {settings.scheduler_interval_seconds}s")
    logger.info(f"Pending acknowledgment window: {settings.pending_ack_minutes} min")
    logger.info(f"Mode: {'webhook' if settings.use_webhook else 'polling'}")

    try:
        bot, dp, services = init_bot(settings)
        logger.info("Bot and services initialized")
    except Exception:
        logger.exception("Failed to initialize bot")
        sys.exit(1)

    scheduler = services.scheduler

    shutdown_event = asyncio.Event()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}, initiating graceful shutdown...")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    await scheduler.start()

    runner = None
    polling_task = None
    try:
        if settings.use_webhook:
            runner = await start_webhook(bot, dp, settings)
        else:
            logger.info("Starting bot polling...")
            await bot.delete_webhook(drop_pending_updates=True)
            polling_task = asyncio.create_task(
                dp.start_polling(
                    bot,
                    allowed_updates=dp.resolve_used_update_types(),
                    handle_signals=False,
                )
            )

        await shutdown_event.wait()
        logger.info("Shutdown signal received, stopping services...")

    except Exception:
        logger.exception("Error during bot operation")
        await scheduler.stop()
        await bot.session.close()
        sys.exit(1)

    await scheduler.stop()

    if polling_task is not None:
        await dp.stop_polling()
        polling_task.cancel()
        try:
            await polling_task
        except asyncio.CancelledError:
            pass
        logger.info("Bot polling stopped")

    if runner is not None:
        await bot.delete_webhook()
        await runner.cleanup()
        logger.info("Webhook server stopped")

    await bot.session.close()
    logger.info("Bot session closed")

    logger.info("=" * 60)
    logger.info("Medication Bot stopped")
    logger.info("=" * 60)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received KeyboardInterrupt, exiting...")
