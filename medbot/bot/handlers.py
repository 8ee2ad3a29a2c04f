"""Telegram bot handlers for medication bot."""

from aiogram import F, Router
from aiogram.types import CallbackQuery, Message

from medbot.bot.router import STICKER, TEXT, EventRouter, InboundEvent
from medbot.utils import format_error_for_user, log_operation, logger

# Initialize router
router = Router()


async def send_replies(message: Message, replies: list[str]) -> None:
    for text in replies:
        await message.answer(text)


@router.message(F.sticker)
async def handle_sticker_message(message: Message, event_router: EventRouter):
    """Handle stickers as dose acknowledgments.

    Args:
        message: Incoming sticker message
        event_router: Router injected from dispatcher workflow data
    """
    user_id = message.from_user.id
    logger.info(f"Sticker from user {user_id}")

    try:
        replies = await event_router.handle(InboundEvent(user_id=user_id, kind=STICKER))
        await send_replies(message, replies)
    except Exception as e:
        logger.exception(f"Unexpected error handling sticker from user {user_id}: {type(e).__name__}")
        await message.answer(format_error_for_user(e))


@router.message(F.text)
async def handle_text_message(message: Message, event_router: EventRouter):
    """Handle all text messages through the command table.

    Args:
        message: Incoming text message
        event_router: Router injected from dispatcher workflow data
    """
    user_id = message.from_user.id
    user_message = message.text

    log_operation("message_received", user_id=user_id, message_length=len(user_message))
    logger.info(f"Message from user {user_id}: {user_message[:100]}")

    try:
        replies = await event_router.handle(
            InboundEvent(user_id=user_id, kind=TEXT, payload=user_message)
        )
        await send_replies(message, replies)
    except Exception as e:
        logger.exception(f"Unexpected error handling message from user {user_id}: {type(e).__name__}")
        await message.answer(format_error_for_user(e))


@router.callback_query(F.data.startswith("taken:"))
async def handle_taken_callback(callback: CallbackQuery, event_router: EventRouter):
    """Handle the reminder's "Taken" button.

    Records the slot encoded in callback_data (format: "taken:1"). The
    button is removed only once the dose was saved, so a failed save can
    be retried with it.

    Args:
        callback: Callback query from inline button
        event_router: Router injected from dispatcher workflow data
    """
    user_id = callback.from_user.id

    try:
        slot = int(callback.data.split(":")[1])
    except (IndexError, ValueError):
        logger.error(f"Invalid callback_data format from user {user_id}: {callback.data}")
        await callback.answer("Could not process this button", show_alert=True)
        return

    log_operation("taken_callback", user_id=user_id, slot=slot)

    try:
        recorded, replies = await event_router.press_taken(user_id, slot)

        if callback.message:
            if recorded:
                await callback.message.edit_reply_markup(reply_markup=None)
            await send_replies(callback.message, replies)
        await callback.answer("Recorded ✓" if recorded else "Not recorded")

    except Exception as e:
        logger.exception(f"Error handling taken callback for user {user_id}: {type(e).__name__}")
        await callback.answer(format_error_for_user(e), show_alert=True)
