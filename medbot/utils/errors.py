"""Error types and user-facing error formatting for medication bot."""

from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramNetworkError,
)


class MedbotError(Exception):
    """Base exception for medication bot errors."""
    pass


class StorageError(MedbotError):
    """Raised when a user profile cannot be read or written."""

    def __init__(self, user_id: int, message: str):
        self.user_id = user_id
        super().__init__(f"Storage error for user {user_id}: {message}")


def format_error_for_user(error: Exception) -> str:
    """Convert technical errors to user-friendly messages.

    Args:
        error: Exception to format

    Returns:
        User-friendly error message
    """
    if isinstance(error, StorageError):
        return "⚠️ Could not save your data right now. Nothing was changed, please try again."

    if isinstance(error, TelegramForbiddenError):
        return "The bot cannot message you. Please check that the bot is not blocked."

    if isinstance(error, TelegramBadRequest):
        return "Something went wrong while processing the request. Please try again."

    if isinstance(error, TelegramNetworkError):
        return "A network error occurred. Please try again in a moment."

    if isinstance(error, TelegramAPIError):
        return "A Telegram API error occurred. Please try again."

    if isinstance(error, ValueError):
        return f"Invalid input: {error}"

    return "❌ An internal error occurred. Please try again."


__all__ = ["MedbotError", "StorageError", "format_error_for_user"]
