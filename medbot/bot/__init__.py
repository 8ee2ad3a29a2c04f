"""Telegram bot transport and command routing."""
