"""Configuration settings for the medication bot."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        """Initialize settings by loading from .env file and environment variables."""
        # Load .env file if it exists
        env_path = Path(__file__).parent.parent.parent / ".env"
        load_dotenv(dotenv_path=env_path)

        # Telegram Bot Configuration
        self.telegram_bot_token: str = self._get_required_env("TELEGRAM_BOT_TOKEN")

        # Application Configuration
        self.log_level: str = self._get_env("LOG_LEVEL", "INFO")
        self.data_dir: Path = Path(self._get_env("DATA_DIR", "data/users"))
        self.scheduler_interval_seconds: int = int(
            self._get_env("SCHEDULER_INTERVAL_SECONDS", "20")
        )

        # Reminder Configuration
        self.timezone_offset: str = self._get_env("TIMEZONE_OFFSET", "+07:00")
        self.pending_ack_minutes: int = int(self._get_env("PENDING_ACK_MINUTES", "30"))
        self.slot_window_hours: int = int(self._get_env("SLOT_WINDOW_HOURS", "2"))
        self.daily_summary_time: str = self._get_env("DAILY_SUMMARY_TIME", "21:00")

        # Webhook Configuration (polling is used when WEBHOOK_URL is empty)
        self.webhook_url: str = self._get_env("WEBHOOK_URL", "")
        self.webhook_path: str = self._get_env("WEBHOOK_PATH", "/webhook")
        self.webapp_host: str = self._get_env("WEBAPP_HOST", "0.0.0.0")
        self.webapp_port: int = int(self._get_env("WEBAPP_PORT", "8080"))

        # Ensure data directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def use_webhook(self) -> bool:
        return bool(self.webhook_url)

    def _get_env(self, key: str, default: Optional[str] = None) -> str:
        """Get environment variable with optional default value.

        Args:
            key: Environment variable name
            default: Default value if variable is not set

        Returns:
            Environment variable value or default
        """
        return os.getenv(key, default)

    def _get_required_env(self, key: str) -> str:
        """Get required environment variable.

        Args:
            key: Environment variable name

        Returns:
            Environment variable value

        Raises:
            ValueError: If required environment variable is not set
        """
        value = os.getenv(key)
        if value is None:
            raise ValueError(
                f"Required environment variable '{key}' is not set. "
                f"Please set it in .env file or system environment."
            )
        return value

    def __repr__(self) -> str:
        """Return string representation of settings (without sensitive data)."""
        return (
            f"Settings("
            f"telegram_bot_token={'*' * 8}, "
            f"log_level={self.log_level}, "
            f"data_dir={self.data_dir}, "
            f"scheduler_interval_seconds={self.scheduler_interval_seconds}, "
            f"timezone_offset={self.timezone_offset}, "
            f"pending_ack_minutes={self.pending_ack_minutes}, "
            f"slot_window_hours={self.slot_window_hours}, "
            f"daily_summary_time={self.daily_summary_time}, "
            f"webhook_url={self.webhook_url or 'polling'}"
            f")"
        )
