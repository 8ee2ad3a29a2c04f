"""Logging configuration and utilities for medication bot."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logger(
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    logs_dir: Optional[Path] = None,
) -> None:
    """Configure loguru logger with console and file outputs.

    Sets up:
    - Console output with colors and proper formatting
    - File output with daily rotation, 30-day retention, and compression
    - Different log levels for console (INFO) and file (DEBUG)

    Args:
        console_level: Log level for console output (default: INFO)
        file_level: Log level for file output (default: DEBUG)
        logs_dir: Directory for log files (default: project_root/logs)
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        level=console_level,
        colorize=True,
        backtrace=True,
        diagnose=True,
    )

    if logs_dir is None:
        logs_dir = Path(__file__).parent.parent.parent / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        logs_dir / "bot_{time:YYYY-MM-DD}.log",
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        ),
        level=file_level,
        rotation="00:00",  # Rotate at midnight
        retention="30 days",
        compression="zip",
        backtrace=True,
        diagnose=True,
        enqueue=True,
    )

    logger.info("Logger configured successfully")
    logger.debug(f"Console log level: {console_level}")
    logger.debug(f"File log level: {file_level}")
    logger.debug(f"Logs directory: {logs_dir}")


def log_operation(
    operation_name: str,
    user_id: Optional[int] = None,
    medicine_id: Optional[int] = None,
    **extra_context,
) -> None:
    """Log an operation with structured context.

    Args:
        operation_name: Name of the operation being performed
        user_id: User ID (if applicable)
        medicine_id: Medicine ID (if applicable)
        **extra_context: Additional context to include in log
    """
    context = {"operation": operation_name}

    if user_id is not None:
        context["user_id"] = user_id

    if medicine_id is not None:
        context["medicine_id"] = medicine_id

    context.update(extra_context)

    details = ", ".join(f"{key}={value}" for key, value in context.items() if key != "operation")
    logger.bind(**context).info(f"Operation: {operation_name} ({details})")


__all__ = ["setup_logger", "log_operation", "logger"]
