"""Medication reminder bot with stock tracking."""

__version__ = "0.3.0"
