"""Data layer for medication bot.

This module provides data models and storage for user profiles.
"""

from .models import Medicine, UserProfile, UserSettings
from .storage import ProfileStore

__all__ = [
    "Medicine",
    "UserProfile",
    "UserSettings",
    "ProfileStore",
]
