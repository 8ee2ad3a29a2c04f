"""Profile storage for medication bot."""

import json
from pathlib import Path

import aiofiles

from medbot.utils import StorageError, log_operation, logger

from .models import UserProfile


class ProfileStore:
    """Key-value store of user profiles backed by JSON files.

    Each user has a separate JSON file stored in {data_dir}/{user_id}.json.
    Uses atomic write pattern (write to temp file, then rename) for data integrity.
    """

    def __init__(self, data_dir: str = "data/users"):
        """Initialize profile store.

        Args:
            data_dir: Directory to store user profile files
        """
        self.data_dir = Path(data_dir)
        self._ensure_data_dir()

    def _ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Data directory ensured: {self.data_dir}")

    def _get_user_file_path(self, user_id: int) -> Path:
        return self.data_dir / f"{user_id}.json"

    def _get_temp_file_path(self, user_id: int) -> Path:
        return self.data_dir / f"{user_id}.json.tmp"

    def exists(self, user_id: int) -> bool:
        """Check if user profile file exists.

        Args:
            user_id: Telegram user ID

        Returns:
            True if profile file exists, False otherwise
        """
        return self._get_user_file_path(user_id).exists()

    async def get(self, user_id: int) -> UserProfile:
        """Load user profile, creating the default profile on first access.

        A corrupted file is removed and replaced by a fresh default profile.

        Args:
            user_id: Telegram user ID

        Returns:
            UserProfile instance

        Raises:
            StorageError: If the file cannot be read or the default cannot be saved
        """
        file_path = self._get_user_file_path(user_id)

        if not file_path.exists():
            logger.debug(f"Profile not found for user {user_id}, creating default")
            return await self._create_default(user_id)

        try:
            async with aiofiles.open(file_path, mode="r", encoding="utf-8") as f:
                content = await f.read()
            profile = UserProfile.from_dict(json.loads(content))
            logger.debug(f"Loaded profile: {user_id}")
            return profile

        except (ValueError, KeyError, TypeError) as e:
            logger.error(
                f"Corrupted profile file for user {user_id}: {type(e).__name__}: {e}. "
                "Creating new file."
            )
            try:
                file_path.unlink()
                log_operation("corrupted_file_removed", user_id=user_id)
            except OSError as unlink_error:
                logger.error(
                    f"Failed to remove corrupted file for user {user_id}: {unlink_error}"
                )
            return await self._create_default(user_id)

        except OSError as e:
            logger.opt(exception=True).error(
                f"Error loading profile for {user_id}: {type(e).__name__}: {e}"
            )
            raise StorageError(user_id, str(e)) from e

    async def put(self, user_id: int, profile: UserProfile) -> None:
        """Save user profile to JSON file with atomic write.

        Args:
            user_id: Telegram user ID
            profile: UserProfile instance to save

        Raises:
            StorageError: If save operation fails
        """
        file_path = self._get_user_file_path(user_id)
        temp_path = self._get_temp_file_path(user_id)

        try:
            json_content = json.dumps(profile.to_dict(), ensure_ascii=False, indent=2)

            async with aiofiles.open(temp_path, mode="w", encoding="utf-8") as f:
                await f.write(json_content)

            # Atomic rename (replaces existing file)
            temp_path.replace(file_path)

            logger.debug(f"Saved profile: {user_id}")
            log_operation("profile_saved", user_id=user_id, medicines_count=len(profile.medicines))

        except OSError as e:
            logger.opt(exception=True).error(
                f"Error saving profile for {user_id}: {type(e).__name__}: {e}"
            )
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as unlink_error:
                    logger.error(
                        f"Failed to remove temp file for user {user_id}: {unlink_error}"
                    )
            raise StorageError(user_id, str(e)) from e

    async def _create_default(self, user_id: int) -> UserProfile:
        profile = UserProfile(user_id=user_id)
        await self.put(user_id, profile)
        logger.info(f"Created default profile for user {user_id}")
        return profile

    def get_all_user_ids(self) -> list[int]:
        """Get list of all user IDs (for scheduler).

        Returns:
            List of user IDs found in the data directory
        """
        user_ids = []

        for file_path in self.data_dir.glob("*.json"):
            try:
                user_ids.append(int(file_path.stem))
            except ValueError:
                logger.warning(f"Invalid user file name: {file_path.name}")

        logger.debug(f"Found {len(user_ids)} users")
        return sorted(user_ids)

    async def delete(self, user_id: int) -> bool:
        """Delete user profile file.

        Args:
            user_id: Telegram user ID

        Returns:
            True if file was deleted, False if file didn't exist

        Raises:
            StorageError: If the file exists but cannot be removed
        """
        file_path = self._get_user_file_path(user_id)

        if not file_path.exists():
            logger.debug(f"Profile not found for deletion: {user_id}")
            return False

        try:
            file_path.unlink()
        except OSError as e:
            logger.error(f"Error deleting profile for {user_id}: {e}")
            raise StorageError(user_id, str(e)) from e

        logger.info(f"Deleted profile: {user_id}")
        return True
