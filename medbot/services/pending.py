"""Pending acknowledgment tracking for sent reminders."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from loguru import logger

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PendingAck:
    """Reminder for ``time_slot`` sent at ``armed_at``, awaiting the user's reply."""

    time_slot: int
    armed_at: datetime


class PendingAckTracker:
    """Time-boxed map of user ID to the reminder slot awaiting acknowledgment.

    At most one entry exists per user; arming replaces the previous entry.
    Entries expire ``ttl`` after arming: expiry is checked on every read and
    ``sweep`` drops expired entries in bulk. State lives in process memory
    only and is lost on restart.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=30),
        clock: Clock = utc_now,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[int, PendingAck] = {}

    def arm(self, user_id: int, time_slot: int) -> PendingAck:
        entry = PendingAck(time_slot=time_slot, armed_at=self._clock())
        previous = self._entries.get(user_id)
        self._entries[user_id] = entry

        if previous is not None:
            logger.debug(
                f"Replaced pending slot {previous.time_slot} with slot {time_slot} "
                f"for user {user_id}"
            )
        logger.info(f"Armed pending acknowledgment for user {user_id}, slot {time_slot}")
        return entry

    def peek(self, user_id: int) -> Optional[PendingAck]:
        """Return the user's pending entry if it has not expired."""
        entry = self._entries.get(user_id)
        if entry is None:
            return None

        if self._is_expired(entry, self._clock()):
            del self._entries[user_id]
            logger.debug(f"Pending acknowledgment for user {user_id} expired")
            return None

        return entry

    def clear(self, user_id: int) -> None:
        if self._entries.pop(user_id, None) is not None:
            logger.debug(f"Cleared pending acknowledgment for user {user_id}")

    def sweep(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [
            user_id
            for user_id, entry in self._entries.items()
            if self._is_expired(entry, now)
        ]
        for user_id in expired:
            del self._entries[user_id]

        if expired:
            logger.debug(f"Swept {len(expired)} expired pending acknowledgment(s)")
        return len(expired)

    def _is_expired(self, entry: PendingAck, now: datetime) -> bool:
        return now - entry.armed_at > self.ttl

    def __len__(self) -> int:
        return len(self._entries)
