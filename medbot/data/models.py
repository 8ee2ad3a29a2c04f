"""Data models for medication bot."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

DEFAULT_TIME1 = "08:00"
DEFAULT_TIME2 = "20:00"

TIME_SLOTS = (1, 2)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Medicine:
    """Medicine in a user's inventory.

    Attributes:
        id: Unique identifier within the user's profile (incremental)
        name: Name of the medicine
        total_pills: Number of pills supplied when the medicine was added
        remaining_pills: Pills currently left; never negative
        pills_per_dose: Pills taken per dose
        time_slot: Daily slot the medicine belongs to (1 or 2)
        created_at: ISO-8601 creation timestamp
    """

    id: int
    name: str
    total_pills: int
    remaining_pills: int
    pills_per_dose: int = 1
    time_slot: int = 1
    created_at: str = field(default_factory=_utc_now_iso)

    def to_dict(self) -> dict:
        """Convert medicine to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the medicine
        """
        return {
            "id": self.id,
            "name": self.name,
            "total_pills": self.total_pills,
            "remaining_pills": self.remaining_pills,
            "pills_per_dose": self.pills_per_dose,
            "time_slot": self.time_slot,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Medicine":
        """Create medicine from dictionary.

        Args:
            data: Dictionary with medicine data

        Returns:
            Medicine instance
        """
        return cls(
            id=data["id"],
            name=data["name"],
            total_pills=data["total_pills"],
            remaining_pills=data["remaining_pills"],
            pills_per_dose=data.get("pills_per_dose", 1),
            time_slot=data.get("time_slot", 1),
            created_at=data.get("created_at") or _utc_now_iso(),
        )


@dataclass
class UserSettings:
    """Daily dosing times for the two slots (HH:MM, deployment timezone)."""

    time1: str = DEFAULT_TIME1
    time2: str = DEFAULT_TIME2

    def time_for_slot(self, slot: int) -> str:
        if slot == 1:
            return self.time1
        if slot == 2:
            return self.time2
        raise ValueError(f"Unknown time slot: {slot}")

    def set_time_for_slot(self, slot: int, value: str) -> None:
        if slot == 1:
            self.time1 = value
        elif slot == 2:
            self.time2 = value
        else:
            raise ValueError(f"Unknown time slot: {slot}")

    def to_dict(self) -> dict:
        return {"time1": self.time1, "time2": self.time2}

    @classmethod
    def from_dict(cls, data: dict) -> "UserSettings":
        return cls(
            time1=data.get("time1", DEFAULT_TIME1),
            time2=data.get("time2", DEFAULT_TIME2),
        )


@dataclass
class UserProfile:
    """User profile model.

    Attributes:
        user_id: Telegram user ID
        medicines: User's medicines in insertion order
        settings: Slot times
        alerted_medicines: Last low-stock alert level sent per medicine ID
        patient_code: Optional code given at registration
        created_at: ISO-8601 creation timestamp
    """

    user_id: int
    medicines: list[Medicine] = field(default_factory=list)
    settings: UserSettings = field(default_factory=UserSettings)
    alerted_medicines: dict[int, int] = field(default_factory=dict)
    patient_code: Optional[str] = None
    created_at: str = field(default_factory=_utc_now_iso)

    def to_dict(self) -> dict:
        """Convert profile to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the profile
        """
        return {
            "user_id": self.user_id,
            "patient_code": self.patient_code,
            "medicines": [med.to_dict() for med in self.medicines],
            "settings": self.settings.to_dict(),
            # JSON object keys are always strings
            "alerted_medicines": {
                str(med_id): level for med_id, level in self.alerted_medicines.items()
            },
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        """Create profile from dictionary.

        Args:
            data: Dictionary with profile data

        Returns:
            UserProfile instance
        """
        return cls(
            user_id=data["user_id"],
            patient_code=data.get("patient_code"),
            medicines=[Medicine.from_dict(med) for med in data.get("medicines", [])],
            settings=UserSettings.from_dict(data.get("settings", {})),
            alerted_medicines={
                int(med_id): int(level)
                for med_id, level in data.get("alerted_medicines", {}).items()
            },
            created_at=data.get("created_at") or _utc_now_iso(),
        )

    def get_next_medicine_id(self) -> int:
        """Get next available medicine ID.

        Returns:
            Next medicine ID (max existing ID + 1, or 1 if no medicines)
        """
        if not self.medicines:
            return 1
        return max(med.id for med in self.medicines) + 1

    def add_medicine(
        self,
        name: str,
        quantity: int,
        pills_per_dose: int = 1,
        time_slot: int = 1,
    ) -> Medicine:
        """Add new medicine with a full supply of ``quantity`` pills."""
        medicine = Medicine(
            id=self.get_next_medicine_id(),
            name=name,
            total_pills=quantity,
            remaining_pills=quantity,
            pills_per_dose=pills_per_dose,
            time_slot=time_slot,
        )
        self.medicines.append(medicine)
        return medicine

    def get_medicine_by_id(self, medicine_id: int) -> Optional[Medicine]:
        for med in self.medicines:
            if med.id == medicine_id:
                return med
        return None

    def find_medicine(self, reference: str) -> Optional[Medicine]:
        """Find medicine by 1-based list position or by name (case-insensitive).

        Args:
            reference: "2" or "paracetamol"

        Returns:
            Medicine instance or None if not found
        """
        reference = reference.strip()
        if reference.isdigit():
            index = int(reference) - 1
            if 0 <= index < len(self.medicines):
                return self.medicines[index]
            return None

        name_lower = reference.lower()
        for med in self.medicines:
            if med.name.lower() == name_lower:
                return med
        return None

    def medicines_for_slot(self, slot: int) -> list[Medicine]:
        return [med for med in self.medicines if med.time_slot == slot]
