"""Dose recording and low-stock alert logic.

All functions here operate on an in-memory ``UserProfile`` and never touch
storage; callers persist the profile afterwards.
"""

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from medbot.data.models import Medicine, UserProfile

LOW_STOCK_THRESHOLD = 10
CRITICAL_STOCK_THRESHOLD = 5

ALERT_LOW = 1
ALERT_CRITICAL = 2

REASON_NOT_FOUND = "medicine not found"
REASON_DEPLETED = "medicine depleted"


@dataclass(frozen=True)
class StockAlert:
    medicine_id: int
    medicine_name: str
    level: int
    remaining_pills: int


@dataclass
class DoseResult:
    """Outcome of recording one dose.

    On failure ``medicine`` may be None (not found) and ``reason`` holds a
    human-readable explanation.
    """

    ok: bool
    medicine: Optional[Medicine] = None
    alert: Optional[StockAlert] = None
    reason: Optional[str] = None


@dataclass
class SlotDoseResult:
    slot: int
    records: list[DoseResult] = field(default_factory=list)
    alerts: list[StockAlert] = field(default_factory=list)

    @property
    def taken(self) -> list[DoseResult]:
        return [record for record in self.records if record.ok]

    @property
    def failed(self) -> list[DoseResult]:
        return [record for record in self.records if not record.ok]


def _check_stock_alert(profile: UserProfile, medicine: Medicine) -> Optional[StockAlert]:
    remaining = medicine.remaining_pills
    previous_level = profile.alerted_medicines.get(medicine.id)

    if remaining <= CRITICAL_STOCK_THRESHOLD and (previous_level is None or previous_level < ALERT_CRITICAL):
        level = ALERT_CRITICAL
    elif CRITICAL_STOCK_THRESHOLD < remaining <= LOW_STOCK_THRESHOLD and previous_level is None:
        level = ALERT_LOW
    else:
        return None

    profile.alerted_medicines[medicine.id] = level
    return StockAlert(
        medicine_id=medicine.id,
        medicine_name=medicine.name,
        level=level,
        remaining_pills=remaining,
    )


def take_dose(profile: UserProfile, medicine_id: int) -> DoseResult:
    """Record one dose of a medicine.

    Decrements ``remaining_pills`` by ``pills_per_dose`` and emits at most one
    low-stock alert per level until the medicine is refilled. The profile is
    left untouched when the medicine is missing or has too few pills.

    Args:
        profile: Profile to mutate
        medicine_id: ID of the medicine to take

    Returns:
        DoseResult with the updated medicine and optional alert
    """
    medicine = profile.get_medicine_by_id(medicine_id)
    if medicine is None:
        logger.warning(f"Medicine {medicine_id} not found for user {profile.user_id}")
        return DoseResult(ok=False, reason=REASON_NOT_FOUND)

    if medicine.remaining_pills < medicine.pills_per_dose:
        logger.info(
            f"Not enough stock of {medicine.name} for user {profile.user_id}: "
            f"{medicine.remaining_pills} < {medicine.pills_per_dose}"
        )
        return DoseResult(ok=False, medicine=medicine, reason=REASON_DEPLETED)

    medicine.remaining_pills -= medicine.pills_per_dose
    alert = _check_stock_alert(profile, medicine)

    logger.debug(
        f"Dose recorded for user {profile.user_id}: {medicine.name}, "
        f"remaining {medicine.remaining_pills}"
    )
    return DoseResult(ok=True, medicine=medicine, alert=alert)


def take_all_for_slot(profile: UserProfile, slot: int) -> SlotDoseResult:
    """Record a dose of every stocked medicine assigned to ``slot``.

    Medicines with no pills left are skipped without a failure record.

    Args:
        profile: Profile to mutate
        slot: Time slot (1 or 2)

    Returns:
        SlotDoseResult with per-medicine records and alerts in profile order
    """
    result = SlotDoseResult(slot=slot)

    for medicine in profile.medicines_for_slot(slot):
        if medicine.remaining_pills <= 0:
            continue

        record = take_dose(profile, medicine.id)
        result.records.append(record)
        if record.alert is not None:
            result.alerts.append(record.alert)

    return result


def refill_medicine(profile: UserProfile, medicine_id: int, quantity: int) -> Medicine:
    """Add pills to a medicine and reset its low-stock alerts.

    Raises:
        ValueError: If the medicine does not exist or quantity is not positive
    """
    if quantity <= 0:
        raise ValueError("Quantity must be greater than 0")

    medicine = profile.get_medicine_by_id(medicine_id)
    if medicine is None:
        raise ValueError(REASON_NOT_FOUND)

    medicine.remaining_pills += quantity
    profile.alerted_medicines.pop(medicine_id, None)
    return medicine


def remove_medicine(profile: UserProfile, medicine_id: int) -> Optional[Medicine]:
    """Remove a medicine and its alert ledger entry.

    Returns:
        Removed medicine, or None if it was not found
    """
    for index, medicine in enumerate(profile.medicines):
        if medicine.id == medicine_id:
            profile.medicines.pop(index)
            profile.alerted_medicines.pop(medicine_id, None)
            return medicine
    return None
