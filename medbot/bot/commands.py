"""Text command parsing for medication bot.

Commands are matched against an ordered table of (pattern, builder) pairs;
the first matching pattern wins. Each builder returns a small command
dataclass that the router dispatches on.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class Help:
    topic: Optional[str] = None


@dataclass(frozen=True)
class Register:
    patient_code: str


@dataclass(frozen=True)
class AddMedicine:
    name: str
    quantity: int
    pills_per_dose: int = 1
    time_slot: int = 1


@dataclass(frozen=True)
class ShowStatus:
    pass


@dataclass(frozen=True)
class ShowTimes:
    pass


@dataclass(frozen=True)
class SetTime:
    slot: int
    time: str


@dataclass(frozen=True)
class TakeSlot:
    slot: int
    late: bool = False


@dataclass(frozen=True)
class ListLateSlots:
    pass


@dataclass(frozen=True)
class Acknowledge:
    pass


@dataclass(frozen=True)
class ListRefill:
    pass


@dataclass(frozen=True)
class Refill:
    reference: str
    quantity: int


@dataclass(frozen=True)
class ListDelete:
    pass


@dataclass(frozen=True)
class Delete:
    reference: str


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class Unknown:
    text: str


Command = Union[
    Help,
    Register,
    AddMedicine,
    ShowStatus,
    ShowTimes,
    SetTime,
    TakeSlot,
    ListLateSlots,
    Acknowledge,
    ListRefill,
    Refill,
    ListDelete,
    Delete,
    Reset,
    Unknown,
]

ACKNOWLEDGE_PHRASES = ("taken", "done", "ok", "took", "took it", "👍", "✅")

CONFIRM_PHRASES = ("yes", "y", "confirm")
CONFIRM_RESET_PHRASE = "confirm reset"


def _pattern(regex: str) -> re.Pattern:
    return re.compile(regex, re.IGNORECASE)


def _add_medicine(match: re.Match) -> AddMedicine:
    return AddMedicine(
        name=match["name"].strip(),
        quantity=int(match["quantity"]),
        pills_per_dose=int(match["per_dose"] or 1),
        time_slot=int(match["slot"] or 1),
    )


COMMAND_TABLE: list[tuple[re.Pattern, Callable[[re.Match], Command]]] = [
    (_pattern(r"^(?:help|\?)$"), lambda m: Help()),
    (_pattern(r"^help\s+(?P<topic>\S+)$"), lambda m: Help(topic=m["topic"])),
    (_pattern(r"^register\s+(?P<code>\S+)$"), lambda m: Register(patient_code=m["code"])),
    (
        _pattern(
            r"^add\s+(?P<name>.+?)\s+(?P<quantity>\d+)"
            r"(?:\s+per\s+(?P<per_dose>\d+))?"
            r"(?:\s+slot\s+(?P<slot>[12]))?$"
        ),
        _add_medicine,
    ),
    (_pattern(r"^(?:meds|status|list)$"), lambda m: ShowStatus()),
    (_pattern(r"^times$"), lambda m: ShowTimes()),
    (
        _pattern(r"^time\s+(?P<slot>[12])\s+(?P<time>\d{1,2}[:.]\d{2})$"),
        lambda m: SetTime(slot=int(m["slot"]), time=m["time"]),
    ),
    (_pattern(r"^take\s+(?P<slot>[12])$"), lambda m: TakeSlot(slot=int(m["slot"]))),
    (_pattern(r"^late$"), lambda m: ListLateSlots()),
    (_pattern(r"^late\s+(?P<slot>[12])$"), lambda m: TakeSlot(slot=int(m["slot"]), late=True)),
    (
        _pattern("^(?:" + "|".join(re.escape(p) for p in ACKNOWLEDGE_PHRASES) + r")!?$"),
        lambda m: Acknowledge(),
    ),
    (_pattern(r"^refill$"), lambda m: ListRefill()),
    (
        _pattern(r"^refill\s+(?P<ref>.+?)\s+(?P<quantity>\d+)$"),
        lambda m: Refill(reference=m["ref"], quantity=int(m["quantity"])),
    ),
    (_pattern(r"^delete$"), lambda m: ListDelete()),
    (_pattern(r"^delete\s+(?P<ref>.+)$"), lambda m: Delete(reference=m["ref"].strip())),
    (_pattern(r"^reset$"), lambda m: Reset()),
]


def parse_command(text: str) -> Command:
    """Resolve message text to a command.

    Matching is case-insensitive and ignores surrounding and repeated
    whitespace. Medicine names keep the user's original casing.

    Examples:
        >>> parse_command("add Aspirin 30 per 2 slot 2")
        AddMedicine(name='Aspirin', quantity=30, pills_per_dose=2, time_slot=2)
        >>> parse_command("take 1")
        TakeSlot(slot=1, late=False)
    """
    normalized = " ".join(text.split())

    for pattern, build in COMMAND_TABLE:
        match = pattern.match(normalized)
        if match:
            return build(match)

    return Unknown(text=normalized)


def is_confirmation(text: str) -> bool:
    return text.strip().lower() in CONFIRM_PHRASES


def is_reset_confirmation(text: str) -> bool:
    return " ".join(text.split()).lower() == CONFIRM_RESET_PHRASE
