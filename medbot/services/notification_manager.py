"""Message formatting for medication bot."""

from datetime import datetime
from typing import Optional

from loguru import logger

from medbot.data.models import Medicine, UserProfile
from medbot.services.dose_recorder import (
    ALERT_CRITICAL,
    CRITICAL_STOCK_THRESHOLD,
    LOW_STOCK_THRESHOLD,
    SlotDoseResult,
    StockAlert,
)

DIVIDER = "━━━━━━━━━━━━━━━━━━━"

HELP_MAIN = f"""📚 Medicine reminder bot
{DIVIDER}
I remind you to take your medicines twice a day
and keep track of how many pills are left.

📌 Topics:
1️⃣ help register - patient code
2️⃣ help add - add medicines
3️⃣ help refill - refill stock
4️⃣ help delete - remove a medicine
5️⃣ help meds - stock colors
6️⃣ help times - reminder times
7️⃣ help take - record a dose
8️⃣ help reset - delete all data

⚡ Quick commands:
• meds - show your medicines
• times - show reminder times
• refill - refill a medicine

💡 Type "help [topic]" for details"""

HELP_TOPICS = {
    "register": f"""📝 Registering
{DIVIDER}
register [patient code]

📌 Example:
register HN12345

Registering is optional. Default reminder times are 08:00 and 20:00.""",
    "add": f"""💊 Adding a medicine
{DIVIDER}
add [name] [pills] [per N] [slot 1|2]

📌 Examples:
• add paracetamol 30
• add metformin 60 per 2 slot 2

Default: 1 pill per dose, slot 1.
You get a warning when 10 or fewer pills are left, and again at 5.""",
    "refill": f"""📦 Refilling
{DIVIDER}
1. Type "refill" to see the numbered list
2. Type "refill [number or name] [pills]"

📌 Example:
refill 1 30

Refilling re-enables low-stock warnings.""",
    "delete": f"""🗑️ Removing a medicine
{DIVIDER}
1. Type "delete" to see the numbered list
2. Type "delete [number or name]"
3. Type "yes" to confirm

⚠️ This cannot be undone.""",
    "meds": f"""📋 Stock colors
{DIVIDER}
✅ more than {LOW_STOCK_THRESHOLD} pills
🟡 {CRITICAL_STOCK_THRESHOLD + 1}-{LOW_STOCK_THRESHOLD} pills, running low
🔴 1-{CRITICAL_STOCK_THRESHOLD} pills, almost out
🚫 none left""",
    "times": f"""⏰ Reminder times
{DIVIDER}
• times - show both slot times
• time [1|2] [HH:MM] - change a slot

📌 Examples:
• time 1 07:30
• time 2 21.00""",
    "take": f"""✅ Recording a dose
{DIVIDER}
Within 30 minutes of a reminder, reply with
a sticker, "taken", or press the button.

Otherwise:
• take [1|2] - record a slot now
• late [1|2] - record a late dose""",
    "reset": f"""🔄 Reset
{DIVIDER}
1. Type "reset"
2. Type "confirm reset"

❌ All medicines, times and history are deleted.""",
}


class NotificationManager:
    """Formatter for every message the bot sends.

    Keeps all user-facing text in one place so that the router and the
    scheduler deal only with data.
    """

    def __init__(self, pending_minutes: int = 30):
        """Initialize notification manager.

        Args:
            pending_minutes: Acknowledgment window shown in reminders
        """
        self.pending_minutes = pending_minutes

    @staticmethod
    def stock_icon(remaining: int) -> str:
        if remaining <= 0:
            return "🚫"
        if remaining <= CRITICAL_STOCK_THRESHOLD:
            return "🔴"
        if remaining <= LOW_STOCK_THRESHOLD:
            return "🟡"
        return "✅"

    @staticmethod
    def stock_note(remaining: int) -> str:
        if remaining <= 0:
            return " → out of stock!"
        if remaining <= CRITICAL_STOCK_THRESHOLD:
            return " → almost out!"
        if remaining <= LOW_STOCK_THRESHOLD:
            return " → running low"
        return ""

    def format_reminder_message(self, profile: UserProfile, slot: int) -> str:
        """Format reminder for a slot.

        Format:
            ⏰ Time to take your medicine!
            🕐 Slot 1: 08:00

            💊 Aspirin (1 pill, 28 left)
            ...
        """
        slot_time = profile.settings.time_for_slot(slot)
        medicines = profile.medicines_for_slot(slot)

        lines = [
            "⏰ Time to take your medicine!",
            DIVIDER,
            f"🕐 Slot {slot}: {slot_time}",
            "",
        ]
        for med in medicines:
            lines.append(
                f"💊 {med.name} ({self._pills(med.pills_per_dose)}, {med.remaining_pills} left)"
            )

        warnings = [
            f"{self.stock_icon(med.remaining_pills)} {med.name}: {self._remaining_text(med)}"
            for med in medicines
            if med.remaining_pills <= LOW_STOCK_THRESHOLD
        ]
        if warnings:
            lines.append("")
            lines.append("⚠️ Stock warnings:")
            lines.extend(warnings)

        lines.extend([
            DIVIDER,
            f"✅ Within {self.pending_minutes} minutes: send a sticker, type \"taken\" or press the button",
            f"⏰ Later: type \"late {slot}\"",
        ])

        logger.debug(f"Formatted reminder for slot {slot} with {len(medicines)} medicine(s)")
        return "\n".join(lines)

    def create_reminder_keyboard(self, slot: int) -> dict:
        """Create inline keyboard data structure for a reminder.

        Structure:
            {"inline_keyboard": [[{"text": "✅ Taken", "callback_data": "taken:1"}]]}
        """
        return {
            "inline_keyboard": [
                [{"text": "✅ Taken", "callback_data": f"taken:{slot}"}],
            ]
        }

    def format_slot_result(
        self,
        result: SlotDoseResult,
        slot_time: str,
        when: datetime,
        late: bool = False,
    ) -> str:
        """Format the confirmation for a recorded slot."""
        if not result.records:
            return (
                f"📋 Nothing to record for slot {result.slot} ({slot_time}).\n"
                "No medicine with pills left is assigned to this slot."
            )

        header = "✅ Dose recorded!" if result.taken else "❌ No dose recorded"
        if late:
            header += " (late)"

        lines = [
            header,
            DIVIDER,
            f"⏰ Slot {result.slot}: {slot_time}",
            f"📅 {when.strftime('%d %B %Y %H:%M')}",
            "",
            "📊 Stock after this dose:",
        ]
        for record in result.records:
            med = record.medicine
            if record.ok:
                lines.append(f"{self.stock_icon(med.remaining_pills)} {med.name}: {med.remaining_pills} left")
            else:
                lines.append(
                    f"🚫 {med.name}: {record.reason} "
                    f"({med.remaining_pills} left, {med.pills_per_dose} needed)"
                )
        return "\n".join(lines)

    def format_alert(self, alert: StockAlert) -> str:
        if alert.level == ALERT_CRITICAL:
            return (
                f"🔴 {alert.medicine_name} is almost out: {alert.remaining_pills} left.\n"
                f"Please get more soon, then type \"refill\"."
            )
        return (
            f"🟡 {alert.medicine_name} is running low: {alert.remaining_pills} left.\n"
            "Consider buying more."
        )

    def format_status(self, profile: UserProfile) -> str:
        if not profile.medicines:
            return (
                "📋 You have no medicines yet.\n\n"
                "Add one: add [name] [pills]\n"
                "Example: add paracetamol 30"
            )

        lines = ["📋 Your medicines:", DIVIDER]
        for index, med in enumerate(profile.medicines, start=1):
            slot_time = profile.settings.time_for_slot(med.time_slot)
            lines.append("")
            lines.append(f"{index}. {self.stock_icon(med.remaining_pills)} {med.name}")
            lines.append(
                f"   📦 {med.remaining_pills} left{self.stock_note(med.remaining_pills)}"
            )
            lines.append(
                f"   ⏰ slot {med.time_slot} ({slot_time}), {self._pills(med.pills_per_dose)} per dose"
            )

        lines.extend(["", DIVIDER, "💡 refill - add stock • delete - remove"])
        return "\n".join(lines)

    def format_times(self, profile: UserProfile) -> str:
        return "\n".join([
            "⏰ Your reminder times:",
            DIVIDER,
            f"1. 🕐 {profile.settings.time1}",
            f"2. 🕐 {profile.settings.time2}",
            "",
            "💡 Change: time [1|2] [HH:MM]",
        ])

    def format_medicine_picker(self, profile: UserProfile, command: str, example: str) -> str:
        """Numbered medicine list for refill and delete."""
        lines = [f"Choose a medicine ({command}):", DIVIDER]
        for index, med in enumerate(profile.medicines, start=1):
            lines.append(f"{index}. {med.name} ({med.remaining_pills} left)")
        lines.extend([DIVIDER, f"📝 Example: {example}"])
        return "\n".join(lines)

    def format_late_picker(self, profile: UserProfile) -> str:
        return "\n".join([
            "⏰ Which dose did you take late?",
            DIVIDER,
            f"1. 🕐 {profile.settings.time1}",
            f"2. 🕐 {profile.settings.time2}",
            "",
            "📝 Type: late [1|2]",
        ])

    def format_daily_summary(self, profile: UserProfile) -> Optional[str]:
        """Format daily stock summary, or None if the user has no medicines."""
        if not profile.medicines:
            return None

        lines = ["🌙 Daily stock summary", DIVIDER]
        for med in profile.medicines:
            lines.append(f"{self.stock_icon(med.remaining_pills)} {med.name}: {med.remaining_pills} left")

        low = [med for med in profile.medicines if med.remaining_pills <= LOW_STOCK_THRESHOLD]
        if low:
            lines.extend(["", f"⚠️ {len(low)} medicine(s) need a refill soon."])
        return "\n".join(lines)

    def format_help(self, topic: Optional[str] = None) -> str:
        if topic is None:
            return HELP_MAIN

        text = HELP_TOPICS.get(topic.lower())
        if text is not None:
            return text

        topics = "\n".join(f"• help {name}" for name in HELP_TOPICS)
        return f'❓ No help topic "{topic}".\n\n📚 Topics:\n{topics}'

    @staticmethod
    def _pills(count: int) -> str:
        return f"{count} pill" if count == 1 else f"{count} pills"

    def _remaining_text(self, med: Medicine) -> str:
        if med.remaining_pills <= 0:
            return "out of stock!"
        return f"{med.remaining_pills} left{self.stock_note(med.remaining_pills)}"
