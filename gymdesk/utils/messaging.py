"""WhatsApp message templates and link building."""

import re
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import quote

WHATSAPP_BASE_URL = "https://wa.me"

# Characters encodeURIComponent leaves unescaped
_URI_SAFE = "-_.!~*'()"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class MessageTemplate:
    title: str
    message: str
    image: Optional[str] = None


DEFAULT_TEMPLATES = {
    "monthlyProgress": MessageTemplate(
        title="Monthly Progress Report",
        message=(
            "Hi {memberName}! 🌟 Your fitness journey this month:\n\n"
            "✓ {attendanceCount} gym visits - consistent dedication!\n"
            "✓ Completed {trainingSessionsCount} personal training sessions\n"
            "✓ Attended {classesCount} group classes\n"
            "✓ {achievementText}\n\n"
            "Keep up the healthy lifestyle! See you at the gym. 💪\n\n"
            "*Reply STOP to opt out of monthly reports*"
        ),
        image="/assets/whatsapp/monthly-progress.jpg",
    ),
    "membershipExpiry": MessageTemplate(
        title="Membership Expiring Soon",
        message=(
            "Hi {memberName}! Your {studioName} membership expires in {daysLeft} days. "
            "Renew now to continue enjoying our premium facilities!"
        ),
        image="/assets/whatsapp/membership-renewal.jpg",
    ),
    "paymentReminder": MessageTemplate(
        title="Payment Reminder",
        message="Dear {memberName}, your monthly payment is due. Please complete payment to avoid interruption.",
        image="/assets/whatsapp/payment-reminder.jpg",
    ),
    "classReminder": MessageTemplate(
        title="Class Booking Confirmation",
        message="Hi {memberName}! Your {className} is scheduled for {date} at {time}. See you there!",
        image="/assets/whatsapp/class-reminder.jpg",
    ),
    "welcomeMessage": MessageTemplate(
        title="Welcome New Member",
        message="Welcome to {studioName} family, {memberName}! Your premium fitness journey starts now.",
        image="/assets/whatsapp/welcome.jpg",
    ),
}


def format_template(template: str, values: Mapping[str, object]) -> str:
    """Replace every {placeholder} found in values; unknown ones are left as-is."""

    def _substitute(match: re.Match) -> str:
        key = match.group(1)
        if key in values and values[key] is not None:
            return str(values[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)


def clean_phone(phone: str) -> str:
    """Digits only, as wa.me expects."""
    return re.sub(r"\D", "", phone or "")


def whatsapp_link(phone: str, message: str) -> str:
    """Build a wa.me click-to-chat link with the message prefilled."""
    digits = clean_phone(phone)
    if not digits:
        raise ValueError(f"Phone number has no digits: {phone!r}")
    return f"{WHATSAPP_BASE_URL}/{digits}?text={quote(message, safe=_URI_SAFE)}"
