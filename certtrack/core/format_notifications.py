"""Notification Texts — title/message templates per notification type.

Invariants:
    - Pure string formatting; every type has exactly one template
    - Messages name the certification so the inbox is readable without lookups
"""

from certtrack.core.domain_types import NotificationType

_TITLES: dict[NotificationType, str] = {
    NotificationType.PLAN_REMINDER: "Study plan target date is approaching",
    NotificationType.EXPIRY_WARNING: "Certification expiry is approaching",
    NotificationType.NEW_CERTIFICATION: "A new certification was added",
    NotificationType.ACHIEVEMENT_REPORT: "A certification was achieved",
}


def _days(n: int) -> str:
    return "1 day" if n == 1 else f"{n} days"


def format_plan_reminder(certification_name: str, days_until_target: int) -> tuple[str, str]:
    return (
        _TITLES[NotificationType.PLAN_REMINDER],
        f"{_days(days_until_target)} left until the target date for "
        f"\"{certification_name}\". Please review your progress.",
    )


def format_expiry_warning(certification_name: str, days_until_expiry: int) -> tuple[str, str]:
    return (
        _TITLES[NotificationType.EXPIRY_WARNING],
        f"\"{certification_name}\" expires in {_days(days_until_expiry)}. "
        f"Start preparing the renewal.",
    )


def format_new_certification(certification_name: str) -> tuple[str, str]:
    return (
        _TITLES[NotificationType.NEW_CERTIFICATION],
        f"\"{certification_name}\" was added to the certification list.",
    )


def format_achievement_report(user_name: str, certification_name: str) -> tuple[str, str]:
    return (
        _TITLES[NotificationType.ACHIEVEMENT_REPORT],
        f"{user_name} achieved \"{certification_name}\".",
    )
