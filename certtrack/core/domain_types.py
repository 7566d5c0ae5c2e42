"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, CertificationId, PlanId, AchievementId, SessionToken wrap str ids
    - Revision is opaque; None means "never written" (or a backend without revisions)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to the JSON collection files without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
CertificationId = NewType("CertificationId", str)
PlanId = NewType("PlanId", str)
AchievementId = NewType("AchievementId", str)
NotificationId = NewType("NotificationId", str)
SessionToken = NewType("SessionToken", str)

Revision = NewType("Revision", str)   # content hash on the remote store


# ─── Enums ───────────────────────────────────────────────────────

class CollectionName(str, Enum):
    """Named collections — the value is also the JSON key holding the array."""
    USERS = "users"
    CERTIFICATIONS = "certifications"
    STUDY_PLANS = "studyPlans"
    ACHIEVEMENTS = "achievements"
    NOTIFICATIONS = "notifications"
    SESSIONS = "sessions"


class UserRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class CertificationCategory(str, Enum):
    CLOUD = "cloud"
    SECURITY = "security"
    PROGRAMMING = "programming"
    DATABASE = "database"
    NETWORK = "network"
    PROJECT_MANAGEMENT = "project_management"


class PlanStatus(str, Enum):
    """Study plan lifecycle states."""
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_PLAN_STATUSES = frozenset({PlanStatus.PLANNING, PlanStatus.IN_PROGRESS})
TERMINAL_PLAN_STATUSES = frozenset({PlanStatus.COMPLETED, PlanStatus.CANCELLED})


class NotificationType(str, Enum):
    PLAN_REMINDER = "plan_reminder"
    EXPIRY_WARNING = "expiry_warning"
    NEW_CERTIFICATION = "new_certification"
    ACHIEVEMENT_REPORT = "achievement_report"


class ReminderPolicy(str, Enum):
    """How threshold reminders are matched against the countdown.

    EXACT fires only when the countdown equals a threshold on the day the
    scheduler runs. CATCH_UP fires for the tightest crossed threshold that
    has not been notified yet, so skipped days are recovered.
    """
    EXACT = "exact"
    CATCH_UP = "catch_up"


class Resource(str, Enum):
    """Resource classes known to the permission matrix."""
    USERS = "users"
    CERTIFICATIONS = "certifications"
    STUDY_PLANS = "studyPlans"
    ACHIEVEMENTS = "achievements"
    NOTIFICATIONS = "notifications"
    MAINTENANCE = "maintenance"


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_SELF = "update_self"
    DELETE = "delete"
    RUN = "run"
