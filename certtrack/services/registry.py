"""Service Registry — wires every service to one injected store.

Invariants:
    - Exactly one CollectionStore per registry; no module-level store
    - Services that broadcast share the registry's NotificationScheduler
"""

from dataclasses import dataclass

from certtrack.config import Settings
from certtrack.core.clock import utcnow
from certtrack.core.repository_protocols import AuditSink, CollectionStore, PasswordHasher
from certtrack.infrastructure.audit_log import LoggingAuditSink
from certtrack.infrastructure.password_hashing import WerkzeugPasswordHasher
from certtrack.services.achievement_lifecycle import AchievementLifecycle
from certtrack.services.authorization_policy import AuthorizationPolicy
from certtrack.services.certification_catalog import CertificationCatalog
from certtrack.services.collection_io import Clock
from certtrack.services.notification_inbox import NotificationInbox
from certtrack.services.notification_scheduler import NotificationScheduler
from certtrack.services.session_authority import SessionAuthority
from certtrack.services.study_plan_lifecycle import StudyPlanLifecycle
from certtrack.services.user_directory import UserDirectory


@dataclass
class ServiceRegistry:
    store: CollectionStore
    sessions: SessionAuthority
    authorization: AuthorizationPolicy
    users: UserDirectory
    certifications: CertificationCatalog
    study_plans: StudyPlanLifecycle
    achievements: AchievementLifecycle
    scheduler: NotificationScheduler
    inbox: NotificationInbox


def build_registry(
    store: CollectionStore,
    settings: Settings,
    hasher: PasswordHasher | None = None,
    audit: AuditSink | None = None,
    clock: Clock = utcnow,
) -> ServiceRegistry:
    hasher = hasher or WerkzeugPasswordHasher()
    audit = audit or LoggingAuditSink()
    scheduler = NotificationScheduler(
        store,
        policy=settings.reminder_policy,
        plan_reminder_days=tuple(settings.plan_reminder_days),
        expiry_warning_days=tuple(settings.expiry_warning_days),
        audit=audit,
        clock=clock,
    )
    sessions = SessionAuthority(store, hasher, settings.session_ttl_hours, audit, clock)
    return ServiceRegistry(
        store=store,
        sessions=sessions,
        authorization=AuthorizationPolicy(sessions),
        users=UserDirectory(store, hasher, audit, clock),
        certifications=CertificationCatalog(store, scheduler, audit, clock),
        study_plans=StudyPlanLifecycle(store, audit, clock),
        achievements=AchievementLifecycle(store, scheduler, audit, clock),
        scheduler=scheduler,
        inbox=NotificationInbox(store, audit, clock),
    )
