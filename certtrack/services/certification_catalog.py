"""Certification Catalog — the certifications plans and achievements point at.

Invariants:
    - (name, issuer) is unique, compared case-insensitively
    - difficulty is 1-5; validityPeriod, when present, is a positive month count
    - delete() is refused while any study plan or achievement references the certification
    - A new certification is announced to every user once it is persisted; a
      failed announcement is logged and never fails create()
"""

import logging

from certtrack.core.clock import utcnow
from certtrack.core.domain_types import CertificationCategory, CollectionName, NotificationType
from certtrack.core.errors import ConflictError, NotFoundError, ValidationError
from certtrack.core.repository_protocols import AuditSink, CollectionStore
from certtrack.models.achievement import Achievement
from certtrack.models.base import new_id
from certtrack.models.certification import Certification
from certtrack.models.study_plan import StudyPlan
from certtrack.schemas.certification import CertificationCreate, CertificationUpdate
from certtrack.services.collection_io import Clock, CollectionService
from certtrack.services.notification_scheduler import NotificationScheduler

logger = logging.getLogger(__name__)

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
RESOURCE = "certification"


def _check_ranges(difficulty: int | None, validity_period: int | None) -> None:
    if difficulty is not None and not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise ValidationError(
            f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}", "difficulty",
        )
    if validity_period is not None and validity_period <= 0:
        raise ValidationError("Validity period must be positive", "validityPeriod")


def _same_identity(cert: Certification, name: str, issuer: str) -> bool:
    return cert.name.lower() == name.lower() and cert.issuer.lower() == issuer.lower()


class CertificationCatalog(CollectionService):
    """CRUD and filtering over the certifications collection."""

    def __init__(
        self,
        store: CollectionStore,
        notifier: NotificationScheduler | None = None,
        audit: AuditSink | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(store, audit, clock)
        self.notifier = notifier

    async def create(self, payload: CertificationCreate, actor: str | None = None) -> Certification:
        _check_ranges(payload.difficulty, payload.validity_period)
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        if any(_same_identity(c, payload.name, payload.issuer) for c in certifications):
            raise ConflictError("A certification with this name and issuer already exists")

        now = self.clock()
        certification = certifications.put(Certification(
            id=new_id(), **payload.model_dump(), created_at=now, updated_at=now,
        ))
        await self._persist(certifications, f"Create certification {certification.name}")
        self._audit(actor, "create", RESOURCE, certification.id, after=certification)
        logger.info(f"Certification created: {certification.name}", extra={"resource_id": certification.id})

        if self.notifier is not None:
            await self.notifier.announce(NotificationType.NEW_CERTIFICATION, certification.id)
        return certification

    async def get(self, certification_id: str) -> Certification:
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        certification = certifications.get(certification_id)
        if certification is None:
            raise NotFoundError("Certification", certification_id)
        return certification

    async def list(
        self,
        category: CertificationCategory | None = None,
        issuer: str | None = None,
        difficulty: int | None = None,
    ) -> list[Certification]:
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        matches = [
            c for c in certifications
            if (category is None or c.category == category)
            and (issuer is None or c.issuer.lower() == issuer.lower())
            and (difficulty is None or c.difficulty == difficulty)
        ]
        return sorted(matches, key=lambda c: c.name.lower())

    async def update(
        self, certification_id: str, payload: CertificationUpdate, actor: str | None = None,
    ) -> Certification:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        _check_ranges(changes.get("difficulty"), changes.get("validity_period"))
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        before = certifications.get(certification_id)
        if before is None:
            raise NotFoundError("Certification", certification_id)

        name = changes.get("name", before.name)
        issuer = changes.get("issuer", before.issuer)
        if any(c.id != certification_id and _same_identity(c, name, issuer) for c in certifications):
            raise ConflictError("A certification with this name and issuer already exists")

        certification = certifications.put(before.model_copy(update={**changes, "updated_at": self.clock()}))
        await self._persist(certifications, f"Update certification {certification.name}")
        self._audit(actor, "update", RESOURCE, certification_id, before, certification)
        return certification

    async def delete(self, certification_id: str, actor: str | None = None) -> None:
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        if certifications.get(certification_id) is None:
            raise NotFoundError("Certification", certification_id)

        plans = await self._load(CollectionName.STUDY_PLANS, StudyPlan)
        achievements = await self._load(CollectionName.ACHIEVEMENTS, Achievement)
        if any(p.certification_id == certification_id for p in plans) or any(
            a.certification_id == certification_id for a in achievements
        ):
            raise ConflictError(
                "Certification is referenced by study plans or achievements", "CERTIFICATION_IN_USE",
            )

        before = certifications.remove(certification_id)
        await self._persist(certifications, f"Delete certification {before.name}")
        self._audit(actor, "delete", RESOURCE, certification_id, before=before)

    async def category_stats(self) -> dict[str, int]:
        certifications = await self._load(CollectionName.CERTIFICATIONS, Certification)
        counts = {category.value: 0 for category in CertificationCategory}
        for c in certifications:
            counts[c.category.value] += 1
        return counts
