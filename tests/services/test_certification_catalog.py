"""Certification Catalog — uniqueness, ranges, filters, guarded delete."""

from datetime import date

import pytest

from certtrack.core.domain_types import CertificationCategory, CollectionName, NotificationType
from certtrack.core.errors import ConflictError, NotFoundError, ValidationError
from certtrack.schemas.certification import CertificationCreate, CertificationUpdate
from certtrack.schemas.study_plan import StudyPlanCreate


def _cert(name="Security+", issuer="CompTIA", category=CertificationCategory.SECURITY, difficulty=3, **kw):
    return CertificationCreate(name=name, issuer=issuer, category=category, difficulty=difficulty, **kw)


async def test_create_and_get(registry, audit):
    cert = await registry.certifications.create(_cert(description="Entry level"))
    fetched = await registry.certifications.get(cert.id)
    assert fetched.name == "Security+"
    assert fetched.description == "Entry level"
    assert audit.entries[-1].action == "create"


async def test_same_name_and_issuer_conflicts(registry):
    await registry.certifications.create(_cert())
    with pytest.raises(ConflictError):
        await registry.certifications.create(_cert(name="security+", issuer="COMPTIA"))
    await registry.certifications.create(_cert(issuer="Other"))


@pytest.mark.parametrize("kwargs, field", [
    ({"difficulty": 0}, "difficulty"),
    ({"difficulty": 6}, "difficulty"),
    ({"validity_period": 0}, "validityPeriod"),
])
async def test_range_checks(registry, kwargs, field):
    with pytest.raises(ValidationError) as exc:
        await registry.certifications.create(_cert(**kwargs))
    assert exc.value.field == field


async def test_list_filters_sorted_by_name(registry):
    await registry.certifications.create(_cert(name="Zeta", difficulty=4))
    await registry.certifications.create(_cert(name="alpha", difficulty=2))
    await registry.certifications.create(_cert(
        name="Solutions Architect", issuer="AWS", category=CertificationCategory.CLOUD,
    ))
    assert [c.name for c in await registry.certifications.list()] == ["alpha", "Solutions Architect", "Zeta"]
    assert [c.name for c in await registry.certifications.list(category=CertificationCategory.SECURITY)] == ["alpha", "Zeta"]
    assert [c.name for c in await registry.certifications.list(issuer="aws")] == ["Solutions Architect"]
    assert [c.name for c in await registry.certifications.list(difficulty=4)] == ["Zeta"]
    stats = await registry.certifications.category_stats()
    assert stats["security"] == 2 and stats["cloud"] == 1 and stats["network"] == 0


async def test_update(registry):
    cert = await registry.certifications.create(_cert())
    other = await registry.certifications.create(_cert(name="CySA+"))
    updated = await registry.certifications.update(cert.id, CertificationUpdate(difficulty=4))
    assert updated.difficulty == 4
    with pytest.raises(ConflictError):
        await registry.certifications.update(other.id, CertificationUpdate(name="Security+"))
    with pytest.raises(NotFoundError):
        await registry.certifications.update("missing", CertificationUpdate(difficulty=2))


async def test_delete_refused_while_referenced(registry, member):
    user, _ = member
    used = await registry.certifications.create(_cert())
    unused = await registry.certifications.create(_cert(name="CySA+"))
    await registry.study_plans.create(user.id, StudyPlanCreate(
        certification_id=used.id, start_date=date(2024, 1, 1), target_date=date(2024, 9, 1),
    ))

    with pytest.raises(ConflictError) as exc:
        await registry.certifications.delete(used.id)
    assert exc.value.code == "CERTIFICATION_IN_USE"

    await registry.certifications.delete(unused.id)
    with pytest.raises(NotFoundError):
        await registry.certifications.get(unused.id)


async def test_failed_announcement_keeps_the_created_certification(
    registry, registry_failing_on, member, caplog,
):
    user, _ = member
    flaky = registry_failing_on(CollectionName.NOTIFICATIONS)

    cert = await flaky.certifications.create(_cert())

    assert (await registry.certifications.get(cert.id)).name == "Security+"
    assert NotificationType.NEW_CERTIFICATION not in [
        n.type for n in await registry.inbox.list_for_user(user.id)
    ]
    assert any(r.levelname == "ERROR" and r.exc_info for r in caplog.records)
