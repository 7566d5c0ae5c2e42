"""Record Models — pydantic models for every persisted collection.

Invariants:
    - One model per collection; the JSON shape (camelCase) is owned here
    - Models carry no IO; loading and saving go through CollectionStore

Design Decisions:
    - One file per entity for locality
"""

from certtrack.models.user import User, PublicUser  # noqa: F401
from certtrack.models.certification import Certification  # noqa: F401
from certtrack.models.study_plan import StudyPlan  # noqa: F401
from certtrack.models.achievement import Achievement  # noqa: F401
from certtrack.models.notification import Notification  # noqa: F401
from certtrack.models.session import Session  # noqa: F401
