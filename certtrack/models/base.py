"""Record base — shared pydantic configuration for every persisted record.

Invariants:
    - Python attributes are snake_case; the JSON collection files use camelCase
    - Unknown keys in a stored record are ignored (forward-compatible reads)
    - Every record has a string id, unique within its collection
"""

import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


class RecordModel(BaseModel):
    """Base for all collection records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
