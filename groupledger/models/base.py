from datetime import datetime, timezone

from bson import ObjectId
from pydantic import BaseModel, Field, ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Ids are ObjectId hex strings for every store backend."""
    return str(ObjectId())


class StoredModel(BaseModel):
    id: str = Field(default_factory=new_id, alias="_id")
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    def to_document(self) -> dict:
        """Serialize for the store (``_id`` key, enums as values)."""
        return self.model_dump(by_alias=True, mode="python")
