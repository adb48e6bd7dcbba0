from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from groupledger.models.base import StoredModel, _utcnow


class MemberRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class MemberStatus(str, Enum):
    INVITED = "invited"
    JOINED = "joined"
    REJECTED = "rejected"


class Group(StoredModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    created_by: str
    trip_id: Optional[str] = None


class Member(BaseModel):
    """
    A user's participation in a group.

    State machine: invited -> joined | rejected. ``joined`` is terminal until
    the group itself is deleted.
    """
    group_id: str
    user_id: str
    role: MemberRole = MemberRole.MEMBER
    status: MemberStatus = MemberStatus.INVITED
    joined_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN

    @property
    def is_joined(self) -> bool:
        return self.status == MemberStatus.JOINED
