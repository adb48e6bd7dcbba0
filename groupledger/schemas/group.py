"""Group and membership schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from groupledger.models.group import MemberRole, MemberStatus


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    trip_id: Optional[str] = None


class GroupResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    description: Optional[str] = None
    created_by: str
    trip_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class InviteRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1)


class MemberResponse(BaseModel):
    group_id: str
    user_id: str
    role: MemberRole
    status: MemberStatus
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupDeletionSummary(BaseModel):
    group_id: str
    transactions_deleted: int = 0
    splits_deleted: int = 0
    members_deleted: int = 0
    reversals_applied: int = 0
    transfers_skipped: int = 0
