from typing import Optional

from pydantic import BaseModel, ConfigDict

from groupledger.models.base import StoredModel


class Account(StoredModel):
    user_id: str
    name: str = ""
    balance_cents: int = 0


class Profile(BaseModel):
    """Display data from the member directory."""
    id: str
    username: str
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Notification(StoredModel):
    user_id: str
    type: str = "info"
    title: str
    message: str
    data: dict = {}
    is_read: bool = False
