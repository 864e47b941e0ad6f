from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional

class BirthdayRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    birth_date: Optional[date] = None

class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    message: str
    read: bool
    birthday_id: Optional[int] = None
    birthday: Optional[BirthdayRef] = None
    metadata: dict[str, str] = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime

class UnreadCount(BaseModel):
    unread: int
