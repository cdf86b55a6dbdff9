import datetime as dt
from pydantic import BaseModel, ConfigDict
from typing import Optional

# Session schemas
class SessionUser(BaseModel):
    id: int
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class LoginResponse(BaseModel):
    success: bool = True
    user: SessionUser

class MeResponse(BaseModel):
    user: SessionUser

class SuccessResponse(BaseModel):
    success: bool = True

# Event schemas
class EventPayload(BaseModel):
    """Body of create and update; date, time and title are checked by the route."""
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    title: Optional[str] = None
    channel: Optional[str] = None
    platform: Optional[str] = None
    notes: Optional[str] = None

    def has_required_fields(self) -> bool:
        return all([self.date, self.time, self.title])

    def to_columns(self) -> dict:
        return {
            "date": self.date,
            "time": self.time,
            "title": self.title,
            "channel": self.channel or None,
            "platform": self.platform or None,
            "notes": self.notes or None,
        }

class Event(BaseModel):
    id: int
    date: dt.date
    time: dt.time
    title: str
    channel: Optional[str] = None
    platform: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    posted: bool = False

    model_config = ConfigDict(from_attributes=True)
