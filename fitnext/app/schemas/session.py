"""Session catalog schemas."""

import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionTypeCreate(BaseModel):
    name: str
    requires_trainer: bool = False
    cost: int = Field(default=0, ge=0)


class SessionTypeRead(BaseModel):
    id: int
    name: str
    requires_trainer: bool
    cost: int

    model_config = ConfigDict(from_attributes=True)


class LocationCreate(BaseModel):
    name: str
    address: Optional[str] = None


class LocationRead(BaseModel):
    id: int
    name: str
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TrainerRead(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class SessionCreate(BaseModel):
    starts_at: datetime
    duration_mins: int = Field(gt=0)
    session_type_id: int
    location_id: Optional[int] = None
    trainer_id: Optional[int] = None
    max_booking_count: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    cost: Optional[int] = Field(default=None, ge=0)


class SessionUpdate(BaseModel):
    starts_at: Optional[datetime] = None
    duration_mins: Optional[int] = Field(default=None, gt=0)
    session_type_id: Optional[int] = None
    location_id: Optional[int] = None
    trainer_id: Optional[int] = None
    max_booking_count: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    cost: Optional[int] = Field(default=None, ge=0)


class SessionRead(BaseModel):
    id: int
    starts_at: datetime
    duration_mins: int
    session_type: SessionTypeRead
    location: Optional[LocationRead] = None
    trainer: Optional[TrainerRead] = None
    max_booking_count: Optional[int] = None
    notes: Optional[str] = None
    cost: int
    booking_count: int = 0


class SessionDate(BaseModel):
    date: dt.date
    sessions: List[SessionRead]
