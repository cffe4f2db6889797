"""Booking ledger schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BookingCreate(BaseModel):
    session_id: int
    # Defaults to the caller
    person_id: Optional[int] = None


class AttendanceUpdate(BaseModel):
    session_id: int
    person_id: int


class BookingRead(BaseModel):
    person_id: int
    session_id: int
    attended: bool
    credits_used: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingDetail(BookingRead):
    person_name: str
    person_email: str
    session_datetime: datetime
    session_duration_mins: int
    session_type_name: str
    session_location_name: Optional[str] = None


class AttendanceStat(BaseModel):
    person_id: int
    name: str
    email: str
    attended_count: int
    credits_used: int
