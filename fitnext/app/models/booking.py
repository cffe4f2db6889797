"""Booking: the join of one person and one session."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, SmallInteger
from sqlalchemy.orm import relationship

from fitnext.app.core.time import utc_now
from fitnext.app.db.base_class import Base


class Booking(Base):
    __tablename__ = "booking"
    __table_args__ = (CheckConstraint("credits_used >= 0", name="ck_booking_credits_used_non_negative"),)

    person_id = Column(Integer, ForeignKey("person.id", ondelete="CASCADE"), primary_key=True)
    session_id = Column(Integer, ForeignKey("session.id", ondelete="CASCADE"), primary_key=True, index=True)
    attended = Column(Boolean, nullable=False, default=False)
    # Copied from the session cost at booking time; later price changes leave it alone
    credits_used = Column(SmallInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    person = relationship("Person", back_populates="bookings")
    session = relationship("Session", back_populates="bookings")
