"""Session model: one scheduled, bookable class occurrence."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, SmallInteger, Text
from sqlalchemy.orm import relationship

from fitnext.app.db.base_class import Base


class Session(Base):
    __tablename__ = "session"
    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_session_cost_non_negative"),
        CheckConstraint("duration_mins > 0", name="ck_session_duration_positive"),
        CheckConstraint(
            "max_booking_count IS NULL OR max_booking_count >= 0",
            name="ck_session_max_booking_count_non_negative",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    starts_at = Column("datetime", DateTime(timezone=True), nullable=False, index=True)
    duration_mins = Column(Integer, nullable=False)
    session_type_id = Column("session_type", Integer, ForeignKey("session_type.id"), nullable=False)
    location_id = Column("location", Integer, ForeignKey("location.id"), nullable=True)
    trainer_id = Column("trainer", Integer, ForeignKey("person.id", ondelete="SET NULL"), nullable=True)
    max_booking_count = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    cost = Column(SmallInteger, nullable=False, default=0)

    session_type = relationship("SessionType", back_populates="sessions")
    location = relationship("Location", back_populates="sessions")
    trainer = relationship("Person", back_populates="trained_sessions", foreign_keys=[trainer_id])
    bookings = relationship("Booking", back_populates="session", cascade="all, delete-orphan", passive_deletes=True)
