"""One-time recovery password, at most one per person."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from fitnext.app.core.time import utc_now
from fitnext.app.db.base_class import Base


class TempPassword(Base):
    __tablename__ = "temp_password"
    __table_args__ = (UniqueConstraint("person_id", name="uq_temp_password_person"),)

    id = Column(Integer, primary_key=True, index=True)
    person_id = Column(Integer, ForeignKey("person.id", ondelete="CASCADE"), nullable=False)
    hashed_password = Column("pwd", String(255), nullable=False)
    sent = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    expiry = Column(DateTime(timezone=True), nullable=False)

    person = relationship("Person", back_populates="temp_password")
