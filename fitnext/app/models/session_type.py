from sqlalchemy import Boolean, CheckConstraint, Column, Integer, SmallInteger, String
from sqlalchemy.orm import relationship

from fitnext.app.db.base_class import Base


class SessionType(Base):
    __tablename__ = "session_type"
    __table_args__ = (CheckConstraint("cost >= 0", name="ck_session_type_cost_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    requires_trainer = Column(Boolean, nullable=False, default=False)
    cost = Column(SmallInteger, nullable=False, default=0)

    sessions = relationship("Session", back_populates="session_type")
