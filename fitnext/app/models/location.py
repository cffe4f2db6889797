from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from fitnext.app.db.base_class import Base


class Location(Base):
    __tablename__ = "location"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    address = Column(String(1023), nullable=True)

    sessions = relationship("Session", back_populates="location")
