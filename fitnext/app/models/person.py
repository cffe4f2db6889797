from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from fitnext.app.core.access_policy import Role, format_roles, parse_roles
from fitnext.app.db.base_class import Base


class Person(Base):
    __tablename__ = "person"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(255), nullable=True)
    # Null while the person has only a temporary password
    hashed_password = Column("pwd", String(255), nullable=True)
    roles = Column(String(255), nullable=False, default=Role.MEMBER.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    temp_password = relationship(
        "TempPassword",
        back_populates="person",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bookings = relationship("Booking", back_populates="person", cascade="all, delete-orphan", passive_deletes=True)
    trained_sessions = relationship("Session", back_populates="trainer", foreign_keys="Session.trainer_id")

    @property
    def role_set(self):
        return parse_roles(self.roles)

    @role_set.setter
    def role_set(self, roles):
        self.roles = format_roles(roles)

    def __repr__(self):
        return f"<Person(id={self.id}, email='{self.email}', roles='{self.roles}')>"
