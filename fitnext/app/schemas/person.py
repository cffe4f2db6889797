"""Person schemas used for registration, login and admin listings."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from fitnext.app.core.access_policy import Role, parse_roles


class PersonCreate(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    password: Optional[str] = None
    roles: Optional[List[Role]] = None


class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None


class PersonRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: Optional[str] = None
    roles: List[Role]

    model_config = ConfigDict(from_attributes=True)

    @field_validator("roles", mode="before")
    @classmethod
    def split_stored_roles(cls, value):
        # Stored as a comma-separated string on the person row
        return sorted(parse_roles(value), key=lambda role: role.value)


class RolesUpdate(BaseModel):
    roles: List[Role]


class LoggedInPerson(PersonRead):
    access_token: str
    token_type: str = "bearer"
