"""User Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - name, username, email: required on create, stripped, non-empty
    - username and email carry no inner whitespace; name may ("Jane Doe")
    - email must look like local@domain.tld
    - UserUpdateBody requires id; omitted fields stay unchanged

Design Decisions:
    - Pattern-based email check over EmailStr: no extra runtime dependency for one field
    - Conversion helpers live here so routes stay thin and core stays pydantic-free
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.user import User, UserCreateRequest, UserId, UserUpdate

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("is required and cannot be blank")
    return v


def _no_spaces(v: str) -> str:
    v = _not_blank(v)
    if any(c.isspace() for c in v):
        raise ValueError("cannot contain whitespace")
    return v


class UserCreate(BaseModel):
    """User creation — all fields required."""
    name: str = Field(max_length=255)
    username: str = Field(max_length=255)
    email: str = Field(max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _not_blank(v) if isinstance(v, str) else v

    @field_validator("username", "email", mode="before")
    @classmethod
    def strip_handles(cls, v):
        return _no_spaces(v) if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _check_email(v)

    def to_request(self) -> UserCreateRequest:
        return UserCreateRequest(
            name=self.name, username=self.username, email=self.email,
        )


class UserUpdateBody(BaseModel):
    """Partial update — id required, other fields optional."""
    id: str = Field(min_length=1, max_length=26)
    name: str | None = Field(None, max_length=255)
    username: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _not_blank(v) if isinstance(v, str) else v

    @field_validator("username", "email", mode="before")
    @classmethod
    def strip_handles(cls, v):
        return _no_spaces(v) if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        return _check_email(v) if v is not None else v

    def to_update(self) -> UserUpdate:
        return UserUpdate(
            id=UserId(self.id), name=self.name,
            username=self.username, email=self.email,
        )


class UserResponse(BaseModel):
    """User response — public-facing user data."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    username: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls.model_validate(user)


def _check_email(v: str) -> str:
    if not re.match(EMAIL_PATTERN, v):
        raise ValueError("email format is invalid")
    return v
