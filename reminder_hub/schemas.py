from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# bcrypt only reads the first 72 bytes of a secret.
BCRYPT_MAX_BYTES = 72


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    token: str
    user: UserOut


class IdentityOut(BaseModel):
    user_id: int
    username: str
    expires_at: datetime


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_by: int
    created_at: datetime
    updated_at: datetime
    creator: UserOut


class ReminderCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    due_date: Optional[datetime] = None


class _Unset:
    """Marker for a field that was not part of an update request."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass(frozen=True)
class ReminderChanges:
    """Typed partial update: every mutable reminder field is present or UNSET.

    ``due_date=None`` is a real value (clear the due date) and differs from
    ``due_date=UNSET`` (leave it alone).
    """

    title: Union[str, _Unset] = UNSET
    description: Union[str, _Unset] = UNSET
    completed: Union[bool, _Unset] = UNSET
    due_date: Union[Optional[datetime], _Unset] = UNSET

    def present(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


class ReminderUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    completed: Optional[bool] = None
    due_date: Optional[datetime] = None

    @model_validator(mode="after")
    def reject_null_for_required_columns(self):
        for name in ("title", "description", "completed"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def to_changes(self) -> ReminderChanges:
        return ReminderChanges(
            **{name: getattr(self, name) for name in self.model_fields_set}
        )


class ReminderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    group_id: int
    created_by: int
    completed: bool
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    creator: UserOut


class MessageOut(BaseModel):
    message: str
