from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from production_tracker.core.dates import from_storage_string, normalize_storage_string, to_storage_string

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


# ---------- Entries ----------
class EntryRecord(BaseModel):
    """Detached copy of a stored entry; dates are always in slash form."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    date: str
    crew: str
    feet: int
    type: str
    username: str
    created_at: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _normalise_date(cls, value: str) -> str:
        return normalize_storage_string(value or "")


class EntryFields(BaseModel):
    """The four fields a user supplies; an update replaces all of them."""

    date: str
    crew: str = Field(min_length=1)
    type: str = Field(min_length=1)
    feet: int = Field(gt=0)

    @field_validator("date", mode="before")
    @classmethod
    def _storage_date(cls, value: object) -> str:
        parsed = from_storage_string(str(value)) if value else None
        if parsed is None:
            raise ValueError("date must be YYYY/MM/DD or YYYY-MM-DD")
        return to_storage_string(parsed)

    @field_validator("crew", "type")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


# ---------- Crews / types ----------
class ReferenceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str
    color: str
    created_at: Optional[str] = None


class ColorUpdate(BaseModel):
    color: str

    @field_validator("color")
    @classmethod
    def _hex(cls, value: str) -> str:
        if not HEX_COLOR.match(value):
            raise ValueError("color must look like #RRGGBB")
        return value


class ReferenceCreate(ColorUpdate):
    name: str = Field(min_length=1)
    color: str = "#3B82F6"

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


# ---------- Users ----------
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    username: str
    role: Literal["admin", "supervisor"]
    crew: Optional[str] = None
    created_at: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class _NamedUser(BaseModel):
    username: str = Field(min_length=1)

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("username must not be blank")
        return value


class RegisterRequest(_NamedUser):
    password: str
    confirm_password: str
    crew: Optional[str] = None


class UserCreate(_NamedUser):
    password: str
    role: Literal["admin", "supervisor"] = "supervisor"
    crew: Optional[str] = None


class PasswordUpdate(BaseModel):
    new_password: str
    confirm_password: str


class CrewAssignment(BaseModel):
    crew: Optional[str] = None
