# storefront/schemas/user.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class UserPreferences(SQLModel):
    """Stored profile preferences."""

    theme: str = "system"
    receive_emails: bool = True


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    auth_id: str
    email: str
    name: str
    image_url: str
    is_admin: bool
    preferences: UserPreferences
    created_at: datetime
    updated_at: datetime


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Only editable field is `name` here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class PreferencesUpdate(SQLModel):
    """
    Partial preferences update; unset fields keep their stored value.
    """

    model_config = ConfigDict(extra="forbid")

    theme: str | None = None
    receive_emails: bool | None = None
