# storefront/models/user.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


def default_preferences() -> dict:
    return {"theme": "system", "receive_emails": True}


class User(SQLModel, table=True):
    """
    Persistent user profile mirrored from the identity provider.

    Identity:
      - id: internal primary key, referenced by cart rows
      - auth_id: the provider's stable user id (JWT "sub")

    A guest is represented by the absence of a row / missing token.
    Passwords never live here; the provider owns credentials.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    auth_id: str = Field(
        unique=True,
        index=True,
        description="User id issued by the identity provider",
    )

    email: str = Field(
        index=True,
        description="Email from the identity provider",
    )

    name: str = Field(
        default="",
        max_length=100,
        description="Display name; first part of email by default",
    )

    image_url: str = ""

    is_admin: bool = Field(
        default=False,
        description="Derived from ADMIN_EMAILS on every profile sync",
    )

    preferences: dict = Field(
        default_factory=default_preferences,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last profile sync (UTC)",
    )
