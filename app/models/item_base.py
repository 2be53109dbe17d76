import uuid
from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

from app.models.enums import ItemStatus


class ItemBase(SQLModel):
    """Columns shared by the lost and found item tables."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Reporter info
    user_id: int = Field(foreign_key="users.id", index=True)

    # Item fields
    title: str
    category: str = Field(default="others")
    description: str = Field(default="")
    location: str = Field(default="")
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    image: Optional[str] = Field(default=None)

    # Lifecycle
    status: str = Field(default=ItemStatus.ACTIVE.value, index=True)
    version: int = Field(default=1)  # bumped on every status write
