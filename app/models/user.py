from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

from app.models.enums import REVIEWER_ROLES


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: str = Field(index=True, unique=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    name: str
    email: str

    role: str = Field(default="user")  # Possible roles: user, moderator, admin

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES


def user_summary(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None

    return {
        "id": user.id,
        "public_id": user.public_id,
        "name": user.name,
        "email": user.email,
    }
