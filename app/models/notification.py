from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Recipient
    user_id: int = Field(foreign_key="users.id", index=True)

    # Notification fields
    type: str = Field(index=True) # values: "new_claim_request", "claim_approved", "claim_rejected", "item_claimed", "new_item"

    title: str
    message: str

    item_kind: Optional[str] = None
    item_id: Optional[uuid.UUID] = Field(default=None, index=True)
    # withdrawn claims are deleted; their notifications stay
    claim_id: Optional[uuid.UUID] = Field(default=None, foreign_key="claim_requests.id", ondelete="SET NULL")

    is_read: bool = Field(default=False)
