from typing import Optional
import uuid
from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

from app.models.enums import ClaimStatus


class ClaimRequest(SQLModel, table=True):
    __tablename__ = "claim_requests"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Claimed item, never changes after creation
    item_kind: str = Field(index=True)  # values: "lost", "found"
    item_id: uuid.UUID = Field(index=True)

    # Claimant
    claimant_id: int = Field(foreign_key="users.id", index=True)

    # Content
    proof_of_ownership: str
    evidence_image: Optional[str] = None

    status: str = Field(default=ClaimStatus.PENDING.value, index=True)  # values: "pending", "approved", "rejected"

    # Review
    reviewed_by: Optional[int] = Field(default=None, foreign_key="users.id")
    review_notes: str = Field(default="")
    decided_at: Optional[datetime] = None

    __table_args__ = (
        # A claimant can hold only one pending claim per item
        Index(
            "uq_pending_claim_per_claimant",
            "item_kind",
            "item_id",
            "claimant_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
