import uuid
from sqlalchemy import JSON, Column, Index
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class AuditLog(SQLModel, table=True):
    """Moderation trail. Rows are only ever inserted."""

    __tablename__ = "audit_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    moderator_id: int = Field(foreign_key="users.id")
    action: str = Field(index=True)  # values: "claim_approved", "claim_rejected", "item_verified", "item_deleted", "user_banned"

    target_type: str  # values: "claim_request", "item", "user"
    target_id: str

    details: str = Field(default="")
    meta: dict = Field(default_factory=dict, sa_column=Column("metadata", JSON, nullable=False))

    __table_args__ = (
        Index("ix_audit_logs_moderator_created", "moderator_id", "created_at"),
        Index("ix_audit_logs_target", "target_id", "target_type"),
    )
