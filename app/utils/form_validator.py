import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from app.errors import ValidationError
from app.models.enums import ClaimStatus


class ClaimCreateRequest(BaseModel):
    proof_of_ownership: str = Field(min_length=1, max_length=2000)
    evidence_image: Optional[str] = Field(default=None, max_length=500)


class ClaimResolveRequest(BaseModel):
    status: str
    review_notes: Optional[str] = Field(default=None, max_length=1000)


def parse_claim_status(value: Optional[str]) -> Optional[ClaimStatus]:
    """Parse a status filter; ``None`` and "all" mean no filter."""
    if value is None or value == "" or value.lower() == "all":
        return None

    try:
        return ClaimStatus(value.lower())
    except ValueError:
        raise ValidationError("Status must be pending, approved, or rejected")


def parse_uuid(value: Union[str, uuid.UUID], label: str = "ID") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {label}")


def parse_date(value: Optional[str], label: str = "date") -> Optional[datetime]:
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{label} not parseable")

    # stored timestamps are naive UTC, so bounds must be UTC too
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
