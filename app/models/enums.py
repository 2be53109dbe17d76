from enum import Enum


class ItemKind(str, Enum):
    LOST = "lost"
    FOUND = "found"


class ItemStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    CLAIMED = "claimed"
    RETURNED = "returned"  # lost items only
    ARCHIVED = "archived"
    DELETED = "deleted"


class ClaimStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    NEW_CLAIM_REQUEST = "new_claim_request"
    CLAIM_APPROVED = "claim_approved"
    CLAIM_REJECTED = "claim_rejected"
    ITEM_CLAIMED = "item_claimed"
    NEW_ITEM = "new_item"


class AuditAction(str, Enum):
    CLAIM_APPROVED = "claim_approved"
    CLAIM_REJECTED = "claim_rejected"
    ITEM_VERIFIED = "item_verified"
    ITEM_DELETED = "item_deleted"
    USER_BANNED = "user_banned"


class AuditTargetType(str, Enum):
    CLAIM_REQUEST = "claim_request"
    ITEM = "item"
    USER = "user"


class UserRole(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


REVIEWER_ROLES = {UserRole.MODERATOR.value, UserRole.ADMIN.value}
