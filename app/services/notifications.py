"""
Notification Dispatcher.

One event fans out to one Notification row per recipient. The dispatcher does
no dedup: callers dispatch exactly once per logical event.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from sqlmodel import Session, select

from app.models.enums import REVIEWER_ROLES, NotificationType
from app.models.notification import Notification
from app.models.user import User
from app.services.item_directory import ItemRef

logger = logging.getLogger(__name__)


@dataclass
class NotificationEvent:
    type: NotificationType
    title: str
    message: str
    recipients: list[int] = field(default_factory=list)
    item: Optional[ItemRef] = None
    claim_id: Optional[uuid.UUID] = None


RecipientResolver = Callable[[NotificationEvent], list[int]]


def explicit_recipients(event: NotificationEvent) -> list[int]:
    return list(event.recipients)


def moderator_recipients(session: Session) -> RecipientResolver:
    """Resolver that addresses an event to every moderator and admin."""

    def resolve(event: NotificationEvent) -> list[int]:
        return list(
            session.exec(
                select(User.id).where(User.role.in_(REVIEWER_ROLES)).order_by(User.id)
            ).all()
        )

    return resolve


class NotificationDispatcher:
    def __init__(self, recipients: RecipientResolver = explicit_recipients):
        self.recipients = recipients

    def dispatch(self, session: Session, event: NotificationEvent) -> list[Notification]:
        notifications = []

        for user_id in self.recipients(event):
            notification = Notification(
                user_id=user_id,
                type=NotificationType(event.type).value,
                title=event.title,
                message=event.message,
                item_kind=event.item.kind.value if event.item else None,
                item_id=event.item.id if event.item else None,
                claim_id=event.claim_id,
            )
            session.add(notification)
            notifications.append(notification)

        logger.info("Dispatched %s to %d recipient(s)", NotificationType(event.type).value, len(notifications))
        return notifications


# Event builders for the claim lifecycle

def new_claim_event(owner_id: int, item_title: str, item: ItemRef, claim_id: uuid.UUID) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.NEW_CLAIM_REQUEST,
        title="New Claim Request",
        message=f"Someone has submitted a claim request for your item: {item_title}",
        recipients=[owner_id],
        item=item,
        claim_id=claim_id,
    )


def claim_decision_event(
    claimant_id: int,
    approved: bool,
    item_title: Optional[str],
    item: ItemRef,
    claim_id: uuid.UUID,
    reason: Optional[str] = None,
) -> NotificationEvent:
    name = item_title or "the item"

    if approved:
        return NotificationEvent(
            type=NotificationType.CLAIM_APPROVED,
            title="Claim Request Approved",
            message=f'Your claim request for "{name}" has been approved!',
            recipients=[claimant_id],
            item=item,
            claim_id=claim_id,
        )

    message = f'Your claim request for "{name}" has been rejected.'
    if reason:
        message = f"{message} Reason: {reason}"

    return NotificationEvent(
        type=NotificationType.CLAIM_REJECTED,
        title="Claim Request Rejected",
        message=message,
        recipients=[claimant_id],
        item=item,
        claim_id=claim_id,
    )


def new_item_event(item_title: str, item: ItemRef) -> NotificationEvent:
    """Moderator announcement for a newly posted item; recipients come from the resolver."""
    return NotificationEvent(
        type=NotificationType.NEW_ITEM,
        title="New Item Posted",
        message=f"A new {item.kind.value} item was posted: {item_title}",
        item=item,
    )
