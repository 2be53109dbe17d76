"""
Status Coordinator: the item status state machine.

Every item status write goes through ``plan`` so that the Item Directory only
ever persists transitions listed in ``TRANSITIONS``.
"""
import logging
from typing import Optional

from sqlmodel import Session, func, select

from app.errors import Forbidden, InvalidTransition
from app.models.claim_request import ClaimRequest
from app.models.enums import ClaimStatus, ItemKind, ItemStatus
from app.models.user import User
from app.services.item_directory import Item, ItemDirectory, ItemRef, Transition

logger = logging.getLogger(__name__)

TRANSITIONS: dict[ItemStatus, set[ItemStatus]] = {
    ItemStatus.ACTIVE: {ItemStatus.PENDING, ItemStatus.ARCHIVED, ItemStatus.DELETED},
    ItemStatus.PENDING: {ItemStatus.ACTIVE, ItemStatus.CLAIMED, ItemStatus.DELETED},
    ItemStatus.CLAIMED: {ItemStatus.RETURNED, ItemStatus.ARCHIVED, ItemStatus.DELETED},
    ItemStatus.RETURNED: {ItemStatus.ARCHIVED, ItemStatus.DELETED},
    ItemStatus.ARCHIVED: {ItemStatus.ACTIVE, ItemStatus.DELETED},
    ItemStatus.DELETED: set(),
}

# Statuses a new claim may be filed against
CLAIMABLE = {ItemStatus.ACTIVE, ItemStatus.PENDING}


def can_transition(kind: ItemKind, current: str, target: str) -> bool:
    try:
        current, target = ItemStatus(current), ItemStatus(target)
    except ValueError:
        return False

    if target == ItemStatus.RETURNED and kind != ItemKind.LOST:
        return False

    return target in TRANSITIONS[current]


class StatusCoordinator:
    def __init__(self, session: Session, directory: Optional[ItemDirectory] = None):
        self.session = session
        self.directory = directory or ItemDirectory(session)

    def plan(self, item: Item, target: ItemStatus) -> Transition:
        ref = ItemRef.for_item(item)

        if not can_transition(ref.kind, item.status, target):
            raise InvalidTransition(f"Cannot move {ref.kind.value} item from '{item.status}' to '{target.value}'")

        was_returned = None
        if ref.kind == ItemKind.LOST:
            # sticky: once returned, stays marked through archive/restore
            was_returned = bool(item.was_returned) or target == ItemStatus.RETURNED

        return Transition(
            ref=ref,
            from_status=item.status,
            to_status=target.value,
            expected_version=item.version,
            was_returned=was_returned,
        )

    def _move(self, item: Item, target: ItemStatus) -> Item:
        transition = self.plan(item, target)
        updated = self.directory.set_item_status(transition.ref, transition)

        logger.info("Item %s: %s -> %s", transition.ref, transition.from_status, transition.to_status)
        return updated

    def pending_claim_count(self, ref: ItemRef) -> int:
        return self.session.exec(
            select(func.count(ClaimRequest.id))
            .where(ClaimRequest.item_kind == ref.kind.value)
            .where(ClaimRequest.item_id == ref.id)
            .where(ClaimRequest.status == ClaimStatus.PENDING.value)
        ).one()

    # Claim-driven transitions

    def on_claim_filed(self, ref: ItemRef) -> Item:
        item = self.directory.lock_item(ref)
        if item.status == ItemStatus.PENDING:
            return item
        return self._move(item, ItemStatus.PENDING)

    def on_claim_approved(self, ref: ItemRef) -> Item:
        item = self.directory.lock_item(ref)
        return self._move(item, ItemStatus.CLAIMED)

    def reevaluate(self, ref: ItemRef) -> Item:
        """Flip a pending item back to active once its last pending claim is gone."""
        item = self.directory.lock_item(ref)
        if item.status != ItemStatus.PENDING:
            return item

        if self.pending_claim_count(ref) > 0:
            return item

        return self._move(item, ItemStatus.ACTIVE)

    # Owner-initiated transitions

    def _owned(self, ref: ItemRef, actor: User, allow_reviewer: bool = False) -> Item:
        item = self.directory.lock_item(ref)
        if item.user_id != actor.id and not (allow_reviewer and actor.is_reviewer):
            raise Forbidden("Not authorized to change this item")
        return item

    def mark_returned(self, ref: ItemRef, actor: User) -> Item:
        if ref.kind != ItemKind.LOST:
            raise InvalidTransition("Only lost items can be marked returned")

        item = self._owned(ref, actor)
        return self._move(item, ItemStatus.RETURNED)

    def archive(self, ref: ItemRef, actor: User) -> Item:
        item = self._owned(ref, actor)
        # a claimed item can still hold sibling claims; restore would strand them on an active item
        if item.status == ItemStatus.PENDING or self.pending_claim_count(ref) > 0:
            raise InvalidTransition("Item has pending claims and cannot be archived")
        return self._move(item, ItemStatus.ARCHIVED)

    def restore(self, ref: ItemRef, actor: User) -> Item:
        item = self._owned(ref, actor)
        return self._move(item, ItemStatus.ACTIVE)

    def soft_delete(self, ref: ItemRef, actor: User) -> Item:
        item = self._owned(ref, actor, allow_reviewer=True)
        return self._move(item, ItemStatus.DELETED)
