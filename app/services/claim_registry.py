"""
Claim Registry: owns ClaimRequest rows and drives the claim lifecycle.

Each operation writes the claim and the item status in one transaction with
the item row locked. Notifications and audit entries are queued on the
``SideEffects`` and only run after that transaction has committed.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.config import Settings, get_settings
from app.db.db import atomic
from app.errors import Conflict, Forbidden, NotFound, ValidationError
from app.models.claim_request import ClaimRequest
from app.models.enums import AuditAction, AuditTargetType, ClaimStatus, ItemStatus
from app.models.user import User, user_summary
from app.services.analytics import claim_analytics
from app.services.audit import AuditRecorder
from app.services.item_directory import Item, ItemDirectory, ItemRef
from app.services.notifications import NotificationDispatcher, claim_decision_event, new_claim_event
from app.services.side_effects import SideEffects
from app.services.status_coordinator import CLAIMABLE, StatusCoordinator
from app.utils.form_validator import parse_claim_status, parse_uuid

logger = logging.getLogger(__name__)

DECISIONS = {ClaimStatus.APPROVED, ClaimStatus.REJECTED}

ITEM_REMOVED_REASON = "The item was removed by its owner or a moderator."
ITEM_CLAIMED_REASON = "Another claim for this item was approved."


class ClaimRegistry:
    def __init__(
        self,
        session: Session,
        effects: SideEffects,
        settings: Optional[Settings] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        auditor: Optional[AuditRecorder] = None,
    ):
        settings = settings or get_settings()

        self.session = session
        self.effects = effects
        self.directory = ItemDirectory(session)
        self.coordinator = StatusCoordinator(session, self.directory)
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.auditor = auditor or AuditRecorder()
        self.auto_reject_siblings = settings.auto_reject_sibling_claims

    # Reads

    def load_claim(self, claim_id) -> ClaimRequest:
        claim = self.session.get(ClaimRequest, parse_uuid(claim_id, "claim ID"))
        if not claim:
            raise NotFound("Claim request not found")
        return claim

    def _lock_claim(self, claim_id: uuid.UUID) -> ClaimRequest:
        claim = self.session.exec(
            select(ClaimRequest)
            .where(ClaimRequest.id == claim_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if not claim:
            raise NotFound("Claim request not found")
        return claim

    def _project(self, claim: ClaimRequest, item: Optional[Item], users: dict[int, User]) -> dict:
        data = claim.model_dump()
        data["item"] = item.model_dump() if item else None
        data["claimant"] = user_summary(users.get(claim.claimant_id))
        data["reviewer"] = user_summary(users.get(claim.reviewed_by)) if claim.reviewed_by else None
        return data

    def _project_many(self, claims: list[ClaimRequest]) -> list[dict]:
        # claims only store the item reference, so resolve current item data here
        items = self.directory.find_items(ItemRef.of(c.item_kind, c.item_id) for c in claims)

        user_ids = {c.claimant_id for c in claims} | {c.reviewed_by for c in claims if c.reviewed_by}
        users = {}
        if user_ids:
            users = {u.id: u for u in self.session.exec(select(User).where(User.id.in_(user_ids))).all()}

        return [
            self._project(claim, items.get(ItemRef.of(claim.item_kind, claim.item_id)), users)
            for claim in claims
        ]

    def get_claim(self, claim_id) -> dict:
        return self._project_many([self.load_claim(claim_id)])[0]

    def list_claims(self, status: Optional[str] = None, claimant_id: Optional[int] = None) -> list[dict]:
        query = select(ClaimRequest).order_by(ClaimRequest.created_at.desc())

        status_filter = parse_claim_status(status)
        if status_filter:
            query = query.where(ClaimRequest.status == status_filter.value)

        if claimant_id is not None:
            query = query.where(ClaimRequest.claimant_id == claimant_id)

        return self._project_many(list(self.session.exec(query).all()))

    def pending_claims_for(self, ref: ItemRef) -> list[ClaimRequest]:
        return list(
            self.session.exec(
                select(ClaimRequest)
                .where(ClaimRequest.item_kind == ref.kind.value)
                .where(ClaimRequest.item_id == ref.id)
                .where(ClaimRequest.status == ClaimStatus.PENDING.value)
                .order_by(ClaimRequest.created_at)
            ).all()
        )

    # Writes

    def file_claim(
        self,
        ref: ItemRef,
        claimant: User,
        proof: Optional[str],
        evidence_ref: Optional[str] = None,
    ) -> dict:
        proof = (proof or "").strip()
        if not proof:
            raise ValidationError("Proof of ownership is required")

        with atomic(self.session):
            item = self.directory.lock_item(ref)

            if item.status in (ItemStatus.DELETED, ItemStatus.ARCHIVED):
                raise Conflict("Item is not available for claims")
            if item.status not in CLAIMABLE:
                raise Conflict("This item has already been claimed")

            if any(c.claimant_id == claimant.id for c in self.pending_claims_for(ref)):
                raise Conflict("You already have a pending claim request for this item")

            claim = ClaimRequest(
                item_kind=ref.kind.value,
                item_id=ref.id,
                claimant_id=claimant.id,
                proof_of_ownership=proof,
                evidence_image=evidence_ref or None,
            )
            self.session.add(claim)

            try:
                self.session.flush()
            except IntegrityError:
                # a concurrent filing from the same claimant won the unique index
                raise Conflict("You already have a pending claim request for this item")

            item = self.coordinator.on_claim_filed(ref)

            claim_id = claim.id
            owner_id = item.user_id
            item_title = item.title

        logger.info("Claim %s filed on %s by user %s", claim_id, ref, claimant.id)

        if owner_id != claimant.id:
            self.effects.defer(
                f"notify new_claim_request {claim_id}",
                self.dispatcher.dispatch,
                new_claim_event(owner_id, item_title, ref, claim_id),
            )

        return self.get_claim(claim_id)

    def _reject_siblings(self, ref: ItemRef, exclude: Optional[uuid.UUID], reason: str) -> list[ClaimRequest]:
        """Reject every other pending claim on the item. No reviewer is recorded."""
        now = datetime.now(timezone.utc)
        rejected = []

        for sibling in self.pending_claims_for(ref):
            if sibling.id == exclude:
                continue

            sibling.status = ClaimStatus.REJECTED.value
            sibling.review_notes = reason
            sibling.decided_at = now
            sibling.updated_at = now
            self.session.add(sibling)
            rejected.append(sibling)

        self.session.flush()
        return rejected

    def _defer_rejections(self, claims: list[tuple[uuid.UUID, int]], ref: ItemRef, item_title: str, reason: str):
        for claim_id, claimant_id in claims:
            self.effects.defer(
                f"notify claim_rejected {claim_id}",
                self.dispatcher.dispatch,
                claim_decision_event(claimant_id, False, item_title, ref, claim_id, reason=reason),
            )

    def resolve_claim(self, claim_id, decision: str, reviewer: User, notes: Optional[str] = None) -> dict:
        try:
            decision = ClaimStatus((decision or "").lower())
        except ValueError:
            decision = None

        if decision not in DECISIONS:
            raise ValidationError("Status must be approved or rejected")

        if not reviewer.is_reviewer:
            raise Forbidden("Moderator access required")

        notes = (notes or "").strip()
        claim_uuid = parse_uuid(claim_id, "claim ID")

        with atomic(self.session):
            claim = self.load_claim(claim_uuid)
            ref = ItemRef.of(claim.item_kind, claim.item_id)

            # lock the item first so sibling resolutions on it serialize
            item = self.directory.lock_item(ref)
            claim = self._lock_claim(claim_uuid)

            if claim.status != ClaimStatus.PENDING:
                raise Conflict("Claim request has already been reviewed")

            if decision == ClaimStatus.APPROVED and item.status == ItemStatus.CLAIMED:
                raise Conflict("Item has already been claimed by another claim")

            now = datetime.now(timezone.utc)
            claim.status = decision.value
            claim.reviewed_by = reviewer.id
            claim.review_notes = notes
            claim.decided_at = now
            claim.updated_at = now
            self.session.add(claim)
            self.session.flush()

            siblings = []
            if decision == ClaimStatus.APPROVED:
                item = self.coordinator.on_claim_approved(ref)
                if self.auto_reject_siblings:
                    siblings = [(s.id, s.claimant_id) for s in self._reject_siblings(ref, claim.id, ITEM_CLAIMED_REASON)]
            else:
                item = self.coordinator.reevaluate(ref)

            claimant_id = claim.claimant_id
            item_title = item.title

        logger.info("Claim %s %s by reviewer %s", claim_uuid, decision.value, reviewer.id)

        approved = decision == ClaimStatus.APPROVED
        self.effects.defer(
            f"notify {decision.value} {claim_uuid}",
            self.dispatcher.dispatch,
            claim_decision_event(claimant_id, approved, item_title, ref, claim_uuid),
        )
        self.effects.defer(
            f"audit {decision.value} {claim_uuid}",
            self.auditor.record,
            moderator_id=reviewer.id,
            action=AuditAction.CLAIM_APPROVED if approved else AuditAction.CLAIM_REJECTED,
            target_type=AuditTargetType.CLAIM_REQUEST,
            target_id=claim_uuid,
            details=notes or f"Claim request {decision.value} for item: {item_title}",
            metadata={
                "item_kind": ref.kind.value,
                "item_id": str(ref.id),
                "claimant_id": claimant_id,
                "status": decision.value,
            },
        )
        self._defer_rejections(siblings, ref, item_title, ITEM_CLAIMED_REASON)

        return self.get_claim(claim_uuid)

    def delete_claim(self, claim_id, actor: User) -> None:
        """Withdraw a claim. The claimant or a moderator may do this; nobody is notified."""
        claim_uuid = parse_uuid(claim_id, "claim ID")

        with atomic(self.session):
            claim = self.load_claim(claim_uuid)
            if claim.claimant_id != actor.id and not actor.is_reviewer:
                raise Forbidden("Not authorized to delete this claim request")

            ref = ItemRef.of(claim.item_kind, claim.item_id)
            self.directory.lock_item(ref)

            self.session.delete(claim)
            self.session.flush()

            self.coordinator.reevaluate(ref)

        logger.info("Claim %s withdrawn by user %s", claim_uuid, actor.id)

    def delete_item(self, ref: ItemRef, actor: User) -> Item:
        """Soft-delete an item; its pending claims are rejected so none outlive it."""
        with atomic(self.session):
            item = self.coordinator.soft_delete(ref, actor)
            rejected = [(c.id, c.claimant_id) for c in self._reject_siblings(ref, None, ITEM_REMOVED_REASON)]
            item_title = item.title

        self._defer_rejections(rejected, ref, item_title, ITEM_REMOVED_REASON)
        return item

    def get_analytics(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        return claim_analytics(self.session, self.directory, start=start, end=end, status=status, now=now)
