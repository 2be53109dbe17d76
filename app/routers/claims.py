from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends

from app.errors import Forbidden
from app.models.enums import ItemKind
from app.models.user import User
from app.services.claim_registry import ClaimRegistry
from app.services.item_directory import ItemRef
from app.utils.auth_helper import get_request_user, require_reviewer
from app.utils.dependencies import get_claim_registry
from app.utils.form_validator import ClaimCreateRequest, ClaimResolveRequest, parse_date
from app.utils.responses import ok


router = APIRouter()


@router.post("/{kind}-items/{item_id}/claim")
def file_claim(
    kind: ItemKind,
    item_id: str,
    payload: ClaimCreateRequest,
    background_tasks: BackgroundTasks,
    registry: ClaimRegistry = Depends(get_claim_registry),
    user: User = Depends(get_request_user),
):
    claim = registry.file_claim(
        ItemRef.of(kind, item_id),
        user,
        payload.proof_of_ownership,
        payload.evidence_image,
    )

    # Notify item owner once the claim is committed
    background_tasks.add_task(registry.effects.run)

    return ok(claim, "Claim request submitted successfully")


@router.get("/claims")
def list_claims(
    status: Optional[str] = None,
    claimant_id: Optional[int] = None,
    registry: ClaimRegistry = Depends(get_claim_registry),
    user: User = Depends(get_request_user),
):
    """
    Moderators see every claim; everyone else only their own.
    """
    if not user.is_reviewer:
        if claimant_id is not None and claimant_id != user.id:
            raise Forbidden("Not authorized to view these claims")
        claimant_id = user.id

    return ok(registry.list_claims(status=status, claimant_id=claimant_id))


@router.get("/claims/analytics")
def get_claim_analytics(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    status: Optional[str] = None,
    registry: ClaimRegistry = Depends(get_claim_registry),
    reviewer: User = Depends(require_reviewer),
):
    analytics = registry.get_analytics(
        start=parse_date(start_date, "start_date"),
        end=parse_date(end_date, "end_date"),
        status=status,
    )
    return ok(analytics)


@router.get("/claims/{claim_id}")
def get_claim(
    claim_id: str,
    registry: ClaimRegistry = Depends(get_claim_registry),
    user: User = Depends(get_request_user),
):
    claim = registry.get_claim(claim_id)

    # claimant, item owner or a moderator
    owner_id = claim["item"]["user_id"] if claim["item"] else None
    if not user.is_reviewer and user.id not in (claim["claimant_id"], owner_id):
        raise Forbidden("Not authorized to view this claim request")

    return ok(claim)


@router.put("/claims/{claim_id}")
def resolve_claim(
    claim_id: str,
    payload: ClaimResolveRequest,
    background_tasks: BackgroundTasks,
    registry: ClaimRegistry = Depends(get_claim_registry),
    reviewer: User = Depends(require_reviewer),
):
    claim = registry.resolve_claim(claim_id, payload.status, reviewer, payload.review_notes)

    # Claimant notification + audit entry
    background_tasks.add_task(registry.effects.run)

    return ok(claim, f"Claim request {claim['status']} successfully")


@router.delete("/claims/{claim_id}")
def delete_claim(
    claim_id: str,
    registry: ClaimRegistry = Depends(get_claim_registry),
    user: User = Depends(get_request_user),
):
    registry.delete_claim(claim_id, user)

    return ok(None, "Claim request deleted successfully")
