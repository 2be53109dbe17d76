from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from app.db.db import atomic, get_session
from app.models.enums import ItemKind
from app.models.user import User
from app.services.claim_registry import ClaimRegistry
from app.services.item_directory import ItemRef
from app.services.status_coordinator import StatusCoordinator
from app.utils.auth_helper import get_request_user
from app.utils.dependencies import get_claim_registry
from app.utils.responses import ok


router = APIRouter()


def _item_response(session: Session, item, message: str) -> dict:
    session.refresh(item)
    return ok(item.model_dump(), message)


@router.post("/lost-items/{item_id}/returned")
def mark_item_returned(
    item_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_request_user),
):
    """Owner confirms the physical handoff of a claimed lost item."""
    with atomic(session):
        item = StatusCoordinator(session).mark_returned(ItemRef.of(ItemKind.LOST, item_id), user)

    return _item_response(session, item, "Item marked as returned")


@router.post("/{kind}-items/{item_id}/archive")
def archive_item(
    kind: ItemKind,
    item_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_request_user),
):
    with atomic(session):
        item = StatusCoordinator(session).archive(ItemRef.of(kind, item_id), user)

    return _item_response(session, item, "Item archived")


@router.post("/{kind}-items/{item_id}/restore")
def restore_item(
    kind: ItemKind,
    item_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_request_user),
):
    with atomic(session):
        item = StatusCoordinator(session).restore(ItemRef.of(kind, item_id), user)

    return _item_response(session, item, "Item restored")


@router.delete("/{kind}-items/{item_id}")
def soft_delete_item(
    kind: ItemKind,
    item_id: str,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    registry: ClaimRegistry = Depends(get_claim_registry),
    user: User = Depends(get_request_user),
):
    item = registry.delete_item(ItemRef.of(kind, item_id), user)

    # Claimants of rejected pending claims are told the item is gone
    background_tasks.add_task(registry.effects.run)

    return _item_response(session, item, "Item marked as deleted")
