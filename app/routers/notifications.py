from fastapi import APIRouter, Depends, Query
from sqlalchemy import update
from sqlmodel import Session, func, select

from app.db.db import atomic, get_session
from app.errors import NotFound
from app.models.notification import Notification
from app.models.user import User
from app.utils.auth_helper import get_request_user
from app.utils.form_validator import parse_uuid
from app.utils.responses import ok


router = APIRouter()

@router.get("/")
def get_my_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    session: Session = Depends(get_session),
    user: User = Depends(get_request_user),
):
    query = (
        select(Notification)
        .where(Notification.user_id == user.id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )

    if unread_only:
        query = query.where(Notification.is_read == False)

    notifications = session.exec(query).all()

    return ok([n.model_dump() for n in notifications])

@router.get("/count")
def get_unread_notifications_count(
    session: Session = Depends(get_session),
    user: User = Depends(get_request_user),
):
    count = session.exec(
        select(func.count(Notification.id))
        .where(Notification.user_id == user.id)
        .where(Notification.is_read == False)
    ).one()

    return ok({"count": count})

@router.post("/{id}/mark-read")
def mark_notification_read(
    id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_request_user),
):
    with atomic(session):
        notif = session.exec(
            select(Notification)
            .where(Notification.id == parse_uuid(id, "notification ID"))
            .where(Notification.user_id == user.id)
        ).first()

        # only the recipient can see or touch a notification
        if not notif:
            raise NotFound("Notification not found")

        notif.is_read = True
        session.add(notif)

    session.refresh(notif)
    return ok(notif.model_dump(), "Notification marked as read")

@router.post("/mark-all-read")
def mark_all_notifications_read(
    session: Session = Depends(get_session),
    user: User = Depends(get_request_user),
):
    with atomic(session):
        result = session.connection().execute(
            update(Notification)
            .where(Notification.user_id == user.id)
            .where(Notification.is_read == False)
            .values(is_read=True)
        )

    return ok({"updated": result.rowcount}, "All notifications marked as read")
