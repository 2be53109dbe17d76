"""Audit Recorder: append-only moderation trail."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlmodel import Session, func, select

from app.errors import ValidationError
from app.models.audit_log import AuditLog
from app.models.enums import AuditAction, AuditTargetType

logger = logging.getLogger(__name__)

AUDIT_LIST_LIMIT = 100


class AuditRecorder:
    def record(
        self,
        session: Session,
        moderator_id: int,
        action: AuditAction,
        target_type: AuditTargetType,
        target_id,
        details: str = "",
        metadata: Optional[dict] = None,
    ) -> AuditLog:
        entry = AuditLog(
            moderator_id=moderator_id,
            action=AuditAction(action).value,
            target_type=AuditTargetType(target_type).value,
            target_id=str(target_id),
            details=(details or "").strip(),
            meta=metadata or {},
        )
        session.add(entry)

        logger.info("Audit %s by moderator %s on %s %s", entry.action, moderator_id, entry.target_type, entry.target_id)
        return entry


def list_audit_logs(
    session: Session,
    action: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = AUDIT_LIST_LIMIT,
) -> list[AuditLog]:
    query = select(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit)

    if action and action != "all":
        try:
            query = query.where(AuditLog.action == AuditAction(action).value)
        except ValueError:
            raise ValidationError(f"Unknown audit action '{action}'")

    if start:
        query = query.where(AuditLog.created_at >= start)
    if end:
        query = query.where(AuditLog.created_at <= end)

    return list(session.exec(query).all())


def audit_stats(session: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)

    def count_since(since: Optional[datetime]) -> int:
        query = select(func.count(AuditLog.id))
        if since:
            query = query.where(AuditLog.created_at >= since)
        return session.exec(query).one()

    by_action = session.exec(
        select(AuditLog.action, func.count(AuditLog.id)).group_by(AuditLog.action)
    ).all()

    return {
        "today_count": count_since(today),
        "week_count": count_since(week_ago),
        "total_count": count_since(None),
        "by_action": {action: count for action, count in by_action},
    }
