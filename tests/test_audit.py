from datetime import datetime, timedelta, timezone

import pytest

from conftest import auth_headers

from app.errors import ValidationError
from app.models.enums import AuditAction, AuditTargetType
from app.services.audit import AuditRecorder, audit_stats, list_audit_logs


def record(session, moderator, action, created_at=None):
    entry = AuditRecorder().record(
        session,
        moderator_id=moderator.id,
        action=action,
        target_type=AuditTargetType.CLAIM_REQUEST,
        target_id="c-1",
        details="  reviewed  ",
        metadata={"status": "approved"},
    )
    if created_at:
        entry.created_at = created_at
    session.commit()
    return entry


def test_record_appends_entry(session, users):
    entry = record(session, users.moderator, AuditAction.CLAIM_APPROVED)

    session.refresh(entry)
    assert entry.action == "claim_approved"
    assert entry.target_type == "claim_request"
    assert entry.details == "reviewed"
    assert entry.meta == {"status": "approved"}


def test_unknown_action_is_refused(session, users):
    with pytest.raises(ValueError):
        AuditRecorder().record(session, users.moderator.id, "claim_deleted", AuditTargetType.ITEM, "x")


def test_list_filters_by_action_and_date(session, users):
    now = datetime.now(timezone.utc)
    record(session, users.moderator, AuditAction.CLAIM_APPROVED, created_at=now - timedelta(days=10))
    record(session, users.moderator, AuditAction.CLAIM_REJECTED, created_at=now - timedelta(hours=1))
    record(session, users.admin, AuditAction.CLAIM_REJECTED, created_at=now - timedelta(days=2))

    assert len(list_audit_logs(session)) == 3
    assert len(list_audit_logs(session, action="claim_rejected")) == 2
    assert len(list_audit_logs(session, start=now - timedelta(days=3))) == 2

    newest = list_audit_logs(session)[0]
    assert newest.action == "claim_rejected"
    assert newest.moderator_id == users.moderator.id

    with pytest.raises(ValidationError):
        list_audit_logs(session, action="nope")


def test_stats(session, users):
    now = datetime.now(timezone.utc)
    record(session, users.moderator, AuditAction.CLAIM_APPROVED, created_at=now - timedelta(days=10))
    record(session, users.moderator, AuditAction.CLAIM_REJECTED, created_at=now - timedelta(days=2))
    record(session, users.moderator, AuditAction.CLAIM_REJECTED, created_at=now)

    stats = audit_stats(session, now=now + timedelta(seconds=1))

    assert stats["total_count"] == 3
    assert stats["week_count"] == 2
    assert stats["today_count"] >= 1
    assert stats["by_action"] == {"claim_approved": 1, "claim_rejected": 2}


def test_audit_routes_are_moderator_only(client, session, users):
    record(session, users.moderator, AuditAction.CLAIM_APPROVED)

    assert client.get("/audit-logs/", headers=auth_headers(users.alice)).status_code == 403

    response = client.get("/audit-logs/?type=claim_approved", headers=auth_headers(users.moderator))
    assert response.status_code == 200
    assert len(response.json()["data"]) == 1
    assert response.json()["data"][0]["meta"] == {"status": "approved"}

    stats = client.get("/audit-logs/stats", headers=auth_headers(users.admin)).json()["data"]
    assert stats["total_count"] == 1
