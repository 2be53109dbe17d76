from datetime import datetime, timedelta, timezone

import pytest

from app.errors import ValidationError
from app.services.audit import AuditRecorder, list_audit_logs
from app.models.enums import AuditAction, AuditTargetType
from app.utils.form_validator import parse_date


def test_parse_date_converts_offsets_to_utc():
    parsed = parse_date("2026-10-15T10:00:00+05:00", "start_date")

    assert parsed == datetime(2026, 10, 15, 5, 0, tzinfo=timezone.utc)
    assert parsed.utcoffset() == timedelta(0)


def test_parse_date_naive_and_zulu_are_utc():
    assert parse_date("2026-10-15T10:00:00") == datetime(2026, 10, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_date("2026-10-15T10:00:00Z") == datetime(2026, 10, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_date(None) is None

    with pytest.raises(ValidationError):
        parse_date("last tuesday", "end_date")


def test_offset_bound_filters_at_the_right_instant(session, users):
    entry = AuditRecorder().record(
        session, users.moderator.id, AuditAction.CLAIM_APPROVED, AuditTargetType.CLAIM_REQUEST, "c-1"
    )
    entry.created_at = datetime(2026, 10, 15, 6, 0, tzinfo=timezone.utc)
    session.commit()

    # 10:00+05:00 is 05:00 UTC, an hour before the entry
    assert len(list_audit_logs(session, start=parse_date("2026-10-15T10:00:00+05:00"))) == 1
    # 12:00+05:00 is 07:00 UTC, an hour after it
    assert len(list_audit_logs(session, end=parse_date("2026-10-15T12:00:00+05:00"))) == 1
    assert list_audit_logs(session, start=parse_date("2026-10-15T12:00:00+05:00")) == []
