import calendar
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Session, select

from app.errors import ValidationError
from app.models.claim_request import ClaimRequest
from app.models.enums import ClaimStatus
from app.models.user import User
from app.services.item_directory import ItemDirectory, ItemRef
from app.utils.form_validator import parse_claim_status

TREND_MONTHS = 6


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _trend(session: Session, now: datetime) -> list[dict]:
    months = [_shift_month(now.year, now.month, -offset) for offset in range(TREND_MONTHS - 1, -1, -1)]
    since = _month_start(*months[0])

    counts: dict[tuple[int, int], Counter] = defaultdict(Counter)
    for created_at, status in session.exec(
        select(ClaimRequest.created_at, ClaimRequest.status).where(ClaimRequest.created_at >= since)
    ).all():
        created_at = _utc(created_at)
        counts[(created_at.year, created_at.month)][status] += 1

    trend = []
    for year, month in months:
        bucket = counts[(year, month)]
        approved = bucket[ClaimStatus.APPROVED.value]
        rejected = bucket[ClaimStatus.REJECTED.value]
        pending = bucket[ClaimStatus.PENDING.value]

        trend.append({
            "month": calendar.month_abbr[month],
            "year": year,
            "approved": approved,
            "rejected": rejected,
            "pending": pending,
            "total": approved + rejected + pending,
        })

    return trend


def _reviewer_workload(session: Session, start: Optional[datetime], end: Optional[datetime]) -> list[dict]:
    query = (
        select(ClaimRequest.reviewed_by, ClaimRequest.status, User.name)
        .join(User, User.id == ClaimRequest.reviewed_by)
        .where(ClaimRequest.status.in_([ClaimStatus.APPROVED.value, ClaimStatus.REJECTED.value]))
    )
    if start:
        query = query.where(ClaimRequest.created_at >= start)
    if end:
        query = query.where(ClaimRequest.created_at <= end)

    workload: dict[int, dict] = {}
    for reviewer_id, status, name in session.exec(query).all():
        entry = workload.setdefault(reviewer_id, {
            "reviewer_id": reviewer_id,
            "reviewer_name": name,
            "claims_reviewed": 0,
            "approved": 0,
            "rejected": 0,
        })
        entry["claims_reviewed"] += 1
        entry[status] += 1

    return sorted(workload.values(), key=lambda e: (-e["claims_reviewed"], e["reviewer_id"]))


def claim_analytics(
    session: Session,
    directory: ItemDirectory,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    status: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Aggregate claims for the moderation dashboard.

    ``start``/``end`` bound claim creation time; ``status`` ("all" or a claim
    status) narrows the overview, category and latency figures. The trend
    always covers the trailing six calendar months up to ``now``.
    """
    now = _utc(now) or datetime.now(timezone.utc)
    start, end = _utc(start), _utc(end)
    if start and end and start > end:
        raise ValidationError("start_date must be before end_date")

    query = select(ClaimRequest)
    if start:
        query = query.where(ClaimRequest.created_at >= start)
    if end:
        query = query.where(ClaimRequest.created_at <= end)

    status_filter = parse_claim_status(status)
    if status_filter:
        query = query.where(ClaimRequest.status == status_filter.value)

    claims = list(session.exec(query).all())
    by_status = Counter(c.status for c in claims)
    total = len(claims)
    approved = by_status[ClaimStatus.APPROVED.value]

    resolved = [c for c in claims if c.status != ClaimStatus.PENDING.value and c.decided_at]
    avg_hours = 0.0
    if resolved:
        total_hours = sum(
            (_utc(c.decided_at) - _utc(c.created_at)).total_seconds() / 3600 for c in resolved
        )
        avg_hours = total_hours / len(resolved)

    items = directory.find_items(ItemRef.of(c.item_kind, c.item_id) for c in claims)
    by_category = Counter()
    for claim in claims:
        item = items.get(ItemRef.of(claim.item_kind, claim.item_id))
        by_category[(item.category if item and item.category else "Other")] += 1

    return {
        "overview": {
            "total_claims": total,
            "pending_claims": by_status[ClaimStatus.PENDING.value],
            "approved_claims": approved,
            "rejected_claims": by_status[ClaimStatus.REJECTED.value],
            "avg_resolution_hours": round(avg_hours, 1),
            "approval_rate": round(approved / total * 100, 1) if total else 0.0,
        },
        "trends": _trend(session, now),
        "items_by_category": dict(by_category),
        "reviewer_workload": _reviewer_workload(session, start, end),
    }
