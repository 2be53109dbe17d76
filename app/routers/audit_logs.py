from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.db.db import get_session
from app.models.user import User
from app.services.audit import AUDIT_LIST_LIMIT, audit_stats, list_audit_logs
from app.utils.auth_helper import require_reviewer
from app.utils.form_validator import parse_date
from app.utils.responses import ok


router = APIRouter()


@router.get("/")
def get_audit_logs(
    type: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: int = Query(AUDIT_LIST_LIMIT, ge=1, le=AUDIT_LIST_LIMIT),
    session: Session = Depends(get_session),
    reviewer: User = Depends(require_reviewer),
):
    """Latest moderation actions, optionally filtered by action and date range"""
    logs = list_audit_logs(
        session,
        action=type,
        start=parse_date(start_date, "start_date"),
        end=parse_date(end_date, "end_date"),
        limit=limit,
    )

    return ok([log.model_dump() for log in logs])


@router.get("/stats")
def get_audit_stats(
    session: Session = Depends(get_session),
    reviewer: User = Depends(require_reviewer),
):
    return ok(audit_stats(session))
