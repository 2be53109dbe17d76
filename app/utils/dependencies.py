from fastapi import Depends
from sqlmodel import Session

from app.config import get_settings
from app.db.db import get_session, session_factory
from app.services.claim_registry import ClaimRegistry
from app.services.side_effects import SideEffects


def get_side_effects() -> SideEffects:
    return SideEffects(session_factory, max_attempts=get_settings().side_effect_max_attempts)


def get_claim_registry(
    session: Session = Depends(get_session),
    effects: SideEffects = Depends(get_side_effects),
) -> ClaimRegistry:
    return ClaimRegistry(session, effects, settings=get_settings())
