from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlmodel import Session, select

from app.config import get_settings
from app.db.db import get_session
from app.errors import Forbidden, NotFound
from app.models.user import User

ALGORITHM = "HS256"

bearer_scheme_required = HTTPBearer(auto_error=True)


def get_current_user_required(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_required)):
    try:
        payload = jwt.decode(
            token.credentials,
            get_settings().jwt_secret,
            algorithms=[ALGORITHM],
        )
        return payload
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def get_db_user(session: Session, current_user) -> User:
    user = session.exec(
        select(User).where(User.public_id == current_user.get("sub"))
    ).first()

    if not user:
        raise NotFound("User not found")

    return user


def get_request_user(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
) -> User:
    return get_db_user(session, current_user)


def require_reviewer(user: User = Depends(get_request_user)) -> User:
    if not user.is_reviewer:
        raise Forbidden("Moderator access required")
    return user
