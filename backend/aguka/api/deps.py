from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.database import get_db, SessionLocal
from ..core.security import oauth2_scheme
from ..services.auth_service import AuthService
from ..models.user import User, UserRole


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    auth_service = AuthService(db)
    user = auth_service.get_current_user(token)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    return current_user


def _require_role(user: User, role: str) -> User:
    if user.role != role:
        raise HTTPException(status_code=403, detail=f"This action requires the {role} role")
    return user


def get_current_candidate(current_user: User = Depends(get_current_active_user)) -> User:
    return _require_role(current_user, UserRole.CANDIDATE)


def get_current_employer(current_user: User = Depends(get_current_active_user)) -> User:
    return _require_role(current_user, UserRole.EMPLOYER)


def get_current_active_superuser(
    current_user: User = Depends(get_current_active_user),
) -> User:
    if not current_user.is_superuser:
        raise HTTPException(
            status_code=403, detail="The user doesn't have enough privileges"
        )
    return current_user


def get_user_for_token(token: Optional[str]) -> Optional[User]:
    """Resolve a bearer token outside of a request (WebSocket handshakes)."""
    if not token:
        return None
    db = SessionLocal()
    try:
        user = AuthService(db).get_current_user(token)
        if user is not None:
            db.expunge(user)
        return user
    finally:
        db.close()
