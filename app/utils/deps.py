from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from app.core.constants import RoleEnum
from app.core.database import SessionLocal, commit_session, rollback_session
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import decode_access_token
from app.crud.user import user as user_crud
from app.models.user import User

# Missing credentials are reported as 401 by get_current_user rather than by HTTPBearer
http_bearer = HTTPBearer(auto_error=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_transactional_db():
    db = SessionLocal()
    try:
        yield db
        commit_session(db)
    except Exception:
        rollback_session(db)
        raise
    finally:
        db.close()

def _user_from_credentials(db: Session, credentials: Optional[HTTPAuthorizationCredentials]) -> User:
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise UnauthorizedError("Invalid token")

    user_id = payload.get("user_id") or payload.get("sub")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload")

    user = user_crud.get(db, id=user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise ForbiddenError("User account is inactive")
    return user

async def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> User:
    return _user_from_credentials(db, credentials)

async def get_optional_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> Optional[User]:
    """Caller's account for endpoints that also serve anonymous visitors."""
    if credentials is None:
        return None
    return _user_from_credentials(db, credentials)

async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != RoleEnum.ADMIN:
        raise ForbiddenError("Admin access required")
    return current_user
