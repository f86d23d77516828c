from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging

from ..auth.jwt_utils import verify_token
from ..config.database import get_db
from ..models.user import User
from .permissions import has_permission

logger = logging.getLogger(__name__)


def extract_token(request: Request) -> Optional[str]:
    """Token from the x-auth-token header, or from Authorization: Bearer"""
    token = request.headers.get("x-auth-token")
    if token:
        return token.strip()

    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = extract_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        logger.warning(f"Token presented for missing or inactive user {user_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")
    return user


def require_permission(permission: str):
    """Dependency that only lets through users whose role grants `permission`"""
    def permission_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user.role, permission):
            logger.info(f"User {current_user.id} ({current_user.role}) denied {permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{permission}' required",
            )
        return current_user
    return permission_checker
