from typing import List

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..config.database import get_db
from ..core.crud import build_crud_router
from ..core.permissions import MANAGE_USERS
from ..core.security import require_permission
from ..models.audit_log import AuditLogResponse
from ..models.user import User, UserResponse, UserWrite
from ..services import audit_service
from ..services.user_service import UserService


def _prepare_user(db, values, existing):
    UserService(db).prepare_values(values, existing)


def _refuse_self_delete(db, user, current_user):
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")


router = build_crud_router(
    prefix="/api/users",
    tags=["users"],
    model=User,
    write_schema=UserWrite,
    read_schema=UserResponse,
    permission=MANAGE_USERS,
    label="User",
    entity_type="user",
    id_alias="userId",
    order_by=(User.id.asc(),),
    prepare=_prepare_user,
    before_delete=_refuse_self_delete,
    public_read=False,
)


@router.get("/{user_id}/audit-logs", response_model=List[AuditLogResponse])
async def list_user_audit_logs(
    user_id: int,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(MANAGE_USERS)),
):
    """Actions performed by one user, newest first"""
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return audit_service.entries_for_user(db, user_id, limit)
