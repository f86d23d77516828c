from typing import Any, List, Optional
import logging

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def record(
    db: Session,
    user_id: Optional[int],
    action_type: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    new_value: Any = None,
    details: Optional[str] = None,
    success: bool = True,
) -> AuditLog:
    """Add an audit entry to the caller's transaction; the caller commits"""
    entry = AuditLog(
        user_id=user_id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        new_value=jsonable_encoder(new_value) if new_value is not None else None,
        success=success,
        details=details,
    )
    db.add(entry)
    logger.debug(f"Audit {action_type} {entity_type}#{entity_id} by user {user_id}")
    return entry


def entries_for_user(db: Session, user_id: int, limit: int = 100) -> List[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.user_id == user_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
