from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..config.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    # No foreign key: entries outlive the user who made them
    user_id = Column(Integer, nullable=True, index=True)
    action_type = Column(String(20), nullable=False)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True)
    new_value = Column(JSON, nullable=True)
    success = Column(Boolean, nullable=False, default=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)


class AuditLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action_type: str
    entity_type: str
    entity_id: Optional[int] = None
    new_value: Optional[Any] = None
    success: bool
    details: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
