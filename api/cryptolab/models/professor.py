from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..config.database import Base


class Professor(Base):
    __tablename__ = "professors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    specialization = Column(String(255), nullable=True)
    biography = Column(Text, nullable=True)
    website = Column(String(512), nullable=True)
    email = Column(String(255), nullable=True)
    profile_image = Column(String(512), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    courses = relationship("Course", back_populates="professor")


class ProfessorWrite(BaseModel):
    name: str = Field(..., min_length=1)
    title: Optional[str] = None
    department: Optional[str] = None
    specialization: Optional[str] = None
    biography: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    profile_image: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class ProfessorResponse(BaseModel):
    id: int
    name: str
    title: Optional[str] = None
    department: Optional[str] = None
    specialization: Optional[str] = None
    biography: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    profile_image: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
