from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..config.database import Base
from .fields import parse_json_list

RESOURCE_TYPES = ("video", "book", "pdf", "ppt", "note", "article")
# Inline types carry their body in `content`, never a link or a file
INLINE_RESOURCE_TYPES = ("note", "article")


class Resource(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, index=True)
    url = Column(String(512), nullable=True)
    file_path = Column(String(512), nullable=True)
    content = Column(Text, nullable=True)
    author = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ResourceWrite(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: str
    url: Optional[str] = None
    file_path: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    class Config:
        str_strip_whitespace = True

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value):
        normalized = value.strip().lower() if isinstance(value, str) else value
        if normalized not in RESOURCE_TYPES:
            raise ValueError(f"type must be one of: {', '.join(RESOURCE_TYPES)}")
        return normalized

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value):
        return parse_json_list(value, "tags")


class ResourceResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    type: str
    url: Optional[str] = None
    file_path: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("tags", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return value or []
