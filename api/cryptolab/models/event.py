from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..config.database import Base
from .fields import to_naive_utc

DEFAULT_EVENT_TYPE = "conference"


class Event(Base):
    __tablename__ = "events"

    # Column names follow the dashboard's camelCase payloads
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    startDate = Column(DateTime, nullable=False, index=True)
    endDate = Column(DateTime, nullable=False)
    location = Column(String(255), nullable=True)
    organizerName = Column(String(255), nullable=True)
    eventType = Column(String(50), nullable=False, default=DEFAULT_EVENT_TYPE)
    imageUrl = Column(String(512), nullable=True)
    url = Column(String(512), nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    source = Column(String(50), nullable=False, default="college")
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class EventWrite(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    startDate: datetime = Field(..., validation_alias=AliasChoices("startDate", "start_date"))
    endDate: Optional[datetime] = Field(None, validation_alias=AliasChoices("endDate", "end_date"))
    location: Optional[str] = None
    organizerName: Optional[str] = Field(None, validation_alias=AliasChoices("organizerName", "organizer"))
    eventType: str = Field(DEFAULT_EVENT_TYPE, validation_alias=AliasChoices("eventType", "category"))
    imageUrl: Optional[str] = Field(None, validation_alias=AliasChoices("imageUrl", "image_url"))
    url: Optional[str] = None

    class Config:
        str_strip_whitespace = True

    @field_validator("eventType", mode="before")
    @classmethod
    def _default_type(cls, value):
        return value or DEFAULT_EVENT_TYPE

    @field_validator("startDate", "endDate")
    @classmethod
    def _naive_utc(cls, value):
        return to_naive_utc(value)


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    startDate: datetime
    endDate: datetime
    location: Optional[str] = None
    organizerName: Optional[str] = None
    eventType: str
    imageUrl: Optional[str] = None
    url: Optional[str] = None
    status: str
    source: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
