from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..config.database import Base
from .fields import parse_json_list


class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    lecture_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    slides_url = Column(String(512), nullable=True)
    video_url = Column(String(512), nullable=True)
    additional_resources = Column(JSON, nullable=True)  # [{"name": ..., "url": ...}]
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    course = relationship("Course", back_populates="lectures")

    @property
    def course_title(self) -> Optional[str]:
        return self.course.title if self.course else None


class LectureLink(BaseModel):
    name: str
    url: str


class LectureWrite(BaseModel):
    title: str = Field(..., min_length=1, validation_alias=AliasChoices("title", "topic"))
    course_id: int = Field(..., validation_alias=AliasChoices("course_id", "courseId"))
    lecture_date: Optional[date] = Field(None, validation_alias=AliasChoices("lecture_date", "date"))
    description: Optional[str] = None
    slides_url: Optional[str] = None
    video_url: Optional[str] = None
    additional_resources: List[LectureLink] = Field(default_factory=list)

    class Config:
        str_strip_whitespace = True

    @field_validator("additional_resources", mode="before")
    @classmethod
    def _parse_resources(cls, value):
        return parse_json_list(value, "additional_resources")


class LectureResponse(BaseModel):
    id: int
    title: str
    course_id: int
    course_title: Optional[str] = None
    lecture_date: Optional[date] = None
    description: Optional[str] = None
    slides_url: Optional[str] = None
    video_url: Optional[str] = None
    additional_resources: List[LectureLink] = Field(default_factory=list)
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("additional_resources", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return value or []
