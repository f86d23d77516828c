from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..config.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True, index=True)
    description = Column(Text, nullable=True)
    semester = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)
    professor_id = Column(Integer, ForeignKey("professors.id", ondelete="SET NULL"), nullable=True)
    image_url = Column(String(512), nullable=True)
    syllabus_url = Column(String(512), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    professor = relationship("Professor", back_populates="courses")
    # Lectures go with their course
    lectures = relationship(
        "Lecture",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Lecture.lecture_date",
    )

    @property
    def professor_name(self) -> Optional[str]:
        return self.professor.name if self.professor else None


class CourseWrite(BaseModel):
    # The dashboard form calls the title "name"
    title: str = Field(..., min_length=1, validation_alias=AliasChoices("title", "name"))
    code: Optional[str] = None
    description: Optional[str] = None
    semester: Optional[str] = None
    year: Optional[int] = None
    professor_id: Optional[int] = None
    image_url: Optional[str] = None
    syllabus_url: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class CourseResponse(BaseModel):
    id: int
    title: str
    code: Optional[str] = None
    description: Optional[str] = None
    semester: Optional[str] = None
    year: Optional[int] = None
    professor_id: Optional[int] = None
    professor_name: Optional[str] = None
    image_url: Optional[str] = None
    syllabus_url: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
