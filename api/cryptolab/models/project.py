from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator
from sqlalchemy import JSON, Column, Date, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..config.database import Base
from .fields import parse_json_list

PROJECT_STATUSES = ("planning", "active", "completed", "archived")
DEFAULT_PROJECT_CATEGORY = "Research"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, default=DEFAULT_PROJECT_CATEGORY, index=True)
    status = Column(String(20), nullable=False, default="planning")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    team_members = Column(JSON, nullable=True)
    tags = Column(JSON, nullable=True)
    publication_url = Column(String(512), nullable=True)
    file_path = Column(String(512), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


TeamMember = Union[str, Dict[str, Any]]


class ProjectWrite(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: str = Field(DEFAULT_PROJECT_CATEGORY, validation_alias=AliasChoices("category", "type"))
    status: str = "planning"
    start_date: Optional[date] = Field(None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[date] = Field(None, validation_alias=AliasChoices("end_date", "endDate"))
    team_members: List[TeamMember] = Field(
        default_factory=list, validation_alias=AliasChoices("team_members", "members", "teamMembers")
    )
    tags: List[str] = Field(default_factory=list, validation_alias=AliasChoices("tags", "technologies"))
    publication_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("publication_url", "publicationUrl")
    )
    file_path: Optional[str] = None
    # Not a column: the guide professor is folded into team_members
    professor_id: Optional[int] = Field(None, validation_alias=AliasChoices("professor_id", "professorId"))

    class Config:
        str_strip_whitespace = True

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value):
        return value or DEFAULT_PROJECT_CATEGORY

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value):
        if isinstance(value, str) and value.strip().lower() in PROJECT_STATUSES:
            return value.strip().lower()
        return "planning"

    @field_validator("team_members", mode="before")
    @classmethod
    def _parse_members(cls, value):
        return parse_json_list(value, "team_members")

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value):
        return parse_json_list(value, "tags")


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: str
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    team_members: List[TeamMember] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    publication_url: Optional[str] = None
    file_path: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("team_members", "tags", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return value or []
