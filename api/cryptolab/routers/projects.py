from typing import List

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..config.database import get_db
from ..core.crud import MediaField, build_crud_router
from ..core.permissions import MANAGE_CONTENTS
from ..models.professor import Professor
from ..models.project import Project, ProjectResponse, ProjectWrite
from ..utils.media import DOCUMENT_POLICY

GUIDE_ROLE = "Guide"


def _is_guide(member) -> bool:
    return isinstance(member, dict) and member.get("role") == GUIDE_ROLE


def _attach_guide(db, values, existing):
    """A professor_id becomes the project's single Guide entry in team_members"""
    professor_id = values.pop("professor_id", None)
    if professor_id is None:
        return

    professor = db.get(Professor, professor_id)
    if professor is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Professor not found")

    members = [member for member in values.get("team_members") or [] if not _is_guide(member)]
    members.insert(0, {"name": professor.name, "role": GUIDE_ROLE, "professor_id": professor.id})
    values["team_members"] = members


router = build_crud_router(
    prefix="/api/projects",
    tags=["projects"],
    model=Project,
    write_schema=ProjectWrite,
    read_schema=ProjectResponse,
    permission=MANAGE_CONTENTS,
    label="Project",
    entity_type="project",
    id_alias="projectId",
    order_by=(Project.created_at.desc(), Project.id.desc()),
    media_fields=(MediaField("file_path", "projects", DOCUMENT_POLICY, upload_field="file"),),
    prepare=_attach_guide,
)


@router.get("/type/{category}", response_model=List[ProjectResponse])
async def list_projects_by_type(category: str, db: Session = Depends(get_db)):
    return (
        db.query(Project)
        .filter(Project.category == category)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )
