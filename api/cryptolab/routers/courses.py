from fastapi import HTTPException, status

from ..core.crud import MediaField, build_crud_router
from ..core.permissions import MANAGE_COURSES
from ..models.course import Course, CourseResponse, CourseWrite
from ..models.professor import Professor
from ..utils.media import DOCUMENT_POLICY, IMAGE_POLICY


def _check_professor(db, values, existing):
    professor_id = values.get("professor_id")
    if professor_id is not None and db.get(Professor, professor_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Professor not found")


router = build_crud_router(
    prefix="/api/courses",
    tags=["courses"],
    model=Course,
    write_schema=CourseWrite,
    read_schema=CourseResponse,
    permission=MANAGE_COURSES,
    label="Course",
    entity_type="course",
    id_alias="courseId",
    order_by=(Course.created_at.desc(), Course.id.desc()),
    media_fields=(
        MediaField("image_url", "courses", IMAGE_POLICY, upload_field="image"),
        MediaField("syllabus_url", "syllabi", DOCUMENT_POLICY, upload_field="syllabus"),
    ),
    prepare=_check_professor,
)
