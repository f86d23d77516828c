from typing import List

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..config.database import get_db
from ..core.crud import build_crud_router
from ..core.permissions import MANAGE_COURSES
from ..models.course import Course
from ..models.lecture import Lecture, LectureResponse, LectureWrite


def _check_course(db, values, existing):
    if db.get(Course, values["course_id"]) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course not found")


router = build_crud_router(
    prefix="/api/lectures",
    tags=["lectures"],
    model=Lecture,
    write_schema=LectureWrite,
    read_schema=LectureResponse,
    permission=MANAGE_COURSES,
    label="Lecture",
    entity_type="lecture",
    id_alias="lectureId",
    order_by=(Lecture.lecture_date.desc(), Lecture.created_at.desc(), Lecture.id.desc()),
    prepare=_check_course,
)


@router.get("/course/{course_id}", response_model=List[LectureResponse])
async def list_course_lectures(course_id: int, db: Session = Depends(get_db)):
    """Lectures of one course in teaching order"""
    if db.get(Course, course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return (
        db.query(Lecture)
        .filter(Lecture.course_id == course_id)
        .order_by(Lecture.lecture_date.asc(), Lecture.id.asc())
        .all()
    )
