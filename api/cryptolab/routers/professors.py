from ..core.crud import MediaField, build_crud_router
from ..core.permissions import MANAGE_CONTENTS
from ..models.professor import Professor, ProfessorResponse, ProfessorWrite
from ..utils.media import IMAGE_POLICY

router = build_crud_router(
    prefix="/api/professors",
    tags=["professors"],
    model=Professor,
    write_schema=ProfessorWrite,
    read_schema=ProfessorResponse,
    permission=MANAGE_CONTENTS,
    label="Professor",
    entity_type="professor",
    id_alias="professorId",
    order_by=(Professor.name.asc(), Professor.id.asc()),
    media_fields=(MediaField("profile_image", "professors", IMAGE_POLICY, upload_field="image"),),
)
