from typing import List

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..config.database import get_db
from ..core.crud import MediaField, build_crud_router
from ..core.permissions import MANAGE_CONTENTS
from ..models.resource import INLINE_RESOURCE_TYPES, RESOURCE_TYPES, Resource, ResourceResponse, ResourceWrite
from ..utils.media import DOCUMENT_POLICY, VIDEO_POLICY, local_path


def _file_policy(values):
    return VIDEO_POLICY if values.get("type") == "video" else DOCUMENT_POLICY


def _normalize_links(db, values, existing):
    """A resource is either inline content, a stored file, or an external link"""
    if values["type"] in INLINE_RESOURCE_TYPES:
        values["url"] = None
        values["file_path"] = None
    elif local_path(values.get("file_path")):
        values["url"] = None
    else:
        values["file_path"] = None


def _filter_by_type(query, params):
    resource_type = params.get("type")
    if resource_type:
        query = query.filter(Resource.type == resource_type.lower())
    return query


router = build_crud_router(
    prefix="/api/resources",
    tags=["resources"],
    model=Resource,
    write_schema=ResourceWrite,
    read_schema=ResourceResponse,
    permission=MANAGE_CONTENTS,
    label="Resource",
    entity_type="resource",
    id_alias="resourceId",
    order_by=(Resource.created_at.desc(), Resource.id.desc()),
    media_fields=(MediaField("file_path", "resources", _file_policy, upload_field="file"),),
    prepare=_normalize_links,
    list_filter=_filter_by_type,
)


@router.get("/type/{resource_type}", response_model=List[ResourceResponse])
async def list_resources_by_type(resource_type: str, db: Session = Depends(get_db)):
    resource_type = resource_type.lower()
    if resource_type not in RESOURCE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"type must be one of: {', '.join(RESOURCE_TYPES)}",
        )
    return (
        db.query(Resource)
        .filter(Resource.type == resource_type)
        .order_by(Resource.created_at.desc(), Resource.id.desc())
        .all()
    )
