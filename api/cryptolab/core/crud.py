"""
Router factory shared by every content entity.

Each entity supplies its ORM model, write/read schemas, the permission flag
guarding writes and a few hooks; the factory wires list/get/create/update/delete
with the same body parsing, media handling, audit logging and transaction rules.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from ..config.database import get_db
from ..models.user import User
from ..services import audit_service
from ..utils.media import MediaPolicy, ingest, is_data_uri, remove_stored
from .errors import server_error_detail, validation_message
from .security import require_permission

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

# (model, column) pairs holding stored media, filled as routers are built
MEDIA_COLUMNS: List[Tuple[Any, str]] = []


@dataclass(frozen=True)
class MediaField:
    """A column that stores an uploaded file.

    The column value may be a data URI, a plain string kept as is, or be
    replaced by the multipart part named `upload_field`.
    """
    attr: str
    subdir: str
    policy: Union[MediaPolicy, Callable[[Dict[str, Any]], MediaPolicy]]
    upload_field: Optional[str] = None

    def policy_for(self, values: Dict[str, Any]) -> MediaPolicy:
        return self.policy(values) if callable(self.policy) else self.policy


def blank_to_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: (None if isinstance(value, str) and not value.strip() else value) for key, value in data.items()}


async def read_body(request: Request) -> Tuple[Dict[str, Any], Dict[str, UploadFile]]:
    """Parse a JSON or form body into (fields, uploads); empty file parts are ignored"""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data: Dict[str, Any] = {}
        uploads: Dict[str, UploadFile] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if value.filename:
                    uploads[key] = value
            else:
                data[key] = value
        return blank_to_none(data), uploads

    raw = await request.body()
    if not raw.strip():
        return {}, {}
    try:
        data = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be valid JSON")
    if not isinstance(data, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be a JSON object")
    return blank_to_none(data), {}


def validate_payload(schema: Type[BaseModel], data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return schema.model_validate(data).model_dump()
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=validation_message(e.errors()))


async def store_media(
    media_fields: Sequence[MediaField],
    values: Dict[str, Any],
    uploads: Dict[str, UploadFile],
    stored: List[str],
) -> None:
    """Replace upload parts and data URIs in `values` by stored URLs; new URLs are appended to `stored`"""
    for field in media_fields:
        source = uploads.get(field.upload_field) if field.upload_field else None
        if source is None:
            source = values.get(field.attr)
        is_new = isinstance(source, UploadFile) or is_data_uri(source)
        url = await ingest(source, field.subdir, field.policy_for(values))
        if is_new:
            stored.append(url)
        values[field.attr] = url


def discard(stored: List[str]) -> None:
    for url in stored:
        remove_stored(url)


def is_referenced(db: Session, url: str) -> bool:
    return any(
        db.query(model.id).filter(getattr(model, attr) == url).first() is not None for model, attr in MEDIA_COLUMNS
    )


def release_orphans(db: Session, urls: Sequence[Optional[str]]) -> None:
    """Remove stored files that no row points at any more"""
    for url in set(url for url in urls if url):
        if is_referenced(db, url):
            logger.info(f"Keeping {url}; still referenced")
            continue
        remove_stored(url)


def release_unused(values: Dict[str, Any], stored: List[str]) -> None:
    """Drop files that a prepare hook detached from the record"""
    referenced = set(value for value in values.values() if isinstance(value, str))
    for url in [url for url in stored if url not in referenced]:
        stored.remove(url)
        remove_stored(url)


def build_crud_router(
    *,
    prefix: str,
    tags: List[str],
    model,
    write_schema: Type[BaseModel],
    read_schema: Type[BaseModel],
    permission: str,
    label: str,
    entity_type: str,
    id_alias: str,
    order_by: Sequence = (),
    media_fields: Sequence[MediaField] = (),
    prepare: Optional[Callable[[Session, Dict[str, Any], Any], None]] = None,
    list_filter: Optional[Callable[[Any, Any], Any]] = None,
    before_delete: Optional[Callable[[Session, Any, User], None]] = None,
    public_read: bool = True,
) -> APIRouter:
    """
    Build list/get/create/update/delete routes for one entity.

    prepare(db, values, existing) runs after media is stored and before the
    write; `existing` is None on create. It may adjust `values` in place and
    raise HTTPException to reject the request.
    """
    router = APIRouter(prefix=prefix, tags=tags)
    read_dependencies = [] if public_read else [Depends(require_permission(permission))]
    writer = require_permission(permission)
    noun = label.lower()
    MEDIA_COLUMNS.extend((model, field.attr) for field in media_fields)

    def serialize(item) -> Dict[str, Any]:
        return read_schema.model_validate(item).model_dump(mode="json")

    def get_or_404(db: Session, item_id: int):
        item = db.get(model, item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
        return item

    @router.get("", response_model=List[read_schema], dependencies=read_dependencies)
    async def list_items(request: Request, db: Session = Depends(get_db)):
        query = db.query(model)
        if list_filter:
            query = list_filter(query, request.query_params)
        return query.order_by(*order_by).all()

    @router.get("/{item_id}", response_model=read_schema, dependencies=read_dependencies)
    async def get_item(item_id: int, db: Session = Depends(get_db)):
        return get_or_404(db, item_id)

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_item(
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(writer),
    ):
        data, uploads = await read_body(request)
        values = validate_payload(write_schema, data)

        stored: List[str] = []
        try:
            await store_media(media_fields, values, uploads, stored)
            if prepare:
                prepare(db, values, None)
                release_unused(values, stored)
            if hasattr(model, "created_by"):
                values["created_by"] = current_user.id

            item = model(**values)
            db.add(item)
            db.flush()
            body = serialize(item)
            audit_service.record(db, current_user.id, "CREATE", entity_type, item.id, body)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            discard(stored)
            logger.error(f"Error creating {noun}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=server_error_detail(f"Error creating {noun}", e),
            )
        except Exception:
            db.rollback()
            discard(stored)
            raise

        logger.info(f"{label} {item.id} created by user {current_user.id}")
        return {**body, "message": f"{label} created", "id": item.id, id_alias: item.id}

    @router.put("/{item_id}")
    async def update_item(
        item_id: int,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(writer),
    ):
        item = get_or_404(db, item_id)
        data, uploads = await read_body(request)
        values = validate_payload(write_schema, data)
        previous_media = {field.attr: getattr(item, field.attr) for field in media_fields}

        stored: List[str] = []
        try:
            await store_media(media_fields, values, uploads, stored)
            if prepare:
                prepare(db, values, item)
                release_unused(values, stored)
            for key, value in values.items():
                setattr(item, key, value)

            db.flush()
            body = serialize(item)
            audit_service.record(db, current_user.id, "UPDATE", entity_type, item.id, body)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            discard(stored)
            logger.error(f"Error updating {noun} {item_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=server_error_detail(f"Error updating {noun}", e),
            )
        except Exception:
            db.rollback()
            discard(stored)
            raise

        release_orphans(db, [old_url for attr, old_url in previous_media.items() if old_url != body.get(attr)])

        logger.info(f"{label} {item_id} updated by user {current_user.id}")
        return {**body, "message": f"{label} updated"}

    @router.delete("/{item_id}")
    async def delete_item(
        item_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(writer),
    ):
        item = get_or_404(db, item_id)
        if before_delete:
            before_delete(db, item, current_user)
        media_urls = [getattr(item, field.attr) for field in media_fields]

        try:
            audit_service.record(
                db, current_user.id, "DELETE", entity_type, item_id, details=f"Deleted {noun} {item_id}"
            )
            db.delete(item)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting {noun} {item_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=server_error_detail(f"Error deleting {noun}", e),
            )

        release_orphans(db, media_urls)

        logger.info(f"{label} {item_id} deleted by user {current_user.id}")
        return {"message": f"{label} deleted"}

    return router
