import base64
import binascii
import mimetypes
import os
import re
import uuid
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional, Union

from starlette.datastructures import UploadFile

from ..config.settings import (
    DOCUMENT_EXTENSIONS,
    IMAGE_EXTENSIONS,
    MAX_DOCUMENT_SIZE,
    MAX_IMAGE_SIZE,
    MAX_VIDEO_SIZE,
    UPLOADS_DIR,
    UPLOADS_URL_PREFIX,
)

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)
CHUNK_SIZE = 1024 * 1024

# Data-URI mime types have no filename, so the extension comes from here
MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "application/pdf": ".pdf",
    "application/vnd.ms-powerpoint": ".ppt",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": ".pptx",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}


class MediaError(Exception):
    """Rejected upload: wrong type, too large or undecodable"""


@dataclass(frozen=True)
class MediaPolicy:
    name: str
    max_size: int
    extensions: FrozenSet[str] = frozenset()
    mime_prefix: Optional[str] = None

    def accepts(self, extension: str, mime_type: Optional[str]) -> bool:
        if self.mime_prefix:
            return bool(mime_type) and mime_type.startswith(self.mime_prefix)
        return extension in self.extensions


IMAGE_POLICY = MediaPolicy("image", MAX_IMAGE_SIZE, frozenset(IMAGE_EXTENSIONS))
DOCUMENT_POLICY = MediaPolicy("document", MAX_DOCUMENT_SIZE, frozenset(DOCUMENT_EXTENSIONS))
VIDEO_POLICY = MediaPolicy("video", MAX_VIDEO_SIZE, mime_prefix="video/")


def sanitize_filename(name: str) -> str:
    """Keep letters, digits, dots, dashes and underscores"""
    name = os.path.basename(name or "")
    return re.sub(r"[^A-Za-z0-9._-]", "_", name)[:100]


def is_data_uri(value) -> bool:
    return isinstance(value, str) and value.startswith("data:")


def public_url(subdir: str, filename: str) -> str:
    return f"{UPLOADS_URL_PREFIX}/{subdir}/{filename}"


def local_path(url: Optional[str]) -> Optional[str]:
    """Map an /uploads/... URL back to its file; anything else is not ours"""
    if not url or not url.startswith(UPLOADS_URL_PREFIX + "/"):
        return None
    relative = url[len(UPLOADS_URL_PREFIX) + 1:]
    path = os.path.abspath(os.path.join(UPLOADS_DIR, relative))
    if not path.startswith(os.path.abspath(UPLOADS_DIR) + os.sep):
        return None
    return path


def remove_stored(url: Optional[str]) -> None:
    """Delete a previously stored upload; failures are only logged"""
    path = local_path(url)
    if not path:
        return
    try:
        os.remove(path)
        logger.info(f"Removed stored media {url}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove stored media {url}: {str(e)}")


def _target_path(subdir: str, extension: str, original_name: str = ""):
    directory = os.path.join(UPLOADS_DIR, subdir)
    os.makedirs(directory, exist_ok=True)
    stem = os.path.splitext(sanitize_filename(original_name))[0] or subdir.rstrip("s")
    filename = f"{uuid.uuid4().hex[:12]}-{stem}{extension}"
    return directory, filename


def _write_atomically(directory: str, filename: str, chunks) -> int:
    """Write to a temporary name and rename into place; nothing is left behind on failure"""
    tmp_path = os.path.join(directory, f".{filename}.part")
    size = 0
    try:
        with open(tmp_path, "wb") as f:
            for chunk in chunks:
                size += len(chunk)
                f.write(chunk)
        os.replace(tmp_path, os.path.join(directory, filename))
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    return size


def _decode_data_uri(value: str, policy: MediaPolicy):
    match = DATA_URI_RE.match(value)
    if not match:
        raise MediaError("Malformed data URI")

    mime_type = match.group("mime").lower()
    extension = MIME_EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ""
    if not policy.accepts(extension, mime_type):
        raise MediaError(f"Unsupported {policy.name} type: {mime_type}")

    payload = match.group("payload").strip()
    # Base64 expands by 4/3; reject before decoding anything huge
    if len(payload) * 3 // 4 > policy.max_size + 3:
        raise MediaError(f"{policy.name.capitalize()} exceeds the {policy.max_size // (1024 * 1024)}MB limit")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise MediaError("Data URI payload is not valid base64")
    if len(data) > policy.max_size:
        raise MediaError(f"{policy.name.capitalize()} exceeds the {policy.max_size // (1024 * 1024)}MB limit")
    return data, extension, mime_type


async def _read_upload(upload: UploadFile, policy: MediaPolicy) -> bytes:
    data = bytearray()
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        data.extend(chunk)
        if len(data) > policy.max_size:
            raise MediaError(f"{policy.name.capitalize()} exceeds the {policy.max_size // (1024 * 1024)}MB limit")
    return bytes(data)


async def store_upload(upload: UploadFile, subdir: str, policy: MediaPolicy) -> dict:
    """Validate and store one multipart upload, returning its metadata"""
    original_name = upload.filename or ""
    extension = os.path.splitext(original_name)[1].lower()
    mime_type = (upload.content_type or "").lower()
    if not policy.accepts(extension, mime_type):
        raise MediaError(f"Unsupported {policy.name} file: {original_name or mime_type}")

    data = await _read_upload(upload, policy)
    directory, filename = _target_path(subdir, extension, original_name)
    size = _write_atomically(directory, filename, [data])
    url = public_url(subdir, filename)
    logger.info(f"Stored {policy.name} upload {original_name} as {url} ({size} bytes)")
    return {
        "url": url,
        "filename": filename,
        "originalname": original_name,
        "mimetype": mime_type,
        "size": size,
    }


async def ingest(source: Union[UploadFile, str, None], subdir: str, policy: MediaPolicy) -> Optional[str]:
    """
    Turn an upload or an inline data URI into a stored file under UPLOADS_DIR.

    Returns the public /uploads/... URL. Plain strings (already stored paths
    or external links) and empty values are returned unchanged.
    """
    if source is None:
        return None
    if isinstance(source, UploadFile):
        return (await store_upload(source, subdir, policy))["url"]
    if not is_data_uri(source):
        return source

    data, extension, mime_type = _decode_data_uri(source, policy)
    directory, filename = _target_path(subdir, extension)
    _write_atomically(directory, filename, [data])
    url = public_url(subdir, filename)
    logger.info(f"Stored inline {mime_type} as {url} ({len(data)} bytes)")
    return url
