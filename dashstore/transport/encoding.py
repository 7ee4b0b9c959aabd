"""
Request body encoding for dashstore.

The JSON-or-multipart decision is made once per call from the payload's
shape: any file-like value (at top level or inside a list) switches the
whole body to multipart. Upload fields whose names mark them as images or
videos are validated before anything is sent.
"""

import io
import json
import mimetypes
import os
import re
from dataclasses import dataclass, field
from typing import IO, Any, Dict, Optional, Union

import aiohttp

from ..errors import ValidationError


ALLOWED_IMAGE_MIME = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
})
ALLOWED_IMAGE_EXT = frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg"})

VIDEO_EXT = frozenset({
    "mp4", "mov", "m4v", "webm", "mkv", "avi", "wmv", "flv",
    "mpeg", "mpg", "3gp", "ogg", "ogv",
})

_IMAGE_FIELD = re.compile(r"(^|_)(image|img|photo|avatar)(_|$)")
_VIDEO_FIELD = re.compile(r"(^|_)(video|vid)(_|$)")

JSON_CONTENT_TYPE = "application/json"


@dataclass
class Upload:
    """
    A binary attachment.

    Attributes:
        content: Raw bytes or a binary file object
        filename: Name sent with the part; inferred from content_type if missing
        content_type: MIME type; guessed from filename if missing
    """

    content: Union[bytes, IO[bytes]]
    filename: Optional[str] = None
    content_type: Optional[str] = None


@dataclass
class EncodedBody:
    """Result of encoding a payload."""

    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    multipart: bool = False


def is_file_like(value: Any) -> bool:
    """True for Upload instances, binary file objects and raw bytes."""
    return isinstance(value, (Upload, bytes, bytearray, io.BufferedIOBase, io.RawIOBase))


def has_file(payload: Any) -> bool:
    """True if a mapping payload carries any file-like value."""
    if not isinstance(payload, dict):
        return False

    for value in payload.values():
        if is_file_like(value):
            return True
        if isinstance(value, (list, tuple)) and any(is_file_like(item) for item in value):
            return True

    return False


def _extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def _extension_for_type(content_type: Optional[str]) -> str:
    if not content_type or "/" not in content_type:
        return "bin"
    subtype = content_type.split("/")[-1].lower()
    if subtype == "svg+xml":
        return "svg"
    guessed = mimetypes.guess_extension(content_type)
    return guessed.lstrip(".") if guessed else subtype


def to_upload(value: Any, fallback_base: str = "upload") -> Upload:
    """
    Normalize a file-like value into a named Upload.

    Args:
        value: Upload, binary file object or bytes
        fallback_base: Base filename used when the value has no name

    Returns:
        Upload with a filename and, where it can be guessed, a content type
    """
    if isinstance(value, Upload):
        upload = Upload(value.content, value.filename, value.content_type)
    elif isinstance(value, (bytes, bytearray)):
        upload = Upload(bytes(value))
    else:
        name = getattr(value, "name", None)
        filename = os.path.basename(name) if isinstance(name, str) else None
        upload = Upload(value, filename)

    if upload.content_type is None and upload.filename:
        upload.content_type = mimetypes.guess_type(upload.filename)[0]

    if not upload.filename:
        upload.filename = f"{fallback_base}.{_extension_for_type(upload.content_type)}"

    return upload


def prepare_upload(field_name: str, value: Any) -> Upload:
    """
    Normalize and validate an upload for the given field.

    Image fields (image, img, photo, avatar) accept jpg, jpeg, png, gif,
    webp and svg only; video fields (video, vid) accept videos only.

    Raises:
        ValidationError: If the file does not match its field
    """
    key = field_name.lower()

    if _IMAGE_FIELD.search(key):
        upload = to_upload(value, "image")
        ok_mime = upload.content_type in ALLOWED_IMAGE_MIME
        ok_ext = _extension(upload.filename) in ALLOWED_IMAGE_EXT
        if not ok_mime and not ok_ext:
            message = "Image must be a file of type: jpg, jpeg, png, gif, webp, svg."
            raise ValidationError(message, field_errors={field_name: [message]})
        return upload

    if _VIDEO_FIELD.search(key):
        upload = to_upload(value, "video")
        ok_mime = bool(upload.content_type) and upload.content_type.startswith("video/")
        ok_ext = _extension(upload.filename) in VIDEO_EXT
        if not ok_mime and not ok_ext:
            message = "Please choose a valid video file."
            raise ValidationError(message, field_errors={field_name: [message]})
        return upload

    return to_upload(value)


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    return str(value)


def _append(form: aiohttp.FormData, name: str, value: Any, field_name: str) -> None:
    if is_file_like(value):
        upload = prepare_upload(field_name, value)
        form.add_field(
            name,
            upload.content,
            filename=upload.filename,
            content_type=upload.content_type or "application/octet-stream",
        )
    else:
        form.add_field(name, _form_value(value))


def build_form_data(payload: Dict[str, Any]) -> aiohttp.FormData:
    """
    Encode a mapping as multipart form data.

    None values are skipped and list values become repeated ``field[]``
    entries.
    """
    form = aiohttp.FormData()

    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                if item is not None:
                    _append(form, f"{key}[]", item, key)
        else:
            _append(form, key, value, key)

    return form


def encode_payload(payload: Any) -> EncodedBody:
    """
    Choose and apply the body encoding for a payload.

    Args:
        payload: None, a ready FormData, or any JSON-serializable value
            (mappings may carry file-like values)

    Returns:
        EncodedBody with the data to send and the headers it needs
    """
    if payload is None:
        return EncodedBody()

    if isinstance(payload, aiohttp.FormData):
        return EncodedBody(data=payload, multipart=True)

    if has_file(payload):
        # aiohttp sets the multipart boundary header itself
        return EncodedBody(data=build_form_data(payload), multipart=True)

    return EncodedBody(
        data=json.dumps(payload, default=str),
        headers={"Content-Type": JSON_CONTENT_TYPE},
    )
