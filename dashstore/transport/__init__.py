"""
HTTP transport package for dashstore.
"""

from .http import (
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT,
    TransportConfig,
    TransportResponse,
    HttpTransport,
)

from .encoding import (
    Upload,
    EncodedBody,
    is_file_like,
    has_file,
    to_upload,
    prepare_upload,
    build_form_data,
    encode_payload,
)

__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_TIMEOUT",
    "TransportConfig",
    "TransportResponse",
    "HttpTransport",
    "Upload",
    "EncodedBody",
    "is_file_like",
    "has_file",
    "to_upload",
    "prepare_upload",
    "build_form_data",
    "encode_payload",
]
