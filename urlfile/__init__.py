from .version import __version__
from .file import URLFile, Blob
from .discovery import from_url
from .transport import Transport, Response, RequestsTransport, RequestsResponse
from .config import TransportConfig
from .io import RemoteFileObject
from .exceptions import (
    URLFileError,
    InvalidSizeError,
    RangeUnsupportedError,
    UnexpectedRangeResponseError,
    TransportError,
    ResourceNotFoundError
)

__all__ = [
    "__version__",
    "URLFile",
    "Blob",
    "from_url",
    "Transport",
    "Response",
    "RequestsTransport",
    "RequestsResponse",
    "TransportConfig",
    "RemoteFileObject",
    "URLFileError",
    "InvalidSizeError",
    "RangeUnsupportedError",
    "UnexpectedRangeResponseError",
    "TransportError",
    "ResourceNotFoundError",
]
