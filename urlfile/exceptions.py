"""
Custom exceptions for urlfile.
"""

class URLFileError(Exception):
    """Base exception for all urlfile errors."""
    pass

class InvalidSizeError(URLFileError, ValueError):
    """Raised when a view is constructed without a usable size or window."""
    pass

class RangeUnsupportedError(URLFileError):
    """Raised when the server declares no byte range support for a resource."""
    pass

class UnexpectedRangeResponseError(URLFileError):
    """Raised when a verified range request gets back something other than the requested span."""
    pass

class TransportError(URLFileError):
    """Base exception for failures of the default requests transport."""
    pass

class ResourceNotFoundError(TransportError):
    """Raised when the remote resource cannot be found (404)."""
    pass
