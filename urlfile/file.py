"""
Virtual file over a remote HTTP resource.

A ``URLFile`` is a byte window ``[start, end)`` into a resource of
``true_size`` bytes. Slicing only narrows the window and never touches the
network; each materialization (``text``, ``read_bytes``, ``array_buffer``,
``blob``, ``stream``) issues exactly one range request for the window.
"""

import builtins
import math
import mimetypes
import numbers
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional
from urllib.parse import unquote, urlsplit

from .exceptions import InvalidSizeError, UnexpectedRangeResponseError
from .logger import FlowChartLogger, logger
from .transport import DEFAULT_CHUNK_SIZE, RequestsTransport, Response, Transport


@dataclass(frozen=True)
class Blob:
    """Immutable bytes tagged with a MIME type."""
    data: bytes = b""
    type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    def __len__(self) -> int:
        return len(self.data)


def _check_url(url: str) -> None:
    if not isinstance(url, str):
        raise TypeError(f"url must be a string, got {type(url).__name__}")
    if not url.startswith(("http:", "https:")):
        raise ValueError("URL must start with 'http:' or 'https:'")


def _as_offset(value, label: str) -> int:
    """Coerce a size or offset to a non-negative int, or raise InvalidSizeError."""
    if value is None:
        raise InvalidSizeError(f"{label} is required")
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidSizeError(f"{label} must be a number, got {type(value).__name__}")
    if not isinstance(value, numbers.Integral):
        if not math.isfinite(value) or not float(value).is_integer():
            raise InvalidSizeError(f"{label} must be a whole number, got {value!r}")
    value = int(value)
    if value < 0:
        raise InvalidSizeError(f"{label} must be non-negative, got {value}")
    return value


def _as_index(value, size: int) -> int:
    """Truncate a slice bound toward zero; NaN is 0 and infinities saturate at ``size``."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(f"slice indices must be numbers, got {type(value).__name__}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return size if value > 0 else -size
    return int(value)


class URLFile:
    """
    Lazily-fetched, read-only file backed by an HTTP server with range support.

    Args:
        url: Absolute http(s) URL of the resource
        size: Logical size of this view in bytes
        type: MIME type; inferred from the URL's file extension when None
        last_modified_date: Provenance timestamp (defaults to now, UTC)
        last_modified: Provenance timestamp in epoch milliseconds
        name: File name; inferred from the URL path when empty
        transport: Awaitable request callable; a new ``RequestsTransport``
            when None
        true_size: Size of the whole remote resource (defaults to ``size``)
        webkit_relative_path: Directory part of the path; inferred when empty
        verify_range: Reject responses that are not the requested 206 span
        debug: Render fetch steps with the flow-chart logger
        start: First byte of the window, inclusive
        end: Last byte of the window, exclusive (defaults to ``start + size``)

    Raises:
        InvalidSizeError: If ``size`` is missing, not a whole non-negative
            number, or inconsistent with the window
    """

    def __init__(
        self,
        url: str,
        size=None,
        *,
        type: Optional[str] = None,
        last_modified_date: Optional[datetime] = None,
        last_modified: int = 0,
        name: str = "",
        transport: Optional[Transport] = None,
        true_size: Optional[int] = None,
        webkit_relative_path: str = "",
        verify_range: bool = False,
        debug: bool = False,
        start: int = 0,
        end: Optional[int] = None,
    ):
        size = _as_offset(size, "size")
        true_size = size if true_size is None else _as_offset(true_size, "true_size")
        start = _as_offset(start, "start")
        end = start + size if end is None else _as_offset(end, "end")
        if end - start != size or not start <= end <= true_size:
            raise InvalidSizeError(
                f"Invalid window: start={start}, end={end}, size={size}, true_size={true_size}"
            )
        _check_url(url)

        path = urlsplit(url).path or "/"
        segment = unquote(path[path.rfind("/") + 1:])
        has_extension = "." in segment

        self.url = url
        self.size = size  # this view
        self.true_size = true_size  # whole remote resource
        self.start = start  # inclusive
        self.end = end  # exclusive
        self.webkit_relative_path = webkit_relative_path or unquote(path[1:path.rfind("/")])
        if name:
            self.name = name
        else:
            self.name = segment[:segment.rfind(".")] if has_extension else segment
        if type is None:
            type = (mimetypes.guess_type(segment)[0] or "") if has_extension else ""
        self.type = type
        self.last_modified_date = last_modified_date or datetime.now(timezone.utc)
        self.last_modified = last_modified
        self.transport = transport if transport is not None else RequestsTransport()
        self.verify_range = verify_range
        self.debug = debug

    def _derive(self, size: int, content_type: str, start: int = 0, end: Optional[int] = None) -> "URLFile":
        """New view over the same resource; copies a fixed set of fields."""
        return URLFile(
            self.url,
            size,
            type=content_type,
            last_modified_date=self.last_modified_date,
            last_modified=self.last_modified,
            name=self.name,
            transport=self.transport,
            true_size=self.true_size,
            webkit_relative_path=self.webkit_relative_path,
            verify_range=self.verify_range,
            debug=self.debug,
            start=start,
            end=end,
        )

    def slice(self, start: Optional[int] = 0, end: Optional[int] = None, content_type: Optional[str] = None) -> "URLFile":
        """
        Narrow the window. Never performs I/O and never mutates ``self``.

        Args:
            start: Slice start relative to this view, inclusive; negative
                values count from the end
            end: Slice end relative to this view, exclusive (HTTP ranges
                are inclusive, ours are not); negative values count from
                the end. Defaults to ``self.size``
            content_type: MIME type of the result (defaults to ``self.type``)

        Returns:
            ``self`` when the slice covers this whole view, otherwise a new view
        """
        if start is None or self.size == 0:
            return self
        start = _as_index(start, self.size)
        end = self.size if end is None else _as_index(end, self.size)
        if content_type is None:
            content_type = self.type

        if end < 0:
            end = max(self.size + end, 0)
        if start < 0:
            start = max(self.size + start, 0)

        if end == 0:
            return self._derive(0, content_type)

        safe_end = min(self.size, end)
        safe_start = min(start, safe_end)
        new_size = safe_end - safe_start

        if new_size == 0:
            return self._derive(0, content_type)

        if new_size == self.size:
            return self

        return self._derive(new_size, content_type, self.start + safe_start, self.start + safe_end)

    def __getitem__(self, key) -> "URLFile":
        if not isinstance(key, builtins.slice):
            raise TypeError(f"URLFile indices must be slices, not {type(key).__name__}")
        if key.step not in (None, 1):
            raise ValueError("URLFile slices do not support a step")
        return self.slice(0 if key.start is None else key.start, key.stop)

    def __len__(self) -> int:
        return self.size

    def _range_headers(self) -> Dict[str, str]:
        last = self.end - 1  # HTTP ranges include the final byte
        return {
            "Range": f"bytes={self.start}-{last}",
            "Content-Range": f"bytes {self.start}-{last}/{self.true_size}",
            "Cache-Control": "no-store",
        }

    def _verify(self, response: Response) -> None:
        expected = f"bytes {self.start}-{self.end - 1}"
        if response.status_code != 206:
            raise UnexpectedRangeResponseError(
                f"Expected 206 for {expected} of {self.url}, got status {response.status_code}"
            )
        content_range = response.headers.get("Content-Range")
        if content_range and content_range.split("/")[0].strip() != expected:
            raise UnexpectedRangeResponseError(
                f"Requested {expected} of {self.url}, server sent {content_range!r}"
            )

    async def _get(self) -> Response:
        headers = self._range_headers()
        logger.debug("GET %s %s", self.url, headers["Range"])
        flow = FlowChartLogger() if self.debug else None
        if flow:
            flow.step("Range Request", {"URL": self.url, "Range": headers["Range"], "Size": self.size})

        response = await self.transport(self.url, method="GET", headers=headers)

        if self.verify_range:
            try:
                self._verify(response)
            except UnexpectedRangeResponseError as e:
                await response.aclose()
                if flow:
                    flow.fail("Unexpected Response", {"Status": response.status_code, "Error": str(e)})
                raise
        if flow:
            flow.done("Response", {"Status": response.status_code})
        return response

    async def text(self, encoding: Optional[str] = None, errors: str = "replace") -> str:
        """Fetch the window and decode it (server charset, else UTF-8)."""
        if self.size == 0:
            return ""
        response = await self._get()
        try:
            return await response.text(encoding=encoding, errors=errors)
        finally:
            await response.aclose()

    async def read_bytes(self) -> bytes:
        if self.size == 0:
            return b""
        response = await self._get()
        try:
            return await response.read()
        finally:
            await response.aclose()

    async def array_buffer(self) -> bytearray:
        """Fetch the window into a fresh mutable buffer."""
        if self.size == 0:
            return bytearray()
        return bytearray(await self.read_bytes())

    async def blob(self) -> Blob:
        if self.size == 0:
            return Blob(b"", self.type or "")
        return Blob(await self.read_bytes(), self.type or "")

    async def stream(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """
        Yield the window's bytes as they arrive.

        Calling returns immediately; the request is issued on first iteration
        and chunks are pulled from the response one at a time.
        """
        if self.size == 0:
            return
        response = await self._get()
        try:
            async for chunk in response.aiter_bytes(chunk_size):
                yield chunk
        finally:
            await response.aclose()

    def __repr__(self) -> str:
        return (
            f"URLFile(url={self.url!r}, size={self.size}, start={self.start}, "
            f"end={self.end}, true_size={self.true_size}, type={self.type!r})"
        )
