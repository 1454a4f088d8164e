import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional

from .exceptions import RangeUnsupportedError
from .file import URLFile
from .logger import FlowChartLogger
from .transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)


def _parse_size(headers: Mapping[str, str]) -> Optional[int]:
    # Hubs that redirect to a CDN report the real size here
    for header in ("X-Linked-Size", "Content-Length"):
        value = headers.get(header)
        if value is None:
            continue
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring malformed {header} header: {value!r}")
    return None


def _parse_last_modified(value: Optional[str]) -> datetime:
    if value:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed Last-Modified header: {value!r}")
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


async def from_url(url: str, transport: Optional[Transport] = None, *, verify_range: bool = False, debug: bool = False) -> URLFile:
    """Probe ``url`` with a HEAD request and return a view over the whole resource.

    Raises:
        RangeUnsupportedError: If the server answers ``Accept-Ranges: none``
        InvalidSizeError: If no usable length header is present
    """
    if transport is None:
        transport = RequestsTransport()
    flow = FlowChartLogger() if debug else None
    if flow:
        flow.step("Discover", {"URL": url, "Method": "HEAD"})

    response = await transport(url, method="HEAD")
    try:
        headers = response.headers
    finally:
        await response.aclose()

    if headers.get("Accept-Ranges", "").strip().lower() == "none":
        if flow:
            flow.fail("Range Unsupported", {"URL": url})
        raise RangeUnsupportedError(f"Range requests not supported by remote: {url}")

    size = _parse_size(headers)
    last_modified_date = _parse_last_modified(headers.get("Last-Modified"))
    view = URLFile(
        url,
        size,
        type=headers.get("Content-Type"),
        last_modified_date=last_modified_date,
        last_modified=int(last_modified_date.timestamp() * 1000),
        transport=transport,
        verify_range=verify_range,
        debug=debug,
    )
    logger.debug("Discovered %s: size=%d type=%r", url, view.size, view.type)
    if flow:
        flow.done("Discovered", {"Size": view.size, "Type": view.type or "-", "Name": view.name})
    return view
