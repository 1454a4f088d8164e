import asyncio
import logging
import threading
from typing import AsyncIterator, Mapping, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import TransportConfig
from .exceptions import TransportError, ResourceNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class Response(Protocol):
    """What a transport hands back for one request.

    The body is consumed at most once, through exactly one of ``read``,
    ``text`` or ``aiter_bytes``; ``aclose`` releases the connection.
    """

    status_code: int
    headers: Mapping[str, str]

    async def read(self) -> bytes: ...

    async def text(self, encoding: Optional[str] = None, errors: str = "replace") -> str: ...

    def aiter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


class Transport(Protocol):
    """An awaitable ``(url, method, headers) -> Response`` callable.

    Failures (network errors, error statuses) are the transport's own
    business: whatever it raises reaches the caller unchanged.
    """

    async def __call__(self, url: str, *, method: str = "GET", headers: Optional[Mapping[str, str]] = None) -> Response: ...


def _charset(content_type: str) -> Optional[str]:
    for param in content_type.split(";")[1:]:
        key, _, value = param.strip().partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip("'\"") or None
    return None


class RequestsResponse:
    """Async view over a streamed ``requests.Response``.

    Every blocking read runs on a worker thread, one chunk at a time when
    iterating, so the body is never pulled in ahead of the consumer.
    """

    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Mapping[str, str]:
        return self._response.headers

    @property
    def encoding(self) -> Optional[str]:
        """Charset declared by the server, if any."""
        return _charset(self._response.headers.get("Content-Type", ""))

    async def read(self) -> bytes:
        try:
            return await asyncio.to_thread(lambda: self._response.content)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to read body of {self._response.url}: {str(e)}")
            raise TransportError(f"Network error: {str(e)}") from e

    async def text(self, encoding: Optional[str] = None, errors: str = "replace") -> str:
        data = await self.read()
        return data.decode(encoding or self.encoding or "utf-8", errors)

    async def aiter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        chunks = self._response.iter_content(chunk_size=chunk_size)
        while True:
            try:
                chunk = await asyncio.to_thread(next, chunks, None)
            except requests.exceptions.RequestException as e:
                logger.error(f"Stream from {self._response.url} failed: {str(e)}")
                raise TransportError(f"Network error: {str(e)}") from e
            if chunk is None:
                return
            if chunk:
                yield chunk

    async def aclose(self) -> None:
        self._response.close()

    def __repr__(self) -> str:
        return f"RequestsResponse(status_code={self.status_code}, url={self._response.url!r})"


class RequestsTransport:
    """Default transport built on a pooled ``requests`` session.

    The session owns retries with exponential backoff, connection pooling and
    timeouts; all of that stays below the virtual file, which only ever sees
    one awaitable call per materialization. Blocking I/O runs through
    ``asyncio.to_thread`` so the event loop is never held up.
    """

    def __init__(self, config: Optional[TransportConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or TransportConfig()
        self._own_session = session is None
        self._session = session if session is not None else self._create_session()
        self._lock = threading.Lock()

        # Telemetry
        self.total_requests = 0

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=self.config.retries,
            backoff_factor=self.config.backoff_factor,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(
            max_retries=retry_strategy,
            pool_connections=self.config.pool_connections,
            pool_maxsize=self.config.pool_maxsize
        )
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update(self.config.headers)
        return session

    def request(self, url: str, method: str = "GET", headers: Optional[Mapping[str, str]] = None) -> requests.Response:
        """Blocking request; the body is left unread (``stream=True``)."""
        with self._lock:
            self.total_requests += 1

        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                timeout=(self.config.connect_timeout, self.config.read_timeout),
                stream=True,
                allow_redirects=True
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"HTTP Request failed for {url}: {str(e)}")
            raise TransportError(f"Network error: {str(e)}") from e

        if response.status_code == 404:
            response.close()
            raise ResourceNotFoundError(f"Resource not found: {url}")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            response.close()
            logger.error(f"HTTP Request failed for {url}: {str(e)}")
            raise TransportError(f"HTTP error: {str(e)}") from e

        return response

    async def __call__(self, url: str, *, method: str = "GET", headers: Optional[Mapping[str, str]] = None) -> RequestsResponse:
        response = await asyncio.to_thread(self.request, url, method, headers)
        return RequestsResponse(response)

    def close(self):
        if self._own_session:
            self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"RequestsTransport(total_requests={self.total_requests})"
