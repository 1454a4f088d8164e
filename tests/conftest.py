from typing import Dict, List, Optional

import pytest
from requests.structures import CaseInsensitiveDict

from urlfile import URLFile

URL = 'https://example.invalid/files/payload'
PAYLOAD = bytes(range(100))


class StubResponse:
    def __init__(self, body: bytes = b'', status_code: int = 206, headers: Optional[Dict[str, str]] = None):
        self.body = body
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.closed = False
        self.chunks_served = 0

    async def read(self) -> bytes:
        return self.body

    async def text(self, encoding=None, errors='replace') -> str:
        return self.body.decode(encoding or 'utf-8', errors)

    async def aiter_bytes(self, chunk_size: int = 65536):
        for i in range(0, len(self.body), chunk_size):
            self.chunks_served += 1
            yield self.body[i:i + chunk_size]

    async def aclose(self) -> None:
        self.closed = True


class StubTransport:
    """Serves byte ranges out of an in-memory payload and records every call."""

    def __init__(self, payload: bytes = PAYLOAD, head_headers: Optional[Dict[str, str]] = None, honor_range: bool = True):
        self.payload = payload
        self.head_headers = head_headers
        self.honor_range = honor_range
        self.calls: List[tuple] = []
        self.responses: List[StubResponse] = []

    async def __call__(self, url, *, method='GET', headers=None):
        self.calls.append((url, method, dict(headers or {})))
        if method == 'HEAD':
            response = StubResponse(b'', 200, self.head_headers if self.head_headers is not None else {
                'Content-Length': str(len(self.payload)),
                'Accept-Ranges': 'bytes',
            })
        elif not self.honor_range or not headers or 'Range' not in headers:
            response = StubResponse(self.payload, 200, {'Content-Length': str(len(self.payload))})
        else:
            start, end = headers['Range'].removeprefix('bytes=').split('-')
            start, end = int(start), min(int(end), len(self.payload) - 1)
            response = StubResponse(self.payload[start:end + 1], 206, {
                'Content-Range': f'bytes {start}-{end}/{len(self.payload)}',
            })
        self.responses.append(response)
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def view(transport):
    return URLFile(URL, len(PAYLOAD), transport=transport)
