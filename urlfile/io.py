import asyncio
from io import RawIOBase, SEEK_SET, SEEK_CUR, SEEK_END

from .file import URLFile

class RemoteFileObject(RawIOBase):
    """
    Synchronous, seekable file object over a ``URLFile`` view, for consumers
    such as ``zipfile`` that expect a plain binary file.
    Every read issues one range request for exactly the bytes asked for;
    nothing is kept between reads. Not usable from inside a running event loop.
    """

    def __init__(self, view: URLFile, close_transport: bool = False):
        self.view = view
        self.close_transport = close_transport
        self._size = view.size
        self._pos = 0

    def readable(self) -> bool: return True
    def seekable(self) -> bool: return True

    def __len__(self) -> int:
        """Return file size for compatibility with some libraries."""
        return self._size

    def seek(self, offset: int, whence: int = SEEK_SET) -> int:
        self._checkClosed()
        if whence == SEEK_SET:
            self._pos = offset
        elif whence == SEEK_CUR:
            self._pos += offset
        elif whence == SEEK_END:
            self._pos = self._size + offset
        else:
            raise ValueError(f"Invalid whence value: {whence}. Must be SEEK_SET, SEEK_CUR, or SEEK_END.")

        self._pos = max(0, min(self._pos, self._size))
        return self._pos

    def tell(self) -> int:
        self._checkClosed()
        return self._pos

    def readinto(self, buffer) -> int:
        self._checkClosed()
        view = memoryview(buffer).cast("B")
        if len(view) == 0 or self._pos >= self._size:
            return 0

        window = self.view.slice(self._pos, self._pos + len(view))
        data = asyncio.run(window.read_bytes())[:window.size]
        n = len(data)
        view[:n] = data
        self._pos += n
        return n

    def readall(self) -> bytes:
        self._checkClosed()
        if self._pos >= self._size:
            return b""
        data = asyncio.run(self.view.slice(self._pos).read_bytes())[:self._size - self._pos]
        self._pos += len(data)
        return data

    def close(self):
        if not self.closed and self.close_transport:
            close = getattr(self.view.transport, "close", None)
            if close is not None:
                close()
        super().close()

    def __repr__(self) -> str:
        return f"RemoteFileObject(url={self.view.url!r}, size={self._size}, pos={self._pos})"
