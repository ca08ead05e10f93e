import io
import logging
import weakref
from typing import List, Optional, Union

log = logging.getLogger(__name__)

DEFAULT_PEEK_CHUNK = 8 * 1024


class PeekError(Exception):
    pass


class PeekActiveError(PeekError):
    pass


class RestoreError(PeekError):
    pass


def binary(data):
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def read_up_to(stream, size: int) -> bytes:
    """Read until `size` bytes were collected or the stream hit EOF."""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class PeekCursor:
    """Read-only view of the bytes ahead of a wrapper's read position.

    Offsets are relative to the position the wrapper was at when the cursor
    was created. Reading or seeking here never changes what the next
    ordinary read on the wrapper returns. Only one cursor per wrapper can be
    alive at a time, and the wrapper is locked until the cursor is closed.
    """

    def __init__(self, owner: "PeekRead"):
        self._owner = owner
        self.pos = 0
        self.closed = False

    def __enter__(self) -> "PeekCursor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        self.close()

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        line = self.readline()
        if not line:
            raise StopIteration
        return line

    def _check_open(self):
        if self.closed:
            raise ValueError("I/O operation on closed peek cursor")

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._owner._release(self)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def read(self, size: Optional[int] = -1) -> bytes:
        self._check_open()
        if size is None:
            size = -1
        data = self._owner._peek_read(self, size)
        self.pos += len(data)
        return data

    read1 = read

    def readinto(self, b) -> int:
        view = memoryview(b).cast("B")
        data = self.read(len(view))
        view[: len(data)] = data
        return len(data)

    def readline(self, size: Optional[int] = -1) -> bytes:
        self._check_open()
        if size is None:
            size = -1
        line = bytearray()
        while size < 0 or len(line) < size:
            chunk = self._owner._peek_fill(self, 1)
            if not chunk:
                break
            if size >= 0:
                chunk = chunk[: size - len(line)]
            nl = chunk.find(b"\n")
            if nl >= 0:
                chunk = chunk[: nl + 1]
            self.read(len(chunk))
            line += chunk
            if nl >= 0:
                break
        return bytes(line)

    def readlines(self, hint: int = -1) -> List[bytes]:
        lines = []
        total = 0
        for line in self:
            lines.append(line)
            total += len(line)
            if 0 < hint <= total:
                break
        return lines

    def peek(self, size: int = 0) -> bytes:
        """Return upcoming bytes without moving the cursor, like io.BufferedReader.peek."""
        self._check_open()
        return self._owner._peek_fill(self, max(size, 1))

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_open()
        if whence not in (io.SEEK_SET, io.SEEK_CUR, io.SEEK_END):
            raise ValueError("invalid whence (%r, should be 0, 1 or 2)" % whence)
        self.pos = self._owner._peek_seek(self, offset, whence)
        return self.pos

    def tell(self) -> int:
        self._check_open()
        return self.pos


class PeekRead:
    """Base for stream wrappers that can look ahead with `peek()`.

    Subclasses must implement the `_peek_read`, `_peek_fill` and `_peek_seek`
    hooks used by PeekCursor, plus `read` and `readline` on the wrapper
    itself. `_begin_peek` and `_end_peek` are optional.
    """

    def __init__(self, fileobj):
        self.fileobj = fileobj
        self._cursor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        line = self.readline()
        if not line:
            raise StopIteration
        return line

    def _check_idle(self):
        if self._cursor is not None and self._cursor() is not None:
            raise PeekActiveError("A peek cursor is still open on this stream")

    def _check(self):
        self._check_idle()

    def peek(self) -> PeekCursor:
        self._check()
        cursor = PeekCursor(self)
        try:
            self._begin_peek(cursor)
        except BaseException:
            cursor.closed = True
            raise
        self._cursor = weakref.ref(cursor)
        log.debug("Peek started on %r", self.fileobj)
        return cursor

    def starts_with(self, expected: Union[bytes, str]) -> bool:
        expected = binary(expected)
        if not expected:
            self._check()
            return True
        with self.peek() as cursor:
            return read_up_to(cursor, len(expected)) == expected

    def _release(self, cursor: PeekCursor):
        try:
            self._end_peek(cursor)
        finally:
            self._cursor = None
            log.debug("Peek ended on %r after %d bytes", self.fileobj, cursor.pos)

    def _begin_peek(self, cursor: PeekCursor):
        pass

    def _end_peek(self, cursor: PeekCursor):
        pass

    def _peek_read(self, cursor: PeekCursor, size: int) -> bytes:
        raise NotImplementedError

    def _peek_fill(self, cursor: PeekCursor, size: int) -> bytes:
        raise NotImplementedError

    def _peek_seek(self, cursor: PeekCursor, offset: int, whence: int) -> int:
        raise NotImplementedError

    def readinto(self, b) -> int:
        view = memoryview(b).cast("B")
        data = self.read(len(view))
        view[: len(data)] = data
        return len(data)

    def readlines(self, hint: int = -1) -> List[bytes]:
        lines = []
        total = 0
        for line in self:
            lines.append(line)
            total += len(line)
            if 0 < hint <= total:
                break
        return lines

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    @property
    def closed(self) -> bool:
        return getattr(self.fileobj, "closed", False)

    def close(self):
        self._check_idle()
        if hasattr(self.fileobj, "close"):
            self.fileobj.close()
