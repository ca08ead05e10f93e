import io
import logging
from typing import Optional

from peekread.peeker import PeekCursor, PeekRead

log = logging.getLogger(__name__)

MIN_READ_TO_END = 32


class BufPeekReader(PeekRead):
    """Peekable wrapper for forward-only streams (pipes, sockets, stdin).

    Bytes read through a peek cursor are kept in `buf` and handed out again
    by the next ordinary reads, so the wrapped stream never has to go back.
    The buffer holds everything peeked at but not yet read, so a deep peek
    costs as much memory as it looked ahead.

    `min_read_size` makes every refill of the buffer read at least that many
    bytes. It is 0 by default because reading more than asked for can block
    on interactive sources.
    """

    def __init__(self, fileobj, min_read_size: int = 0):
        super().__init__(fileobj)
        self.buf = bytearray()
        self.min_read_size = min_read_size

    @property
    def buffer(self) -> bytes:
        return bytes(self.buf)

    def _request_buffer(self, nbytes: int):
        # Grow buf to at least nbytes, fewer only if the stream ends first.
        needed = nbytes - len(self.buf)
        if needed <= 0:
            return
        read_size = max(needed, self.min_read_size)
        while needed > 0:
            contents = self.fileobj.read(read_size)
            if not contents:
                break
            self.buf += contents
            needed -= len(contents)
            read_size -= len(contents)
        log.debug("Replay buffer grown to %d bytes", len(self.buf))

    def _request_all(self):
        size = len(self.buf)
        while True:
            size = max(size * 2, MIN_READ_TO_END)
            self._request_buffer(size)
            if len(self.buf) < size:
                break

    def _peek_read(self, cursor: PeekCursor, size: int) -> bytes:
        if size < 0:
            self._request_all()
            return bytes(self.buf[cursor.pos :])
        self._request_buffer(cursor.pos + size)
        return bytes(self.buf[cursor.pos : cursor.pos + size])

    def _peek_fill(self, cursor: PeekCursor, size: int) -> bytes:
        if len(self.buf) <= cursor.pos:
            self._request_buffer(cursor.pos + size)
        return bytes(self.buf[cursor.pos :])

    def _peek_seek(self, cursor: PeekCursor, offset: int, whence: int) -> int:
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = cursor.pos + offset
        else:
            self._request_all()
            target = len(self.buf) + offset

        if target < 0:
            raise ValueError("negative seek position %d" % target)
        return target

    def unread(self, data: bytes):
        """Push `data` back in front of the stream; the next read returns it first."""
        self._check()
        self.buf[0:0] = data

    def read(self, size: Optional[int] = -1) -> bytes:
        self._check()
        if size is None or size < 0:
            contents = bytes(self.buf) + self.fileobj.read()
            self.buf.clear()
            return contents

        contents = bytes(self.buf[:size])
        if len(contents) < size:
            contents += self.fileobj.read(size - len(contents))
        del self.buf[:size]
        return contents

    def read1(self, size: Optional[int] = -1) -> bytes:
        self._check()
        if self.buf:
            if size is None or size < 0:
                size = len(self.buf)
            contents = bytes(self.buf[:size])
            del self.buf[:size]
            return contents
        if size is None or size < 0:
            size = io.DEFAULT_BUFFER_SIZE
        return self.fileobj.read(size)

    def readline(self, size: Optional[int] = -1) -> bytes:
        self._check()
        if size is None:
            size = -1
        source_readline = getattr(self.fileobj, "readline", None)
        if source_readline is None:
            self._buffer_line(size)
        limit = len(self.buf) if size < 0 else min(size, len(self.buf))
        nl = self.buf.find(b"\n", 0, limit)
        if nl >= 0:
            line = bytes(self.buf[: nl + 1])
        else:
            line = bytes(self.buf[:limit])
            if source_readline is not None:
                if size < 0:
                    line += source_readline()
                elif len(line) < size:
                    line += source_readline(size - len(line))
        del self.buf[: min(len(line), len(self.buf))]
        return line

    def _buffer_line(self, size: int):
        # For sources without readline: buffer up to a newline, `size` bytes or EOF.
        start = 0
        while self.buf.find(b"\n", start) < 0:
            if 0 <= size <= len(self.buf):
                return
            start = len(self.buf)
            self._request_buffer(start + 1)
            if len(self.buf) == start:
                return

    def seekable(self) -> bool:
        return False
