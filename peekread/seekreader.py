import io
import logging
from typing import Optional

from peekread.peeker import DEFAULT_PEEK_CHUNK, PeekCursor, PeekRead, RestoreError

log = logging.getLogger(__name__)


class SeekPeekReader(PeekRead):
    """Peekable wrapper for seekable streams.

    A peek remembers the stream offset and seeks back to it when the cursor
    is closed. If that seek fails the reader is unusable from then on: every
    operation raises RestoreError, since the read position is unknown.
    """

    def __init__(self, fileobj):
        super().__init__(fileobj)
        self._start_pos: Optional[int] = None
        self._restore_error: Optional[BaseException] = None

    def _check(self):
        if self._restore_error is not None:
            raise RestoreError(
                "Could not restore stream position after peek"
            ) from self._restore_error
        super()._check()

    @property
    def poisoned(self) -> bool:
        return self._restore_error is not None

    def _begin_peek(self, cursor: PeekCursor):
        self._start_pos = self.fileobj.tell()

    def _end_peek(self, cursor: PeekCursor):
        start_pos, self._start_pos = self._start_pos, None
        if start_pos is None:
            return
        while True:
            try:
                self.fileobj.seek(start_pos)
            except InterruptedError:
                continue
            except Exception as e:
                log.error("Failed to seek back to offset %d after peek: %s", start_pos, e)
                self._restore_error = e
            break

    def _peek_read(self, cursor: PeekCursor, size: int) -> bytes:
        if size < 0:
            return self.fileobj.read()
        return self.fileobj.read(size)

    def _peek_fill(self, cursor: PeekCursor, size: int) -> bytes:
        here = self.fileobj.tell()
        data = self.fileobj.read(max(size, DEFAULT_PEEK_CHUNK))
        self.fileobj.seek(here)
        return data

    def _peek_seek(self, cursor: PeekCursor, offset: int, whence: int) -> int:
        if whence == io.SEEK_SET:
            target = self._start_pos + offset
        elif whence == io.SEEK_CUR:
            if offset == 0:
                return cursor.pos
            target = self._start_pos + cursor.pos + offset
        else:
            target = self.fileobj.seek(0, io.SEEK_END) + offset

        if target < 0:
            # Leave the source where the cursor is.
            self.fileobj.seek(self._start_pos + cursor.pos)
            raise ValueError("negative seek position %d" % target)
        return self.fileobj.seek(target) - self._start_pos

    def read(self, size: Optional[int] = -1) -> bytes:
        self._check()
        if size is None or size < 0:
            return self.fileobj.read()
        return self.fileobj.read(size)

    read1 = read

    def readline(self, size: Optional[int] = -1) -> bytes:
        self._check()
        if size is None:
            size = -1
        return self.fileobj.readline(size)

    def seekable(self) -> bool:
        return True

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check()
        return self.fileobj.seek(offset, whence)

    def tell(self) -> int:
        self._check()
        return self.fileobj.tell()
