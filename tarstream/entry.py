from __future__ import annotations

import posixpath
from typing import BinaryIO, Iterator, Optional

from .constants import SKIP_CHUNK_SIZE, TYPE_DIRECTORY, TYPE_REGULAR
from .errors import ClosedIO
from .header import TarHeader
from .streamutil import read_fully, seek_to, tell_or_none


class TarEntry:
    """Read cursor over the data of a single archive member.

    An entry does not own the stream it reads from; the TarReader that
    produced it does. Reads are bounded to ``header.size`` bytes. Once the
    reader advances to the next header it discards whatever the caller left
    unread and closes the entry, so entries must be consumed before the next
    iteration step. Reading the shared stream through any other handle while
    an entry is live moves the stream under the entry and is not detected.
    """

    def __init__(self, header: TarHeader, stream: BinaryIO):
        self.header = header
        self._stream = stream
        self._orig_pos: Optional[int] = tell_or_none(stream)
        self._read = 0
        self._closed = False

    def __repr__(self) -> str:
        return f"TarEntry({self.full_name!r}, typeflag={self.header.typeflag!r}, size={self.header.size})"

    def _check_closed(self) -> None:
        if self._closed:
            raise ClosedIO(f"closed {type(self).__name__}: {self.full_name}")

    # -------- header shortcuts --------

    @property
    def name(self) -> str:
        return self.header.name

    @property
    def size(self) -> int:
        return self.header.size

    @property
    def mode(self) -> int:
        return self.header.mode

    @property
    def mtime(self) -> int:
        return self.header.mtime

    @property
    def typeflag(self) -> str:
        return self.header.typeflag

    @property
    def full_name(self) -> str:
        if self.header.prefix != "":
            return posixpath.join(self.header.prefix, self.header.name)
        return self.header.name

    def is_directory(self) -> bool:
        return self.header.typeflag == TYPE_DIRECTORY

    def is_file(self) -> bool:
        return self.header.typeflag == TYPE_REGULAR

    # -------- cursor --------

    @property
    def bytes_read(self) -> int:
        return self._read

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def eof(self) -> bool:
        self._check_closed()
        return self._read >= self.header.size

    def tell(self) -> int:
        self._check_closed()
        return self._read

    def read(self, n: Optional[int] = None) -> bytes:
        """Return up to ``n`` bytes of entry data (all remaining when None).

        Never reads past the entry's declared size; returns b"" at the end.
        """
        self._check_closed()
        left = self.header.size - self._read
        if left <= 0:
            return b""
        if n is None or n < 0 or n > left:
            n = left
        data = read_fully(self._stream, n)
        self._read += len(data)
        return data

    def read_byte(self) -> bytes:
        return self.read(1)

    def rewind(self) -> None:
        """Move back to the first data byte of this entry."""
        self._check_closed()
        seek_to(self._stream, self._orig_pos)
        self._read = 0

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(SKIP_CHUNK_SIZE)
            if not chunk:
                return
            yield chunk
