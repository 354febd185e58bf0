from __future__ import annotations

import os
from typing import BinaryIO, Callable, Iterator, Optional, TypeVar, Union

from .constants import padding_for
from .entry import TarEntry
from .errors import ClosedIO
from .header import TarHeader
from .streamutil import seek_to, skip_bytes, tell_or_none


Source = Union[str, "os.PathLike[str]", BinaryIO]
T = TypeVar("T")


class TarReader:
    """Forward-only USTAR reader over a byte stream.

    Iterating yields one TarEntry per member. When the caller asks for the
    next entry the reader discards whatever was left unread of the current
    one plus its block padding, so callers may read all, part or none of
    each entry. Iteration stops at the first all-zero header block or when
    the stream runs out.

    With ``strict=True`` header checksums and numeric fields are validated.
    """

    def __init__(self, source: Source, *, strict: bool = False):
        if isinstance(source, (str, os.PathLike)):
            self.f: Optional[BinaryIO] = open(source, "rb")
            self._owns_stream = True
        else:
            self.f = source
            self._owns_stream = False
        self.strict = strict
        self._init_pos = tell_or_none(self.f)
        self._entry: Optional[TarEntry] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __iter__(self) -> Iterator[TarEntry]:
        return self.each()

    def close(self):
        if self._entry is not None:
            self._entry.close()
            self._entry = None
        if self.f is not None:
            if self._owns_stream:
                self.f.close()
            self.f = None

    def _stream(self) -> BinaryIO:
        if self.f is None:
            raise ClosedIO("Archive reader is closed")
        return self.f

    def each(self) -> Iterator[TarEntry]:
        f = self._stream()
        while True:
            header = TarHeader.from_stream(f, strict=self.strict)
            if header is None or header.empty:
                return
            entry = TarEntry(header, f)
            self._entry = entry
            try:
                yield entry
                if self.f is None:
                    raise ClosedIO("Archive reader was closed during iteration")
                skip_bytes(f, header.size - entry.bytes_read)
                # a stream ending inside the padding simply ends the archive
                skip_bytes(f, padding_for(header.size), allow_eof=True)
            finally:
                entry.close()
                self._entry = None

    def each_entry(self, func: Callable[[TarEntry], object]) -> None:
        for entry in self.each():
            func(entry)

    def rewind(self):
        """Reposition the stream at the first header."""
        seek_to(self._stream(), self._init_pos)


def open_archive(source: Source, *, strict: bool = False) -> TarReader:
    """Open a reader; the caller is responsible for calling close()."""
    return TarReader(source, strict=strict)


def with_archive(source: Source, func: Callable[[TarReader], T], *, strict: bool = False) -> T:
    """Call ``func`` with an open reader and close it however ``func`` exits."""
    reader = open_archive(source, strict=strict)
    try:
        return func(reader)
    finally:
        reader.close()
