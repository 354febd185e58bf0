"""
tarstream: forward-only streaming reader for USTAR tar archives.

Features:

- TarHeader: fixed 512-byte header codec (octal fields, checksum, prefix/name split).
- TarEntry: bounded read cursor over one member's data inside a shared stream.
- TarReader: single-pass iteration that always resynchronizes to the next header,
  seeking when possible and reading in chunks when the stream cannot seek.
- Optional strict mode validating checksums and numeric fields.
- Front ends to decompress (.tar.gz/.bz2/.xz/.zst), extract, and a CLI.

Long-name/pax extensions, sparse files and archive writing are not supported.
"""

from .errors import (
    TarError,
    NonSeekableIO,
    ClosedIO,
    UnexpectedEOF,
    BadChecksum,
    MalformedHeader,
    TooLongFileName,
    UnsafePathError,
)
from .header import TarHeader, calculate_checksum, split_name
from .entry import TarEntry
from .reader import TarReader, open_archive, with_archive

__version__ = "0.1"

__all__ = [
    "TarError",
    "NonSeekableIO",
    "ClosedIO",
    "UnexpectedEOF",
    "BadChecksum",
    "MalformedHeader",
    "TooLongFileName",
    "UnsafePathError",
    "TarHeader",
    "calculate_checksum",
    "split_name",
    "TarEntry",
    "TarReader",
    "open_archive",
    "with_archive",
]
