from __future__ import annotations

import bz2
import gzip
import lzma
import os
import sys
from typing import BinaryIO, List, Optional, Union

_HAS_ZSTD = False
_zstd_mod = None
try:  # zstd support is optional (pip install tarstream[zstd])
    import zstandard as _zstd_mod  # type: ignore
    _HAS_ZSTD = True
except ImportError:
    _zstd_mod = None
    _HAS_ZSTD = False


COMPRESSIONS = ("none", "gzip", "bz2", "xz", "zstd")

_SUFFIXES = (
    (".tar.gz", "gzip"),
    (".tar.bz2", "bz2"),
    (".tar.xz", "xz"),
    (".tar.zst", "zstd"),
    (".tgz", "gzip"),
    (".tbz2", "bz2"),
    (".tbz", "bz2"),
    (".txz", "xz"),
    (".tzst", "zstd"),
    (".tar", "none"),
)


def detect_compression(name: str) -> str:
    lower = name.lower()
    for suffix, compression in _SUFFIXES:
        if lower.endswith(suffix):
            return compression
    return "none"


class ArchiveSource:
    """Plain byte stream for an archive given as a path, ``"-"`` or a file object.

    ``stream`` is what a TarReader consumes. Compression is taken from
    ``compression`` or, for paths, from the file suffix. File objects passed
    in and stdin are never closed by close().
    """

    def __init__(self, source: Union[str, "os.PathLike[str]", BinaryIO], compression: Optional[str] = None):
        self._handles: List[BinaryIO] = []
        if isinstance(source, (str, os.PathLike)):
            path = os.fspath(source)
            if path == "-":
                raw = sys.stdin.buffer
            else:
                raw = open(path, "rb")
                self._handles.append(raw)
            if compression is None:
                compression = "none" if path == "-" else detect_compression(path)
        else:
            raw = source
        compression = compression or "none"
        if compression not in COMPRESSIONS:
            self.close()
            raise ValueError(f"unsupported compression {compression!r}; choose from {', '.join(COMPRESSIONS)}")
        self.compression = compression
        try:
            self.stream: BinaryIO = self._wrap(raw, compression)
        except (OSError, RuntimeError):
            self.close()
            raise

    def _wrap(self, raw: BinaryIO, compression: str) -> BinaryIO:
        if compression == "none":
            return raw
        if compression == "gzip":
            wrapped = gzip.GzipFile(fileobj=raw, mode="rb")
        elif compression == "bz2":
            wrapped = bz2.BZ2File(raw, mode="rb")
        elif compression == "xz":
            wrapped = lzma.LZMAFile(raw, mode="rb")
        else:
            if not (_HAS_ZSTD and _zstd_mod is not None):
                raise RuntimeError("zstd compression selected but the zstandard module is not available")
            wrapped = _zstd_mod.ZstdDecompressor().stream_reader(raw, closefd=False)
        self._handles.append(wrapped)
        return wrapped

    def close(self):
        while self._handles:
            self._handles.pop().close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
