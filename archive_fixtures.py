from __future__ import annotations

import io
from typing import Iterable

from tarstream.constants import ZERO_BLOCK, padding_for
from tarstream.header import TarHeader


def make_member(
    name: str,
    data: bytes = b"",
    *,
    typeflag: str = "0",
    mode: int = 0o644,
    prefix: str = "",
    mtime: int = 0,
) -> bytes:
    header = TarHeader(name=name, mode=mode, size=len(data), prefix=prefix, typeflag=typeflag, mtime=mtime)
    return header.to_bytes() + data + b"\x00" * padding_for(len(data))


def make_dir(name: str, *, mode: int = 0o755, mtime: int = 0) -> bytes:
    return make_member(name, typeflag="5", mode=mode, mtime=mtime)


def build_archive(members: Iterable[bytes], *, end_blocks: int = 1) -> bytes:
    return b"".join(members) + ZERO_BLOCK * end_blocks


class NonSeekableStream(io.RawIOBase):
    """In-memory stream that refuses seek/tell, like a pipe."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    @property
    def consumed(self) -> int:
        return self._buf.tell()

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, b) -> int:
        data = self._buf.read(len(b))
        b[: len(data)] = data
        return len(data)


class TrickleStream(NonSeekableStream):
    """Returns at most a few bytes per read call."""

    chunk = 7

    def readinto(self, b) -> int:
        view = memoryview(b)[: self.chunk]
        return super().readinto(view)
