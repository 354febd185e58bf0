from __future__ import annotations

import io
from typing import BinaryIO, Optional

from .constants import SKIP_CHUNK_SIZE
from .errors import NonSeekableIO, UnexpectedEOF


def read_fully(stream: BinaryIO, n: int) -> bytes:
    """Read ``n`` bytes, looping over short reads; fewer only at end of stream."""
    data = stream.read(n) or b""
    if len(data) >= n or not data:
        return data
    parts = [data]
    remaining = n - len(data)
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def tell_or_none(stream: BinaryIO) -> Optional[int]:
    try:
        return stream.tell()
    except (AttributeError, OSError):
        return None


def is_seekable(stream: BinaryIO) -> bool:
    probe = getattr(stream, "seekable", None)
    if probe is None:
        return hasattr(stream, "seek")
    try:
        return bool(probe())
    except OSError:
        return False


def seek_to(stream: BinaryIO, offset: Optional[int]) -> None:
    """Reposition ``stream`` to an absolute offset or raise NonSeekableIO."""
    if offset is None or not is_seekable(stream):
        raise NonSeekableIO("Stream does not support repositioning")
    try:
        stream.seek(offset, io.SEEK_SET)
    except (AttributeError, OSError) as exc:
        raise NonSeekableIO(f"Stream does not support repositioning: {exc}") from exc


def skip_bytes(stream: BinaryIO, count: int, *, allow_eof: bool = False) -> int:
    """Discard ``count`` bytes from ``stream`` and return how many were skipped.

    Seeks forward when the stream allows it. Otherwise the bytes are read and
    dropped in chunks of at most SKIP_CHUNK_SIZE. Running out of data raises
    UnexpectedEOF unless ``allow_eof`` is set.

    Files and BytesIO seek past their end without complaint and decompressing
    wrappers stop silently at end of data, so a checked seek lands one byte
    short and reads the last skipped byte to prove it exists.
    """
    if count <= 0:
        return 0
    if is_seekable(stream):
        try:
            stream.seek(count if allow_eof else count - 1, io.SEEK_CUR)
        except (AttributeError, OSError):
            pass  # fall through to read-and-discard
        else:
            if allow_eof or stream.read(1):
                return count
            raise UnexpectedEOF(f"Stream ended before {count} bytes could be skipped")
    remaining = count
    while remaining > 0:
        data = stream.read(min(SKIP_CHUNK_SIZE, remaining))
        if not data:
            if allow_eof:
                break
            raise UnexpectedEOF(f"Stream ended with {remaining} of {count} bytes left to skip")
        remaining -= len(data)
    return count - remaining
