from __future__ import annotations

import re
import struct
from dataclasses import dataclass, field, replace
from typing import Any, BinaryIO, Dict, Mapping, Optional, Tuple

from .constants import (
    BLOCK_SIZE,
    CHECKSUM_OFFSET,
    CHECKSUM_SIZE,
    DEFAULT_OWNER,
    DEFAULT_VERSION,
    MAGIC,
    NAME_SIZE,
    PREFIX_SIZE,
    TYPE_REGULAR,
    ZERO_BLOCK,
)
from .errors import BadChecksum, MalformedHeader, TooLongFileName, UnexpectedEOF
from .streamutil import read_fully


# USTAR header block (512 bytes)
#  name[100] mode[8] uid[8] gid[8] size[12] mtime[12] chksum[8] typeflag[1]
#  linkname[100] magic[6] version[2] uname[32] gname[32] devmajor[8]
#  devminor[8] prefix[155] pad[12]
_HEADER_STRUCT = struct.Struct("100s8s8s8s12s12s8s1s100s6s2s32s32s8s8s155s12x")

_FIELD_ORDER = (
    "name",
    "mode",
    "uid",
    "gid",
    "size",
    "mtime",
    "checksum",
    "typeflag",
    "linkname",
    "magic",
    "version",
    "uname",
    "gname",
    "devmajor",
    "devminor",
    "prefix",
)

# Octal digits written for each numeric field (the rest of the field is NUL).
_OCTAL_DIGITS = {
    "mode": 7,
    "uid": 7,
    "gid": 7,
    "size": 11,
    "mtime": 11,
    "version": 2,
    "devmajor": 7,
    "devminor": 7,
}

_TEXT_WIDTHS = {
    "name": NAME_SIZE,
    "typeflag": 1,
    "linkname": 100,
    "magic": 6,
    "uname": 32,
    "gname": 32,
    "prefix": PREFIX_SIZE,
}

_REQUIRED = ("name", "size", "prefix", "mode")

_OCTAL_RE = re.compile(rb"[0-7]*")


def calculate_checksum(block: bytes) -> int:
    """Unsigned byte sum of ``block`` with the checksum field counted as eight spaces."""
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"header block must be {BLOCK_SIZE} bytes, got {len(block)}")
    end = CHECKSUM_OFFSET + CHECKSUM_SIZE
    return sum(block[:CHECKSUM_OFFSET]) + CHECKSUM_SIZE * 0x20 + sum(block[end:])


def parse_octal(field_name: str, raw: bytes, strict: bool = False) -> int:
    """Parse a NUL/space padded octal field.

    Permissive parsing keeps the leading run of octal digits and maps an
    empty field to 0. Strict parsing rejects any other character.
    """
    digits = raw.strip(b"\x00 ")
    if strict:
        if not _OCTAL_RE.fullmatch(digits):
            raise MalformedHeader(field_name, raw)
    else:
        digits = _OCTAL_RE.match(digits).group()
    return int(digits, 8) if digits else 0


def _decode_text(raw: bytes) -> str:
    return raw.rstrip(b"\x00").decode("utf-8", "surrogateescape")


def _encode_text(field_name: str, value: str, width: int) -> bytes:
    raw = value.encode("utf-8", "surrogateescape")
    if len(raw) > width:
        if field_name in ("name", "prefix"):
            raise TooLongFileName(f"{field_name} is {len(raw)} bytes; at most {width} fit: {value!r}")
        raise ValueError(f"{field_name} is {len(raw)} bytes; at most {width} fit")
    return raw


def _encode_octal(field_name: str, value: int, digits: int) -> bytes:
    if value < 0:
        raise ValueError(f"{field_name} must be non-negative, got {value}")
    out = b"%0*o" % (digits, value)
    if len(out) > digits:
        raise ValueError(f"{field_name} value {value} does not fit in {digits} octal digits")
    return out


def split_name(path: str) -> Tuple[str, str]:
    """Split ``path`` into ``(prefix, name)`` so each part fits its header field.

    Paths that already fit the name field come back with an empty prefix.
    """
    if len(path.encode("utf-8", "surrogateescape")) <= NAME_SIZE:
        return "", path
    parts = path.split("/")
    for i in range(len(parts) - 1, 0, -1):
        prefix = "/".join(parts[:i])
        name = "/".join(parts[i:])
        if not name:
            continue
        if (
            len(prefix.encode("utf-8", "surrogateescape")) <= PREFIX_SIZE
            and len(name.encode("utf-8", "surrogateescape")) <= NAME_SIZE
        ):
            return prefix, name
    raise TooLongFileName(f"Path cannot be split into a USTAR prefix and name: {path!r}")


@dataclass(frozen=True)
class TarHeader:
    """One USTAR header block.

    ``checksum`` is None on a header built in code until update_checksum()
    runs; to_bytes() always writes a freshly computed checksum. ``empty``
    marks the all-zero end-of-archive block and is ignored by equality.
    """

    name: str
    mode: int
    size: int
    prefix: str
    uid: int = 0
    gid: int = 0
    mtime: int = 0
    checksum: Optional[int] = None
    typeflag: str = TYPE_REGULAR
    linkname: str = ""
    magic: str = MAGIC
    version: int = DEFAULT_VERSION
    uname: str = DEFAULT_OWNER
    gname: str = DEFAULT_OWNER
    devmajor: int = 0
    devminor: int = 0
    empty: bool = field(default=False, compare=False)

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"size must be non-negative, got {self.size}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "TarHeader":
        missing = [k for k in _REQUIRED if values.get(k) is None]
        if missing:
            raise ValueError("name, size, prefix and mode are required; missing: " + ", ".join(missing))
        known = set(_FIELD_ORDER) | {"empty"}
        unknown = sorted(k for k in values if k not in known)
        if unknown:
            raise ValueError("unknown header fields: " + ", ".join(unknown))
        return cls(**{k: v for k, v in values.items() if v is not None})

    # -------- decoding --------

    @classmethod
    def from_stream(cls, stream: BinaryIO, *, strict: bool = False) -> Optional["TarHeader"]:
        """Read one header block from ``stream``.

        Returns None when the stream is already exhausted. A partial block
        raises UnexpectedEOF.
        """
        block = read_fully(stream, BLOCK_SIZE)
        if not block:
            return None
        if len(block) < BLOCK_SIZE:
            raise UnexpectedEOF(f"Stream ended inside a header block ({len(block)} of {BLOCK_SIZE} bytes)")
        return cls.from_bytes(block, strict=strict)

    @classmethod
    def from_bytes(cls, block: bytes, *, strict: bool = False) -> "TarHeader":
        if len(block) != BLOCK_SIZE:
            raise ValueError(f"header block must be {BLOCK_SIZE} bytes, got {len(block)}")
        if block == ZERO_BLOCK:
            return cls(**_unpack_fields(block, strict=False), empty=True)
        values = _unpack_fields(block, strict=strict)
        if strict:
            actual = calculate_checksum(block)
            if values["checksum"] != actual:
                raise BadChecksum(values["checksum"], actual)
        return cls(**values)

    # -------- encoding --------

    def update_checksum(self) -> "TarHeader":
        return replace(self, checksum=calculate_checksum(self._pack(b" " * CHECKSUM_SIZE)))

    def to_bytes(self) -> bytes:
        checksum = calculate_checksum(self._pack(b" " * CHECKSUM_SIZE))
        return self._pack(b"%06o\x00 " % checksum)

    def _pack(self, checksum_field: bytes) -> bytes:
        values = []
        for name in _FIELD_ORDER:
            if name == "checksum":
                values.append(checksum_field)
            elif name in _OCTAL_DIGITS:
                values.append(_encode_octal(name, getattr(self, name), _OCTAL_DIGITS[name]))
            else:
                values.append(_encode_text(name, getattr(self, name), _TEXT_WIDTHS[name]))
        return _HEADER_STRUCT.pack(*values)


def _unpack_fields(block: bytes, *, strict: bool) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name, raw in zip(_FIELD_ORDER, _HEADER_STRUCT.unpack(block)):
        if name == "checksum" or name in _OCTAL_DIGITS:
            values[name] = parse_octal(name, raw, strict=strict)
        else:
            values[name] = _decode_text(raw)
    return values
