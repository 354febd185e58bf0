from __future__ import annotations

import os
import sys
from typing import List, Optional, Tuple

from .entry import TarEntry
from .errors import UnexpectedEOF, UnsafePathError
from .reader import TarReader


def safe_member_path(full_name: str) -> str:
    """Normalize a member name to a relative forward-slash path.

    Rules:
    - Convert backslashes to slashes
    - Drop empty and '.' segments
    - Reject absolute paths and '..' segments

    Returns "" for names that normalize to nothing (e.g. "./").
    """
    p = full_name.replace("\\", "/")
    drive = len(p) > 1 and p[0].isalpha() and p[1] == ":" and (len(p) == 2 or p[2] == "/")
    if p.startswith("/") or drive:
        raise UnsafePathError(f"Absolute member path not allowed: {full_name!r}")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    if ".." in parts:
        raise UnsafePathError(f"Member path may not contain '..': {full_name!r}")
    return "/".join(parts)


def _safe_chmod(path: str, mode: Optional[int]) -> None:
    """Best-effort chmod; failures become a warning on stderr."""
    if mode is None:
        return
    try:
        os.chmod(path, mode & 0o7777)
    except OSError as exc:
        print(f"Warning: failed to set mode on {path}: {exc}", file=sys.stderr)


def _safe_utime(path: str, mtime: Optional[int]) -> None:
    if mtime is None:
        return
    try:
        os.utime(path, (mtime, mtime))
    except OSError as exc:
        print(f"Warning: failed to set timestamps on {path}: {exc}", file=sys.stderr)


def extract_entry(entry: TarEntry, outdir: str = ".") -> Optional[str]:
    """Materialize one entry below ``outdir`` and return the path written.

    Directories are only created here; their mode and mtime are applied by
    extract_all once the whole archive has been written. Entries that are
    neither directories nor regular files are skipped and None is returned.
    """
    rel = safe_member_path(entry.full_name)
    if not rel:
        return None
    dst = os.path.join(outdir or ".", *rel.split("/"))
    if entry.is_directory():
        os.makedirs(dst, exist_ok=True)
        return dst
    if entry.is_file():
        os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        with open(dst, "wb") as wf:
            for chunk in entry:
                wf.write(chunk)
        if entry.bytes_read < entry.size:
            os.remove(dst)
            raise UnexpectedEOF(
                f"Stream ended inside {entry.full_name}: {entry.bytes_read} of {entry.size} bytes available"
            )
        _safe_chmod(dst, entry.mode)
        _safe_utime(dst, entry.mtime)
        return dst
    print(
        f"Warning: skipping {entry.full_name}: unsupported type flag {entry.typeflag!r}",
        file=sys.stderr,
    )
    return None


def extract_all(reader: TarReader, outdir: str = ".", *, quiet: bool = False) -> int:
    """Extract every directory and regular file; returns the number written."""
    count = 0
    dirs: List[Tuple[str, int, int]] = []
    for entry in reader:
        dst = extract_entry(entry, outdir)
        if dst is None:
            continue
        if entry.is_directory():
            dirs.append((dst, entry.mode, entry.mtime))
        if not quiet:
            print(f"  {'creating' if entry.is_directory() else 'inflating'}: {entry.full_name}")
        count += 1
    # deepest first so setting a parent's mtime is not undone by its children
    for dst, mode, mtime in sorted(dirs, key=lambda d: d[0], reverse=True):
        _safe_chmod(dst, mode)
        _safe_utime(dst, mtime)
    return count
