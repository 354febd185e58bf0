from __future__ import annotations

import argparse
import lzma
import sys
import zlib
from typing import List, Optional

from tarstream.compression import COMPRESSIONS, ArchiveSource
from tarstream.entry import TarEntry
from tarstream.errors import BadChecksum, MalformedHeader, TarError
from tarstream.extract import extract_all
from tarstream.reader import TarReader


def _kind(entry: TarEntry) -> str:
    if entry.is_directory():
        return "dir"
    if entry.is_file():
        return "file"
    return f"type:{entry.typeflag or '?'}"


def cmd_list(archive: str, *, compression: Optional[str] = None, strict: bool = False) -> int:
    """Print one ``kind<TAB>size<TAB>name`` line per member; returns the member count."""
    count = 0
    with ArchiveSource(archive, compression) as src, TarReader(src.stream, strict=strict) as reader:
        for entry in reader:
            print(f"{_kind(entry)}\t{entry.size}\t{entry.full_name}")
            count += 1
    return count


def cmd_extract(
    archive: str,
    *,
    outdir: str = ".",
    compression: Optional[str] = None,
    strict: bool = False,
    quiet: bool = False,
) -> int:
    """Extract directories and regular files from an archive into ``outdir``."""
    with ArchiveSource(archive, compression) as src, TarReader(src.stream, strict=strict) as reader:
        count = extract_all(reader, outdir, quiet=quiet)
    if not quiet:
        print(f"Extracted {count} entr{'y' if count == 1 else 'ies'} to {outdir}")
    return count


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="tarstream",
        description="Streaming USTAR archive reader",
        epilog="ARCHIVE may be '-' to read from stdin (use --compression for compressed input).",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("archive", help="Archive path or '-' for stdin")
    common.add_argument(
        "--compression",
        choices=COMPRESSIONS,
        help="Decompressor to apply (default: guessed from the file suffix; none for stdin)",
    )
    common.add_argument(
        "--strict",
        action="store_true",
        help="Verify header checksums and reject non-octal numeric fields",
    )

    sub.add_parser("list", parents=[common], help="List archive contents")

    ap_extract = sub.add_parser("extract", parents=[common], help="Extract directories and regular files")
    ap_extract.add_argument("--outdir", default=".", help="Output directory")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "list":
            cmd_list(args.archive, compression=args.compression, strict=args.strict)
        elif args.cmd == "extract":
            cmd_extract(
                args.archive,
                outdir=args.outdir,
                compression=args.compression,
                strict=args.strict,
                quiet=args.quiet,
            )
        else:
            raise RuntimeError("Unknown command")
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (BadChecksum, MalformedHeader) as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Hint: the archive may be corrupted; retry without --strict to read it permissively.", file=sys.stderr)
        sys.exit(2)
    except (TarError, OSError, EOFError, ValueError, RuntimeError, zlib.error, lzma.LZMAError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
