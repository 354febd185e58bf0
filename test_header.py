from __future__ import annotations

import io
import unittest
from dataclasses import replace

from tarstream.constants import BLOCK_SIZE, ZERO_BLOCK
from tarstream.errors import BadChecksum, MalformedHeader, TooLongFileName, UnexpectedEOF
from tarstream.header import TarHeader, calculate_checksum, parse_octal, split_name


def _sample_header() -> TarHeader:
    return TarHeader(
        name="docs/readme.txt",
        mode=0o644,
        size=1234,
        prefix="project-1.0",
        uid=1000,
        gid=100,
        mtime=1_700_000_000,
        typeflag="0",
        linkname="",
        uname="alice",
        gname="users",
        devmajor=0,
        devminor=0,
    )


class OctalFieldTests(unittest.TestCase):
    def test_mode_field(self):
        self.assertEqual(parse_octal("mode", b"0000644\x00"), 420)

    def test_padding_variants(self):
        self.assertEqual(parse_octal("mode", b"   644 \x00"), 420)
        self.assertEqual(parse_octal("size", b"\x00" * 12), 0)
        self.assertEqual(parse_octal("size", b"00000001750\x00"), 1000)

    def test_permissive_keeps_leading_digits(self):
        self.assertEqual(parse_octal("mode", b"0000644x"), 420)
        self.assertEqual(parse_octal("mode", b"garbage\x00"), 0)

    def test_strict_rejects_non_octal(self):
        with self.assertRaises(MalformedHeader) as ctx:
            parse_octal("mode", b"00006a4\x00", strict=True)
        self.assertEqual(ctx.exception.field, "mode")
        with self.assertRaises(MalformedHeader):
            parse_octal("size", b"0000000009\x00\x00", strict=True)
        self.assertEqual(parse_octal("size", b"\x00" * 12, strict=True), 0)


class ChecksumTests(unittest.TestCase):
    def test_known_block(self):
        block = b"a" + b"\x00" * (BLOCK_SIZE - 1)
        # 'a' (97) + eight blanked spaces (256)
        self.assertEqual(calculate_checksum(block), 353)
        self.assertEqual("%06o" % calculate_checksum(block), "000541")

    def test_checksum_field_is_ignored(self):
        block = bytearray(b"a" + b"\x00" * (BLOCK_SIZE - 1))
        block[148:156] = b"\xff" * 8
        self.assertEqual(calculate_checksum(bytes(block)), 353)

    def test_default_header_checksum(self):
        header = TarHeader(name="a", mode=0, size=0, prefix="")
        self.assertIsNone(header.checksum)
        self.assertEqual(header.update_checksum().checksum, 4858)
        self.assertEqual(header.to_bytes()[148:156], b"011372\x00 ")

    def test_rejects_wrong_length(self):
        with self.assertRaises(ValueError):
            calculate_checksum(b"\x00" * 100)


class EncodeTests(unittest.TestCase):
    def test_layout(self):
        block = TarHeader(name="a.txt", mode=0o644, size=5, prefix="").to_bytes()
        self.assertEqual(len(block), BLOCK_SIZE)
        self.assertEqual(block[0:6], b"a.txt\x00")
        self.assertEqual(block[100:108], b"0000644\x00")
        self.assertEqual(block[108:116], b"0000000\x00")
        self.assertEqual(block[124:136], b"00000000005\x00")
        self.assertEqual(block[155:157], b" 0")
        self.assertEqual(block[257:263], b"ustar\x00")
        self.assertEqual(block[263:265], b"00")
        self.assertEqual(block[265:271], b"wheel\x00")
        self.assertEqual(block[297:303], b"wheel\x00")
        self.assertEqual(block[500:], b"\x00" * 12)

    def test_decode_encode_roundtrip(self):
        header = _sample_header()
        decoded = TarHeader.from_bytes(header.to_bytes())
        self.assertEqual(replace(decoded, checksum=None), header)
        self.assertEqual(decoded, header.update_checksum())
        self.assertFalse(decoded.empty)

    def test_long_name_rejected(self):
        with self.assertRaises(TooLongFileName):
            TarHeader(name="n" * 101, mode=0o644, size=0, prefix="").to_bytes()
        with self.assertRaises(TooLongFileName):
            TarHeader(name="n", mode=0o644, size=0, prefix="p" * 156).to_bytes()

    def test_overflowing_fields_rejected(self):
        with self.assertRaises(ValueError):
            TarHeader(name="big", mode=0o644, size=8 ** 11, prefix="").to_bytes()
        with self.assertRaises(ValueError):
            TarHeader(name="x", mode=0o644, size=0, prefix="", uname="u" * 33).to_bytes()

    def test_largest_size_fits(self):
        header = TarHeader(name="big", mode=0o644, size=8 ** 11 - 1, prefix="")
        self.assertEqual(TarHeader.from_bytes(header.to_bytes()).size, 8 ** 11 - 1)


class DecodeTests(unittest.TestCase):
    def test_zero_block_is_end_marker(self):
        header = TarHeader.from_bytes(ZERO_BLOCK)
        self.assertTrue(header.empty)
        self.assertTrue(TarHeader.from_bytes(ZERO_BLOCK, strict=True).empty)

    def test_from_stream_exhausted(self):
        self.assertIsNone(TarHeader.from_stream(io.BytesIO(b"")))

    def test_from_stream_short_block(self):
        with self.assertRaises(UnexpectedEOF):
            TarHeader.from_stream(io.BytesIO(b"x" * 100))

    def test_from_stream_consumes_one_block(self):
        block = _sample_header().to_bytes()
        stream = io.BytesIO(block + b"rest")
        header = TarHeader.from_stream(stream)
        self.assertEqual(header.name, "docs/readme.txt")
        self.assertEqual(stream.tell(), BLOCK_SIZE)

    def test_gnu_magic(self):
        block = bytearray(_sample_header().to_bytes())
        block[257:265] = b"ustar  \x00"
        header = TarHeader.from_bytes(bytes(block))
        self.assertEqual(header.magic, "ustar ")
        self.assertEqual(header.version, 0)

    def test_strict_detects_corruption(self):
        block = bytearray(_sample_header().to_bytes())
        block[0] ^= 0x01
        header = TarHeader.from_bytes(bytes(block))  # permissive: accepted
        self.assertEqual(header.name, "eocs/readme.txt")
        with self.assertRaises(BadChecksum) as ctx:
            TarHeader.from_bytes(bytes(block), strict=True)
        self.assertEqual(ctx.exception.actual, calculate_checksum(bytes(block)))
        self.assertNotEqual(ctx.exception.expected, ctx.exception.actual)

    def test_strict_accepts_valid(self):
        header = TarHeader.from_bytes(_sample_header().to_bytes(), strict=True)
        self.assertEqual(header.size, 1234)

    def test_non_utf8_name_survives(self):
        header = TarHeader(name="caf\udce9", mode=0o644, size=0, prefix="")
        block = header.to_bytes()
        self.assertEqual(block[:4], b"caf\xe9")
        self.assertEqual(TarHeader.from_bytes(block).name, "caf\udce9")


class ConstructionTests(unittest.TestCase):
    def test_defaults(self):
        header = TarHeader(name="x", mode=0o600, size=3, prefix="")
        self.assertEqual((header.uid, header.gid, header.mtime), (0, 0, 0))
        self.assertEqual(header.typeflag, "0")
        self.assertEqual(header.magic, "ustar")
        self.assertEqual(header.version, 0)
        self.assertEqual((header.uname, header.gname), ("wheel", "wheel"))
        self.assertEqual((header.devmajor, header.devminor), (0, 0))

    def test_from_mapping(self):
        header = TarHeader.from_mapping({"name": "x", "size": 3, "prefix": "", "mode": 0o600, "uname": "bob"})
        self.assertEqual(header, TarHeader(name="x", mode=0o600, size=3, prefix="", uname="bob"))

    def test_from_mapping_requires_fields(self):
        with self.assertRaises(ValueError) as ctx:
            TarHeader.from_mapping({"name": "x", "size": 3})
        self.assertIn("prefix", str(ctx.exception))
        self.assertIn("mode", str(ctx.exception))
        with self.assertRaises(ValueError):
            TarHeader.from_mapping({"name": "x", "size": 3, "prefix": "", "mode": 0, "colour": "red"})

    def test_negative_size(self):
        with self.assertRaises(ValueError):
            TarHeader(name="x", mode=0, size=-1, prefix="")

    def test_equality_ignores_end_marker_flag(self):
        header = _sample_header()
        self.assertEqual(replace(header, empty=True), header)
        self.assertNotEqual(replace(header, uid=1), header)


class SplitNameTests(unittest.TestCase):
    def test_short_path(self):
        self.assertEqual(split_name("a/b.txt"), ("", "a/b.txt"))

    def test_long_path(self):
        path = "d" * 120 + "/sub/file.txt"
        prefix, name = split_name(path)
        self.assertEqual(prefix, "d" * 120 + "/sub")
        self.assertEqual(name, "file.txt")

    def test_impossible(self):
        with self.assertRaises(TooLongFileName):
            split_name("x" * 300)
        with self.assertRaises(TooLongFileName):
            split_name("p" * 200 + "/" + "n" * 20)


if __name__ == "__main__":
    unittest.main()
