"""Unit tests for the binary streams and the depth tracker."""

from __future__ import annotations

import gzip
import os
import sys
import unittest
import zlib

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nbtree import (
    ERR_CORRUPT,
    ERR_LIMIT_DEPTH,
    BigEndianNbtStream,
    ByteTag,
    CompoundTag,
    IntTag,
    ListTag,
    LittleEndianNbtStream,
    NbtError,
    NbtStream,
    ReaderTracker,
    StringTag,
    decompress,
)


# ── ReaderTracker ─────────────────────────────────────────────

class TestReaderTracker(unittest.TestCase):
    def test_scope_increments_and_restores(self):
        t = ReaderTracker(3)
        with t.protect_depth():
            self.assertEqual(t.depth, 1)
            with t.protect_depth():
                self.assertEqual(t.depth, 2)
        self.assertEqual(t.depth, 0)

    def test_limit(self):
        t = ReaderTracker(2)
        with t.protect_depth():
            with t.protect_depth():
                with self.assertRaises(NbtError) as ctx:
                    with t.protect_depth():
                        pass  # pragma: no cover
                self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)
                self.assertEqual(t.depth, 2)
        self.assertEqual(t.depth, 0)

    def test_restored_on_error(self):
        t = ReaderTracker(5)
        with self.assertRaises(RuntimeError):
            with t.protect_depth():
                with t.protect_depth():
                    raise RuntimeError("boom")
        self.assertEqual(t.depth, 0)

    def test_unlimited(self):
        t = ReaderTracker(0)

        def dive(n: int) -> int:
            if n == 0:
                return t.depth
            with t.protect_depth():
                return dive(n - 1)

        self.assertEqual(dive(300), 300)
        self.assertEqual(t.depth, 0)

    def test_with_nested_scope(self):
        t = ReaderTracker(1)
        self.assertEqual(t.with_nested_scope(lambda: t.depth), 1)
        self.assertEqual(t.depth, 0)
        with t.protect_depth():
            with self.assertRaises(NbtError):
                t.with_nested_scope(lambda: None)

    def test_negative_max_depth(self):
        with self.assertRaises(ValueError):
            ReaderTracker(-1)


# ── Primitives ────────────────────────────────────────────────

class TestPrimitives(unittest.TestCase):
    def test_abstract_base(self):
        with self.assertRaises(TypeError):
            NbtStream()

    def test_big_endian_layout(self):
        s = BigEndianNbtStream()
        s.put_short(1)
        s.put_int(2)
        s.put_string("ab")
        self.assertEqual(bytes(s.buffer), b"\x00\x01" b"\x00\x00\x00\x02" b"\x00\x02ab")

    def test_little_endian_layout(self):
        s = LittleEndianNbtStream()
        s.put_short(1)
        s.put_int(2)
        s.put_string("ab")
        self.assertEqual(bytes(s.buffer), b"\x01\x00" b"\x02\x00\x00\x00" b"\x02\x00ab")

    def test_signed_reads(self):
        s = BigEndianNbtStream(b"\xff" b"\xff\xfe" b"\xff\xff\xff\xfd")
        self.assertEqual(s.get_byte(), -1)
        self.assertEqual(s.get_short(), -2)
        self.assertEqual(s.get_int(), -3)
        self.assertTrue(s.feof())

    def test_arrays(self):
        s = LittleEndianNbtStream()
        s.put_int_array([1, -1])
        s.put_long_array([2])
        s.put_byte_array(b"xy")
        r = LittleEndianNbtStream(bytes(s.buffer))
        self.assertEqual(r.get_int_array(), [1, -1])
        self.assertEqual(r.get_long_array(), [2])
        self.assertEqual(r.get_byte_array(), b"xy")
        self.assertEqual(r.remaining(), 0)

    def test_truncated(self):
        for getter in ("get_byte", "get_short", "get_int", "get_long", "get_float", "get_double", "get_string"):
            with self.subTest(getter=getter):
                with self.assertRaises(NbtError) as ctx:
                    getattr(BigEndianNbtStream(b""), getter)()
                self.assertEqual(ctx.exception.code, ERR_CORRUPT)

    def test_hostile_array_length(self):
        s = BigEndianNbtStream(b"\x7f\xff\xff\xff")
        with self.assertRaises(NbtError) as ctx:
            s.get_long_array()
        self.assertEqual(ctx.exception.code, ERR_CORRUPT)

    def test_negative_array_length(self):
        with self.assertRaises(NbtError) as ctx:
            BigEndianNbtStream(b"\xff\xff\xff\xff").get_int_array()
        self.assertEqual(ctx.exception.code, ERR_CORRUPT)

    def test_create_tag(self):
        s = BigEndianNbtStream()
        tag = s.create_tag(10, "root")
        self.assertIsInstance(tag, CompoundTag)
        self.assertEqual(tag.name, "root")
        with self.assertRaises(NbtError):
            s.create_tag(0)
        with self.assertRaises(NbtError):
            s.create_tag(200)


# ── Tag headers and whole buffers ─────────────────────────────

class TestStreamTags(unittest.TestCase):
    def test_read_tag_end_marker(self):
        self.assertIsNone(BigEndianNbtStream(b"\x00").read_tag(ReaderTracker()))

    def test_write_tag_header(self):
        s = BigEndianNbtStream()
        s.write_tag(ByteTag("a", 5))
        s.write_end()
        self.assertEqual(bytes(s.buffer), b"\x01\x00\x01a\x05\x00")

    def test_read_write_symmetry(self):
        root = CompoundTag("r", [IntTag("i", 7), ListTag("l", [StringTag("", "s")])])
        for cls in (BigEndianNbtStream, LittleEndianNbtStream):
            with self.subTest(stream=cls.__name__):
                raw = cls().write(root)
                self.assertEqual(cls().read(raw), root)

    def test_endianness_matters(self):
        raw = BigEndianNbtStream().write(CompoundTag("", [IntTag("i", 1)]))
        back = LittleEndianNbtStream().read(raw)
        self.assertEqual(back.get_int("i"), 1 << 24)

    def test_multiple_roots(self):
        a = CompoundTag("a")
        b = CompoundTag("b", [ByteTag("x", 1)])
        s = BigEndianNbtStream()
        raw = s.write([a, b])
        self.assertEqual(s.read_multiple(raw), [a, b])

    def test_read_end_at_root(self):
        with self.assertRaises(NbtError) as ctx:
            BigEndianNbtStream().read(b"\x00")
        self.assertEqual(ctx.exception.code, ERR_CORRUPT)

    def test_trailing_bytes_ignored(self):
        tag = BigEndianNbtStream().read(b"\x0a\x00\x00\x00" b"garbage")
        self.assertEqual(tag, CompoundTag())

    def test_strict_stream(self):
        raw = b"\x0a\x00\x00" b"\x01\x00\x01a\x01" b"\x01\x00\x01a\x02" b"\x00"
        self.assertEqual(len(BigEndianNbtStream().read(raw)), 1)
        with self.assertRaises(NbtError):
            BigEndianNbtStream(strict=True).read(raw)

    def test_list_depth_guard(self):
        # A list of lists of lists, max depth 2.
        raw = b"\x09\x00\x00" b"\x09\x00\x00\x00\x01" b"\x09\x00\x00\x00\x01" b"\x01\x00\x00\x00\x01\x05"
        with self.assertRaises(NbtError) as ctx:
            BigEndianNbtStream().read(raw, max_depth=2)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)
        self.assertIsInstance(BigEndianNbtStream().read(raw, max_depth=3), ListTag)

    def test_no_fixed_limit_still_fails_cleanly(self):
        raw = b"\x0a\x00\x00" + b"\x0a\x00\x00" * 5000 + b"\x00" * 5001
        for max_depth in (0, 100_000):
            with self.subTest(max_depth=max_depth):
                with self.assertRaises(NbtError) as ctx:
                    BigEndianNbtStream().read(raw, max_depth=max_depth)
                self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)
        with self.assertRaises(NbtError) as ctx:
            BigEndianNbtStream().read_multiple(raw, max_depth=0)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_no_fixed_limit_moderate_depth(self):
        raw = b"\x0a\x00\x00" + b"\x0a\x00\x00" * 199 + b"\x00" * 200
        self.assertIsInstance(BigEndianNbtStream().read(raw, max_depth=0), CompoundTag)


# ── Compression ───────────────────────────────────────────────

class TestCompression(unittest.TestCase):
    def setUp(self):
        self.root = CompoundTag("", [IntTag("hp", 20)])
        self.raw = BigEndianNbtStream().write(self.root)

    def test_gzip_round_trip(self):
        s = BigEndianNbtStream()
        packed = s.write_compressed(self.root)
        self.assertEqual(packed[:2], b"\x1f\x8b")
        self.assertEqual(gzip.decompress(packed), self.raw)
        self.assertEqual(s.read_compressed(packed), self.root)

    def test_reproducible(self):
        s = BigEndianNbtStream()
        self.assertEqual(s.write_compressed(self.root), s.write_compressed(self.root))

    def test_zlib_input(self):
        self.assertEqual(BigEndianNbtStream().read_compressed(zlib.compress(self.raw)), self.root)

    def test_bad_compressed_input(self):
        with self.assertRaises(NbtError) as ctx:
            decompress(b"\x1f\x8bnot really gzip")
        self.assertEqual(ctx.exception.code, ERR_CORRUPT)


if __name__ == "__main__":
    unittest.main()
