"""Unit tests for the nbtree top-level API.

Conformance testing against golden vectors is in test_conformance.py;
these tests exercise read_nbt/write_nbt and the package surface.
"""

from __future__ import annotations

import gzip
import os
import sys
import unittest
import zlib

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import nbtree
from nbtree import (
    DEFAULT_MAX_DEPTH,
    ERR_CORRUPT,
    ERR_DUP_KEY,
    ERR_LIMIT_DEPTH,
    CompoundTag,
    IntTag,
    ListTag,
    NbtError,
    StringTag,
    is_compressed,
    read_nbt,
    write_nbt,
)

PLAYER_BE = bytes.fromhex("0a0000" "03000268700000001408" "00046e616d65" "00055374657665" "00")


# ── Worked example ────────────────────────────────────────────

class TestPlayerExample(unittest.TestCase):
    def test_decode(self):
        root = read_nbt(PLAYER_BE)
        self.assertIsInstance(root, CompoundTag)
        self.assertEqual(root.get_int("hp"), 20)
        self.assertEqual(root.get_string("name"), "Steve")
        self.assertEqual(root.get_string("missing", "?"), "?")
        self.assertEqual(list(root), ["hp", "name"])

    def test_build_and_encode(self):
        root = CompoundTag()
        root.set_int("hp", 20)
        root.set_string("name", "Steve")
        self.assertEqual(write_nbt(root), PLAYER_BE)

    def test_little_endian(self):
        root = read_nbt(PLAYER_BE)
        le = write_nbt(root, little_endian=True)
        self.assertNotEqual(le, PLAYER_BE)
        self.assertEqual(read_nbt(le, little_endian=True), root)


# ── Compression detection ─────────────────────────────────────

class TestCompression(unittest.TestCase):
    def test_is_compressed(self):
        self.assertTrue(is_compressed(gzip.compress(PLAYER_BE)))
        self.assertTrue(is_compressed(zlib.compress(PLAYER_BE)))
        self.assertFalse(is_compressed(PLAYER_BE))
        self.assertFalse(is_compressed(b""))

    def test_auto_detect(self):
        packed = write_nbt(read_nbt(PLAYER_BE), compressed=True)
        self.assertTrue(is_compressed(packed))
        self.assertEqual(read_nbt(packed), read_nbt(PLAYER_BE))
        self.assertEqual(read_nbt(zlib.compress(PLAYER_BE)).get_int("hp"), 20)

    def test_forced_raw_on_compressed_input(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(gzip.compress(PLAYER_BE), compressed=False)
        self.assertEqual(ctx.exception.code, ERR_CORRUPT)


# ── Options ───────────────────────────────────────────────────

class TestReadOptions(unittest.TestCase):
    def test_strict(self):
        raw = bytes.fromhex("0a0000" "010001610101" "0001610200")
        self.assertEqual(read_nbt(raw).get_byte("a"), 1)
        with self.assertRaises(NbtError) as ctx:
            read_nbt(raw, strict=True)
        self.assertEqual(ctx.exception.code, ERR_DUP_KEY)

    def test_max_depth(self):
        root = CompoundTag()
        inner = root
        for i in range(5):
            child = CompoundTag("c")
            inner.set_tag(child)
            inner = child
        raw = write_nbt(root)
        self.assertEqual(read_nbt(raw, max_depth=6), root)
        self.assertEqual(read_nbt(raw, max_depth=0), root)
        with self.assertRaises(NbtError) as ctx:
            read_nbt(raw, max_depth=5)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_default_depth_constant(self):
        self.assertEqual(DEFAULT_MAX_DEPTH, 256)

    def test_non_compound_root(self):
        lst = ListTag("", [StringTag("", "a"), StringTag("", "b")])
        back = read_nbt(write_nbt(lst))
        self.assertIsInstance(back, ListTag)
        self.assertEqual(back.get_all_values(), ["a", "b"])

    def test_write_multiple(self):
        raw = write_nbt([CompoundTag("a"), CompoundTag("b", [IntTag("x", 1)])])
        self.assertEqual(read_nbt(raw).name, "a")


# ── Package surface ───────────────────────────────────────────

class TestPackage(unittest.TestCase):
    def test_version(self):
        self.assertEqual(nbtree.__version__, "1.0.0")

    def test_all_exports_resolve(self):
        for name in nbtree.__all__:
            with self.subTest(name=name):
                self.assertTrue(hasattr(nbtree, name))

    def test_error_str(self):
        e = NbtError(ERR_CORRUPT, "bad")
        self.assertEqual(e.code, ERR_CORRUPT)
        self.assertIn("bad", str(e))


if __name__ == "__main__":
    unittest.main()
