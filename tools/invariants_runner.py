#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Tag tree invariants (property tests) over random compound trees.
#
# This runner:
# - generates random CompoundTag trees (all leaf kinds, lists, nesting)
# - checks encode/decode round trip in both byte orders and through gzip
# - checks clone independence, merge precedence and order-independent equality
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random
from typing import List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from nbtree import (
    ByteArrayTag, ByteTag, CompoundTag, DoubleTag, FloatTag, IntArrayTag, IntTag,
    ListTag, LongArrayTag, LongTag, ShortTag, StringTag, Tag, read_nbt, write_nbt,
)

SEED = int(os.environ.get("NBT_SEED", "1337"))
TRIALS = int(os.environ.get("NBT_TRIALS", "500"))
MAX_GEN_DEPTH = int(os.environ.get("NBT_GEN_MAX_DEPTH", "5"))
MAX_KEYS = int(os.environ.get("NBT_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("NBT_GEN_MAX_LIST", "5"))
MAX_STR = int(os.environ.get("NBT_GEN_MAX_STR", "16"))

random.seed(SEED)

def rand_string() -> str:
    # Scalars outside the surrogate range; astral chars occasionally.
    out = []
    for _ in range(random.randint(0, MAX_STR)):
        r = random.random()
        if r < 0.80:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.95:
            out.append(chr(random.randint(0xA0, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_leaf(name: str) -> Tag:
    k = random.randint(0, 9)
    if k == 0:
        return ByteTag(name, random.randint(-128, 127))
    if k == 1:
        return ShortTag(name, random.randint(-32768, 32767))
    if k == 2:
        return IntTag(name, random.randint(-2**31, 2**31 - 1))
    if k == 3:
        return LongTag(name, random.randint(-2**63, 2**63 - 1))
    if k == 4:
        return FloatTag(name, random.uniform(-1e6, 1e6))
    if k == 5:
        return DoubleTag(name, random.uniform(-1e12, 1e12))
    if k == 6:
        return ByteArrayTag(name, bytes(random.getrandbits(8) for _ in range(random.randint(0, 12))))
    if k == 7:
        return IntArrayTag(name, [random.randint(-2**31, 2**31 - 1) for _ in range(random.randint(0, 6))])
    if k == 8:
        return LongArrayTag(name, [random.randint(-2**63, 2**63 - 1) for _ in range(random.randint(0, 6))])
    return StringTag(name, rand_string())

def gen_compound(name: str, depth: int) -> CompoundTag:
    c = CompoundTag(name)
    for _ in range(random.randint(0, MAX_KEYS)):
        c.set_tag(gen_tag(rand_string(), depth + 1), force=True)
    return c

def gen_list(name: str, depth: int) -> ListTag:
    lst = ListTag(name)
    n = random.randint(0, MAX_LIST)
    if n == 0:
        return lst
    if depth < MAX_GEN_DEPTH and random.random() < 0.3:
        for _ in range(n):
            lst.push(gen_compound("", depth + 1))
        return lst
    first = rand_leaf("")
    lst.push(first)
    while len(lst) < n:
        t = rand_leaf("")
        if type(t) is type(first):
            lst.push(t)
    return lst

def gen_tag(name: str, depth: int) -> Tag:
    if depth >= MAX_GEN_DEPTH:
        return rand_leaf(name)
    r = random.random()
    if r < 0.25:
        return gen_compound(name, depth)
    if r < 0.40:
        return gen_list(name, depth)
    return rand_leaf(name)

def shuffled(c: CompoundTag) -> CompoundTag:
    entries: List[Tag] = [t.clone() for t in c.values()]
    random.shuffle(entries)
    return CompoundTag(c.name, entries)

def fail(label: str, trial: int, tree: Tag) -> int:
    print("INVARIANT FAIL:", label, "trial", trial)
    print(tree.describe()[:4000])
    return 1

def main() -> int:
    for t in range(TRIALS):
        root = gen_compound(rand_string(), 0)

        # (1) Encode stability
        raw = write_nbt(root)
        if write_nbt(root) != raw:
            return fail("encode stability", t, root)

        # (2) Round trip, both byte orders and compressed
        for le in (False, True):
            back = read_nbt(write_nbt(root, little_endian=le), little_endian=le)
            if not back.equals(root) or write_nbt(back, little_endian=le) != write_nbt(root, little_endian=le):
                return fail("round trip (little_endian={})".format(le), t, root)
        if not read_nbt(write_nbt(root, compressed=True)).equals(root):
            return fail("compressed round trip", t, root)

        # (3) Equality ignores insertion order
        if not shuffled(root).equals(root):
            return fail("order-independent equality", t, root)

        # (4) Clone independence
        copy = root.clone()
        copy.set_string("\x00mutated", "x")
        if root.has_tag("\x00mutated") or root.equals(copy):
            return fail("clone independence", t, root)

        # (5) Merge precedence: other's entries win, self's order comes first
        other = gen_compound("", 0)
        merged = root.merge(other)
        for name, tag in other.items():
            if not merged.get_tag(name).equals(tag):
                return fail("merge precedence", t, root)
        for name in root:
            if name not in other and not merged.get_tag(name).equals(root.get_tag(name)):
                return fail("merge keeps untouched entries", t, root)
        if list(merged)[:len(root)] != list(root):
            return fail("merge order", t, root)

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
