#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Decoder robustness fuzzing.
#
# Generates three fuzz categories:
#   A) valid encodings with random byte flips
#   B) valid encodings truncated at a random offset
#   C) random byte strings with a plausible root header
#
# read_nbt must either return a tag or raise NbtError.  Anything else
# such as IndexError or struct.error prints a repro and exits non-zero.

import os, sys, random, traceback

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from nbtree import CompoundTag, ListTag, NbtError, read_nbt, write_nbt

SEED = int(os.environ.get("NBT_SEED", "4242"))
ROUNDS = int(os.environ.get("NBT_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

def sample_tree() -> CompoundTag:
    root = CompoundTag("root")
    root.set_int("hp", random.randint(0, 20))
    root.set_string("name", "Steve")
    root.set_long_array("seen", [random.getrandbits(32) for _ in range(3)])
    inv = ListTag("inv")
    root.set_tag(inv)
    for slot in range(random.randint(0, 4)):
        item = CompoundTag()
        item.set_byte("slot", slot)
        item.set_string("id", "minecraft:stone")
        item.set_double("weight", random.random())
        inv.push(item)
    return root

def check(label: str, raw: bytes, little_endian: bool, i: int) -> None:
    try:
        read_nbt(raw, little_endian=little_endian)
    except NbtError:
        pass
    except Exception:
        print("UNEXPECTED:", label, "round", i, "little_endian", little_endian)
        print("INPUT:", raw.hex()[:4000])
        traceback.print_exc()
        raise SystemExit(1)

def main() -> int:
    for i in range(ROUNDS):
        le = random.random() < 0.5
        r = random.random()

        # A) byte flips
        if r < 0.50:
            raw = bytearray(write_nbt(sample_tree(), little_endian=le))
            for _ in range(random.randint(1, 4)):
                raw[random.randrange(len(raw))] = random.getrandbits(8)
            check("A flip", bytes(raw), le, i)
            continue

        # B) truncation
        if r < 0.80:
            raw = write_nbt(sample_tree(), little_endian=le)
            check("B truncate", raw[:random.randrange(len(raw))], le, i)
            continue

        # C) random bodies behind a compound or list header
        head = bytes([random.choice((9, 10)), 0, 0])
        body = bytes(random.getrandbits(8) for _ in range(random.randint(0, 64)))
        check("C random", head + body, le, i)

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (only NbtError raised)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
