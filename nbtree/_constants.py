"""NBT constants: tag type ids, value ranges, and decode limits."""

from __future__ import annotations

# ── Tag type ids (single byte on the wire) ───────────────────
# TAG_END never appears as a real tag.  On the wire it terminates a
# compound's child sequence and types an empty list.
TAG_END: int = 0
TAG_BYTE: int = 1
TAG_SHORT: int = 2
TAG_INT: int = 3
TAG_LONG: int = 4
TAG_FLOAT: int = 5
TAG_DOUBLE: int = 6
TAG_BYTE_ARRAY: int = 7
TAG_STRING: int = 8
TAG_LIST: int = 9
TAG_COMPOUND: int = 10
TAG_INT_ARRAY: int = 11
TAG_LONG_ARRAY: int = 12

# ── Signed integer ranges ────────────────────────────────────
# Python ints are arbitrary-precision, so every integer tag range-checks
# explicitly on assignment.
INT8_MIN: int = -(2**7)
INT8_MAX: int = 2**7 - 1
INT16_MIN: int = -(2**15)
INT16_MAX: int = 2**15 - 1
INT32_MIN: int = -(2**31)
INT32_MAX: int = 2**31 - 1
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# Names and string payloads carry a u16 length prefix, but values above
# 32767 are rejected for compatibility with readers using a signed short.
MAX_STRING_LENGTH: int = 32_767

# ── Decode limits ────────────────────────────────────────────
# Each nesting level costs two Python frames during decode, so this must
# stay well below sys.getrecursionlimit().  0 disables the limit.
DEFAULT_MAX_DEPTH: int = 256

# Compressed-input magic numbers (gzip member header, zlib CMF byte).
GZIP_MAGIC: bytes = b"\x1f\x8b"
ZLIB_MAGIC: int = 0x78
