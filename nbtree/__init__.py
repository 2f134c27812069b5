"""nbtree: NBT (Named Binary Tag) trees for Python.

Read, edit, and write the binary tag trees used by game save files.

Quick start:
    >>> from nbtree import CompoundTag, read_nbt, write_nbt
    >>> player = CompoundTag()
    >>> player.set_int("hp", 20)
    >>> player.set_string("name", "Steve")
    >>> data = write_nbt(player)
    >>> read_nbt(data).get_int("hp")
    20

Mutations are type-stable: a slot holding an IntTag cannot be silently
overwritten with a StringTag.  Decoding is lenient about duplicate child
names (the first wins) unless strict=True, and always bounded in depth.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from ._compound import CompoundTag
from ._constants import (
    DEFAULT_MAX_DEPTH,
    GZIP_MAGIC,
    MAX_STRING_LENGTH,
    TAG_BYTE,
    TAG_BYTE_ARRAY,
    TAG_COMPOUND,
    TAG_DOUBLE,
    TAG_END,
    TAG_FLOAT,
    TAG_INT,
    TAG_INT_ARRAY,
    TAG_LIST,
    TAG_LONG,
    TAG_LONG_ARRAY,
    TAG_SHORT,
    TAG_STRING,
    ZLIB_MAGIC,
)
from ._errors import (
    ERR_CORRUPT,
    ERR_DUP_KEY,
    ERR_EXHAUSTED_ITERATOR,
    ERR_INVALID_OPERATION,
    ERR_LIMIT_DEPTH,
    ERR_MISSING_OR_WRONG_TYPE,
    ERR_NAME_MISMATCH,
    ERR_TYPE_MISMATCH,
    ERR_VALUE,
    NbtError,
)
from ._list import ListTag
from ._stream import (
    BigEndianNbtStream,
    LittleEndianNbtStream,
    NbtStream,
    decompress,
)
from ._tags import (
    ByteArrayTag,
    ByteTag,
    ContainerTag,
    DoubleTag,
    FloatTag,
    IntArrayTag,
    IntTag,
    LongArrayTag,
    LongTag,
    ShortTag,
    StringTag,
    Tag,
)
from ._tracker import ReaderTracker

__version__ = "1.0.0"

__all__ = [
    # Public API functions
    "read_nbt",
    "write_nbt",
    "is_compressed",
    # Tags
    "Tag",
    "ContainerTag",
    "ByteTag",
    "ShortTag",
    "IntTag",
    "LongTag",
    "FloatTag",
    "DoubleTag",
    "ByteArrayTag",
    "StringTag",
    "IntArrayTag",
    "LongArrayTag",
    "ListTag",
    "CompoundTag",
    # Streams
    "NbtStream",
    "BigEndianNbtStream",
    "LittleEndianNbtStream",
    "ReaderTracker",
    "decompress",
    # Exception
    "NbtError",
    # Error codes
    "ERR_TYPE_MISMATCH",
    "ERR_MISSING_OR_WRONG_TYPE",
    "ERR_NAME_MISMATCH",
    "ERR_INVALID_OPERATION",
    "ERR_EXHAUSTED_ITERATOR",
    "ERR_LIMIT_DEPTH",
    "ERR_DUP_KEY",
    "ERR_CORRUPT",
    "ERR_VALUE",
    # Constants
    "DEFAULT_MAX_DEPTH",
    "MAX_STRING_LENGTH",
    "TAG_END",
    "TAG_BYTE",
    "TAG_SHORT",
    "TAG_INT",
    "TAG_LONG",
    "TAG_FLOAT",
    "TAG_DOUBLE",
    "TAG_BYTE_ARRAY",
    "TAG_STRING",
    "TAG_LIST",
    "TAG_COMPOUND",
    "TAG_INT_ARRAY",
    "TAG_LONG_ARRAY",
]


def _new_stream(little_endian: bool, strict: bool = False) -> NbtStream:
    if little_endian:
        return LittleEndianNbtStream(strict=strict)
    return BigEndianNbtStream(strict=strict)


def is_compressed(data: bytes) -> bool:
    """True if data starts with a gzip or zlib header.

    An uncompressed NBT file starts with a tag type id (at most 12), so
    neither magic can be mistaken for one.
    """
    return data[:2] == GZIP_MAGIC or (len(data) >= 2 and data[0] == ZLIB_MAGIC)


# ── Core API ──────────────────────────────────────────────────

def read_nbt(data: bytes, *,
             little_endian: bool = False,
             compressed: Optional[bool] = None,
             max_depth: int = DEFAULT_MAX_DEPTH,
             strict: bool = False) -> Tag:
    """Decode the root tag of an NBT buffer.

    compressed=None sniffs the gzip/zlib header.  strict=True turns
    duplicate child names into ERR_DUP_KEY instead of keeping the first.
    """
    if compressed is None:
        compressed = is_compressed(data)
    stream = _new_stream(little_endian, strict)
    if compressed:
        return stream.read_compressed(data, max_depth)
    return stream.read(data, max_depth)


def write_nbt(tag: Union[Tag, Iterable[Tag]], *,
              little_endian: bool = False,
              compressed: bool = False) -> bytes:
    """Encode a root tag (or several), optionally gzip-compressed."""
    stream = _new_stream(little_endian)
    if compressed:
        return stream.write_compressed(tag)
    return stream.write(tag)
