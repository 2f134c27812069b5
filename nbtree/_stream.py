"""Binary tag streams: wire primitives and the tag header codec.

Wire layout of a named tag:

    u8   type id        (TAG_END terminates a compound, no name follows)
    u16  name length    followed by that many UTF-8 bytes
    ...  payload        (kind-specific, written by Tag.write)

Java edition files are big-endian; Bedrock edition files and level.dat
are little-endian.  The two streams differ only in the struct byte-order
prefix.

Every read is bounds-checked before it touches the buffer, and every
length prefix is checked against the remaining input before anything is
allocated, so hostile lengths fail with ERR_CORRUPT instead of exhausting
memory.
"""

from __future__ import annotations

import gzip
import struct
import zlib
from typing import ClassVar, Iterable, List, Optional, Union

import structlog

from ._constants import DEFAULT_MAX_DEPTH, TAG_END
from ._errors import ERR_CORRUPT, ERR_LIMIT_DEPTH, NbtError
from ._tags import Tag, _utf8
from ._tracker import ReaderTracker

# Registers the container kinds in Tag.registry.
from . import _compound, _list  # noqa: F401

logger = structlog.get_logger(__name__)


class NbtStream:
    """Sequential reader/writer over an in-memory buffer.

    With strict=True, compounds reject duplicate child names instead of
    keeping the first occurrence.
    """

    _endian: ClassVar[str]

    def __init__(self, buffer: bytes = b"", offset: int = 0, *, strict: bool = False) -> None:
        if type(self) is NbtStream:
            raise TypeError("NbtStream is abstract; use BigEndianNbtStream or LittleEndianNbtStream")
        self.buffer = bytearray(buffer)
        self.offset = offset
        self.strict = strict

    # ── Raw bytes ─────────────────────────────────────────────

    def remaining(self) -> int:
        return len(self.buffer) - self.offset

    def feof(self) -> bool:
        return self.offset >= len(self.buffer)

    def _need(self, n: int, what: str) -> None:
        if n < 0 or n > self.remaining():
            raise NbtError(
                ERR_CORRUPT,
                "Truncated {}: need {} bytes at offset {}, have {}".format(
                    what, n, self.offset, self.remaining()
                ),
            )

    def get(self, n: int) -> bytes:
        self._need(n, "payload")
        data = bytes(self.buffer[self.offset:self.offset + n])
        self.offset += n
        return data

    def put(self, data: bytes) -> None:
        self.buffer += data

    def _unpack(self, fmt: str, size: int) -> Union[int, float]:
        self._need(size, "value")
        value = struct.unpack_from(self._endian + fmt, self.buffer, self.offset)[0]
        self.offset += size
        return value

    def _pack(self, fmt: str, value: Union[int, float]) -> None:
        self.buffer += struct.pack(self._endian + fmt, value)

    # ── Fixed-width primitives ────────────────────────────────

    def get_unsigned_byte(self) -> int:
        return self._unpack("B", 1)  # type: ignore[return-value]

    def put_unsigned_byte(self, v: int) -> None:
        self._pack("B", v)

    def get_byte(self) -> int:
        return self._unpack("b", 1)  # type: ignore[return-value]

    def put_byte(self, v: int) -> None:
        self._pack("b", v)

    def get_unsigned_short(self) -> int:
        return self._unpack("H", 2)  # type: ignore[return-value]

    def put_unsigned_short(self, v: int) -> None:
        self._pack("H", v)

    def get_short(self) -> int:
        return self._unpack("h", 2)  # type: ignore[return-value]

    def put_short(self, v: int) -> None:
        self._pack("h", v)

    def get_int(self) -> int:
        return self._unpack("i", 4)  # type: ignore[return-value]

    def put_int(self, v: int) -> None:
        self._pack("i", v)

    def get_long(self) -> int:
        return self._unpack("q", 8)  # type: ignore[return-value]

    def put_long(self, v: int) -> None:
        self._pack("q", v)

    def get_float(self) -> float:
        return self._unpack("f", 4)

    def put_float(self, v: float) -> None:
        self._pack("f", v)

    def get_double(self) -> float:
        return self._unpack("d", 8)

    def put_double(self, v: float) -> None:
        self._pack("d", v)

    # ── Length-prefixed payloads ──────────────────────────────

    def get_string(self) -> str:
        raw = self.get(self.get_unsigned_short())
        return raw.decode("utf-8", "surrogateescape")

    def put_string(self, v: str) -> None:
        raw = _utf8(v, "String")
        self.put_unsigned_short(len(raw))
        self.put(raw)

    def _get_count(self, what: str, width: int) -> int:
        n = self.get_int()
        if n < 0:
            raise NbtError(ERR_CORRUPT, "Negative {} length {}".format(what, n))
        self._need(n * width, what)
        return n

    def get_byte_array(self) -> bytes:
        return self.get(self._get_count("byte array", 1))

    def put_byte_array(self, v: bytes) -> None:
        self.put_int(len(v))
        self.put(v)

    def _get_array(self, code: str, width: int, what: str) -> List[int]:
        n = self._get_count(what, width)
        values = list(struct.unpack_from("{}{}{}".format(self._endian, n, code), self.buffer, self.offset))
        self.offset += n * width
        return values

    def _put_array(self, code: str, values: List[int]) -> None:
        self.put_int(len(values))
        self.buffer += struct.pack("{}{}{}".format(self._endian, len(values), code), *values)

    def get_int_array(self) -> List[int]:
        return self._get_array("i", 4, "int array")

    def put_int_array(self, v: List[int]) -> None:
        self._put_array("i", v)

    def get_long_array(self) -> List[int]:
        return self._get_array("q", 8, "long array")

    def put_long_array(self, v: List[int]) -> None:
        self._put_array("q", v)

    # ── Tag headers ───────────────────────────────────────────

    def create_tag(self, type_id: int, name: str = "") -> Tag:
        cls = Tag.registry.get(type_id)
        if cls is None:
            raise NbtError(ERR_CORRUPT, "Unknown NBT tag type {}".format(type_id))
        return cls(name)

    def read_tag(self, tracker: ReaderTracker) -> Optional[Tag]:
        """Read one named tag, or return None on TAG_END."""
        type_id = self.get_unsigned_byte()
        if type_id == TAG_END:
            return None
        name = self.get_string()
        tag = self.create_tag(type_id, name)
        tag.read(self, tracker)
        return tag

    def write_tag(self, tag: Tag) -> None:
        self.put_unsigned_byte(tag.kind)
        self.put_string(tag.name)
        tag.write(self)

    def write_end(self) -> None:
        self.put_unsigned_byte(TAG_END)

    # ── Whole buffers ─────────────────────────────────────────

    def _reset(self, buffer: bytes = b"") -> None:
        self.buffer = bytearray(buffer)
        self.offset = 0

    def read(self, buffer: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> Tag:
        """Decode the root tag of buffer."""
        self._reset(buffer)
        try:
            tag = self.read_tag(ReaderTracker(max_depth))
        except RecursionError:
            raise _too_deep()
        if tag is None:
            raise NbtError(ERR_CORRUPT, "Found TAG_End at the start of buffer")
        if not self.feof():
            logger.debug("trailing bytes after root tag", count=self.remaining())
        return tag

    def read_multiple(self, buffer: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> List[Tag]:
        """Decode consecutive root tags until the buffer is exhausted."""
        self._reset(buffer)
        tags: List[Tag] = []
        while not self.feof():
            try:
                tag = self.read_tag(ReaderTracker(max_depth))
            except RecursionError:
                raise _too_deep()
            if tag is None:
                raise NbtError(ERR_CORRUPT, "Found TAG_End at root level")
            tags.append(tag)
        return tags

    def write(self, data: Union[Tag, Iterable[Tag]]) -> bytes:
        """Encode one root tag, or several back to back."""
        self._reset()
        tags = [data] if isinstance(data, Tag) else list(data)
        for tag in tags:
            self.write_tag(tag)
        return bytes(self.buffer)

    def read_compressed(self, buffer: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> Tag:
        """Decode a gzip- or zlib-compressed root tag."""
        return self.read(decompress(buffer), max_depth)

    def write_compressed(self, data: Union[Tag, Iterable[Tag]], level: int = 6) -> bytes:
        """Encode and gzip.  mtime is pinned so output is reproducible."""
        return gzip.compress(self.write(data), compresslevel=level, mtime=0)


def _too_deep() -> NbtError:
    # A large or disabled max_depth can still outrun the interpreter stack.
    return NbtError(ERR_LIMIT_DEPTH, "Nesting level too deep: hit the interpreter recursion limit")


class BigEndianNbtStream(NbtStream):
    _endian = ">"


class LittleEndianNbtStream(NbtStream):
    _endian = "<"


def decompress(buffer: bytes) -> bytes:
    """Inflate gzip or zlib data (the header is detected automatically)."""
    try:
        # wbits 32 + MAX_WBITS: accept either a gzip or a zlib header.
        return zlib.decompress(buffer, 32 + zlib.MAX_WBITS)
    except zlib.error as e:
        raise NbtError(ERR_CORRUPT, "Failed to decompress data: {}".format(e))
