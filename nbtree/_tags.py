"""Tag base class and the leaf tag kinds.

The tag kinds form a closed set.  Each concrete subclass registers itself
under its wire type id when the class is created, and the decoder resolves
type ids through Tag.registry.  That lookup is the one runtime discriminant
check at the decode boundary.  Everything above it works with classes:

    compound.get_tag("hp", IntTag)

Leaf values are validated on assignment, so a tag that exists always holds
a value its wire format can encode.
"""

from __future__ import annotations

import math
import struct
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterable, List, Optional, Type

from ._constants import (
    INT8_MAX,
    INT8_MIN,
    INT16_MAX,
    INT16_MIN,
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    MAX_STRING_LENGTH,
    TAG_BYTE,
    TAG_BYTE_ARRAY,
    TAG_DOUBLE,
    TAG_END,
    TAG_FLOAT,
    TAG_INT,
    TAG_INT_ARRAY,
    TAG_LONG,
    TAG_LONG_ARRAY,
    TAG_SHORT,
    TAG_STRING,
)
from ._errors import ERR_VALUE, NbtError

if TYPE_CHECKING:
    from ._stream import NbtStream
    from ._tracker import ReaderTracker


def _utf8(text: str, what: str) -> bytes:
    """Encode a name or string payload, enforcing the length limit.

    surrogateescape keeps strings decoded from non-UTF-8 legacy data
    byte-exact on the way back out.
    """
    if not isinstance(text, str):
        raise NbtError(ERR_VALUE, "{} must be str, got {}".format(what, type(text).__name__))
    try:
        raw = text.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        raise NbtError(ERR_VALUE, "{} is not encodable as UTF-8".format(what))
    if len(raw) > MAX_STRING_LENGTH:
        raise NbtError(
            ERR_VALUE,
            "{} is too long: {} bytes, max {}".format(what, len(raw), MAX_STRING_LENGTH),
        )
    return raw


def _check_int(value: Any, lo: int, hi: int, owner: str) -> int:
    # bool before int: True is an int in Python and must not become Byte(1).
    if isinstance(value, bool) or not isinstance(value, int):
        raise NbtError(ERR_VALUE, "{} value must be int, got {}".format(owner, type(value).__name__))
    if value < lo or value > hi:
        raise NbtError(ERR_VALUE, "{} value {} outside {} .. {}".format(owner, value, lo, hi))
    return value


# ── Tag base ─────────────────────────────────────────────────

class Tag:
    """A named, typed node of the tree."""

    __slots__ = ("_name",)

    kind: ClassVar[int] = TAG_END
    registry: ClassVar[Dict[int, Type["Tag"]]] = {}

    def __init_subclass__(cls, type_id: Optional[int] = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if type_id is None:
            return  # intermediate base, not a wire kind
        existing = Tag.registry.get(type_id)
        if existing is not None and existing is not cls:
            raise ValueError(
                "Tag type {} already registered to {}".format(type_id, existing.__name__)
            )
        cls.kind = type_id
        Tag.registry[type_id] = cls

    def __init__(self, name: str = "") -> None:
        _utf8(name, "Tag name")
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> Any:
        raise NotImplementedError

    # ── Equality ──────────────────────────────────────────────

    def equals(self, other: "Tag") -> bool:
        """Name and value equality."""
        return self._name == other._name and self.equals_value(other)

    def equals_value(self, other: "Tag") -> bool:
        return type(other) is type(self) and self.value == other.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        return self.equals(other)

    # Tags are mutable.
    __hash__ = None  # type: ignore[assignment]

    # ── Copying ───────────────────────────────────────────────

    def clone(self) -> "Tag":
        return type(self)(self._name, self.value)  # type: ignore[call-arg]

    def __copy__(self) -> "Tag":
        return self.clone()

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Tag":
        return self.clone()

    # ── Display ───────────────────────────────────────────────

    def _describe_head(self, indent: int) -> str:
        head = "  " * indent + type(self).__name__ + ": "
        if self._name != "":
            head += "name='{}', ".format(self._name)
        return head

    def describe(self, indent: int = 0) -> str:
        return self._describe_head(indent) + "value={!r}".format(self.value)

    def __repr__(self) -> str:
        return self.describe()

    # ── Wire ──────────────────────────────────────────────────

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        """Decode this tag's payload from stream (header already consumed)."""
        raise NotImplementedError

    def write(self, stream: "NbtStream") -> None:
        """Encode this tag's payload to stream (header written by caller)."""
        raise NotImplementedError


class ContainerTag(Tag):
    """Base of the tags that own child tags (list and compound).

    Indexed reads on a container return container children as tags, so
    lookups chain (root["Level"]["Sections"][0]), and leaves as values.
    """

    __slots__ = ()

    def _children(self) -> Iterable[Tag]:
        raise NotImplementedError

    def _is_inside(self, tag: Tag) -> bool:
        """True if this container is `tag` or is reachable from it."""
        stack = [tag]
        while stack:
            t = stack.pop()
            if t is self:
                return True
            if isinstance(t, ContainerTag):
                stack.extend(t._children())
        return False

    def _describe_children(self, indent: int, children: Iterable[Tag]) -> str:
        out = self._describe_head(indent) + "value={\n"
        for tag in children:
            out += tag.describe(indent + 1) + "\n"
        return out + "  " * indent + "}"


def unwrap(tag: Tag) -> Any:
    return tag if isinstance(tag, ContainerTag) else tag.value


# ── Integer kinds ────────────────────────────────────────────

class _IntegerTag(Tag):
    __slots__ = ("_value",)

    _min: ClassVar[int]
    _max: ClassVar[int]

    def __init__(self, name: str = "", value: int = 0) -> None:
        super().__init__(name)
        self.value = value

    @property
    def value(self) -> int:
        return self._value

    @value.setter
    def value(self, value: int) -> None:
        self._value = _check_int(value, self._min, self._max, type(self).__name__)


class ByteTag(_IntegerTag, type_id=TAG_BYTE):
    __slots__ = ()
    _min = INT8_MIN
    _max = INT8_MAX

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_byte()

    def write(self, stream: "NbtStream") -> None:
        stream.put_byte(self._value)


class ShortTag(_IntegerTag, type_id=TAG_SHORT):
    __slots__ = ()
    _min = INT16_MIN
    _max = INT16_MAX

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_short()

    def write(self, stream: "NbtStream") -> None:
        stream.put_short(self._value)


class IntTag(_IntegerTag, type_id=TAG_INT):
    __slots__ = ()
    _min = INT32_MIN
    _max = INT32_MAX

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_int()

    def write(self, stream: "NbtStream") -> None:
        stream.put_int(self._value)


class LongTag(_IntegerTag, type_id=TAG_LONG):
    __slots__ = ()
    _min = INT64_MIN
    _max = INT64_MAX

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_long()

    def write(self, stream: "NbtStream") -> None:
        stream.put_long(self._value)


# ── Floating-point kinds ─────────────────────────────────────

def _to_float(value: Any, owner: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise NbtError(ERR_VALUE, "{} value must be float, got {}".format(owner, type(value).__name__))
    try:
        return float(value)
    except OverflowError:
        raise NbtError(ERR_VALUE, "{} value {} does not fit a double".format(owner, value))


def _same_float(a: float, b: float) -> bool:
    # NaN equals NaN here, so a tree holding one still equals its clone.
    return a == b or (math.isnan(a) and math.isnan(b))


class FloatTag(Tag, type_id=TAG_FLOAT):
    """Single-precision float.

    The value is rounded to binary32 on assignment so a tag compares equal
    to itself after an encode/decode round trip.
    """

    __slots__ = ("_value",)

    def __init__(self, name: str = "", value: float = 0.0) -> None:
        super().__init__(name)
        self.value = value

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        v = _to_float(value, "FloatTag")
        try:
            self._value = struct.unpack(">f", struct.pack(">f", v))[0]
        except OverflowError:
            raise NbtError(ERR_VALUE, "FloatTag value {} does not fit a float".format(value))

    def equals_value(self, other: Tag) -> bool:
        return type(other) is type(self) and _same_float(self._value, other._value)  # type: ignore[attr-defined]

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_float()

    def write(self, stream: "NbtStream") -> None:
        stream.put_float(self._value)


class DoubleTag(Tag, type_id=TAG_DOUBLE):
    __slots__ = ("_value",)

    def __init__(self, name: str = "", value: float = 0.0) -> None:
        super().__init__(name)
        self.value = value

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        self._value = _to_float(value, "DoubleTag")

    def equals_value(self, other: Tag) -> bool:
        return type(other) is type(self) and _same_float(self._value, other._value)  # type: ignore[attr-defined]

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_double()

    def write(self, stream: "NbtStream") -> None:
        stream.put_double(self._value)


# ── Byte and text payloads ───────────────────────────────────

class ByteArrayTag(Tag, type_id=TAG_BYTE_ARRAY):
    __slots__ = ("_value",)

    def __init__(self, name: str = "", value: bytes = b"") -> None:
        super().__init__(name)
        self.value = value

    @property
    def value(self) -> bytes:
        return self._value

    @value.setter
    def value(self, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise NbtError(ERR_VALUE, "ByteArrayTag value must be bytes, got {}".format(type(value).__name__))
        raw = bytes(value)
        if len(raw) > INT32_MAX:
            raise NbtError(ERR_VALUE, "ByteArrayTag value is too long")
        self._value = raw

    def describe(self, indent: int = 0) -> str:
        return self._describe_head(indent) + "value=0x{}".format(self._value.hex())

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_byte_array()

    def write(self, stream: "NbtStream") -> None:
        stream.put_byte_array(self._value)


class StringTag(Tag, type_id=TAG_STRING):
    __slots__ = ("_value",)

    def __init__(self, name: str = "", value: str = "") -> None:
        super().__init__(name)
        self.value = value

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        _utf8(value, "StringTag value")
        self._value = value

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_string()

    def write(self, stream: "NbtStream") -> None:
        stream.put_string(self._value)


# ── Integer arrays ───────────────────────────────────────────

class _IntArrayBase(Tag):
    __slots__ = ("_value",)

    _min: ClassVar[int]
    _max: ClassVar[int]

    def __init__(self, name: str = "", value: Iterable[int] = ()) -> None:
        super().__init__(name)
        self.value = value  # type: ignore[assignment]

    @property
    def value(self) -> List[int]:
        # Copy out: the stored list is only mutated through the setter.
        return list(self._value)

    @value.setter
    def value(self, value: Iterable[int]) -> None:
        owner = type(self).__name__
        if isinstance(value, (str, bytes)):
            raise NbtError(ERR_VALUE, "{} value must be a sequence of int".format(owner))
        self._value = [_check_int(v, self._min, self._max, owner) for v in value]

    def equals_value(self, other: Tag) -> bool:
        return type(other) is type(self) and self._value == other._value  # type: ignore[attr-defined]


class IntArrayTag(_IntArrayBase, type_id=TAG_INT_ARRAY):
    __slots__ = ()
    _min = INT32_MIN
    _max = INT32_MAX

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_int_array()

    def write(self, stream: "NbtStream") -> None:
        stream.put_int_array(self._value)


class LongArrayTag(_IntArrayBase, type_id=TAG_LONG_ARRAY):
    __slots__ = ()
    _min = INT64_MIN
    _max = INT64_MAX

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = stream.get_long_array()

    def write(self, stream: "NbtStream") -> None:
        stream.put_long_array(self._value)
