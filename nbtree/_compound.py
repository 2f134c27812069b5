"""CompoundTag: an ordered, name-keyed collection of child tags.

A compound owns its children.  Each child is stored under its own name,
so for every entry `key == tag.name`.  Python dicts keep insertion order,
which gives the iteration order and the write order; replacing an entry
keeps its original position.

Mutation is type-stable: set_tag() refuses to replace a child with a tag
of a different kind unless force=True.  Decoding is deliberately more
lenient (see read()).
"""

from __future__ import annotations

from itertools import islice
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    ItemsView,
    Iterable,
    Iterator,
    KeysView,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    ValuesView,
)

import structlog

from ._constants import TAG_COMPOUND
from ._errors import (
    ERR_DUP_KEY,
    ERR_EXHAUSTED_ITERATOR,
    ERR_INVALID_OPERATION,
    ERR_MISSING_OR_WRONG_TYPE,
    ERR_NAME_MISMATCH,
    ERR_TYPE_MISMATCH,
    NbtError,
)
from ._list import ListTag
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
    unwrap,
)

if TYPE_CHECKING:
    from ._stream import NbtStream
    from ._tracker import ReaderTracker

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Tag)


class CompoundTag(ContainerTag, type_id=TAG_COMPOUND):
    __slots__ = ("_value", "_cursor")

    def __init__(self, name: str = "", value: Iterable[Tag] = ()) -> None:
        super().__init__(name)
        self._value: Dict[str, Tag] = {}
        self._cursor = 0
        for tag in value:
            self.set_tag(tag)

    @property
    def value(self) -> Dict[str, Tag]:
        """Shallow copy of the name → tag mapping (children are not copied)."""
        return dict(self._value)

    def __len__(self) -> int:
        return len(self._value)

    # ── Typed slot access ─────────────────────────────────────

    def get_tag(self, name: str, expected: Type[T] = Tag) -> Optional[T]:  # type: ignore[assignment]
        """Return the child named `name`, or None if there is none.

        Raises NbtError(ERR_TYPE_MISMATCH) if the child exists and is not
        an instance of `expected`.
        """
        tag = self._value.get(name)
        if tag is not None and not isinstance(tag, expected):
            raise NbtError(
                ERR_TYPE_MISMATCH,
                'Expected a tag of type {} at "{}", got {}'.format(
                    expected.__name__, name, type(tag).__name__
                ),
            )
        return tag

    def get_list_tag(self, name: str) -> Optional[ListTag]:
        return self.get_tag(name, ListTag)

    def get_compound_tag(self, name: str) -> Optional["CompoundTag"]:
        return self.get_tag(name, CompoundTag)

    def set_tag(self, tag: Tag, force: bool = False) -> None:
        """Store `tag` under its own name.

        If a tag already occupies that name, the new tag must be an
        instance of the occupant's class unless `force` is true.
        """
        if not isinstance(tag, Tag):
            raise TypeError("CompoundTag children must be Tag instances, got {}".format(type(tag).__name__))
        self._check_not_inside(tag)
        if not force:
            existing = self._value.get(tag.name)
            if existing is not None and not isinstance(tag, type(existing)):
                raise NbtError(
                    ERR_TYPE_MISMATCH,
                    'Cannot set tag at "{}": tried to overwrite {} with {}'.format(
                        tag.name, type(existing).__name__, type(tag).__name__
                    ),
                )
        self._value[tag.name] = tag

    def _check_not_inside(self, tag: Tag) -> None:
        if self._is_inside(tag):
            raise NbtError(
                ERR_INVALID_OPERATION,
                "Adding this tag would make the CompoundTag contain itself",
            )

    def remove_tag(self, *names: str) -> None:
        """Remove the named children.  Absent names are ignored."""
        for name in names:
            self._value.pop(name, None)

    def has_tag(self, name: str, expected: Type[Tag] = Tag) -> bool:
        return isinstance(self._value.get(name), expected)

    def get_tag_value(
        self,
        name: str,
        expected: Type[Tag],
        default: Any = None,
        bad_tag_default: bool = False,
    ) -> Any:
        """Return the value of the child `name`, which must be an `expected`.

        If the child is missing, `default` is returned.  If it exists with
        the wrong kind, NbtError(ERR_TYPE_MISMATCH) is raised, unless
        `bad_tag_default` is true, in which case `default` is returned.
        A `default` of None means "no default": a missing child, or a
        mismatched one under `bad_tag_default`, then raises
        NbtError(ERR_MISSING_OR_WRONG_TYPE).
        """
        tag = self.get_tag(name, Tag if bad_tag_default else expected)
        if isinstance(tag, expected):
            return tag.value

        if default is None:
            raise NbtError(
                ERR_MISSING_OR_WRONG_TYPE,
                'Tag with name "{}" {} and no valid default value given'.format(
                    name, "not of expected type" if tag is not None else "not found"
                ),
            )
        return default

    # Typed wrappers around get_tag_value().

    def get_byte(self, name: str, default: Optional[int] = None, bad_tag_default: bool = False) -> int:
        return self.get_tag_value(name, ByteTag, default, bad_tag_default)

    def get_short(self, name: str, default: Optional[int] = None, bad_tag_default: bool = False) -> int:
        return self.get_tag_value(name, ShortTag, default, bad_tag_default)

    def get_int(self, name: str, default: Optional[int] = None, bad_tag_default: bool = False) -> int:
        return self.get_tag_value(name, IntTag, default, bad_tag_default)

    def get_long(self, name: str, default: Optional[int] = None, bad_tag_default: bool = False) -> int:
        return self.get_tag_value(name, LongTag, default, bad_tag_default)

    def get_float(self, name: str, default: Optional[float] = None, bad_tag_default: bool = False) -> float:
        return self.get_tag_value(name, FloatTag, default, bad_tag_default)

    def get_double(self, name: str, default: Optional[float] = None, bad_tag_default: bool = False) -> float:
        return self.get_tag_value(name, DoubleTag, default, bad_tag_default)

    def get_byte_array(self, name: str, default: Optional[bytes] = None, bad_tag_default: bool = False) -> bytes:
        return self.get_tag_value(name, ByteArrayTag, default, bad_tag_default)

    def get_string(self, name: str, default: Optional[str] = None, bad_tag_default: bool = False) -> str:
        return self.get_tag_value(name, StringTag, default, bad_tag_default)

    def get_int_array(
        self, name: str, default: Optional[List[int]] = None, bad_tag_default: bool = False
    ) -> List[int]:
        return self.get_tag_value(name, IntArrayTag, default, bad_tag_default)

    def get_long_array(
        self, name: str, default: Optional[List[int]] = None, bad_tag_default: bool = False
    ) -> List[int]:
        return self.get_tag_value(name, LongArrayTag, default, bad_tag_default)

    # Typed wrappers around set_tag() that build the leaf tag.

    def set_byte(self, name: str, value: int, force: bool = False) -> None:
        self.set_tag(ByteTag(name, value), force)

    def set_short(self, name: str, value: int, force: bool = False) -> None:
        self.set_tag(ShortTag(name, value), force)

    def set_int(self, name: str, value: int, force: bool = False) -> None:
        self.set_tag(IntTag(name, value), force)

    def set_long(self, name: str, value: int, force: bool = False) -> None:
        self.set_tag(LongTag(name, value), force)

    def set_float(self, name: str, value: float, force: bool = False) -> None:
        self.set_tag(FloatTag(name, value), force)

    def set_double(self, name: str, value: float, force: bool = False) -> None:
        self.set_tag(DoubleTag(name, value), force)

    def set_byte_array(self, name: str, value: bytes, force: bool = False) -> None:
        self.set_tag(ByteArrayTag(name, value), force)

    def set_string(self, name: str, value: str, force: bool = False) -> None:
        self.set_tag(StringTag(name, value), force)

    def set_int_array(self, name: str, value: Iterable[int], force: bool = False) -> None:
        self.set_tag(IntArrayTag(name, value), force)

    def set_long_array(self, name: str, value: Iterable[int], force: bool = False) -> None:
        self.set_tag(LongArrayTag(name, value), force)

    # ── Indexed access ────────────────────────────────────────

    def __contains__(self, name: object) -> bool:
        return name in self._value

    def __getitem__(self, name: str) -> Any:
        # Missing names are a caller bug: check `name in compound` first.
        return unwrap(self._value[name])

    def __setitem__(self, name: Optional[str], tag: Tag) -> None:
        if name is None:
            raise NbtError(ERR_INVALID_OPERATION, "Append-style assignment is not supported by CompoundTag")
        if not isinstance(tag, Tag):
            raise TypeError(
                "Value assigned to CompoundTag must be a Tag, got {}".format(type(tag).__name__)
            )
        if tag.name != name:
            raise NbtError(
                ERR_NAME_MISMATCH,
                'Given tag has a name which does not match the key given (key: "{}", tag name: "{}")'.format(
                    name, tag.name
                ),
            )
        self._check_not_inside(tag)
        self._value[name] = tag

    def __delitem__(self, name: str) -> None:
        self._value.pop(name, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._value)

    def _children(self) -> Iterable[Tag]:
        return self._value.values()

    def keys(self) -> KeysView[str]:
        return self._value.keys()

    def values(self) -> ValuesView[Tag]:
        return self._value.values()

    def items(self) -> ItemsView[str, Tag]:
        return self._value.items()

    # ── Cursor iteration ──────────────────────────────────────
    # One cursor per compound: a position in insertion order over the live
    # entries, so entries added after a rewind are still visited.

    def rewind(self) -> None:
        self._cursor = 0

    def _entry(self) -> Optional[Tuple[str, Tag]]:
        if self._cursor >= len(self._value):
            return None
        return next(islice(self._value.items(), self._cursor, None))

    def valid(self) -> bool:
        return self._entry() is not None

    def current(self) -> Tag:
        entry = self._entry()
        if entry is None:
            raise NbtError(ERR_EXHAUSTED_ITERATOR, "Iterator already reached the end")
        return entry[1]

    def key(self) -> str:
        entry = self._entry()
        if entry is None:
            raise NbtError(ERR_EXHAUSTED_ITERATOR, "Iterator already reached the end")
        return entry[0]

    def next(self) -> None:
        if self._cursor < len(self._value):
            self._cursor += 1

    # ── Equality, clone, merge ────────────────────────────────

    def equals_value(self, other: Tag) -> bool:
        if type(other) is not type(self) or len(self) != len(other):  # type: ignore[arg-type]
            return False
        theirs = other._value  # type: ignore[attr-defined]
        for name, tag in self._value.items():
            match = theirs.get(name)
            if match is None or not tag.equals(match):
                return False
        return True

    def clone(self) -> "CompoundTag":
        new = type(self)(self._name)
        for name, tag in self._value.items():
            new._value[name] = tag.clone()
        return new

    def merge(self, other: "CompoundTag") -> "CompoundTag":
        """Return a copy of this compound with the entries of `other` merged in.

        On a name collision the entry from `other` wins, whatever its kind.
        Both inputs are left untouched; every tag in the result is a clone.
        """
        if not isinstance(other, CompoundTag):
            raise TypeError("Can only merge a CompoundTag, got {}".format(type(other).__name__))
        new = self.clone()
        for tag in other._value.values():
            new.set_tag(tag.clone(), force=True)
        return new

    def describe(self, indent: int = 0) -> str:
        return self._describe_children(indent, self._value.values())

    # ── Wire ──────────────────────────────────────────────────

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = {}
        self._cursor = 0
        with tracker.protect_depth():
            while True:
                tag = stream.read_tag(tracker)
                if tag is None:
                    break
                if tag.name in self._value:
                    # Seen in old world saves.  First entry wins.
                    if stream.strict:
                        raise NbtError(ERR_DUP_KEY, 'Duplicate tag name "{}" in compound'.format(tag.name))
                    logger.debug(
                        "duplicate tag discarded",
                        name=tag.name,
                        kept=type(self._value[tag.name]).__name__,
                        dropped=type(tag).__name__,
                    )
                    continue
                self._value[tag.name] = tag

    def write(self, stream: "NbtStream") -> None:
        for tag in self._value.values():
            stream.write_tag(tag)
        stream.write_end()
