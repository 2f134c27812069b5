"""ListTag: a homogeneous sequence of unnamed tags."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Iterator, List, Optional

from ._constants import TAG_END, TAG_LIST
from ._errors import (
    ERR_CORRUPT,
    ERR_INVALID_OPERATION,
    ERR_TYPE_MISMATCH,
    ERR_VALUE,
    NbtError,
)
from ._tags import ContainerTag, Tag, unwrap

if TYPE_CHECKING:
    from ._stream import NbtStream
    from ._tracker import ReaderTracker


def _kind_name(type_id: int) -> str:
    if type_id == TAG_END:
        return "TAG_End"
    cls = Tag.registry.get(type_id)
    return cls.__name__ if cls is not None else "type {}".format(type_id)


class ListTag(ContainerTag, type_id=TAG_LIST):
    """A list of tags sharing one kind.

    A list typed TAG_END has no kind yet and adopts the kind of the first
    tag pushed into it.  Element names are not part of the wire format;
    element equality compares values only.
    """

    __slots__ = ("_value", "_tag_type")

    def __init__(self, name: str = "", value: Iterable[Tag] = (), tag_type: int = TAG_END) -> None:
        super().__init__(name)
        self._check_type_id(tag_type)
        self._tag_type = tag_type
        self._value: List[Tag] = []
        for tag in value:
            self.push(tag)

    @staticmethod
    def _check_type_id(tag_type: int) -> None:
        if tag_type != TAG_END and tag_type not in Tag.registry:
            raise NbtError(ERR_VALUE, "Unknown tag type {}".format(tag_type))

    @property
    def value(self) -> List[Tag]:
        return list(self._value)

    @property
    def tag_type(self) -> int:
        return self._tag_type

    @tag_type.setter
    def tag_type(self, tag_type: int) -> None:
        if self._value:
            raise NbtError(ERR_INVALID_OPERATION, "Cannot change tag type of non-empty ListTag")
        self._check_type_id(tag_type)
        self._tag_type = tag_type

    def _check_tag(self, tag: Tag) -> None:
        if not isinstance(tag, Tag):
            raise TypeError("ListTag elements must be Tag instances, got {}".format(type(tag).__name__))
        if self._is_inside(tag):
            raise NbtError(ERR_INVALID_OPERATION, "Adding this tag would make the ListTag contain itself")
        if self._tag_type == TAG_END:
            self._tag_type = tag.kind
        elif tag.kind != self._tag_type:
            raise NbtError(
                ERR_TYPE_MISMATCH,
                "Invalid tag of type {} assigned to ListTag, expected {}".format(
                    type(tag).__name__, _kind_name(self._tag_type)
                ),
            )

    # ── Sequence operations ───────────────────────────────────

    def push(self, tag: Tag) -> None:
        self._check_tag(tag)
        self._value.append(tag)

    append = push

    def insert(self, index: int, tag: Tag) -> None:
        self._check_tag(tag)
        self._value.insert(index, tag)

    def pop(self, index: int = -1) -> Tag:
        return self._value.pop(index)

    def get(self, index: int) -> Tag:
        return self._value[index]

    def set(self, index: int, tag: Tag) -> None:
        if index >= len(self._value) or index < -len(self._value):
            raise IndexError("ListTag index {} out of range".format(index))
        self._check_tag(tag)
        self._value[index] = tag

    def first(self) -> Tag:
        return self._value[0]

    def last(self) -> Tag:
        return self._value[-1]

    def get_all_values(self) -> List[Any]:
        """Leaf values unwrapped, nested containers as tags."""
        return [unwrap(tag) for tag in self._value]

    def __getitem__(self, index: int) -> Any:
        return unwrap(self._value[index])

    def __setitem__(self, index: Optional[int], tag: Tag) -> None:
        if index is None:
            self.push(tag)
        else:
            self.set(index, tag)

    def __delitem__(self, index: int) -> None:
        del self._value[index]

    def __len__(self) -> int:
        return len(self._value)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._value)

    def _children(self) -> Iterable[Tag]:
        return self._value

    # ── Tag protocol ──────────────────────────────────────────

    def equals_value(self, other: Tag) -> bool:
        if type(other) is not type(self) or len(self) != len(other):  # type: ignore[arg-type]
            return False
        return all(a.equals_value(b) for a, b in zip(self._value, other._value))  # type: ignore[attr-defined]

    def clone(self) -> "ListTag":
        new = type(self)(self._name, tag_type=self._tag_type)
        new._value = [tag.clone() for tag in self._value]
        return new

    def describe(self, indent: int = 0) -> str:
        return self._describe_children(indent, self._value)

    def read(self, stream: "NbtStream", tracker: "ReaderTracker") -> None:
        self._value = []
        tag_type = stream.get_unsigned_byte()
        size = stream.get_int()
        if tag_type != TAG_END and tag_type not in Tag.registry:
            raise NbtError(ERR_CORRUPT, "Unknown list element tag type {}".format(tag_type))
        if size < 0:
            raise NbtError(ERR_CORRUPT, "Negative list length {}".format(size))
        self._tag_type = tag_type
        if size == 0:
            return
        if tag_type == TAG_END:
            raise NbtError(ERR_CORRUPT, "Unexpected non-empty list of TAG_End")
        # Every element payload is at least one byte long.
        if size > stream.remaining():
            raise NbtError(ERR_CORRUPT, "List length {} exceeds remaining input".format(size))
        with tracker.protect_depth():
            for _ in range(size):
                tag = stream.create_tag(tag_type, "")
                tag.read(stream, tracker)
                self._value.append(tag)

    def write(self, stream: "NbtStream") -> None:
        stream.put_unsigned_byte(self._tag_type)
        stream.put_int(len(self._value))
        for tag in self._value:
            tag.write(stream)
