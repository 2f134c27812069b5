"""Nesting depth tracking for decode.

Every container tag enters a depth scope before decoding its children.
The scope is a context manager so the depth is restored on every exit
path, including an exception raised halfway through a subtree.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from ._constants import DEFAULT_MAX_DEPTH
from ._errors import ERR_LIMIT_DEPTH, NbtError

T = TypeVar("T")


class ReaderTracker:
    """Tracks container nesting while a stream is decoded.

    max_depth=0 sets no fixed limit.  The root helpers on NbtStream still
    report ERR_LIMIT_DEPTH when input nests past the interpreter stack.
    """

    __slots__ = ("_max_depth", "_depth")

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0, got {}".format(max_depth))
        self._max_depth = max_depth
        self._depth = 0

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def depth(self) -> int:
        return self._depth

    @contextmanager
    def protect_depth(self) -> Iterator[None]:
        # A refused entry leaves the counter untouched.
        if self._max_depth > 0 and self._depth + 1 > self._max_depth:
            raise NbtError(
                ERR_LIMIT_DEPTH,
                "Nesting level too deep: reached max depth of {} tags".format(self._max_depth),
            )
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    def with_nested_scope(self, body: Callable[[], T]) -> T:
        """Run body() one nesting level deeper and return its result."""
        with self.protect_depth():
            return body()
