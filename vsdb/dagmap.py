"""Layered key-value maps arranged as a tree of versions.

Each :class:`DagMapRaw` holds its own writes and falls back to its parent
for keys it has not written. Removing a key writes an empty value, which
hides any value the ancestors hold. Pruning folds a whole line of
ancestors into the root and returns it as the new head.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable
from typing import Generic, Optional, TypeVar, Union

__all__ = [
    "DagMapError",
    "Slot",
    "ValueMut",
    "next_dag_map_id",
    "DagMapRaw",
]

ID_WIDTH = 16

BytesLike = Union[str, bytes, bytearray, memoryview]

T = TypeVar("T")


class DagMapError(RuntimeError):
    """Raised when the structure of a dag map is inconsistent."""


class Slot(Generic[T]):
    """A shared, replaceable holder for a single value."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        self._value = value

    def get_value(self) -> T:
        """Return the held value."""
        return self._value

    def set_value(self, value: T) -> None:
        """Replace the held value."""
        self._value = value

    def __repr__(self) -> str:
        return f"Slot({self._value!r})"


_id_lock = threading.Lock()
_id_counter = itertools.count(1)


def next_dag_map_id() -> int:
    """Return a new, process-wide unique identifier for a child map."""
    with _id_lock:
        return next(_id_counter)


def _as_bytes(obj: BytesLike, what: str) -> bytes:
    if isinstance(obj, str):
        return obj.encode("utf-8")
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj)
    raise TypeError(f"{what} must be str or bytes-like, not {type(obj).__name__}")


class ValueMut:
    """Writable view of one value stored directly in a map.

    Assigning to :attr:`value` writes the new bytes back at once.
    """

    __slots__ = ("_store", "_key", "_value")

    def __init__(self, store: dict[bytes, bytes], key: bytes) -> None:
        self._store = store
        self._key = key
        self._value = store[key]

    @property
    def value(self) -> bytes:
        return self._value

    @value.setter
    def value(self, new: BytesLike) -> None:
        self._value = _as_bytes(new, "value")
        self._store[self._key] = self._value

    def __bytes__(self) -> bytes:
        return self._value

    def __enter__(self) -> ValueMut:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._store[self._key] = self._value

    def __repr__(self) -> str:
        return f"ValueMut({self._value!r})"


class DagMapRaw:
    """A map of raw bytes layered over an optional parent map."""

    __slots__ = ("_data", "_parent", "_children")

    def __init__(self, parent: Slot[Optional[DagMapRaw]]) -> None:
        self._data: dict[bytes, bytes] = {}
        self._parent = parent
        self._children: dict[bytes, DagMapRaw] = {}

        owner = parent.get_value()
        if owner is not None:
            child_id = next_dag_map_id().to_bytes(ID_WIDTH, "big")
            if child_id in owner._children:
                raise DagMapError(f"child id {child_id.hex()} already exists")
            owner._children[child_id] = self.shadow()

    @classmethod
    def _from_parts(
        cls,
        data: dict[bytes, bytes],
        parent: Slot[Optional[DagMapRaw]],
        children: dict[bytes, DagMapRaw],
    ) -> DagMapRaw:
        obj = cls.__new__(cls)
        obj._data = data
        obj._parent = parent
        obj._children = children
        return obj

    def shadow(self) -> DagMapRaw:
        """Return another handle that shares all storage with this map."""
        return self._from_parts(self._data, self._parent, self._children)

    def is_dead(self) -> bool:
        """True when the map holds no data, no parent and no children."""
        return (
            not self._data
            and self._parent.get_value() is None
            and self.no_children()
        )

    def no_children(self) -> bool:
        return not self._children

    def get(self, key: BytesLike) -> Optional[bytes]:
        """Look the key up here, then in each ancestor in turn."""
        raw_key = _as_bytes(key, "key")
        node: Optional[DagMapRaw] = self
        while node is not None:
            found = node._data.get(raw_key)
            if found is not None:
                return found or None
            node = node._parent.get_value()
        return None

    def get_mut(self, key: BytesLike) -> Optional[ValueMut]:
        """Return a writable view of a value written in this map itself."""
        raw_key = _as_bytes(key, "key")
        if raw_key not in self._data:
            return None
        return ValueMut(self._data, raw_key)

    def insert(self, key: BytesLike, value: BytesLike) -> Optional[bytes]:
        """Store a value and return what this map itself held before."""
        raw_key = _as_bytes(key, "key")
        previous = self._data.get(raw_key)
        self._data[raw_key] = _as_bytes(value, "value")
        return previous

    def remove(self, key: BytesLike) -> Optional[bytes]:
        """Hide the key from this map and its descendants."""
        return self.insert(key, b"")

    def prune(self) -> DagMapRaw:
        """Fold this map's line of ancestors into the root and return it.

        Every other branch hanging off that line is destroyed; the children
        of this map are moved under the returned head.
        """
        parent = self._parent.get_value()
        if parent is None:
            return self

        line = [parent]
        while (ancestor := line[-1]._parent.get_value()) is not None:
            line.append(ancestor)
        genesis = line[-1]

        for node in reversed(line[:-1]):
            genesis._data.update(node._data)
        genesis._data.update(self._data)

        kept_ids = []
        for child_id, child in list(self._children.items()):
            child._parent.set_value(genesis.shadow())
            genesis._children[child_id] = child
            kept_ids.append(child_id)

        self._parent.set_value(None)
        self._data.clear()
        self._children.clear()

        genesis.prune_children_exclude(kept_ids)
        return genesis

    def prune_children_include(self, include_targets: Iterable[BytesLike]) -> None:
        """Destroy the children whose ids are listed."""
        self._prune_children(include_targets, exclude_mode=False)

    def prune_children_exclude(self, exclude_targets: Iterable[BytesLike]) -> None:
        """Destroy the children whose ids are not listed."""
        self._prune_children(exclude_targets, exclude_mode=True)

    def _prune_children(
        self, targets: Iterable[BytesLike], *, exclude_mode: bool
    ) -> None:
        wanted = {_as_bytes(t, "child id") for t in targets}
        dropped = [
            (child_id, child)
            for child_id, child in self._children.items()
            if (child_id in wanted) != exclude_mode
        ]
        for child_id, _ in dropped:
            del self._children[child_id]
        for _, child in dropped:
            child.destroy()

    def destroy(self) -> None:
        """Drop all data of this map and, recursively, of its children."""
        pending = [self]
        while pending:
            node = pending.pop()
            node._parent.set_value(None)
            node._data.clear()
            children = list(node._children.values())
            node._children.clear()
            pending.extend(children)

    def is_the_same_instance(self, other: DagMapRaw) -> bool:
        """True when both handles share the same storage."""
        return self._data is other._data

    def __repr__(self) -> str:
        return (
            f"DagMapRaw(keys={len(self._data)}, children={len(self._children)}, "
            f"has_parent={self._parent.get_value() is not None})"
        )