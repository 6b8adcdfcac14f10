"""A dag map whose values are encoded and decoded automatically."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Generic, Optional, TypeVar

from .dagmap import BytesLike, DagMapRaw, Slot
from .dagmap import ValueMut as RawValueMut
from .ende import decode_value, encode_value

__all__ = ["DagMapRawKey", "ValueMut"]

V = TypeVar("V")


class ValueMut(Generic[V]):
    """Writable view of one decoded value stored directly in a map.

    Assigning to :attr:`value` writes it back at once; values changed in
    place are written back by :meth:`commit` or on leaving a ``with`` block.
    """

    __slots__ = ("_raw", "_value")

    def __init__(self, raw: RawValueMut) -> None:
        self._raw = raw
        self._value: V = decode_value(raw.value)

    @property
    def value(self) -> V:
        return self._value

    @value.setter
    def value(self, new: V) -> None:
        self._value = new
        self.commit()

    def commit(self) -> None:
        """Write the current value back to the map."""
        self._raw.value = encode_value(self._value)

    def __enter__(self) -> ValueMut[V]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.commit()

    def __repr__(self) -> str:
        return f"ValueMut({self._value!r})"


def _decode_present(raw: Optional[bytes]) -> Any:
    return decode_value(raw) if raw else None


class DagMapRawKey(Generic[V]):
    """A :class:`DagMapRaw` with raw keys and encoded values."""

    __slots__ = ("_inner",)

    def __init__(self, raw_parent: Slot[Optional[DagMapRaw]]) -> None:
        self._inner = DagMapRaw(raw_parent)

    @classmethod
    def _wrap(cls, inner: DagMapRaw) -> DagMapRawKey[V]:
        obj = cls.__new__(cls)
        obj._inner = inner
        return obj

    def into_inner(self) -> DagMapRaw:
        """Return the underlying raw map."""
        return self._inner

    def shadow_inner(self) -> DagMapRaw:
        """Return a raw handle sharing storage with this map."""
        return self._inner.shadow()

    def shadow(self) -> DagMapRawKey[V]:
        """Return another handle sharing storage with this map."""
        return self._wrap(self.shadow_inner())

    def is_dead(self) -> bool:
        return self._inner.is_dead()

    def no_children(self) -> bool:
        return self._inner.no_children()

    def get(self, key: BytesLike) -> Optional[V]:
        """Look the key up here, then in each ancestor in turn."""
        return _decode_present(self._inner.get(key))

    def get_mut(self, key: BytesLike) -> Optional[ValueMut[V]]:
        """Return a writable view of a value written in this map itself."""
        raw = self._inner.get_mut(key)
        if raw is None or not raw.value:
            return None
        return ValueMut(raw)

    def insert(self, key: BytesLike, value: V) -> Optional[V]:
        """Store a value and return what this map itself held before."""
        return _decode_present(self._inner.insert(key, encode_value(value)))

    def remove(self, key: BytesLike) -> Optional[V]:
        """Hide the key and return what this map itself held before."""
        return _decode_present(self._inner.remove(key))

    def prune(self) -> DagMapRawKey[V]:
        """Fold this map's line of ancestors into the root and return it."""
        return self._wrap(self._inner.prune())

    def prune_children_include(self, include_targets: Iterable[BytesLike]) -> None:
        """Destroy the children whose ids are listed."""
        self._inner.prune_children_include(include_targets)

    def prune_children_exclude(self, exclude_targets: Iterable[BytesLike]) -> None:
        """Destroy the children whose ids are not listed."""
        self._inner.prune_children_exclude(exclude_targets)

    def destroy(self) -> None:
        """Drop all data of this map and, recursively, of its children."""
        self._inner.destroy()

    def is_the_same_instance(self, other: DagMapRawKey[V]) -> bool:
        return self._inner.is_the_same_instance(other._inner)

    def __repr__(self) -> str:
        return f"DagMapRawKey({self._inner!r})"