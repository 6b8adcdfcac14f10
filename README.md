# vsdb

This package provides in-memory key-value maps stacked in layers to form a tree of versions. It also provides key and value encodings. For the key encodings, byte order matches the order of the original values.

The package needs only the Python standard library and runs on Python 3.10 or later.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Encodings (`vsdb.ende`)

### Integer keys

`IntKind` lists the fixed-width integer types:

- `I8`, `I16`, `I32`, `I64`, `I128`, `ISIZE`
- `U8`, `U16`, `U32`, `U64`, `U128`, `USIZE`

`ISIZE` and `USIZE` are 8 bytes wide. Each kind has three methods: `width()` (in bytes), `minimum()` and `maximum()`.

`encode_int(value, kind)` encodes an integer in two steps:

1. It subtracts the type's minimum.
2. It writes the result big-endian.

As a result, byte-wise order matches numeric order, and this holds for negative numbers too.

```python
from vsdb.ende import IntKind, encode_int, decode_int, encode_int_seq, decode_int_seq

raw = encode_int(-5, IntKind.I32)
assert decode_int(raw, IntKind.I32) == -5
assert encode_int(-1, IntKind.I8) < encode_int(0, IntKind.I8)

packed = encode_int_seq([1, 2, 3], IntKind.U16)
assert decode_int_seq(packed, IntKind.U16) == [1, 2, 3]
assert decode_int_seq(packed, IntKind.U16, 3) == [1, 2, 3]
```

`decode_int_seq` takes an optional `length` argument. When you pass it, the data must hold exactly that many integers, and `length` must be between 1 and 128. This matches a fixed-size array.

### String and byte keys

- `encode_str_key` and `decode_str_key` use UTF-8.
- `encode_bytes_key` and `decode_bytes_key` pass bytes through unchanged.

### Values

`encode_value` and `decode_value` use compact UTF-8 JSON. Byte strings are encoded as lists of integers, so they decode back as lists of integers, not as `bytes`.

### Errors

Malformed input raises `CodecError`, a subclass of `ValueError`. Examples of malformed input:

- wrong lengths
- out-of-range integers
- invalid UTF-8
- invalid JSON

## Layered maps (`vsdb.dagmap`)

A `DagMapRaw` is one layer of byte keys and byte values. Keys and values may be given as `str`, which is encoded as UTF-8, or as any bytes-like object.

### Parents and children

You create a map from a `Slot`, a shared holder for a parent map or `None`. When the slot holds a map, the new map registers itself as a child of that map. The child gets a 16-byte big-endian id taken from `next_dag_map_id()`.

### Lookups and writes

- `get(key)` looks in the layer itself first, then in each ancestor in turn.
- `insert(key, value)` writes into this layer only. It returns what this layer held before.
- `remove(key)` writes an empty value. That hides the key from this layer and its descendants.
- `get_mut(key)` returns a `ValueMut` for a value written in this layer itself. Assigning to its `value` attribute stores the new bytes at once.

### Pruning

`prune()` folds the whole line of ancestors, together with this layer, into the root, and returns the root as the new head. In doing so it:

- moves this layer's children under the root;
- destroys every other branch hanging off the root.

### Other methods

- `prune_children_include(ids)` destroys the listed children.
- `prune_children_exclude(ids)` destroys all children that are not listed.
- `destroy()` clears a map and all of its descendants.
- `is_dead()` reports whether the map has no data, no parent and no children.
- `no_children()` reports whether the map has no children.
- `shadow()` returns another handle on the same storage.
- `is_the_same_instance(other)` reports whether two handles share storage.

### Example

```python
from vsdb.dagmap import DagMapRaw, Slot

base = DagMapRaw(Slot(None))
base.insert(b"k0", b"v0")

parent = Slot(base)
child = DagMapRaw(parent)
child.insert(b"k1", b"v1")
assert child.get(b"k0") == b"v0"

child.remove(b"k0")
assert child.get(b"k0") is None
assert base.get(b"k0") == b"v0"

head = child.prune()
assert head.get(b"k1") == b"v1"
assert head.get(b"k0") is None
assert parent.get_value() is None
```

`DagMapError` is raised if a new child's id already exists under its parent.

## Typed layered maps (`vsdb.dagmap_typed`)

`DagMapRawKey` wraps a `DagMapRaw`. Its values pass through `encode_value` and `decode_value`, while its keys stay raw.

Its constructor takes a `Slot` holding a raw `DagMapRaw` parent, or `None`. To build a chain, pass `into_inner()` of the previous map:

```python
from vsdb.dagmap import Slot
from vsdb.dagmap_typed import DagMapRawKey

m0 = DagMapRawKey(Slot(None))
m0.insert("k0", {"n": 1})

m1 = DagMapRawKey(Slot(m0.into_inner()))
assert m1.get("k0") == {"n": 1}

m1.insert("k0", {"n": 2})
with m1.get_mut("k0") as slot:
    slot.value["n"] += 1
assert m1.get("k0") == {"n": 3}
```

### Writing back through `get_mut`

`get_mut` returns a typed `ValueMut`. Assigning to its `value` attribute writes back at once. A change made in place is written back in either of two ways:

- by calling `commit()`;
- on leaving a `with` block.

## What this package does not do

All maps live in memory only. There is no on-disk storage, and nothing survives the process.

Child ids come from a counter held in the process. Nothing records or reloads them.

The package offers no standalone ordered maps or vectors beyond the layered maps described here, and it has no command-line tool.