import pytest

from vsdb.dagmap import DagMapRaw, Slot
from vsdb.dagmap_typed import DagMapRawKey
from vsdb.ende import encode_value


def s(text):
    return text.encode("utf-8")


def test_dagmaprawkey_functions():
    i0 = DagMapRawKey(Slot(None))
    i0.insert("k0", s("v0"))
    assert i0.get("k0") == list(s("v0"))
    assert i0.get("k1") is None
    i0_raw = Slot(i0.into_inner())

    i1 = DagMapRawKey(i0_raw)
    i1.insert("k1", s("v1"))
    assert i1.get("k1") == list(s("v1"))
    assert i1.get("k0") == list(s("v0"))
    i1_raw = Slot(i1.into_inner())

    i2 = DagMapRawKey(i1_raw)
    i2.insert("k2", s("v2"))
    assert i2.get("k2") == list(s("v2"))
    assert i2.get("k1") == list(s("v1"))
    assert i2.get("k0") == list(s("v0"))
    i2.insert("k2", s("v2x"))
    assert i2.get("k2") == list(s("v2x"))
    assert i2.get("k1") == list(s("v1"))
    assert i2.get("k0") == list(s("v0"))
    i2.insert("k1", s("v1x"))
    assert i2.get("k2") == list(s("v2x"))
    assert i2.get("k1") == list(s("v1x"))
    assert i2.get("k0") == list(s("v0"))
    i2.insert("k0", s("v0x"))
    assert i2.get("k2") == list(s("v2x"))
    assert i2.get("k1") == list(s("v1x"))
    assert i2.get("k0") == list(s("v0x"))

    assert i1_raw.get_value().get("k2") is None
    assert i1_raw.get_value().get("k1") == encode_value(s("v1"))
    assert i1_raw.get_value().get("k0") == encode_value(s("v0"))

    assert i0_raw.get_value().get("k2") is None
    assert i0_raw.get_value().get("k1") is None
    assert i0_raw.get_value().get("k0") == encode_value(s("v0"))

    head = i2.prune()

    assert head.get("k2") == list(s("v2x"))
    assert head.get("k1") == list(s("v1x"))
    assert head.get("k0") == list(s("v0x"))

    assert i1_raw.get_value() is None
    assert i0_raw.get_value() is None

    for i in range(10, 256):
        head.insert(bytes([i]), bytes([i]))
        head = DagMapRawKey(Slot(head.into_inner()))

    head = head.prune()

    for i in range(10, 256):
        assert head.get(bytes([i])) == [i]

    for i in range(0, 255):
        head.remove(bytes([i]))
        assert head.get(bytes([i])) is None

    head.get_mut(bytes([255])).value = bytes([0])
    assert head.get(bytes([255])) == [0]


def test_insert_and_remove_return_previous():
    m = DagMapRawKey(Slot(None))
    assert m.insert("a", {"n": 1}) is None
    assert m.insert("a", {"n": 2}) == {"n": 1}
    assert m.remove("a") == {"n": 2}
    assert m.remove("a") is None
    assert m.get("a") is None


def test_get_mut_in_place_change_is_committed():
    m = DagMapRawKey(Slot(None))
    m.insert("list", [1, 2])
    with m.get_mut("list") as view:
        view.value.append(3)
    assert m.get("list") == [1, 2, 3]


def test_get_mut_ignores_parent_and_tombstones():
    parent = Slot(DagMapRaw(Slot(None)))
    parent.get_value().insert("k", encode_value(5))
    child = DagMapRawKey(parent)
    assert child.get("k") == 5
    assert child.get_mut("k") is None
    child.remove("k")
    assert child.get_mut("k") is None
    assert child.get("k") is None


def test_shadow_shares_storage():
    m = DagMapRawKey(Slot(None))
    other = m.shadow()
    other.insert("x", "y")
    assert m.get("x") == "y"
    assert m.is_the_same_instance(other)
    assert m.shadow_inner().get("x") == encode_value("y")


def test_is_dead_and_destroy():
    m = DagMapRawKey(Slot(None))
    assert m.is_dead()
    m.insert("a", 1)
    assert not m.is_dead()
    m.destroy()
    assert m.is_dead()
    assert m.get("a") is None


def test_prune_children_exclude_and_include():
    root = DagMapRawKey(Slot(None))
    root_slot = Slot(root.into_inner())
    child = DagMapRawKey(root_slot)
    child.insert("c", 1)
    assert not root.no_children()

    root.prune_children_include([b"\x00" * 16])
    assert not root.no_children()
    assert child.get("c") == 1

    root.prune_children_exclude([])
    assert root.no_children()
    assert child.get("c") is None


def test_unencodable_value_raises():
    m = DagMapRawKey(Slot(None))
    with pytest.raises(ValueError):
        m.insert("k", object())