import pytest

from prefstore.snapshot import EMPTY, Snapshot


def test_with_value_returns_new_snapshot():
    s1 = Snapshot({"a": 1})
    s2 = s1.with_value("b", 2)
    assert dict(s1) == {"a": 1}
    assert dict(s2) == {"a": 1, "b": 2}
    assert s1 is not s2


def test_without_missing_key_returns_same_snapshot():
    s = Snapshot({"a": 1})
    assert s.without("zzz") is s
    assert dict(s.without("a")) == {}


def test_snapshot_cannot_be_mutated():
    s = Snapshot({"a": 1})
    with pytest.raises(TypeError):
        s["a"] = 2  # type: ignore[index]
    assert len(EMPTY) == 0


def test_merged_applies_updates_and_removals():
    s = Snapshot({"a": 1, "b": 2}).merged({"c": 3}, ["a"])
    assert s.to_dict() == {"b": 2, "c": 3}


def test_diff_detects_kind_changes():
    old = Snapshot({"a": 1, "b": "x", "c": True})
    new = Snapshot({"a": 1.0, "b": "x", "d": 4})
    changed, removed = new.diff(old)
    assert changed == {"a": 1.0, "d": 4}
    assert isinstance(changed["a"], float)
    assert removed == {"c"}
