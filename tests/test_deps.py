import pytest

from streamline.dataflow import deps
from streamline.dataflow.deps import processing_order


def test_self_check():
    deps.test()


def test_named_items():
    order = processing_order([("foo", "bar")], items=["bar", "alone", "foo"])
    assert order.index("foo") < order.index("bar")
    assert sorted(order) == ["alone", "bar", "foo"]


def test_repeatable():
    pairs = [("a", "c"), ("b", "c"), ("c", "d")]
    assert processing_order(pairs) == processing_order(list(reversed(pairs)))


def test_unknown_item():
    with pytest.raises(ValueError):
        processing_order([("a", "b")], items=["a"])


def test_cycle():
    with pytest.raises(ValueError) as excinfo:
        processing_order([("a", "b"), ("b", "a")])
    assert "Cyclic" in str(excinfo.value)
