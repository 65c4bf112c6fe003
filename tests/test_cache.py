import logging

from streamline.dataflow.cache import BlockCache, SLOTS


def test_set_and_get():
    cache = BlockCache()
    for slot in SLOTS:
        assert cache.get(slot) is None
        value = {"number": slot}
        assert cache.set(slot, value)
        assert cache.get(slot) == value
    cache[3] = {"number": 33}
    assert cache[3] == {"number": 33}
    assert cache.snapshot() == {1: {"number": 1}, 2: {"number": 2},
                                3: {"number": 33}, 4: {"number": 4}}


def test_invalid_slot_is_ignored(caplog):
    cache = BlockCache()
    cache.set(1, "kept")
    with caplog.at_level(logging.WARNING, logger="streamline.dataflow.cache"):
        assert not cache.set(0, "lost")
        assert not cache.set(5, "lost")
        assert cache.get(5) is None
    assert "Invalid block cache slot" in caplog.text
    assert cache.snapshot() == {1: "kept", 2: None, 3: None, 4: None}


def test_clear():
    cache = BlockCache()
    cache.set(2, [1, 2, 3])
    cache.clear()
    assert cache.get(2) is None
    assert "filled=[]" in repr(cache)
