import threading

import pytest

from streamline.dataflow import core
from streamline.dataflow.codegen import UnresolvedInputError
from streamline.dataflow.core import DuplicateModuleError, MapModule
from streamline.dataflow.owner import GraphOwner


@pytest.fixture
def owner():
    owner = GraphOwner(core.default_graph())
    owner.start()
    yield owner
    owner.stop(5)


def test_proxies(owner):
    id = owner.insert(MapModule("bar", inputs=["foo"]))
    assert owner.find("bar")[0] == id
    owner.rename(id, "baz")
    assert [d["name"] for _, d in owner.all()] == ["foo", "test_store", "baz"]
    owner.set_code(id, "def baz(foo):\n    return foo\n")
    assert "def baz(foo)" in owner.generate()
    owner.remove(id)
    assert owner.get(id) is None


def test_errors_reach_caller(owner):
    with pytest.raises(DuplicateModuleError):
        owner.insert(MapModule("foo"))
    with pytest.raises(KeyError):
        owner.remove(999)
    foo, _ = owner.find("foo")
    owner.set_inputs(foo, ["nothing"])
    with pytest.raises(UnresolvedInputError):
        owner.generate()
    assert owner.validate() == ["Unknown input 'nothing' for module 'foo'"]
    # the owner is still serving
    assert owner.is_alive()
    assert len(owner.all()) == 2


def test_reads_are_copies(owner):
    foo, _ = owner.find("foo")
    module = owner.get(foo)
    module.inputs.append("junk")
    definitions = owner.all()
    definitions[0][1]["inputs"].append("junk")
    assert owner.get(foo).inputs == ["BLOCK"]


def test_concurrent_inserts(owner):
    def add(k):
        owner.insert(MapModule("m%d" % k))

    threads = [threading.Thread(target=add, args=(k,)) for k in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    ids = [id for id, _ in owner.all()]
    assert len(ids) == 22
    assert len(set(ids)) == 22


def test_submit(owner):
    future = owner.submit(len)
    assert future.result(5) == 2
    assert owner.get_definition()["version"] == core.GRAPH_VERSION


def test_find_returns_copy(owner):
    id, module = owner.find("foo")
    module.inputs.append("junk")
    module.name = "changed"
    assert owner.find("foo")[1].inputs == ["BLOCK"]
    assert owner.find("changed") is None
    assert owner.find("nothing") is None
