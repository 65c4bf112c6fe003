import pytest

from streamline.dataflow import codegen
from streamline.dataflow.codegen import UnresolvedInputError
from streamline.dataflow.core import MapModule, StoreModule, ModuleGraph, SOURCE

FOO_CODE = 'def foo(BLOCK):\n    return BLOCK["number"]\n'
BAR_CODE = 'def bar(foo, s):\n    s.set(foo)\n'


def foo_bar_graph():
    graph = ModuleGraph()
    graph.insert(MapModule("foo", code=FOO_CODE, inputs=[SOURCE]))
    graph.insert(StoreModule("bar", code=BAR_CODE, inputs=["foo"],
                             update_policy="set"))
    return graph


def test_generate_map_then_store():
    expected = (
        '\nadd_mfn({\n'
        '    "name": "foo",\n'
        '    "inputs": [{"kind": "source"}],\n'
        '    "handler": "foo"\n'
        '})\n'
        + FOO_CODE + '\n'
        + '\nadd_sfn({\n'
        '    "name": "bar",\n'
        '    "inputs": [{"kind": "map", "name": "foo"}],\n'
        '    "handler": "bar"\n'
        '})\n'
        + BAR_CODE + '\n'
    )
    assert codegen.generate(foo_bar_graph()) == expected


def test_generate_is_deterministic():
    graph = foo_bar_graph()
    assert codegen.generate(graph) == codegen.generate(graph)


def test_inputs_in_declared_order():
    graph = foo_bar_graph()
    graph.insert(MapModule("mix", inputs=["bar", SOURCE, "foo"]))
    _, mix = graph.find("mix")
    statement = codegen.register_module(mix, graph)
    assert statement.count('"kind"') == 3
    assert ('[{"kind": "store", "name": "bar"},{"kind": "source"},'
            '{"kind": "map", "name": "foo"}]') in statement


def test_empty_graph():
    assert codegen.generate(ModuleGraph()) == ""


def test_unresolved_input_fails_without_output():
    graph = foo_bar_graph()
    graph.insert(MapModule("late", inputs=["missing"]))
    with pytest.raises(UnresolvedInputError) as excinfo:
        codegen.generate(graph)
    assert excinfo.value.module == "late"
    assert excinfo.value.input == "missing"
    assert str(excinfo.value) == "Unknown input 'missing' for module 'late'"


def test_resolve_input():
    graph = foo_bar_graph()
    assert codegen.resolve_input(SOURCE, graph) == {"kind": "source"}
    assert codegen.resolve_input("bar", graph) == {"kind": "store", "name": "bar"}
    with pytest.raises(KeyError):
        codegen.resolve_input("nope", graph)


def test_rename_keeps_generation_valid():
    graph = foo_bar_graph()
    id, _ = graph.find("foo")
    graph.rename(id, "baz")
    text = codegen.generate(graph)
    assert '{"kind": "map", "name": "baz"}' in text
    assert '"name": "foo"' not in text


def test_validate():
    graph = foo_bar_graph()
    assert codegen.validate(graph) == []
    id, _ = graph.find("foo")
    graph.remove(id)
    assert codegen.validate(graph) == ["Unknown input 'foo' for module 'bar'"]
