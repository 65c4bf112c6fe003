import json

import pytest

from streamline.dataflow import codegen, core
from streamline.dataflow.runtime import ScriptEngine, ScriptError, SOURCE_TYPE


def test_compile_error():
    engine = ScriptEngine()
    with pytest.raises(ScriptError) as excinfo:
        engine.compile("bogus syntax")
    assert "SyntaxError" in str(excinfo.value)
    with pytest.raises(ScriptError):
        engine.compile("return 1")


def test_eval_returns_trailing_expression():
    engine = ScriptEngine()
    scope = {}
    assert engine.eval("x = 40\nx + 2", scope) == 42
    assert engine.bindings(scope) == {"x": 40}
    assert engine.eval("y = x", scope) is None
    assert scope["y"] == 40


def test_eval_error_keeps_earlier_bindings():
    engine = ScriptEngine()
    scope = {}
    with pytest.raises(ScriptError) as excinfo:
        engine.eval("a = 1\nb = 1 / 0", scope)
    assert str(excinfo.value).startswith("ZeroDivisionError")
    assert engine.bindings(scope) == {"a": 1}


def test_merge_accumulates():
    engine = ScriptEngine()
    unit = engine.merge(engine.compile("def f():\n    return 1\n"),
                        engine.compile("def g():\n    return f() + 1\n"))
    scope = {}
    engine.eval_unit(unit, scope)
    assert engine.eval("g()", scope) == 2
    assert len(engine.empty_unit().body) == 0


def test_call_fn():
    engine = ScriptEngine()
    unit = engine.compile("def add(a, b):\n    return a + b\n")
    # definitions are bound even in a fresh scope
    assert engine.call_fn(unit, {}, "add", [1, 2]) == 3


def test_call_fn_errors():
    engine = ScriptEngine()
    unit = engine.compile("value = 3\ndef boom():\n    raise ValueError('bad')\n")
    scope = {}
    engine.eval_unit(unit, scope)
    with pytest.raises(ScriptError) as excinfo:
        engine.call_fn(unit, scope, "missing", [])
    assert "Function not found: missing" in str(excinfo.value)
    with pytest.raises(ScriptError):
        engine.call_fn(unit, scope, "value", [])
    with pytest.raises(ScriptError) as excinfo:
        engine.call_fn(unit, scope, "boom", [])
    assert str(excinfo.value) == "ValueError: bad in boom"


def test_generated_script_registers_modules():
    engine = ScriptEngine()
    source = codegen.generate(core.default_graph())
    engine.eval(source, {})
    assert list(engine.registry) == ["foo", "test_store"]
    manifest = json.loads(engine.codegen())
    assert manifest["modules"] == [
        {"name": "foo", "kind": "map",
         "inputs": [{"source": SOURCE_TYPE}], "handler": "foo"},
        {"name": "test_store", "kind": "store",
         "inputs": [{"map": "foo"}], "handler": "test_store"},
    ]


def test_codegen_orders_dependencies():
    engine = ScriptEngine()
    engine.add_sfn({"name": "late", "inputs": [{"kind": "map", "name": "early"}],
                    "handler": "late"})
    engine.add_mfn({"name": "early", "inputs": [{"kind": "source"}],
                    "handler": "early"})
    manifest = json.loads(engine.eval("codegen()", {}))
    assert [m["name"] for m in manifest["modules"]] == ["early", "late"]


def test_codegen_errors():
    engine = ScriptEngine()
    engine.add_mfn({"name": "a", "inputs": [{"kind": "map", "name": "b"}],
                    "handler": "a"})
    with pytest.raises(ScriptError) as excinfo:
        engine.codegen()
    assert "unregistered" in str(excinfo.value)

    engine.add_sfn({"name": "b", "inputs": [], "handler": "b"})
    with pytest.raises(ScriptError) as excinfo:
        engine.codegen()
    assert "as a map but it is a store" in str(excinfo.value)

    engine.add_mfn({"name": "b", "inputs": [{"kind": "map", "name": "a"}],
                    "handler": "b"})
    with pytest.raises(ScriptError) as excinfo:
        engine.codegen()
    assert "Cyclic" in str(excinfo.value)

    engine.reset_registry()
    assert json.loads(engine.codegen()) == {"modules": []}


def test_bad_registration():
    engine = ScriptEngine()
    with pytest.raises(ScriptError):
        engine.eval('add_mfn({"inputs": []})', {})
    with pytest.raises(ScriptError):
        engine.add_mfn({"name": "a", "handler": "a",
                        "inputs": [{"kind": "socket"}]})
    with pytest.raises(ScriptError):
        engine.add_mfn({"name": "a", "handler": "a", "inputs": [{"kind": "map"}]})
    assert len(engine.registry) == 0


def test_system_exit_becomes_script_error():
    engine = ScriptEngine()
    with pytest.raises(ScriptError) as excinfo:
        engine.eval("raise SystemExit(3)", {})
    assert str(excinfo.value) == "SystemExit: 3"
    unit = engine.compile("def leave():\n    raise SystemExit('bye')\n")
    with pytest.raises(ScriptError):
        engine.call_fn(unit, {}, "leave", [])
    with pytest.raises(ScriptError) as excinfo:
        engine.eval("quit()", {})
    assert "NameError" in str(excinfo.value)
