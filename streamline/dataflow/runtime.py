"""
Scripting runtime.

Scripts are python source.  A compiled unit is the parsed module tree,
which lets units be merged so that definitions accumulate across builds.
Evaluation runs a unit with a scope dict as its globals; the value of a
trailing expression statement is returned, the way an interactive prompt
shows the last value.

The runtime supplies the builtins used by generated scripts:

    add_mfn(spec), add_sfn(spec)

        Register a map or store module.  *spec* is a dict with *name*,
        *inputs* and *handler*; inputs are dicts with a *kind* of "map",
        "store" or "source" and, for modules, the *name* of the input.

    codegen()

        Return the build manifest for the registered modules as JSON text.
"""
import ast
import builtins
import json
from collections import OrderedDict

from .anno_exc import annotate_exception
from .deps import processing_order

#: Protobuf type of the raw block, as written in the build manifest.
SOURCE_TYPE = "sf.ethereum.type.v2.Block"

INPUT_KINDS = ("map", "store", "source")

# Statements kept when binding the functions of a unit without running it.
_DEFINITIONS = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef,
                ast.Import, ast.ImportFrom)


class ScriptError(Exception):
    """
    Compile or evaluation failure in a script.
    """


def _describe(exc):
    return "%s: %s" % (type(exc).__name__, exc)


def _unit(body):
    return ast.Module(body=list(body), type_ignores=[])


class ScriptEngine(object):
    """
    Compile and evaluate scripts.

    *registry* maps module name to the registration recorded by *add_mfn*
    and *add_sfn*, in registration order.
    """
    def __init__(self):
        self.registry = OrderedDict()
        self._builtins = dict(vars(builtins))
        self._builtins.update(
            add_mfn=self.add_mfn,
            add_sfn=self.add_sfn,
            codegen=self.codegen,
        )
        # scripts must not stop the worker thread
        for name in ("exit", "quit"):
            self._builtins.pop(name, None)

    # --- Compile ---

    def compile(self, source, name="<script>"):
        """
        Compile *source* to a unit.

        Raises :class:`ScriptError` if the source is not valid.
        """
        try:
            unit = ast.parse(source, filename=name, mode="exec")
            # parse accepts some statements that only fail on compile,
            # such as return outside of a function
            compile(unit, name, "exec")
        except (SyntaxError, ValueError) as exc:
            raise ScriptError(_describe(exc)) from exc
        return unit

    @staticmethod
    def empty_unit():
        return _unit([])

    @staticmethod
    def merge(unit, other):
        """
        Return a unit with the statements of *unit* followed by *other*.
        """
        return _unit(list(unit.body) + list(other.body))

    # --- Evaluate ---

    def eval_unit(self, unit, scope, name="<script>"):
        """
        Run *unit* with *scope* as globals, returning the value of the final
        expression statement, or None if the unit does not end with one.

        Raises :class:`ScriptError` if evaluation fails.  Bindings made
        before the failure remain in *scope*.
        """
        body = list(unit.body)
        tail = None
        if body and isinstance(body[-1], ast.Expr):
            tail = ast.Expression(body=body.pop().value)
        scope["__builtins__"] = self._builtins
        try:
            exec(compile(_unit(body), name, "exec"), scope)
            if tail is not None:
                return eval(compile(tail, name, "eval"), scope)
            return None
        except ScriptError:
            raise
        except (Exception, SystemExit) as exc:
            raise ScriptError(_describe(exc)) from exc

    def eval(self, source, scope, name="<script>"):
        return self.eval_unit(self.compile(source, name=name), scope, name=name)

    def call_fn(self, unit, scope, name, args):
        """
        Call function *name* defined in *unit* with positional *args*.

        The definitions of the unit are bound into *scope* first, so the
        function is available even if the scope was cleared since the unit
        was evaluated.
        """
        definitions = [s for s in unit.body if isinstance(s, _DEFINITIONS)]
        scope["__builtins__"] = self._builtins
        try:
            exec(compile(_unit(definitions), "<script>", "exec"), scope)
        except (Exception, SystemExit) as exc:
            raise ScriptError(_describe(exc)) from exc
        fn = scope.get(name, None)
        if fn is None:
            raise ScriptError("Function not found: %s" % name)
        if not callable(fn):
            raise ScriptError("%r is not a function" % name)
        try:
            return fn(*args)
        except (Exception, SystemExit) as exc:
            annotate_exception("in %s" % name, exc)
            raise ScriptError(_describe(exc)) from exc

    @staticmethod
    def bindings(scope):
        """
        Return the user visible names in *scope*.
        """
        return dict((k, v) for k, v in scope.items() if not k.startswith("__"))

    # --- Builtins ---

    def add_mfn(self, spec):
        self._register("map", spec)

    def add_sfn(self, spec):
        self._register("store", spec)

    def _register(self, kind, spec):
        if not isinstance(spec, dict):
            raise ScriptError("module registration must be a dict")
        name = spec.get("name")
        handler = spec.get("handler")
        inputs = spec.get("inputs", [])
        if not isinstance(name, str) or not name:
            raise ScriptError("module registration needs a name")
        if not isinstance(handler, str) or not handler:
            raise ScriptError("module %r needs a handler" % name)
        for input in inputs:
            if not isinstance(input, dict) or input.get("kind") not in INPUT_KINDS:
                raise ScriptError("module %r has an invalid input %r"
                                  % (name, input))
            if input["kind"] != "source" and not input.get("name"):
                raise ScriptError("module %r has an input with no name" % name)
        self.registry[name] = dict(kind=kind, name=name, handler=handler,
                                   inputs=[dict(d) for d in inputs])

    def reset_registry(self):
        self.registry.clear()

    def codegen(self):
        """
        Return the build manifest for the registered modules as JSON text.

        Modules are listed so that each comes after the modules it reads.
        """
        modules = self.registry
        pairs = []
        for module in modules.values():
            for input in module["inputs"]:
                if input["kind"] == "source":
                    continue
                source = modules.get(input["name"], None)
                if source is None:
                    raise ScriptError("module %r reads unregistered module %r"
                                      % (module["name"], input["name"]))
                if source["kind"] != input["kind"]:
                    raise ScriptError("module %r reads %r as a %s but it is a %s"
                                      % (module["name"], input["name"],
                                         input["kind"], source["kind"]))
                pairs.append((input["name"], module["name"]))
        try:
            order = processing_order(pairs, items=list(modules))
        except ValueError as exc:
            raise ScriptError(str(exc)) from exc
        manifest = {"modules": [_manifest_entry(modules[k]) for k in order]}
        return json.dumps(manifest, indent=2)


def _manifest_entry(module):
    inputs = []
    for input in module["inputs"]:
        if input["kind"] == "source":
            inputs.append({"source": SOURCE_TYPE})
        else:
            inputs.append({input["kind"]: input["name"]})
    return dict(name=module["name"], kind=module["kind"], inputs=inputs,
                handler=module["handler"])
