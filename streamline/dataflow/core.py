"""
Core class definitions
"""
import itertools
import json
import logging
import re

log = logging.getLogger(__name__)

#: Input name which stands for the raw streamed block rather than a module.
SOURCE = "BLOCK"

#: Update policies accepted by store modules.
UPDATE_POLICIES = ("set", "setOnce")

GRAPH_VERSION = '1.0'


class DuplicateModuleError(ValueError):
    def __str__(self):
        return "Module name already in use: " + ValueError.__str__(self)


class Module(object):
    """
    Processing module

    A computation is represented as a set of modules which name their
    inputs.  Modules come in two kinds, *map* for a pure per-record
    transform and *store* for a stateful accumulator.

    *name* : string
        Module name.  This is the identity shown to the user, the name of
        the handler function in the module code, and the key used by other
        modules to refer to this module in their *inputs*.  Names must be
        unique within a graph.

    *code* : string
        Script text defining the handler.  It is copied verbatim into the
        generated source after the registration statement.

    *inputs* : [string, ...]
        Names of the modules feeding this module, or *BLOCK* for the raw
        block.  Order matters since the inputs are bound to the handler
        positionally.

    *editing* : boolean
        True if the editor for the module is open.
    """
    kind = None
    register_function = None

    def __init__(self, name, code="", inputs=None, editing=True):
        _check_name(name)
        self.name = name
        self.code = code
        self.inputs = list(inputs) if inputs is not None else []
        self.editing = editing

    def get_definition(self):
        return dict(kind=self.kind, name=self.name, code=self.code,
                    inputs=list(self.inputs), editing=self.editing)

    @staticmethod
    def from_definition(definition):
        state = dict(definition)
        kind = state.pop('kind')
        if kind == MapModule.kind:
            return MapModule(**state)
        elif kind == StoreModule.kind:
            return StoreModule(**state)
        raise TypeError('unknown module kind "%s"' % kind)

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.get_definition() == other.get_definition())

    def __repr__(self):
        return "%s(name=%r, inputs=%r)" % (
            type(self).__name__, self.name, self.inputs)


class MapModule(Module):
    kind = "map"
    register_function = "add_mfn"


class StoreModule(Module):
    """
    Store module.

    *update_policy* : string
        How new values are merged into the store, one of "set" or "setOnce".
    """
    kind = "store"
    register_function = "add_sfn"

    def __init__(self, name, code="", inputs=None, update_policy="set",
                 editing=True):
        Module.__init__(self, name, code=code, inputs=inputs, editing=editing)
        self.update_policy = _check_policy(update_policy)

    def get_definition(self):
        definition = Module.get_definition(self)
        definition['update_policy'] = self.update_policy
        return definition


def _check_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValueError("module name must be a non-empty string")
    if name == SOURCE:
        raise ValueError("%r is reserved for the block source" % SOURCE)


def _rename_handler(code, old_name, new_name):
    pattern = r"^((?:async[ \t]+)?def[ \t]+)%s(?=[ \t]*\()" % re.escape(old_name)
    return re.sub(pattern, lambda match: match.group(1) + new_name, code,
                  flags=re.MULTILINE)


def _check_policy(policy):
    if policy not in UPDATE_POLICIES:
        raise ValueError("update policy %r should be one of %s"
                         % (policy, ", ".join(UPDATE_POLICIES)))
    return policy


class ModuleGraph(object):
    """
    The set of modules being edited.

    Modules are keyed by an integer id generated on insert.  The id is
    independent of the module name, so renaming a module keeps its key.
    Iteration follows insertion order, which makes code generation
    repeatable for an unmodified graph.

    The graph is not thread safe.  Use :class:`.owner.GraphOwner` when more
    than one thread needs it.
    """
    def __init__(self):
        self._modules = {}
        self._ids = itertools.count(1)

    def insert(self, module):
        """
        Add *module* to the graph, returning its id.
        """
        if self.find(module.name) is not None:
            raise DuplicateModuleError(module.name)
        id = next(self._ids)
        self._modules[id] = module
        return id

    def remove(self, id):
        """
        Remove the module with the given *id*, returning it.

        Modules which name the removed module as input are left as they
        are; code generation will report them until they are rewired.
        """
        return self._modules.pop(id)

    def get(self, id):
        return self._modules.get(id, None)

    def rename(self, id, new_name):
        """
        Rename a module, updating the inputs of every module which refers
        to it by its old name.

        The top level handler definition in the module code, *def old_name(*,
        is renamed as well so that the registered handler still exists.
        """
        module = self._modules[id]
        _check_name(new_name)
        if new_name == module.name:
            return
        if self.find(new_name) is not None:
            raise DuplicateModuleError(new_name)
        old_name = module.name
        module.name = new_name
        module.code = _rename_handler(module.code, old_name, new_name)
        for other in self._modules.values():
            other.inputs = [new_name if name == old_name else name
                            for name in other.inputs]
        log.debug("renamed module %d from %r to %r", id, old_name, new_name)

    def all(self):
        """
        Iterate over (id, module) pairs.
        """
        return iter(list(self._modules.items()))

    def find(self, name):
        """
        Lookup module by name, returning (id, module) or None.
        """
        for id, module in self._modules.items():
            if module.name == name:
                return id, module
        return None

    def names(self):
        return [module.name for module in self._modules.values()]

    def set_inputs(self, id, inputs):
        self._modules[id].inputs = list(inputs)

    def set_code(self, id, code):
        self._modules[id].code = code

    def set_update_policy(self, id, policy):
        module = self._modules[id]
        if not isinstance(module, StoreModule):
            raise TypeError("module %r is not a store" % module.name)
        module.update_policy = _check_policy(policy)

    def dependents(self, id):
        """
        Ids of the modules which depend directly or indirectly on *id*,
        including *id* itself.
        """
        remaining = set([id])
        processed = set([id])
        while remaining:
            parent = self._modules[remaining.pop()].name
            children = set(k for k, m in self._modules.items()
                           if parent in m.inputs)
            remaining |= children - processed
            processed |= children
        return processed

    def __len__(self):
        return len(self._modules)

    def __contains__(self, id):
        return id in self._modules

    def get_definition(self):
        modules = [dict(id=id, **module.get_definition())
                   for id, module in self._modules.items()]
        return dict(version=GRAPH_VERSION, modules=modules)

    def dumps(self, **kw):
        """
        Convert graph to json.
        """
        return json.dumps(self.get_definition(), **kw)

    @staticmethod
    def from_definition(definition):
        if definition.get('version', GRAPH_VERSION) != GRAPH_VERSION:
            raise TypeError('Module graph definition mismatch')
        graph = ModuleGraph()
        for state in definition['modules']:
            state = dict(state)
            id = state.pop('id', None)
            module = Module.from_definition(state)
            if id is None:
                graph.insert(module)
                continue
            if graph.find(module.name) is not None:
                raise DuplicateModuleError(module.name)
            graph._modules[id] = module
        top = max(graph._modules, default=0)
        graph._ids = itertools.count(top + 1)
        return graph


def new_map(name):
    """
    Template map module reading the raw block.
    """
    return MapModule(
        name=name,
        code="def %s(%s):\n    return %s[\"number\"]\n" % (name, SOURCE, SOURCE),
        inputs=[SOURCE],
    )


def new_store(name, source="foo"):
    """
    Template store module which sets the value of *source* into the store.
    """
    return StoreModule(
        name=name,
        code="def %s(%s, s):\n    s.set(%s)\n" % (name, source, source),
        inputs=[source],
        update_policy="set",
    )


def default_graph():
    """
    Starter graph with a map *foo* over the block and a store fed by *foo*.
    """
    graph = ModuleGraph()
    graph.insert(new_map("foo"))
    graph.insert(new_store("test_store", source="foo"))
    return graph
