"""
Single owner for the module graph.

Rather than sharing the graph behind locks, one thread owns it and every
other thread sends it operations.  Each operation is a callable applied to
the graph; the result, or the exception raised, comes back through a
:class:`concurrent.futures.Future`.  Operations run one at a time in the
order they were submitted, so code generation always sees a graph between
edits, never in the middle of one.
"""
import queue
import threading
from concurrent.futures import Future

from . import codegen
from .core import Module, ModuleGraph

_STOP = object()


class GraphOwner(threading.Thread):
    """
    Thread owning a :class:`.core.ModuleGraph`.

    The blocking methods mirror the graph interface and wait for the result.
    Exceptions raised by the operation are re-raised in the caller.
    """
    def __init__(self, graph=None):
        threading.Thread.__init__(self, name="graph-owner", daemon=True)
        self._graph = graph if graph is not None else ModuleGraph()
        self._requests = queue.SimpleQueue()

    def run(self):
        while True:
            item = self._requests.get()
            if item is _STOP:
                break
            future, fn, args = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(self._graph, *args)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

    def submit(self, fn, *args):
        """
        Queue *fn(graph, \\*args)* for the owner thread, returning a future.
        """
        future = Future()
        self._requests.put((future, fn, args))
        return future

    def stop(self, timeout=None):
        """
        Finish the queued operations then stop the thread.
        """
        self._requests.put(_STOP)
        if self.is_alive():
            self.join(timeout)

    def _call(self, fn, *args):
        return self.submit(fn, *args).result()

    def insert(self, module):
        return self._call(ModuleGraph.insert, module)

    def remove(self, id):
        return self._call(ModuleGraph.remove, id)

    def get(self, id):
        """
        Return a copy of the module with the given *id*, or None.
        """
        return self._call(_copy_module, id)

    def rename(self, id, new_name):
        return self._call(ModuleGraph.rename, id, new_name)

    def all(self):
        """
        Return a list of (id, module definition) pairs.

        Definitions are copies, so later edits do not show through.
        """
        return self._call(
            lambda graph: [(id, m.get_definition()) for id, m in graph.all()])

    def find(self, name):
        """
        Return (id, copy of the module) for *name*, or None.
        """
        return self._call(_find_copy, name)

    def set_inputs(self, id, inputs):
        return self._call(ModuleGraph.set_inputs, id, inputs)

    def set_code(self, id, code):
        return self._call(ModuleGraph.set_code, id, code)

    def set_update_policy(self, id, policy):
        return self._call(ModuleGraph.set_update_policy, id, policy)

    def generate(self):
        """
        Render the graph to script text; see :func:`.codegen.generate`.
        """
        return self._call(codegen.generate)

    def validate(self):
        return self._call(codegen.validate)

    def get_definition(self):
        return self._call(ModuleGraph.get_definition)


def _copy_module(graph, id):
    module = graph.get(id)
    if module is None:
        return None
    return Module.from_definition(module.get_definition())


def _find_copy(graph, name):
    found = graph.find(name)
    if found is None:
        return None
    id, module = found
    return id, Module.from_definition(module.get_definition())
