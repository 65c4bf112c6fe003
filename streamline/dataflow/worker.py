"""
Execution worker.

The worker owns the scripting runtime, the persistent scope and the
accumulated compiled unit.  It waits on the execution channel and handles
one request at a time, publishing the results as messages for the
presentation layer.  A failing script is reported and never stops the
worker; only :class:`.messages.Shutdown` does.
"""
import json
import logging
import threading

from .messages import (
    Evaluate, EvaluateFunction, ResetScope, Build, Shutdown, CacheRef,
    TextMessage, JsonMessage, MessagesCleared,
)
from .runtime import ScriptEngine, ScriptError

log = logging.getLogger(__name__)


class ExecutionWorker(threading.Thread):
    """
    Thread which evaluates scripts.

    *bus* is the :class:`.bus.MessageBus` to serve.

    *cache* is the :class:`.cache.BlockCache` used to resolve
    :class:`.messages.CacheRef` arguments.

    *engine* is the :class:`.runtime.ScriptEngine`, created if not given.
    """
    def __init__(self, bus, cache, engine=None):
        threading.Thread.__init__(self, name="execution-worker", daemon=True)
        self.bus = bus
        self.cache = cache
        self.engine = engine if engine is not None else ScriptEngine()
        self.scope = {}
        self.unit = self.engine.empty_unit()

    def run(self):
        while True:
            request = self.bus.receive_execution()
            if isinstance(request, Shutdown):
                break
            try:
                self.handle(request)
            except Exception:
                # Keep serving; the request is reported and dropped.
                log.exception("execution request %r failed", request)
                self.bus.publish(TextMessage("Error: internal failure handling %s"
                                             % type(request).__name__))

    def handle(self, request):
        if isinstance(request, Evaluate):
            self.evaluate(request.source)
        elif isinstance(request, EvaluateFunction):
            self.evaluate_function(request.name, request.args)
        elif isinstance(request, ResetScope):
            self.reset(request.clear_scope, request.clear_compiled_unit)
        elif isinstance(request, Build):
            self.build()
        else:
            raise TypeError('unknown request "%s"' % str(type(request)))

    def evaluate(self, source):
        try:
            unit = self.engine.compile(source)
        except ScriptError as exc:
            self.bus.publish(TextMessage("Result: Error: %s" % exc))
            return
        merged = self.engine.merge(self.unit, unit)
        try:
            value = self.engine.eval_unit(merged, self.scope)
        except ScriptError as exc:
            # bindings made before the failure stay, the failing unit does not
            self.bus.publish(TextMessage("Result: Error: %s" % exc))
            return
        self.unit = merged
        self.bus.publish(TextMessage("Result: %r" % (value,)))

    def evaluate_function(self, name, args):
        values = []
        for index, arg in enumerate(args):
            if isinstance(arg, CacheRef):
                values.append(self.cache.get(arg.slot))
                continue
            try:
                values.append(json.loads(arg))
            except (TypeError, ValueError) as exc:
                # The argument is dropped from the call, not replaced.
                self.bus.publish(TextMessage(
                    "Warning: dropped argument %d of %s: %s" % (index, name, exc)))
        try:
            value = self.engine.call_fn(self.unit, self.scope, name, values)
        except ScriptError as exc:
            self.bus.publish(TextMessage("Error: %s" % exc))
            return
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            value = repr(value)
        self.bus.publish(JsonMessage(value))

    def reset(self, clear_scope=True, clear_compiled_unit=False):
        if clear_scope:
            self.scope.clear()
        if clear_compiled_unit:
            self.unit = self.engine.empty_unit()
            self.engine.reset_registry()
        self.bus.publish(MessagesCleared())

    def build(self):
        try:
            value = self.engine.eval("codegen()", self.scope, name="<build>")
        except ScriptError as exc:
            self.bus.publish(TextMessage("Build error: %s" % exc))
            return
        self.bus.publish(TextMessage("Build result: %s" % (value,)))
