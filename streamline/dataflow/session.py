"""
Editor session.

:class:`Editor` is what the presentation layer talks to.  It holds the
graph owner, the block cache, the message bus and both workers, turns user
actions into requests, and keeps the message log filled from the outbound
channel.
"""
import json
import logging

from . import core
from .bus import MessageBus
from .cache import BlockCache
from .configure import apply_config
from .messages import (
    Evaluate, EvaluateFunction, ResetScope, Build, RunRange, FetchSingleBlock,
    Shutdown, MessagesCleared, TextMessage, JsonMessage, BlockCacheUpdated,
)
from .owner import GraphOwner
from .stream import HttpStreamingClient, StreamingWorker
from .worker import ExecutionWorker

log = logging.getLogger(__name__)


class Editor(object):
    """
    One editing session.

    *config* is an :class:`.configure.EditorConfig`; the default
    configuration is used if it is not given.

    *graph* is the starting :class:`.core.ModuleGraph`, defaulting to
    :func:`.core.default_graph`.

    *client* is the streaming client passed to the streaming worker.

    *engine* is the :class:`.runtime.ScriptEngine` for the execution worker.

    Call :meth:`start` before sending requests.  Requests sent earlier are
    kept and handled once the workers start.
    """
    def __init__(self, config=None, graph=None, client=None, engine=None):
        self.config = config if config is not None else apply_config()
        if client is None:
            client = HttpStreamingClient(timeout=self.config.stream_timeout)
        self.bus = MessageBus()
        self.cache = BlockCache()
        self.owner = GraphOwner(graph if graph is not None
                                else core.default_graph())
        self.execution = ExecutionWorker(self.bus, self.cache, engine=engine)
        self.streaming = StreamingWorker(self.bus, self.cache, client=client)
        self._messages = []

    def start(self):
        self.owner.start()
        self.execution.start()
        self.streaming.start()
        return self

    def stop(self, timeout=None):
        self.bus.send_execution(Shutdown())
        self.bus.send_streaming(Shutdown())
        for thread in (self.execution, self.streaming):
            if thread.is_alive():
                thread.join(timeout)
        self.owner.stop(timeout)

    def __enter__(self):
        return self.start()

    def __exit__(self, *args):
        self.stop()

    # --- Module editing ---

    def add_map(self, name, code=None, inputs=None):
        module = core.new_map(name)
        if code is not None:
            module.code = code
        if inputs is not None:
            module.inputs = list(inputs)
        return self.owner.insert(module)

    def add_store(self, name, code=None, inputs=None, update_policy="set"):
        template = core.new_store(name)
        module = core.StoreModule(
            name=name,
            code=code if code is not None else template.code,
            inputs=inputs if inputs is not None else template.inputs,
            update_policy=update_policy,
        )
        return self.owner.insert(module)

    def remove_module(self, id):
        return self.owner.remove(id)

    def rename_module(self, id, new_name):
        self.owner.rename(id, new_name)

    def set_inputs(self, id, inputs):
        self.owner.set_inputs(id, inputs)

    def set_code(self, id, code):
        self.owner.set_code(id, code)

    def set_update_policy(self, id, policy):
        self.owner.set_update_policy(id, policy)

    def modules(self):
        """
        Return [(id, definition), ...] for the modules in the graph.
        """
        return self.owner.all()

    def source(self):
        """
        Return the generated script for the current graph.

        Raises :class:`.codegen.UnresolvedInputError` if an input does not
        resolve.
        """
        return self.owner.generate()

    def write_source(self, path=None):
        path = path if path is not None else self.config.source_path
        source = self.source()
        with open(path, "w") as fid:
            fid.write(source)
        log.info("wrote generated source to %s", path)
        return path

    # --- Execution requests ---

    def run_in_repl(self):
        """
        Evaluate the generated script for the whole graph.
        """
        self.bus.send_execution(Evaluate(self.source()))

    def evaluate(self, source):
        self.bus.send_execution(Evaluate(source))

    def eval_module(self, id):
        """
        Evaluate the code of one module on its own.
        """
        module = self.owner.get(id)
        if module is None:
            raise KeyError("module %r does not exist" % id)
        self.bus.send_execution(Evaluate(module.code))

    def eval_function(self, name, args=()):
        """
        Call function *name*; see :class:`.messages.EvaluateFunction`.
        """
        self.bus.send_execution(EvaluateFunction(name, list(args)))

    def build(self):
        self.bus.send_execution(Build())

    def reset(self, clear_scope=True, clear_compiled_unit=False):
        self.bus.send_execution(ResetScope(clear_scope, clear_compiled_unit))

    # --- Streaming requests ---

    def run_stream(self, start=None, stop=None, module_name=None):
        config = self.config
        self.bus.send_streaming(RunRange(
            start=start if start is not None else config.start_block,
            stop=stop if stop is not None else config.stop_block,
            endpoint=config.endpoint,
            package=config.package,
            module_name=module_name if module_name is not None else config.module_name,
            token=config.token,
        ))

    def fetch_block(self, block_number, cache_slot=1):
        self.bus.send_streaming(FetchSingleBlock(
            block_number=block_number,
            endpoint=self.config.endpoint,
            token=self.config.token,
            cache_slot=cache_slot,
        ))

    # --- Message log ---

    def poll(self):
        """
        Move pending notifications into the message log, returning them.
        """
        pending = self.bus.drain()
        for message in pending:
            if isinstance(message, MessagesCleared):
                del self._messages[:]
            else:
                self._messages.append(message)
        return pending

    def messages(self, search=None, hide_empty=False):
        """
        Return the message log.

        *search* keeps only messages whose text, or JSON rendering,
        contains the string, ignoring case.

        *hide_empty* drops JSON messages holding null, an empty list or an
        empty object.
        """
        self.poll()
        return [m for m in self._messages
                if _shown(m, search, hide_empty)]

    def clear_messages(self):
        self.bus.publish(MessagesCleared())


def _shown(message, search, hide_empty):
    if isinstance(message, JsonMessage):
        value = message.value
        if hide_empty and (value is None or value == [] or value == {}):
            return False
        text = json.dumps(value, default=repr)
    elif isinstance(message, BlockCacheUpdated):
        text = json.dumps(message.value, default=repr)
    elif isinstance(message, TextMessage):
        text = message.text
    else:
        text = ""
    return not search or search.lower() in text.lower()
