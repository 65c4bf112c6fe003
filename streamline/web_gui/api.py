"""
Methods exposed to editor clients.

Each exposed method takes and returns json-compatible values.  The server
wraps them as RPC endpoints; see :mod:`.server_flask`.
"""
import logging

from streamline import __version__
from streamline.dataflow import codegen, configure
from streamline.dataflow.messages import CacheRef, to_transport
from streamline.dataflow.session import Editor

log = logging.getLogger(__name__)

api_methods = []

EDITOR = None


def expose(action):
    """
    Decorator which adds function to the list of methods to expose in the api.
    """
    api_methods.append(action.__name__)
    return action


def _int_or_none(value):
    return int(value) if value is not None else None


def _as_bool(value):
    # query string arguments arrive as text
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _editor():
    if EDITOR is None:
        raise RuntimeError("call initialize() before using the api")
    return EDITOR


@expose
def get_version():
    return {"version": __version__}


@expose
def list_modules():
    """
    Return the modules in the graph as a list of definitions with their id.
    """
    return [dict(id=id, **definition) for id, definition in _editor().modules()]


@expose
def add_module(kind, name, code=None, inputs=None, update_policy="set"):
    """
    Add a "map" or "store" module, returning its id.
    """
    editor = _editor()
    if kind == "map":
        return editor.add_map(name, code=code, inputs=inputs)
    elif kind == "store":
        return editor.add_store(name, code=code, inputs=inputs,
                                update_policy=update_policy)
    raise ValueError("module kind %r should be 'map' or 'store'" % kind)


@expose
def remove_module(id):
    _editor().remove_module(int(id))
    return True


@expose
def rename_module(id, name):
    _editor().rename_module(int(id), name)
    return True


@expose
def update_module(id, code=None, inputs=None, update_policy=None):
    """
    Change the code, inputs or update policy of module *id*.
    """
    editor = _editor()
    id = int(id)
    if code is not None:
        editor.set_code(id, code)
    if inputs is not None:
        editor.set_inputs(id, inputs)
    if update_policy is not None:
        editor.set_update_policy(id, update_policy)
    return True


@expose
def get_source():
    """
    Return the generated script, or the list of unresolved inputs.
    """
    editor = _editor()
    try:
        return {"source": editor.source(), "errors": []}
    except codegen.UnresolvedInputError:
        return {"source": None, "errors": editor.owner.validate()}


@expose
def validate():
    return _editor().owner.validate()


@expose
def write_source():
    """
    Write the generated script to the configured source path.
    """
    return _editor().write_source()


@expose
def run_in_repl():
    _editor().run_in_repl()
    return True


@expose
def evaluate(source):
    _editor().evaluate(source)
    return True


@expose
def eval_module(id):
    _editor().eval_module(int(id))
    return True


@expose
def eval_function(name, args=None):
    """
    Call a function in the runtime.

    *args* is a list where each entry is JSON text, or a dict
    {"slot": n} to pass the block held in cache slot *n*.
    """
    converted = []
    for arg in args or []:
        if isinstance(arg, dict) and "slot" in arg:
            converted.append(CacheRef(int(arg["slot"])))
        else:
            converted.append(arg)
    _editor().eval_function(name, converted)
    return True


@expose
def build():
    _editor().build()
    return True


@expose
def reset(clear_scope=True, clear_compiled_unit=False):
    _editor().reset(clear_scope=_as_bool(clear_scope),
                    clear_compiled_unit=_as_bool(clear_compiled_unit))
    return True


@expose
def run_stream(start=None, stop=None, module_name=None):
    _editor().run_stream(start=_int_or_none(start), stop=_int_or_none(stop),
                         module_name=module_name)
    return True


@expose
def fetch_block(block_number, cache_slot=1):
    _editor().fetch_block(int(block_number), cache_slot=int(cache_slot))
    return True


@expose
def get_block_cache():
    snapshot = _editor().cache.snapshot()
    return dict((str(slot), value) for slot, value in snapshot.items())


@expose
def get_messages(search=None, hide_empty=False):
    messages = _editor().messages(search=search, hide_empty=_as_bool(hide_empty))
    return [to_transport(m) for m in messages]


@expose
def clear_messages():
    _editor().clear_messages()
    return True


def initialize(config=None, editor=None):
    """
    Start the editor session used by the api.

    *config* is a configuration dict as in streamline.configurations.default.
    *editor* replaces the session, for testing.
    """
    global EDITOR
    if EDITOR is not None:
        EDITOR.stop()
    if editor is None:
        if config is None:
            config = configure.load_config('config')
        editor = Editor(configure.apply_config(user_config=config))
    EDITOR = editor.start()
    log.info("editor session started")
    return EDITOR


def shutdown():
    global EDITOR
    if EDITOR is not None:
        EDITOR.stop()
        EDITOR = None
