"""
Convert a module graph to script source.

The generated script registers each module with the runtime and then
defines the handler.  For a map *foo* over the block, the output is::

    add_mfn({
        "name": "foo",
        "inputs": [{"kind": "source"}],
        "handler": "foo"
    })
    def foo(BLOCK):
        return BLOCK["number"]

Stores are registered with *add_sfn*.  Modules are emitted in graph order;
no dependency sort is done since the runtime looks up handlers by name
when the stream is evaluated.

The following functions are available:

    generate

        Return the script for the whole graph.

    validate

        Return the list of unresolved inputs in the graph.

    register_module

        Return the registration statement for one module.

    resolve_input

        Return the input descriptor for one input name.
"""
__all__ = ['generate', 'validate', 'register_module', 'resolve_input',
           'UnresolvedInputError']

import json

from .core import SOURCE

_REGISTER_TEMPLATE = """
{function}({{
    "name": {name},
    "inputs": [{inputs}],
    "handler": {name}
}})
"""


class UnresolvedInputError(KeyError):
    """
    Raised when a module names an input which is neither a module in the
    graph nor the block source.
    """
    def __init__(self, module, input):
        KeyError.__init__(self, module, input)
        self.module = module
        self.input = input

    def __str__(self):
        return "Unknown input %r for module %r" % (self.input, self.module)


def resolve_input(input, graph):
    """
    Return the descriptor for *input* as a dict with *kind* and *name*.

    Raises *KeyError* if the input cannot be resolved.
    """
    found = graph.find(input)
    if found is not None:
        _, module = found
        return {"kind": module.kind, "name": module.name}
    if input == SOURCE:
        return {"kind": "source"}
    raise KeyError(input)


def _resolve_all(module, graph):
    descriptors = []
    for input in module.inputs:
        try:
            descriptors.append(resolve_input(input, graph))
        except KeyError:
            raise UnresolvedInputError(module.name, input) from None
    return descriptors


def _render(module, descriptors):
    inputs = ",".join(_format_descriptor(d) for d in descriptors)
    return _REGISTER_TEMPLATE.format(
        function=module.register_function,
        name=json.dumps(module.name),
        inputs=inputs,
    )


def _format_descriptor(descriptor):
    parts = ['"kind": %s' % json.dumps(descriptor["kind"])]
    if "name" in descriptor:
        parts.append('"name": %s' % json.dumps(descriptor["name"]))
    return "{" + ", ".join(parts) + "}"


def register_module(module, graph):
    """
    Return the registration statement for *module* within *graph*.
    """
    return _render(module, _resolve_all(module, graph))


def generate(graph):
    """
    Return the script text for *graph*.

    Each module contributes its registration statement followed by its
    code and a newline.  If any input fails to resolve,
    :class:`UnresolvedInputError` is raised and nothing is returned.
    """
    # Resolve everything first so that a bad input anywhere in the graph
    # fails before any text is produced.
    resolved = [(module, _resolve_all(module, graph))
                for _, module in graph.all()]
    parts = []
    for module, descriptors in resolved:
        parts.append(_render(module, descriptors))
        parts.append(module.code)
        parts.append("\n")
    return "".join(parts)


def validate(graph):
    """
    Return a list of error strings, one per unresolved input.
    """
    errors = []
    for _, module in graph.all():
        for input in module.inputs:
            try:
                resolve_input(input, graph)
            except KeyError:
                errors.append(str(UnresolvedInputError(module.name, input)))
    return errors
