"""
Add an annotation to an exception giving a context for the embedded exception.

For example::

    try:
        handler(*args)
    except Exception:
        annotate_exception("while calling " + name)
        raise

The annotation is appended to the first argument of the exception, so it
shows up in the one line rendering used by the message log.
"""
import sys


def annotate_exception(msg, exc=None):
    """
    Add an annotation to the current exception, which can then be forwarded
    to the caller using a bare "raise" statement to reraise the annotated
    exception.
    """
    if not exc:
        exc = sys.exc_info()[1]

    args = exc.args
    if isinstance(exc, OSError) and len(args) == 2:
        # Special handling of system errors with args=(errno, message)
        exc.args = (args[0], " ".join((str(args[1]), msg)))
    elif not args:
        exc.args = (msg,)
    else:
        exc.args = tuple([" ".join((str(args[0]), msg))] + list(args[1:]))
