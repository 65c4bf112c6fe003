"""
Messages passed between the editor threads.

Requests for the execution worker:

    :class:`Evaluate`, :class:`EvaluateFunction`, :class:`ResetScope`,
    :class:`Build`

Requests for the streaming worker:

    :class:`RunRange`, :class:`FetchSingleBlock`

Notifications for the presentation layer:

    :class:`TextMessage`, :class:`JsonMessage`, :class:`BlockCacheUpdated`,
    :class:`MessagesCleared`

Either worker stops when it receives :class:`Shutdown`.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union


@dataclass(frozen=True)
class CacheRef:
    """
    Function argument taken from a block cache slot at call time.
    """
    slot: int


@dataclass(frozen=True)
class Evaluate:
    source: str


@dataclass(frozen=True)
class EvaluateFunction:
    """
    Call *name* with positional *args*.

    Each argument is either JSON text or a :class:`CacheRef`.
    """
    name: str
    args: List[Union[str, CacheRef]] = field(default_factory=list)


@dataclass(frozen=True)
class ResetScope:
    """
    Clear the persistent scope and, if requested, the compiled unit.
    """
    clear_scope: bool = True
    clear_compiled_unit: bool = False


@dataclass(frozen=True)
class Build:
    pass


@dataclass(frozen=True)
class RunRange:
    start: int
    stop: int
    endpoint: str
    package: str
    module_name: str
    token: Optional[str] = None


@dataclass(frozen=True)
class FetchSingleBlock:
    block_number: int
    endpoint: str
    token: Optional[str] = None
    cache_slot: int = 1


@dataclass(frozen=True)
class TextMessage:
    text: str


@dataclass(frozen=True)
class JsonMessage:
    value: Any


@dataclass(frozen=True)
class BlockCacheUpdated:
    slot: int
    value: Any


@dataclass(frozen=True)
class MessagesCleared:
    pass


@dataclass(frozen=True)
class Shutdown:
    pass


def to_transport(message):
    """
    Convert an outbound message to a plain dict for sending to a client.
    """
    if isinstance(message, TextMessage):
        return {"kind": "text", "text": message.text}
    elif isinstance(message, JsonMessage):
        return {"kind": "json", "value": message.value}
    elif isinstance(message, BlockCacheUpdated):
        return {"kind": "block", "slot": message.slot, "value": message.value}
    elif isinstance(message, MessagesCleared):
        return {"kind": "cleared"}
    raise TypeError('unknown message "%s"' % str(type(message)))
