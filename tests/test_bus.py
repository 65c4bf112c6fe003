import queue

import pytest

from streamline.dataflow.bus import MessageBus
from streamline.dataflow.messages import (
    Evaluate, Build, RunRange, TextMessage, JsonMessage, BlockCacheUpdated,
    MessagesCleared, to_transport,
)


def test_fifo_per_channel():
    bus = MessageBus()
    bus.send_execution(Evaluate("1"))
    bus.send_execution(Build())
    bus.send_streaming(RunRange(1, 2, "http://x", "pkg", "mod"))
    assert bus.receive_execution() == Evaluate("1")
    assert bus.receive_execution() == Build()
    assert isinstance(bus.receive_streaming(), RunRange)
    with pytest.raises(queue.Empty):
        bus.receive_execution(timeout=0.01)


def test_drain():
    bus = MessageBus()
    assert bus.drain() == []
    bus.publish(TextMessage("a"))
    bus.publish(JsonMessage([1]))
    assert bus.drain() == [TextMessage("a"), JsonMessage([1])]
    assert bus.drain() == []


def test_to_transport():
    assert to_transport(TextMessage("hi")) == {"kind": "text", "text": "hi"}
    assert to_transport(JsonMessage({"a": 1})) == {"kind": "json", "value": {"a": 1}}
    assert to_transport(BlockCacheUpdated(2, 5)) == {"kind": "block", "slot": 2, "value": 5}
    assert to_transport(MessagesCleared()) == {"kind": "cleared"}
    with pytest.raises(TypeError):
        to_transport(Build())
