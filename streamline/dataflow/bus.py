"""
Channels between the presentation layer and the workers.

There are three unbounded FIFO channels: requests for the execution
worker, requests for the streaming worker, and notifications from either
worker back to the presentation layer.  Senders never block.  Receivers
on the worker side block until a request arrives; the presentation side
drains whatever is waiting without blocking.

Ordering is FIFO within a channel.  Nothing orders the execution channel
against the streaming channel, nor the notifications of one worker
against those of the other.
"""
import queue


class MessageBus(object):
    def __init__(self):
        self.execution = queue.SimpleQueue()
        self.streaming = queue.SimpleQueue()
        self.outbound = queue.SimpleQueue()

    def send_execution(self, request):
        self.execution.put(request)

    def send_streaming(self, request):
        self.streaming.put(request)

    def publish(self, message):
        self.outbound.put(message)

    def receive_execution(self, timeout=None):
        """
        Wait for the next execution request.

        Raises *queue.Empty* if *timeout* expires first.
        """
        return self.execution.get(timeout=timeout)

    def receive_streaming(self, timeout=None):
        """
        Wait for the next streaming request.

        Raises *queue.Empty* if *timeout* expires first.
        """
        return self.streaming.get(timeout=timeout)

    def drain(self):
        """
        Return all pending notifications in the order they were published.
        """
        messages = []
        while True:
            try:
                messages.append(self.outbound.get_nowait())
            except queue.Empty:
                return messages
