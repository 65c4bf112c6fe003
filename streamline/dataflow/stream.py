"""
Streaming worker.

The worker runs an asyncio loop on its own thread.  It takes one streaming
request at a time from the streaming channel and runs the session to
completion before looking at the next one, so a range fetch and a single
block fetch never interleave.  Sessions cannot be cancelled.

Records arrive as JSON text.  Range fetches forward each record as a
:class:`.messages.JsonMessage`.  Single block fetches store each record in
the requested :class:`.cache.BlockCache` slot and announce it with
:class:`.messages.BlockCacheUpdated`.

The connection to the streaming service goes through a client object with
the interface of :class:`HttpStreamingClient`::

    records = await client.open(endpoint, package, module_name, token,
                                start, stop)
    async for record in records:
        ...

*open* raises *ConnectionError* if the session cannot be opened.
"""
import asyncio
import json
import logging
import threading

import httpx

from .messages import (
    RunRange, FetchSingleBlock, Shutdown,
    TextMessage, JsonMessage, BlockCacheUpdated,
)

log = logging.getLogger(__name__)

#: Package and module used to resolve a single block.
BLOCK_PACKAGE = "https://spkg.io/streamingfast/ethereum-explorer-v0.1.2.spkg"
BLOCK_MODULE = "map_block_full"

STREAM_PATH = "/v1/stream"


class HttpStreamingClient(object):
    """
    Client for a streaming service which returns newline delimited JSON.

    The request is posted to *endpoint* + "/v1/stream" with the package,
    module and block range in the body, and the token as a bearer
    authorization header.

    *timeout* is passed to httpx; None waits forever.

    *transport* replaces the httpx transport, for testing.
    """
    def __init__(self, timeout=None, transport=None):
        self.timeout = timeout
        self.transport = transport

    def _request_body(self, package, module_name, start, stop):
        return {
            "package": package,
            "module": module_name,
            "start_block": start,
            "stop_block": stop,
        }

    async def open(self, endpoint, package, module_name, token, start, stop):
        headers = {"Accept": "application/x-ndjson"}
        if token:
            headers["Authorization"] = "Bearer %s" % token
        try:
            if httpx.URL(endpoint).scheme not in ("http", "https"):
                raise ValueError("expected an http or https url")
            client = httpx.AsyncClient(
                base_url=endpoint.rstrip('/'),
                timeout=self.timeout,
                transport=self.transport,
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise ConnectionError("Invalid stream endpoint %r: %s"
                                  % (endpoint, exc)) from exc
        try:
            request = client.build_request(
                "POST", STREAM_PATH, headers=headers,
                json=self._request_body(package, module_name, start, stop))
            response = await client.send(request, stream=True)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            await client.aclose()
            raise ConnectionError("Failed to open stream at %s: %s"
                                  % (endpoint, exc)) from exc
        except BaseException:
            await client.aclose()
            raise
        return _records(client, response)


async def _records(client, response):
    try:
        async for line in response.aiter_lines():
            if line.strip():
                yield line
    finally:
        await response.aclose()
        await client.aclose()


class StreamingWorker(threading.Thread):
    """
    Thread which runs streaming sessions.

    *bus* is the :class:`.bus.MessageBus` to serve.

    *cache* is the :class:`.cache.BlockCache` filled by single block fetches.

    *client* opens the sessions; see :class:`HttpStreamingClient`.
    """
    def __init__(self, bus, cache, client=None):
        threading.Thread.__init__(self, name="streaming-worker", daemon=True)
        self.bus = bus
        self.cache = cache
        self.client = client if client is not None else HttpStreamingClient()

    def run(self):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            while True:
                request = self.bus.receive_streaming()
                if isinstance(request, Shutdown):
                    break
                try:
                    loop.run_until_complete(self.handle(request))
                except Exception:
                    log.exception("streaming request %r failed", request)
                    self.bus.publish(TextMessage(
                        "Stream failed: internal failure handling %s"
                        % type(request).__name__))
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    async def handle(self, request):
        if isinstance(request, RunRange):
            await self.run_range(request)
        elif isinstance(request, FetchSingleBlock):
            await self.fetch_block(request)
        else:
            raise TypeError('unknown request "%s"' % str(type(request)))

    async def run_range(self, request):
        await self._stream(
            request.endpoint, request.package, request.module_name,
            request.token, request.start, request.stop,
            lambda value: self.bus.publish(JsonMessage(value)))

    async def fetch_block(self, request):
        slot = request.cache_slot
        if not self.cache.valid_slot(slot):
            log.warning("block %s requested for invalid cache slot %r",
                        request.block_number, slot)
            self.bus.publish(TextMessage("Invalid cache slot %r for block %s"
                                         % (slot, request.block_number)))
            return

        def update(value):
            self.cache.set(slot, value)
            self.bus.publish(BlockCacheUpdated(slot, value))

        await self._stream(
            request.endpoint, BLOCK_PACKAGE, BLOCK_MODULE, request.token,
            request.block_number, request.block_number + 1, update)

    async def _stream(self, endpoint, package, module_name, token,
                      start, stop, emit):
        try:
            records = await self.client.open(
                endpoint, package, module_name, token, start, stop)
        except ConnectionError as exc:
            log.info("stream request dropped: %s", exc)
            self.bus.publish(TextMessage("Stream failed: %s" % exc))
            return
        log.info("streaming %s from %s blocks %s to %s",
                 module_name, endpoint, start, stop)
        try:
            async for record in records:
                try:
                    value = json.loads(record)
                except (TypeError, ValueError) as exc:
                    self.bus.publish(TextMessage("Malformed record: %s" % exc))
                    continue
                emit(value)
        except (ConnectionError, httpx.HTTPError) as exc:
            self.bus.publish(TextMessage("Stream interrupted: %s" % exc))
