"""
The watch loop: an unending sequence of long-poll requests against one
path, turned into a stream of :class:`NodeEvent`.
"""

import anyio
import outcome

from .exceptions import ClosedClientError
from .model import NodeEvent
from .response import check_error, to_event
from .transport import Transport

import logging

logger = logging.getLogger(__name__)

__all__ = ["Watcher", "next_wait_index"]


def next_wait_index(path: str, wait_index, event: NodeEvent):
    """
    Return the index the next long poll on ``path`` should wait for.

    If the event's node is the watched node or below it, wait for the
    change after it. Otherwise the store propagated a change from an
    ancestor directory, so re-wait at the same index.
    """
    node = event.node
    if not node.key.startswith(path):
        return wait_index
    # a deleted node's old modifiedIndex predates the deletion itself
    if event.index is not None and event.index > node.modified_index:
        return event.index + 1
    return node.modified_index + 1


class Watcher:
    """
    One watch subscription.

    Use :meth:`etckv.client.Client.watch` to create this. Nothing is sent
    to the store until you start iterating::

        async with client.watch("/dir", recursive=True) as w:
            async for evt in w:
                process(evt)

    Each iteration's result is a :class:`NodeEvent`. An error ends the
    iteration: it's raised once, after which the watcher is finished.
    Re-invoke ``watch`` if you want to retry.
    """

    _transport: Transport = None
    _scope: anyio.CancelScope = None
    _recv = None

    def __init__(self, client, path: str, wait_index: int = None, recursive: bool = False):
        self._client = client
        if not path.startswith("/"):
            path = "/" + path
        self.path = path
        self.recursive = recursive
        self.wait_index = wait_index
        self.live = True

    def __repr__(self):
        return "<%s:%s @%s%s>" % (
            self.__class__.__name__,
            self.path,
            self.wait_index,
            "" if self.live else " dead",
        )

    async def _start(self):
        client = self._client
        if client.closed:
            raise ClosedClientError(self.path)
        send, self._recv = anyio.create_memory_object_stream(client.config.watch.buffer)
        if not self.live:
            send.close()
            return
        self._transport = Transport(client.config.connect, timeout=None)
        await client._tg.start(self._run, send)

    async def _run(self, send, *, task_status=anyio.TASK_STATUS_IGNORED):
        """The loop proper. Runs in the client's task group."""
        try:
            async with send:
                with anyio.CancelScope() as sc:
                    self._scope = sc
                    task_status.started()
                    await self._loop(send)
        finally:
            with anyio.CancelScope(shield=True):
                await self._transport.aclose()
            self._client._watchers.pop(self, None)
            logger.debug("Watch ended: %r", self)

    async def _loop(self, send):
        while True:
            try:
                msg = await self._transport.get(
                    self.path, wait=True, waitIndex=self.wait_index, recursive=self.recursive
                )
                evt = to_event(check_error(msg))
            except Exception as exc:
                if not self.live:
                    return
                logger.info("Watch %s failed: %r", self.path, exc)
                await self._publish(send, outcome.Error(exc))
                return

            if not self.live:
                logger.debug("Watch %s cancelled, dropping %s", self.path, evt)
                return
            if not await self._publish(send, outcome.Value(evt)):
                return

            wait_index = next_wait_index(self.path, self.wait_index, evt)
            if wait_index == self.wait_index:
                logger.debug("Watch %s: %s is not ours, re-waiting", self.path, evt.node.key)
            self.wait_index = wait_index

    async def _publish(self, send, res):
        try:
            await send.send(res)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            logger.debug("Watch %s: reader is gone", self.path)
            return False
        return True

    async def cancel(self):
        """Stop this subscription.

        A result that arrives for a request that's already underway is
        discarded.
        """
        if not self.live:
            return
        self.live = False
        self._client._watchers.pop(self, None)
        if self._scope is not None:
            self._scope.cancel()
        logger.debug("Watch cancelled: %r", self)

    aclose = cancel

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._recv is None:
            await self._start()
        try:
            res = await self._recv.receive()
        except (anyio.EndOfStream, anyio.ClosedResourceError):
            raise StopAsyncIteration
        return res.unwrap()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *tb):
        await self.cancel()
        if self._recv is not None:
            self._recv.close()
