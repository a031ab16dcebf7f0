"""
Client code.

Main entry point: :func:`open_client`.
"""

from contextlib import asynccontextmanager
from datetime import timedelta

import anyio

from .default import CFG
from .exceptions import ClientError, ClosedClientError
from .model import Node, NodeEvent
from .response import check_error, fragment, to_event
from .transport import Transport
from .util import attrdict, combine_dict
from .watch import Watcher

import logging

logger = logging.getLogger(__name__)

__all__ = ["open_client", "Client"]


@asynccontextmanager
async def open_client(**cfg):
    """
    This async context manager returns an opened client.

    Arguments are merged with :data:`etckv.default.CFG`, e.g.::

        async with open_client(connect=dict(host="etcd.example", port=2379)) as c:
            node = await c.get_node("/foo")

    The client is closed when the context ends, unless you closed it
    yourself.
    """
    client = Client(cfg)
    async with client._connected():
        yield client


class Client:
    """
    A client for the store's keys API.

    Use :func:`open_client` to get one.

    One-shot requests use a shared connection. Every watch gets its own
    connection, so a long poll never holds up anything else.
    """

    _tg: anyio.abc.TaskGroup = None
    _transport: Transport = None

    def __init__(self, cfg: dict):
        self.config = combine_dict(cfg, CFG, cls=attrdict)
        self._watchers = {}
        self._closed = False

    @property
    def closed(self):
        return self._closed

    @asynccontextmanager
    async def _connected(self):
        """
        This async context manager runs the task group that holds the
        watchers, and the shared transport.
        """
        self._transport = Transport(self.config.connect)
        try:
            async with anyio.create_task_group() as tg:
                self._tg = tg
                try:
                    yield self
                finally:
                    if not self._closed:
                        with anyio.CancelScope(shield=True):
                            await self.aclose()
        finally:
            self._tg = None

    def _assert_open(self):
        if self._closed:
            raise ClosedClientError("This client is closed.")
        if self._transport is None:
            raise ClientError("Not connected. Use 'open_client'.")

    # externally visible interface ##########################

    async def get_node(self, path: str, *, recursive: bool = False) -> Node:
        """
        Return the node at ``path``.

        A directory node contains its children. If ``recursive`` is set,
        the whole subtree is returned, otherwise only the first level.

        Raises:
          EtcdServerError: the store rejected the request.
          ClosedClientError: the client has been closed.
        """
        self._assert_open()
        res = await self._transport.get(path, recursive=recursive)
        return fragment(check_error(res))

    async def set_node(
        self,
        path: str,
        value=None,
        *,
        ttl=None,
        hidden: bool = None,
        directory: bool = None,
    ) -> NodeEvent:
        """
        Set the node at ``path``.

        Returns the event this change caused: CREATE if the node is new,
        MODIFY otherwise.

        Arguments:
          value: the new value. Ignored when ``directory`` is set.
          ttl: time to live, as a :class:`datetime.timedelta` or seconds.
          hidden: create a hidden node.
          directory: create a directory.
        """
        self._assert_open()
        if ttl is not None and not isinstance(ttl, timedelta):
            ttl = timedelta(seconds=ttl)
        if directory:
            value = None
        res = await self._transport.put(path, value=value, ttl=ttl, dir=directory, hidden=hidden)
        return to_event(check_error(res))

    async def delete_node(self, path: str, *, recursive: bool = False) -> NodeEvent:
        """
        Delete the node at ``path``.

        Set ``recursive`` to delete a directory; the store refuses
        otherwise.
        """
        self._assert_open()
        res = await self._transport.delete(path, recursive=recursive)
        return to_event(check_error(res))

    def watch(self, path: str, *, wait_index: int = None, recursive: bool = False) -> Watcher:
        """
        Return an async iterator of :class:`NodeEvent` at ``path``.

        Nothing happens until you start iterating.

        Arguments:
          wait_index: the first index to report. Default: the next change.
          recursive: also report changes below ``path``.
        """
        self._assert_open()
        w = Watcher(self, path, wait_index=wait_index, recursive=recursive)
        self._watchers[w] = True
        return w

    async def aclose(self):
        """
        Close the client. All watchers are cancelled.

        Closing twice is an error.
        """
        if self._closed:
            raise ClosedClientError("This client is closed already.")
        self._closed = True
        for w in list(self._watchers):
            await w.cancel()
        if self._transport is not None:
            await self._transport.aclose()
        logger.debug("Closed.")
