"""
An in-memory imitation of the etcd v2 keys API, served through
:class:`httpx.MockTransport`.

Only what the client uses is implemented: get (with long polls), set,
delete. TTLs are reported but nodes never expire.
"""

import json
from datetime import datetime, timedelta, timezone

import anyio
import attr
import httpx

from etckv.errors import (
    KEY_NOT_FILE_CODE,
    KEY_NOT_FOUND_CODE,
    NOT_A_DIRECTORY_CODE,
)

import logging

logger = logging.getLogger(__name__)

__all__ = ["FakeEtcd"]

PREFIX = "/v2/keys"


@attr.s
class Entry:
    key = attr.ib()
    created = attr.ib()
    modified = attr.ib()
    value = attr.ib(default=None)
    dir = attr.ib(default=False)
    ttl = attr.ib(default=None)
    expiration = attr.ib(default=None)

    def wire(self, children=None):
        res = dict(key=self.key, createdIndex=self.created, modifiedIndex=self.modified)
        if self.dir:
            res["dir"] = True
            if children:
                res["nodes"] = children
        else:
            res["value"] = self.value
        if self.ttl is not None:
            res["ttl"] = self.ttl
            res["expiration"] = self.expiration
        return res


def _parent(key):
    return key.rsplit("/", 1)[0] or "/"


def _flag(params, name):
    return params.get(name, "false") == "true"


class FakeEtcd:
    """
    A fake etcd server.

    Use ``.transport`` as the client's ``connect.transport``.

    ``requests`` records ``(method, key, params)`` for every request.
    """

    def __init__(self, index=1):
        self.index = index
        self.entries = {"/": Entry("/", 0, 0, dir=True)}
        self.history = []  # (index, key, envelope)
        self.requests = []
        self._changed = anyio.Event()
        self._waiting = 0
        self._waiting_changed = anyio.Event()
        self.transport = httpx.MockTransport(self.handle)

    # test helpers

    @property
    def waiting(self):
        """The number of long polls currently blocked."""
        return self._waiting

    async def wait_for_watchers(self, n=1):
        """Wait until ``n`` long polls are blocked."""
        while self._waiting < n:
            await self._waiting_changed.wait()

    def _set_waiting(self, delta):
        self._waiting += delta
        self._waiting_changed.set()
        self._waiting_changed = anyio.Event()

    def watch_requests(self, key=None):
        """The parameters of all long polls, optionally on ``key`` only."""
        return [
            p
            for m, k, p in self.requests
            if m == "GET" and _flag(p, "wait") and (key is None or k == key)
        ]

    # request handling

    async def handle(self, request: httpx.Request):
        key = request.url.path
        if not key.startswith(PREFIX):
            return httpx.Response(404, text="404 page not found")
        key = "/" + key[len(PREFIX) :].strip("/")
        if request.method == "PUT":
            params = dict(httpx.QueryParams(request.content.decode("utf-8")))
        else:
            params = dict(request.url.params)
        self.requests.append((request.method, key, params))
        logger.debug("%s %s %s", request.method, key, params)

        if request.method == "GET":
            if _flag(params, "wait"):
                status, res = await self._wait(key, params)
            else:
                status, res = self._get(key, params)
        elif request.method == "PUT":
            status, res = self._set(key, params)
        elif request.method == "DELETE":
            status, res = self._delete(key, params)
        else:
            return httpx.Response(405, text="Method not allowed")
        return httpx.Response(status, content=json.dumps(res).encode("utf-8"))

    def _error(self, code, message, cause, status=404):
        return status, dict(errorCode=code, message=message, cause=cause, index=self.index)

    def _children(self, key):
        pre = key.rstrip("/") + "/"
        return sorted(
            k for k in self.entries if k != key and k.startswith(pre) and "/" not in k[len(pre) :]
        )

    def _render(self, key, recursive, depth=0):
        e = self.entries[key]
        if not e.dir or (depth > 0 and not recursive):
            return e.wire()
        res = e.wire([self._render(k, recursive, depth + 1) for k in self._children(key)])
        if key == "/":
            # the real store reports the root without key or indexes
            for k in ("key", "createdIndex", "modifiedIndex"):
                del res[k]
        return res

    def _get(self, key, params):
        if key not in self.entries:
            return self._error(KEY_NOT_FOUND_CODE, "Key not found", key)
        return 200, dict(action="get", node=self._render(key, _flag(params, "recursive")))

    def _record(self, key, res):
        self.history.append((self.index, key, res))
        self._changed.set()
        self._changed = anyio.Event()

    def _set(self, key, params):
        is_dir = _flag(params, "dir")
        prev = self.entries.get(key)
        if prev is not None and prev.dir:
            return self._error(KEY_NOT_FILE_CODE, "Not a file", key, status=403)
        if prev is not None and is_dir:
            return self._error(NOT_A_DIRECTORY_CODE, "Not a directory", key, status=403)

        p = _parent(key)
        missing = []
        while p not in self.entries:
            missing.append(p)
            p = _parent(p)
        if not self.entries[p].dir:
            return self._error(NOT_A_DIRECTORY_CODE, "Not a directory", p, status=403)

        self.index += 1
        for p in reversed(missing):
            self.entries[p] = Entry(p, self.index, self.index, dir=True)

        ttl = params.get("ttl")
        e = Entry(
            key,
            self.index if prev is None else prev.created,
            self.index,
            value=None if is_dir else params.get("value", ""),
            dir=is_dir,
        )
        if ttl:
            e.ttl = int(ttl)
            exp = datetime.now(timezone.utc) + timedelta(seconds=e.ttl)
            e.expiration = exp.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"
        self.entries[key] = e

        res = dict(action="set", node=e.wire())
        if prev is not None:
            res["prevNode"] = prev.wire()
        self._record(key, res)
        return (200 if prev is not None else 201), res

    def _delete(self, key, params):
        prev = self.entries.get(key)
        if prev is None:
            return self._error(KEY_NOT_FOUND_CODE, "Key not found", key)
        if key == "/":
            return self._error(NOT_A_DIRECTORY_CODE, "Root is read only", key, status=403)
        if prev.dir:
            if not _flag(params, "recursive"):
                return self._error(KEY_NOT_FILE_CODE, "Not a file", key, status=403)
        self.index += 1
        pre = key + "/"
        for k in [k for k in self.entries if k == key or k.startswith(pre)]:
            del self.entries[k]
        node = dict(key=key, createdIndex=prev.created, modifiedIndex=self.index)
        if prev.dir:
            node["dir"] = True
        res = dict(action="delete", node=node, prevNode=prev.wire())
        self._record(key, res)
        return 200, res

    def _matches(self, path, recursive, key, res):
        if key == path:
            return True
        if recursive and key.startswith(path.rstrip("/") + "/"):
            return True
        # deleting a directory notifies watchers of anything below it
        return res["action"] == "delete" and path.startswith(key.rstrip("/") + "/")

    async def _wait(self, key, params):
        recursive = _flag(params, "recursive")
        wait_index = params.get("waitIndex")
        if wait_index is None:
            wait_index = self.index + 1
        else:
            wait_index = int(wait_index)
            if wait_index == 0:
                wait_index = 1

        seen = 0
        self._set_waiting(1)
        try:
            while True:
                for idx, k, res in self.history[seen:]:
                    if idx >= wait_index and self._matches(key, recursive, k, res):
                        return 200, res
                seen = len(self.history)
                await self._changed.wait()
        finally:
            self._set_waiting(-1)

