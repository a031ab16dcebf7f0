"""
HTTP transport: one :class:`Transport` is one independently closeable
connection handle to the store.
"""

import ssl as _ssl

import httpx

from .codec import decode, encode_options

import logging

logger = logging.getLogger(__name__)

__all__ = ["Transport"]

_default = object()


class Transport:
    """
    Talk to the store's keys API.

    Args:
      cfg: the ``connect`` section of the client configuration.
      timeout: request timeout in seconds. ``None`` waits forever, which
        long polls require. Default: ``cfg.timeout``.
    """

    def __init__(self, cfg, timeout=_default):
        if timeout is _default:
            timeout = cfg.timeout
        self._prefix = cfg.prefix.rstrip("/")

        ssl = cfg.ssl
        kw = {}
        if isinstance(ssl, _ssl.SSLContext):
            kw["verify"] = ssl
        if cfg.transport is not None:
            kw["transport"] = cfg.transport
        scheme = "https" if ssl else "http"
        self._client = httpx.AsyncClient(
            base_url=f"{scheme}://{cfg.host}:{cfg.port}", timeout=timeout, **kw
        )

    def _path(self, key):
        if not key.startswith("/"):
            key = "/" + key
        return self._prefix + key

    def _decode(self, resp):
        logger.debug("Recv %s %s: %s", resp.request.method, resp.status_code, resp.content)
        return decode(resp.content)

    async def get(self, key, **options):
        """GET ``key``; options are sent as query parameters."""
        params = encode_options(options)
        logger.debug("GET %s %s", key, params)
        resp = await self._client.get(self._path(key), params=params)
        return self._decode(resp)

    async def put(self, key, **options):
        """PUT ``key``; options are sent as a form-encoded body."""
        data = encode_options(options)
        logger.debug("PUT %s %s", key, data)
        resp = await self._client.put(self._path(key), data=data)
        return self._decode(resp)

    async def delete(self, key, **options):
        """DELETE ``key``; options are sent as query parameters."""
        params = encode_options(options)
        logger.debug("DELETE %s %s", key, params)
        resp = await self._client.delete(self._path(key), params=params)
        return self._decode(resp)

    @property
    def closed(self):
        return self._client.is_closed

    async def aclose(self):
        await self._client.aclose()
