"""
Test support: run a client against an in-memory store.
"""

from contextlib import asynccontextmanager

import attr

from etckv.client import open_client
from etckv.util import combine_dict

from .etcd import FakeEtcd

import logging

logger = logging.getLogger(__name__)

__all__ = ["FakeEtcd", "S", "stdtest"]


@attr.s
class S:
    etcd = attr.ib()
    c = attr.ib(factory=list)  # clients

    @asynccontextmanager
    async def client(self, **cfg):
        """Get another client for the fake store."""
        cfg = combine_dict(cfg, dict(connect=dict(transport=self.etcd.transport)))
        async with open_client(**cfg) as c:
            self.c.append(c)
            try:
                yield c
            finally:
                self.c.remove(c)


@asynccontextmanager
async def stdtest(**cfg):
    """
    Yield a :class:`S` with a fresh :class:`FakeEtcd`, plus a client
    connected to it as ``st.c[0]``.
    """
    st = S(FakeEtcd())
    async with st.client(**cfg):
        yield st
