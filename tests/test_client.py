from datetime import timedelta

import anyio
import pytest
from trio.testing import wait_all_tasks_blocked

from etckv.client import Client
from etckv.exceptions import (
    ClientError,
    ClosedClientError,
    EtcdError,
    KeyNotFileError,
    KeyNotFoundError,
    NotDirectoryError,
)
from etckv.mock import stdtest
from etckv.model import NodeEventType

import logging

logger = logging.getLogger(__name__)


@pytest.mark.trio
async def test_01_set_modify_delete():
    async with stdtest() as st:
        (c,) = st.c

        evt = await c.set_node("/a", value="1")
        assert evt.type is NodeEventType.CREATE
        assert evt.new_value.value == "1"
        assert evt.new_value.key == "/a"
        assert evt.old_value is None

        evt = await c.set_node("/a", value="2")
        assert evt.type is NodeEventType.MODIFY
        assert evt.old_value.value == "1"
        assert evt.new_value.value == "2"
        assert evt.new_value.modified_index > evt.old_value.modified_index
        assert evt.new_value.created_index == evt.old_value.created_index

        node = await c.get_node("/a")
        assert node.value == "2"
        assert not node.is_directory

        evt = await c.delete_node("/a")
        assert evt.type is NodeEventType.DELETE
        assert evt.old_value.value == "2"
        assert evt.new_value is None

        with pytest.raises(KeyNotFoundError) as exc:
            await c.get_node("/a")
        assert exc.value.error is EtcdError.KEY_NOT_FOUND


@pytest.mark.trio
async def test_02_requests():
    async with stdtest() as st:
        (c,) = st.c
        await c.set_node("/a", value="1", ttl=30)
        await c.set_node("b", directory=True, value="ignored")
        await c.get_node("/b", recursive=True)
        await c.delete_node("/b", recursive=True)
        assert st.etcd.requests == [
            ("PUT", "/a", dict(value="1", ttl="30")),
            ("PUT", "/b", dict(dir="true")),
            ("GET", "/b", dict(recursive="true")),
            ("DELETE", "/b", dict(recursive="true")),
        ]


@pytest.mark.trio
async def test_03_ttl():
    async with stdtest() as st:
        (c,) = st.c
        evt = await c.set_node("/t", value="v", ttl=timedelta(minutes=1))
        n = evt.new_value
        assert n.ttl == timedelta(seconds=60)
        assert n.expiration is not None
        assert n.expiration.tzinfo is not None

        n = await c.get_node("/t")
        assert n.ttl == timedelta(seconds=60)


@pytest.mark.trio
async def test_04_directories():
    async with stdtest() as st:
        (c,) = st.c
        await c.set_node("/d/x/y", value="1")
        await c.set_node("/d/z", value="2")

        d = await c.get_node("/d")
        assert d.is_directory
        assert d.value is None
        x, z = d.children
        assert x.key == "/d/x"
        assert x.is_directory
        assert x.children == ()
        assert z.value == "2"

        d = await c.get_node("/d", recursive=True)
        x, z = d.children
        (y,) = x.children
        assert y.key == "/d/x/y"
        assert y.value == "1"

        with pytest.raises(KeyNotFileError):
            await c.delete_node("/d")
        with pytest.raises(KeyNotFileError):
            await c.set_node("/d", value="nope")
        with pytest.raises(NotDirectoryError):
            await c.set_node("/d/z/q", value="nope")

        evt = await c.delete_node("/d", recursive=True)
        assert evt.type is NodeEventType.DELETE
        assert evt.old_value.is_directory
        with pytest.raises(KeyNotFoundError):
            await c.get_node("/d/x/y")


@pytest.mark.trio
async def test_05_watch_dir():
    async with stdtest() as st:
        (c,) = st.c
        await c.set_node("/dir", directory=True)

        async with c.watch("/dir", recursive=True) as w:

            async def writer():
                await st.etcd.wait_for_watchers(1)
                await c.set_node("/dir/child", value="x")

            async with anyio.create_task_group() as tg:
                tg.start_soon(writer)
                evt = await w.__anext__()

            assert evt.type is NodeEventType.CREATE
            assert evt.new_value.key == "/dir/child"
            assert evt.new_value.value == "x"

            await st.etcd.wait_for_watchers(1)
            polls = st.etcd.watch_requests("/dir")
            assert len(polls) == 2
            assert "waitIndex" not in polls[0]
            assert polls[0]["recursive"] == "true"
            assert polls[1]["waitIndex"] == str(evt.new_value.modified_index + 1)
        await wait_all_tasks_blocked()
        assert st.etcd.waiting == 0


@pytest.mark.trio
async def test_06_watch_sequence():
    async with stdtest() as st:
        (c,) = st.c
        await c.set_node("/a", value="0")
        start = st.etcd.index + 1

        # these happen before the watch starts, and are replayed
        await c.set_node("/a", value="1")
        await c.set_node("/b", value="other")
        await c.set_node("/a", value="2")
        await c.delete_node("/a")

        res = []
        async with c.watch("/a", wait_index=start) as w:
            async for evt in w:
                res.append(evt)
                if len(res) == 3:
                    break
        assert [e.type for e in res] == [
            NodeEventType.MODIFY,
            NodeEventType.MODIFY,
            NodeEventType.DELETE,
        ]
        assert [e.node.value for e in res] == ["1", "2", "2"]
        # no duplicates: the next poll would be after the deletion
        assert w.wait_index == st.etcd.index + 1


@pytest.mark.trio
async def test_07_watch_parent_deleted():
    async with stdtest() as st:
        (c,) = st.c
        await c.set_node("/d/x/y", value="1")

        async with c.watch("/d/x/y") as w:

            async def writer():
                await st.etcd.wait_for_watchers(1)
                await c.delete_node("/d", recursive=True)

            async with anyio.create_task_group() as tg:
                tg.start_soon(writer)
                evt = await w.__anext__()
            assert evt.type is NodeEventType.DELETE
            assert evt.old_value.key == "/d"

            await st.etcd.wait_for_watchers(1)
            polls = st.etcd.watch_requests("/d/x/y")
            assert len(polls) == 2
            assert "waitIndex" not in polls[1]
            assert w.wait_index is None


@pytest.mark.trio
async def test_08_close():
    async with stdtest() as st:
        (c,) = st.c
        res = []
        w = c.watch("/a")

        async def reader():
            async for evt in w:
                res.append(evt)

        async with anyio.create_task_group() as tg:
            tg.start_soon(reader)
            await st.etcd.wait_for_watchers(1)
            await c.set_node("/a", value="1")
            await wait_all_tasks_blocked()
            assert st.etcd.waiting == 1
            await c.aclose()
        assert len(res) == 1
        assert res[0].new_value.value == "1"
        assert not w.live
        assert c.closed

        with pytest.raises(ClosedClientError):
            await c.set_node("/a", value="2")
        with pytest.raises(ClosedClientError):
            await c.delete_node("/a")
        with pytest.raises(ClosedClientError):
            c.watch("/a")
        with pytest.raises(ClosedClientError):
            await c.get_node("/a")
        with pytest.raises(ClosedClientError):
            await c.aclose()

        await wait_all_tasks_blocked()
        assert st.etcd.waiting == 0
        n = len(st.etcd.requests)
    assert len(st.etcd.requests) == n


@pytest.mark.trio
async def test_09_close_unstarted():
    async with stdtest() as st:
        (c,) = st.c
        w = c.watch("/a")
        await c.aclose()
        assert not w.live
        with pytest.raises(ClosedClientError):
            await w.__anext__()
        assert st.etcd.requests == []


@pytest.mark.trio
async def test_10_two_clients():
    async with stdtest() as st:
        async with st.client() as c2:
            (c1, _) = st.c
            async with c1.watch("/a") as w:

                async def writer():
                    await st.etcd.wait_for_watchers(1)
                    await c2.set_node("/a", value="from c2")

                async with anyio.create_task_group() as tg:
                    tg.start_soon(writer)
                    evt = await w.__anext__()
                assert evt.new_value.value == "from c2"
        assert len(st.c) == 1


@pytest.mark.trio
async def test_11_not_connected():
    c = Client({})
    with pytest.raises(ClientError):
        await c.get_node("/a")
    with pytest.raises(ClientError):
        c.watch("/a")


@pytest.mark.trio
async def test_12_root():
    async with stdtest() as st:
        (c,) = st.c
        await c.set_node("/a", value="1")
        await c.set_node("/d/x", value="2")

        root = await c.get_node("/")
        assert root.key == "/"
        assert root.is_directory
        assert root.created_index is None
        assert [n.key for n in root.children] == ["/a", "/d"]

        root = await c.get_node("/", recursive=True)
        assert root.children[1].children[0].value == "2"


@pytest.mark.trio
async def test_13_watch_relative_path():
    async with stdtest() as st:
        (c,) = st.c
        evt = await c.set_node("a", value="1")
        idx = evt.new_value.modified_index

        async with c.watch("a", wait_index=idx) as w:
            assert w.path == "/a"
            evt = await w.__anext__()
            assert evt.new_value.modified_index == idx

            await st.etcd.wait_for_watchers(1)
            polls = st.etcd.watch_requests("/a")
            assert [p["waitIndex"] for p in polls] == [str(idx), str(idx + 1)]
            assert w.wait_index == idx + 1
