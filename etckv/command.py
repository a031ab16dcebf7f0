# command line interface

import sys
import logging
from logging.config import dictConfig

import asyncclick as click

from .client import open_client
from .default import CFG
from .exceptions import EtcKVError
from .util import attrdict, combine_dict, load_cfg, yprint

logger = logging.getLogger(__name__)


def cmd():
    try:
        main(standalone_mode=False)
    except click.exceptions.UsageError as exc:
        try:
            s = str(exc)
        except TypeError:
            logger.exception(repr(exc), exc_info=exc)
        else:
            print(s, file=sys.stderr)
    except click.exceptions.Abort:
        print("Aborted.", file=sys.stderr)


async def _run(obj, proc):
    """Run ``proc(client)``, report store errors and exit."""
    err = None
    async with open_client(**obj.cfg) as c:
        try:
            await proc(c)
        except EtcKVError as exc:
            err = exc
    if err is not None:
        print(type(err).__name__ + ":", err, file=sys.stderr)
        sys.exit(1)


@click.group()
@click.option(
    "-v", "--verbose", count=True, help="Enable debugging. Use twice for more verbosity."
)
@click.option("-q", "--quiet", count=True, help="Disable debugging. Opposite of '--verbose'.")
@click.option("-c", "--cfg", type=click.File("r"), default=None, help="Configuration file (YAML).")
@click.option("-h", "--host", default=None, help="Host to use. Default: %s" % (CFG.connect.host,))
@click.option(
    "-p", "--port", type=int, default=None, help="Port to use. Default: %d" % (CFG.connect.port,)
)
@click.pass_context
async def main(ctx, verbose, quiet, cfg, host, port):
    """
    Access an etcd server.
    """
    ctx.ensure_object(attrdict)
    obj = ctx.obj
    obj.debug = verbose - quiet
    if cfg:
        logger.debug("Loading %s", cfg)
        obj.cfg = load_cfg(cfg)
        cfg.close()
    else:
        obj.cfg = combine_dict(CFG, cls=attrdict)

    dictConfig(obj.cfg.logging)
    logging.getLogger().setLevel(
        logging.DEBUG
        if obj.debug > 1
        else logging.INFO
        if obj.debug > 0
        else logging.WARNING
        if obj.debug == 0
        else logging.ERROR
    )

    conn = {}
    if host is not None:
        conn["host"] = host
    if port is not None:
        conn["port"] = port
    obj.cfg = combine_dict(dict(connect=conn), obj.cfg, cls=attrdict)
    obj.stdout = CFG.get("_stdout", sys.stdout)


@main.command()
@click.option("-r", "--recursive", is_flag=True, help="Read a complete subtree.")
@click.option("-R", "--raw", is_flag=True, help="Print the bare value.")
@click.argument("path", nargs=1)
@click.pass_obj
async def get(obj, path, recursive, raw):
    """
    Read a node.
    """

    async def proc(c):
        node = await c.get_node(path, recursive=recursive)
        if raw and not node.is_directory:
            print(node.value, file=obj.stdout)
        else:
            yprint(node.serialize(), stream=obj.stdout)

    await _run(obj, proc)


@main.command("set", short_help="Add or update a node")
@click.option("-v", "--value", default=None, help="The value to store.")
@click.option("-t", "--ttl", type=int, default=None, help="Time to live, in seconds.")
@click.option("-d", "--directory", is_flag=True, help="Create a directory.")
@click.option("--hidden", is_flag=True, help="Create a hidden node.")
@click.argument("path", nargs=1)
@click.pass_obj
async def set_(obj, path, value, ttl, directory, hidden):
    """
    Store a value at some path, or create a directory.

    The resulting change is printed.
    """
    if directory and value is not None:
        raise click.UsageError("Directories don't have values.")

    async def proc(c):
        evt = await c.set_node(
            path, value, ttl=ttl, directory=directory or None, hidden=hidden or None
        )
        yprint(evt.serialize(), stream=obj.stdout)

    await _run(obj, proc)


@main.command()
@click.option("-r", "--recursive", is_flag=True, help="Delete a complete subtree.")
@click.argument("path", nargs=1)
@click.pass_obj
async def delete(obj, path, recursive):
    """
    Delete a node, or a whole subtree.
    """

    async def proc(c):
        evt = await c.delete_node(path, recursive=recursive)
        yprint(evt.serialize(), stream=obj.stdout)

    await _run(obj, proc)


@main.command()
@click.option("-r", "--recursive", is_flag=True, help="Also watch the subtree.")
@click.option("-i", "--index", type=int, default=None, help="First index to report.")
@click.option("-n", "--count", type=int, default=0, help="Stop after this many events.")
@click.argument("path", nargs=1)
@click.pass_obj
async def watch(obj, path, recursive, index, count):
    """
    Print changes to a node, or a subtree.
    """

    async def proc(c):
        n = 0
        async with c.watch(path, wait_index=index, recursive=recursive) as w:
            async for evt in w:
                print("---", file=obj.stdout)
                yprint(evt.serialize(), stream=obj.stdout)
                obj.stdout.flush()
                n += 1
                if n == count:
                    break

    await _run(obj, proc)
