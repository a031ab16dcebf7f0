"""Top-level package for etckv."""
# pylint: disable=W0703,C0103

try:
    from importlib.metadata import version

    _version = version("etckv")
    del version

    _version_tuple = tuple(int(x) for x in _version.split("."))

except Exception:  # pragma: no cover
    _version = "0.0.1"
    _version_tuple = (0, 0, 1)

from .client import Client, open_client  # noqa: E402
from .exceptions import EtcdError  # noqa: E402
from .model import Node, NodeEvent, NodeEventType  # noqa: E402

__all__ = ["Client", "open_client", "EtcdError", "Node", "NodeEvent", "NodeEventType"]
