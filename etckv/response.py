"""
Translate decoded store responses into :class:`Node` and :class:`NodeEvent`.
"""

import re
from datetime import datetime, timedelta, timezone

from .errors import error_from
from .exceptions import IncompleteResponse, UnrecognizedAction
from .model import Node, NodeEvent, NodeEventType

__all__ = ["to_node", "to_event", "fragment", "check_error", "parse_timestamp"]

_TS = re.compile(
    r"(\d{4})-(\d\d)-(\d\d)[Tt ](\d\d):(\d\d):(\d\d)(?:\.(\d+))?(?:([Zz])|([+-])(\d\d):?(\d\d))?$"
)


def parse_timestamp(text: str) -> datetime:
    """
    Parse one of the store's timestamps, e.g. ``2013-12-04T12:01:21.874888581-08:00``.

    Fractions beyond microseconds are dropped. The result is in UTC;
    a timestamp without offset is taken to be UTC.
    """
    m = _TS.match(text)
    if m is None:
        raise ValueError(f"Not a timestamp: {text!r}")
    year, month, day, hour, minute, second, frac, _, sign, oh, om = m.groups()
    usec = int((frac or "0")[:6].ljust(6, "0"))
    tz = timezone.utc
    if sign is not None:
        off = timedelta(hours=int(oh), minutes=int(om))
        tz = timezone(off if sign == "+" else -off)
    res = datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), usec, tzinfo=tz
    )
    return res.astimezone(timezone.utc)


def to_node(data) -> Node:
    """Convert a node fragment of a response to a :class:`Node`."""
    expiration = data.get("expiration")
    if expiration is not None:
        expiration = parse_timestamp(expiration)
    ttl = data.get("ttl")
    if ttl is not None:
        ttl = timedelta(seconds=ttl)

    kw = dict(expiration=expiration, ttl=ttl)
    if data.get("dir", False):
        kw["is_directory"] = True
        kw["children"] = [to_node(n) for n in data.get("nodes") or ()]
    else:
        kw["value"] = data.get("value")
    # the store omits the root directory's key and indexes
    return Node(data.get("key", "/"), data.get("createdIndex"), data.get("modifiedIndex"), **kw)


def fragment(data, name="node"):
    """Return the named node fragment of an envelope as a :class:`Node`."""
    res = data.get(name)
    if res is None:
        raise IncompleteResponse(f"{data.get('action')!r} without {name!r}")
    return to_node(res)


def _index(data):
    node = data.get("node")
    if node is None:
        return None
    return node.get("modifiedIndex")


def to_event(data) -> NodeEvent:
    """
    Convert a response envelope to a :class:`NodeEvent`.

    The store uses more action names than there are event types; this is
    where they are collapsed.
    """
    action = data.get("action")
    index = _index(data)
    if action == "set":
        if data.get("prevNode") is not None:
            return NodeEvent(
                NodeEventType.MODIFY,
                new_value=fragment(data, "node"),
                old_value=fragment(data, "prevNode"),
                index=index,
            )
        return NodeEvent(NodeEventType.CREATE, new_value=fragment(data, "node"), index=index)
    elif action == "create":
        return NodeEvent(NodeEventType.CREATE, new_value=fragment(data, "node"), index=index)
    elif action == "update":
        return NodeEvent(
            NodeEventType.MODIFY,
            new_value=fragment(data, "node"),
            old_value=fragment(data, "prevNode"),
            index=index,
        )
    elif action == "delete":
        return NodeEvent(NodeEventType.DELETE, old_value=fragment(data, "prevNode"), index=index)
    else:
        raise UnrecognizedAction(action)


def check_error(data):
    """Raise the matching exception if ``data`` is a failure envelope.

    Returns the envelope otherwise.
    """
    if data.get("errorCode") is not None:
        raise error_from(data)
    return data
