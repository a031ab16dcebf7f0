"""
This module contains etckv's data model: immutable snapshots of store
entries, and the changes that happen to them.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta
from typing import Optional, Tuple

import attr

__all__ = ["Node", "NodeEventType", "NodeEvent"]


def _children(nodes):
    if nodes is None:
        return None
    return tuple(nodes)


@attr.s(frozen=True, slots=True)
class Node:
    """
    A point-in-time snapshot of one entry in the store.

    A directory never carries a value and always has a (possibly empty)
    tuple of children; a leaf never has children.
    """

    key: str = attr.ib()
    created_index: int = attr.ib()
    modified_index: int = attr.ib()
    is_directory: bool = attr.ib(default=False, kw_only=True)
    value: Optional[str] = attr.ib(default=None, kw_only=True)
    children: Optional[Tuple[Node, ...]] = attr.ib(
        default=None, kw_only=True, converter=_children
    )
    expiration: Optional[datetime] = attr.ib(default=None, kw_only=True)
    ttl: Optional[timedelta] = attr.ib(default=None, kw_only=True)

    def __attrs_post_init__(self):
        if self.is_directory:
            if self.value is not None:
                raise ValueError(f"Directory {self.key!r} can't have a value")
            if self.children is None:
                object.__setattr__(self, "children", ())
        elif self.children is not None:
            raise ValueError(f"Leaf {self.key!r} can't have children")
        if (
            self.created_index is not None
            and self.modified_index is not None
            and self.modified_index < self.created_index
        ):
            raise ValueError(
                f"{self.key!r}: modified {self.modified_index} < created {self.created_index}"
            )

    def __iter__(self):
        return iter(self.children or ())

    def serialize(self) -> dict:
        """Return this node as a wire-style mapping."""
        res = dict(
            key=self.key, createdIndex=self.created_index, modifiedIndex=self.modified_index
        )
        if self.is_directory:
            res["dir"] = True
            if self.children:
                res["nodes"] = [n.serialize() for n in self.children]
        elif self.value is not None:
            res["value"] = self.value
        if self.expiration is not None:
            res["expiration"] = self.expiration.isoformat()
        if self.ttl is not None:
            res["ttl"] = int(self.ttl.total_seconds())
        return res


class NodeEventType(enum.Enum):
    CREATE = "CREATE"
    MODIFY = "MODIFY"
    DELETE = "DELETE"

    def __str__(self):
        return self.value


# which of new_value / old_value each event type carries
_populated = {
    NodeEventType.CREATE: (True, False),
    NodeEventType.MODIFY: (True, True),
    NodeEventType.DELETE: (False, True),
}


@attr.s(frozen=True, slots=True)
class NodeEvent:
    """
    A single observed change.

    ``index`` is the store index at which the change happened, if the
    store told us.
    """

    type: NodeEventType = attr.ib(validator=attr.validators.instance_of(NodeEventType))
    new_value: Optional[Node] = attr.ib(default=None, kw_only=True)
    old_value: Optional[Node] = attr.ib(default=None, kw_only=True)
    index: Optional[int] = attr.ib(default=None, kw_only=True)

    def __attrs_post_init__(self):
        want_new, want_old = _populated[self.type]
        if want_new != (self.new_value is not None):
            raise ValueError(f"{self.type} event: new value is {self.new_value!r}")
        if want_old != (self.old_value is not None):
            raise ValueError(f"{self.type} event: old value is {self.old_value!r}")

    @property
    def node(self) -> Node:
        """The node this event is about: the old value for deletions,
        the new value otherwise."""
        if self.type is NodeEventType.DELETE:
            return self.old_value
        return self.new_value

    def serialize(self) -> dict:
        res = dict(type=str(self.type))
        if self.index is not None:
            res["index"] = self.index
        if self.new_value is not None:
            res["new"] = self.new_value.serialize()
        if self.old_value is not None:
            res["old"] = self.old_value.serialize()
        return res
