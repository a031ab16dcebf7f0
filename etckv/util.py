"""
This module contains various helper functions and classes.
"""
import sys
import logging
from collections.abc import Mapping

import ruamel.yaml as yaml

SafeRepresenter = yaml.representer.SafeRepresenter

logger = logging.getLogger(__name__)

__all__ = ["NotGiven", "attrdict", "combine_dict", "yload", "yprint", "load_cfg"]


def yload(stream, multi=False):
    y = yaml.YAML(typ="safe")
    if multi:
        return y.load_all(stream)
    else:
        return y.load(stream)


def yprint(data, stream=sys.stdout, compact=False):
    """
    Standard code to write a YAML record.

    :param data: The data to write.
    :param stream: the file to write to, defaults to stdout.
    :param compact: Write single lines if possible. default False.
    """
    if isinstance(data, (int, float)):
        print(data, file=stream)
    elif isinstance(data, (str, bytes)):
        print(repr(data), file=stream)
    else:
        y = yaml.YAML(typ="safe")
        y.default_flow_style = compact
        y.dump(data, stream=stream)


class TimeOnlyFormatter(logging.Formatter):
    default_time_format = "%H:%M:%S"
    default_msec_format = "%s.%03d"


class NotGiven:
    """Placeholder value for 'no data'."""

    def __new__(cls):
        return cls

    def __getstate__(self):
        raise ValueError("You may not serialize this object")

    def __repr__(self):
        return "‹NotGiven›"

    def __str__(self):
        return "NotGiven"


def combine_dict(*d, cls=dict) -> dict:
    """
    Returns a dict with all keys+values of all dict arguments.
    The first found value wins.

    This recurses if values are dicts.

    Args:
      cls (type): a class to instantiate the result with. Default: dict.
        Often used: :class:`attrdict`.
    """
    res = cls()
    keys = {}
    if len(d) == 1:
        return cls(d[0])
    for kv in d:
        for k, v in kv.items():
            if k not in keys:
                keys[k] = []
            keys[k].append(v)
    for k, v in keys.items():
        if v[0] is NotGiven:
            res.pop(k, None)
        elif len(v) == 1:
            res[k] = cls(v[0]) if isinstance(v[0], Mapping) else v[0]
        elif not isinstance(v[0], Mapping):
            res[k] = v[0]
        else:
            res[k] = combine_dict(*(vv for vv in v if isinstance(vv, Mapping)), cls=cls)
    return res


class attrdict(dict):
    """A dictionary which can be accessed via attributes, for convenience."""

    def __getattr__(self, a):
        if a.startswith("_"):
            return object.__getattribute__(self, a)
        try:
            return self[a]
        except KeyError:
            raise AttributeError(a) from None

    def __setattr__(self, a, b):
        if a.startswith("_"):
            super(attrdict, self).__setattr__(a, b)
        else:
            self[a] = b

    def __delattr__(self, a):
        try:
            del self[a]
        except KeyError:
            raise AttributeError(a) from None


SafeRepresenter.add_representer(attrdict, SafeRepresenter.represent_dict)


def load_cfg(stream, cfg=None):
    """
    Read a YAML configuration file and merge it with ``cfg``
    (default: :data:`etckv.default.CFG`).
    """
    if cfg is None:
        from .default import CFG as cfg

    data = yload(stream) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Config must be a mapping, not {type(data).__name__}")
    logger.debug("Config: %s", data)
    return combine_dict(data, cfg, cls=attrdict)
