"""
This module contains helper functions for encoding request options and
decoding response bodies.
"""

import json
from datetime import timedelta

from .exceptions import CodecError
from .util import NotGiven, attrdict

__all__ = ["encode_options", "decode"]


def _encode(value):
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, timedelta):
        return str(int(value.total_seconds()))
    return str(value)


def encode_options(options: dict) -> dict:
    """
    Convert request options to query/form parameters.

    Options that are ``None`` or ``NotGiven`` are dropped.
    """
    return {k: _encode(v) for k, v in options.items() if v is not None and v is not NotGiven}


def decode(payload):
    """
    Decode a response body into a (nested) :class:`attrdict`.

    Raises:
      CodecError: the body is not a JSON object.
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CodecError("Response is not UTF-8") from exc
    try:
        res = json.loads(payload, object_hook=attrdict)
    except ValueError as exc:
        raise CodecError(f"Response is not JSON: {payload[:100]!r}") from exc
    if not isinstance(res, dict):
        raise CodecError(f"Response is not an object: {res!r}")
    return res
