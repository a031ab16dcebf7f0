"""
The error catalog: map the store's numeric error codes to :class:`EtcdError`.
"""

from .exceptions import EtcdError, UnknownErrorCode, error_types

__all__ = ["lookup", "error_from"]

KEY_NOT_FOUND_CODE = 100
KEY_NOT_FILE_CODE = 102
NOT_A_DIRECTORY_CODE = 104
NODE_EXISTS_CODE = 105

_error_codes = {
    KEY_NOT_FOUND_CODE: EtcdError.KEY_NOT_FOUND,
    KEY_NOT_FILE_CODE: EtcdError.KEY_NOT_FILE,
    NOT_A_DIRECTORY_CODE: EtcdError.NOT_A_DIRECTORY,
    NODE_EXISTS_CODE: EtcdError.NODE_EXISTS,
}


def lookup(code) -> EtcdError:
    """
    Return the error kind for a wire error code.

    Raises:
      UnknownErrorCode: if the code is not one we know about.
    """
    if isinstance(code, bool) or not isinstance(code, int):
        raise UnknownErrorCode(code)
    try:
        return _error_codes[code]
    except KeyError:
        raise UnknownErrorCode(code) from None


def error_from(msg):
    """
    Build the exception for a failure envelope, i.e. a message with an
    ``errorCode`` field.
    """
    code = msg["errorCode"]
    cls = error_types[lookup(code)]
    return cls(
        msg.get("message"), code=code, cause=msg.get("cause"), index=msg.get("index")
    )
