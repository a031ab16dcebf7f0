"""
This module affords all etckv exceptions.
"""

# pylint: disable=unnecessary-pass

import enum

error_types = {}


def _typed(cls):
    error_types[cls.etype] = cls
    return cls


class EtcdError(enum.Enum):
    """The kinds of errors the store reports that we know about."""

    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    KEY_NOT_FILE = "KEY_NOT_FILE"
    NOT_A_DIRECTORY = "NOT_A_DIRECTORY"
    NODE_EXISTS = "NODE_EXISTS"

    def __str__(self):
        return self.value


class EtcKVError(RuntimeError):
    """Superclass of all etckv errors.

    Abstract class.
    """

    pass


class ServerError(EtcKVError):
    """Generic server error.

    Abstract class.
    """

    pass


class EtcdServerError(ServerError):
    """The store rejected a request.

    Abstract class. Use :func:`etckv.errors.error_from` to get the
    correct subclass for a wire error.
    """

    etype: EtcdError = None

    def __init__(self, message=None, *, code=None, cause=None, index=None):
        super().__init__(message or str(self.etype))
        self.code = code
        self.message = message
        self.cause = cause
        self.index = index

    @property
    def error(self) -> EtcdError:
        return self.etype

    def __str__(self):
        if self.message is None:
            res = str(self.etype)
        else:
            res = f"{self.etype}: {self.message}"
        if self.cause:
            res += f" ({self.cause})"
        return res


@_typed
class KeyNotFoundError(EtcdServerError):
    """The key does not exist"""

    etype = EtcdError.KEY_NOT_FOUND


@_typed
class KeyNotFileError(EtcdServerError):
    """A file operation was attempted on a directory"""

    etype = EtcdError.KEY_NOT_FILE


@_typed
class NotDirectoryError(EtcdServerError):
    """A directory operation was attempted on a file"""

    etype = EtcdError.NOT_A_DIRECTORY


@_typed
class NodeExistsError(EtcdServerError):
    """The node already exists"""

    etype = EtcdError.NODE_EXISTS


class ProtocolError(EtcKVError):
    """The store sent something this client does not understand.

    Abstract class.
    """

    pass


class UnknownErrorCode(ProtocolError):
    """The store reported an error code that is not in our table."""

    pass


class UnrecognizedAction(ProtocolError):
    """The store reported an action that doesn't map to an event type."""

    pass


class IncompleteResponse(ProtocolError):
    """A response lacks a node fragment that its action requires."""

    pass


class CodecError(ProtocolError):
    """The response body could not be decoded."""

    pass


class ClientError(EtcKVError):
    """Generic client error.

    Abstract class.
    """

    pass


class ClosedClientError(ClientError):
    """The client has been closed."""

    pass
