import pytest

from etckv.errors import lookup, error_from
from etckv.exceptions import (
    EtcdError,
    EtcdServerError,
    KeyNotFoundError,
    KeyNotFileError,
    NotDirectoryError,
    NodeExistsError,
    UnknownErrorCode,
)


def test_lookup_known():
    assert lookup(100) is EtcdError.KEY_NOT_FOUND
    assert lookup(102) is EtcdError.KEY_NOT_FILE
    assert lookup(104) is EtcdError.NOT_A_DIRECTORY
    assert lookup(105) is EtcdError.NODE_EXISTS


@pytest.mark.parametrize("code", [0, -1, -100, 101, 103, 106, 200, 401, "100", None, True, 100.0])
def test_lookup_unknown(code):
    with pytest.raises(UnknownErrorCode):
        lookup(code)


@pytest.mark.parametrize(
    "code,cls",
    [
        (100, KeyNotFoundError),
        (102, KeyNotFileError),
        (104, NotDirectoryError),
        (105, NodeExistsError),
    ],
)
def test_error_from(code, cls):
    err = error_from(dict(errorCode=code, message="Oops", cause="/foo", index=12))
    assert type(err) is cls
    assert isinstance(err, EtcdServerError)
    assert err.error is lookup(code)
    assert err.code == code
    assert err.cause == "/foo"
    assert err.index == 12
    assert "Oops" in str(err)
    assert "/foo" in str(err)


def test_error_from_unknown():
    with pytest.raises(UnknownErrorCode):
        error_from(dict(errorCode=401, message="The event in requested index is outdated"))


def test_error_minimal():
    err = error_from(dict(errorCode=100))
    assert err.error is EtcdError.KEY_NOT_FOUND
    assert err.message is None
    assert str(err.error) == "KEY_NOT_FOUND"
    assert str(err) == "KEY_NOT_FOUND"
