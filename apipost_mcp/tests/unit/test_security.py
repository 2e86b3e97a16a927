import pytest

from apipost_mcp.utils.security import (
    DELETE,
    READ,
    WRITE,
    PermissionDenied,
    allowed_operations,
    ensure_permission,
    is_allowed,
)


def test_modes_grant_expected_operations():
    assert allowed_operations("readonly") == {READ}
    assert allowed_operations("limited") == {READ, WRITE}
    assert allowed_operations("full") == {READ, WRITE, DELETE}
    assert allowed_operations(" FULL ") == {READ, WRITE, DELETE}


def test_unknown_mode_falls_back_to_readonly(caplog):
    assert allowed_operations("godmode") == {READ}
    assert "falling back to readonly" in caplog.text


def test_ensure_permission_raises():
    ensure_permission(WRITE, "limited")
    with pytest.raises(PermissionDenied) as excinfo:
        ensure_permission(DELETE, "limited")
    assert excinfo.value.operation == DELETE
    assert "full" in str(excinfo.value)
    assert not is_allowed(WRITE, "readonly")
