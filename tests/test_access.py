"""Caller resolution and role checks."""

import pytest
from fastapi import HTTPException

from ledgerbank.services.ledger.access import (
    STAFF_ROLES,
    Caller,
    enforce_api_key,
    require_account_access,
    require_role,
    resolve_caller,
)


def test_resolve_caller_normalizes_role():
    caller = resolve_caller("u1", " Banker ")
    assert caller == Caller(account_id="u1", role="banker")
    assert caller.is_staff


@pytest.mark.parametrize("caller_id, role", [(None, "customer"), ("u1", None), ("u1", "root")])
def test_resolve_caller_rejects_incomplete_identity(caller_id, role):
    with pytest.raises(HTTPException) as excinfo:
        resolve_caller(caller_id, role)
    assert excinfo.value.status_code == 401


def test_api_key_must_match():
    enforce_api_key("test-key")
    with pytest.raises(HTTPException):
        enforce_api_key(None)


def test_require_role():
    require_role(Caller("b", "admin"), STAFF_ROLES)
    with pytest.raises(HTTPException) as excinfo:
        require_role(Caller("c", "customer"), STAFF_ROLES)
    assert excinfo.value.status_code == 403


def test_account_ownership():
    require_account_access(Caller("c", "customer"), "c")
    require_account_access(Caller("b", "banker"), "c")
    with pytest.raises(HTTPException):
        require_account_access(Caller("c", "customer"), "other")
