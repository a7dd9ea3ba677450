"""Caller identity and role checks at the ledger's HTTP boundary.

Credentials are resolved by the identity provider behind the gateway; the
ledger only receives the resulting account id and role as headers, guarded by
the shared API key.
"""

from dataclasses import dataclass

from fastapi import HTTPException

from ledgerbank.common.config import settings


CUSTOMER = "customer"
BANKER = "banker"
ADMIN = "admin"
ROLES = frozenset({CUSTOMER, BANKER, ADMIN})
STAFF_ROLES = frozenset({BANKER, ADMIN})


@dataclass(frozen=True)
class Caller:
    """Identity resolved upstream for one request."""

    account_id: str
    role: str

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def enforce_api_key(x_api_key: str | None) -> None:
    """Reject requests that do not provide the configured API key."""

    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid API key")


def resolve_caller(x_caller_id: str | None, x_caller_role: str | None) -> Caller:
    """Build the caller from gateway-forwarded identity headers."""

    if not x_caller_id or not x_caller_role:
        raise HTTPException(status_code=401, detail="caller identity missing")
    role = x_caller_role.strip().lower()
    if role not in ROLES:
        raise HTTPException(status_code=401, detail=f"unknown caller role: {x_caller_role}")
    return Caller(account_id=x_caller_id, role=role)


def require_role(caller: Caller, allowed_roles) -> None:
    if caller.role not in allowed_roles:
        raise HTTPException(status_code=403, detail=f"role {caller.role} is not allowed here")


def require_account_access(caller: Caller, account_id: str) -> None:
    """Customers only see their own account; staff may read any account."""

    if caller.is_staff:
        return
    if caller.account_id != account_id:
        raise HTTPException(status_code=403, detail="customers may only access their own account")
