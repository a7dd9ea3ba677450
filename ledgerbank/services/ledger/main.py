"""Ledger service API + lifecycle.

Customers deposit and withdraw against their own account; staff read any
account's history and run reconciliation checks over the stored chain.
"""

from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from ledgerbank.common.config import settings
from ledgerbank.common.db import SessionLocal
from ledgerbank.common.logging import account_id_ctx, configure_logging, trace_id_ctx
from ledgerbank.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from ledgerbank.common.startup import log_startup_config
from ledgerbank.common.tracing import instrument_app, setup_tracing
from ledgerbank.services.ledger.access import (
    CUSTOMER,
    ROLES,
    STAFF_ROLES,
    Caller,
    enforce_api_key,
    require_account_access,
    require_role,
    resolve_caller,
)
from ledgerbank.services.ledger.errors import LedgerError
from ledgerbank.services.ledger.schemas import (
    BalanceResponse,
    HistoryReport,
    TransactionOut,
    TransactionRequest,
    TransactionResult,
)
from ledgerbank.services.ledger.service import LedgerService, check_account_id

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    ["SERVICE_NAME", "DATABASE_DSN", "API_KEY", "APPEND_CONFLICT_RETRIES", "TRACING_ENABLED"],
)
service = LedgerService(
    SessionLocal,
    service_name=settings.service_name,
    conflict_retries=settings.append_conflict_retries,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Make sure the ledger table exists before serving."""

    service.ensure_schema(retries=settings.schema_bootstrap_retries)
    yield


app = FastAPI(title="Ledgerbank Ledger Service", lifespan=lifespan)
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


@app.exception_handler(LedgerError)
async def ledger_error_handler(_: Request, exc: LedgerError):
    """Render domain failures as `{error, detail, retryable}`."""

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def current_caller(
    x_api_key: str | None = Header(default=None),
    x_caller_id: str | None = Header(default=None),
    x_caller_role: str | None = Header(default=None),
    x_trace_id: str | None = Header(default=None),
) -> Caller:
    """Authenticate the gateway and resolve the forwarded caller identity."""

    enforce_api_key(x_api_key)
    trace_id_ctx.set(x_trace_id or str(uuid4()))
    return resolve_caller(x_caller_id, x_caller_role)


def _move_funds(operation: str, req: TransactionRequest, caller: Caller) -> TransactionResult:
    check_account_id(req.account_id)
    require_role(caller, {CUSTOMER})
    require_account_access(caller, req.account_id)
    account_id_ctx.set(req.account_id)
    if operation == "deposit":
        record, balance = service.deposit(req.account_id, req.amount)
        message = "Deposit successful"
    else:
        record, balance = service.withdraw(req.account_id, req.amount)
        message = "Withdrawal successful"
    return TransactionResult(message=message, balance=balance, transaction=TransactionOut.from_record(record))


@app.post("/transactions/deposit", response_model=TransactionResult)
def deposit(req: TransactionRequest, caller: Caller = Depends(current_caller)):
    """Append a deposit record to the caller's account."""

    return _move_funds("deposit", req, caller)


@app.post("/transactions/withdraw", response_model=TransactionResult)
def withdraw(req: TransactionRequest, caller: Caller = Depends(current_caller)):
    """Append a withdrawal record; rejected with 409 when it would overdraw."""

    return _move_funds("withdraw", req, caller)


@app.get("/transactions/{account_id}", response_model=list[TransactionOut])
def list_transactions(account_id: str, caller: Caller = Depends(current_caller)):
    """Newest-first history of one account."""

    require_role(caller, ROLES)
    require_account_access(caller, account_id)
    account_id_ctx.set(account_id)
    return [TransactionOut.from_record(record) for record in service.list_transactions(account_id)]


@app.get("/accounts/{account_id}/balance", response_model=BalanceResponse)
def get_balance(account_id: str, caller: Caller = Depends(current_caller)):
    """Current balance as derived from the latest record."""

    require_role(caller, ROLES)
    require_account_access(caller, account_id)
    account_id_ctx.set(account_id)
    return BalanceResponse(account_id=account_id, balance=service.get_balance(account_id))


@app.get("/bankers/transactions/{account_id}", response_model=list[TransactionOut])
def staff_transactions(account_id: str, caller: Caller = Depends(current_caller)):
    """Staff view of any customer's history."""

    require_role(caller, STAFF_ROLES)
    account_id_ctx.set(account_id)
    return [TransactionOut.from_record(record) for record in service.list_transactions(account_id)]


@app.get("/reconciliation/{account_id}", response_model=HistoryReport)
def reconciliation(account_id: str, caller: Caller = Depends(current_caller)):
    """Replay one account's records and report chain inconsistencies."""

    require_role(caller, STAFF_ROLES)
    account_id_ctx.set(account_id)
    return service.verify_history(account_id)


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
