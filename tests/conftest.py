"""Shared fixtures; environment is set before any `ledgerbank` import."""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="ledgerbank-tests-")
os.environ.setdefault("DATABASE_DSN", f"sqlite:///{_DB_DIR}/api.db")
os.environ.setdefault("API_KEY", "test-key")
os.environ.setdefault("TRACING_ENABLED", "false")

import pytest
from sqlalchemy.orm import sessionmaker

from ledgerbank.common.db import Base, make_engine
from ledgerbank.services.ledger.service import LedgerService


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path}/ledger.db")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def service(session_factory):
    return LedgerService(session_factory, service_name="ledger-test")
