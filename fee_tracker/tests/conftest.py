from dotenv import load_dotenv
import pathlib
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fee_tracker.storage.db import init_db
from fee_tracker.storage.pool_cursor_store import PoolCursorStore
from fee_tracker.storage.transaction_ledger_store import TransactionLedgerStore

# Automatically load .env from project root
load_dotenv(dotenv_path=pathlib.Path(__file__).parent.parent.parent / ".env")


@pytest.fixture
def session_factory():
    """Fresh in-memory database per test, shared by every session it hands out."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def cursor_store(session_factory):
    return PoolCursorStore(session_factory)


@pytest.fixture
def ledger(session_factory):
    return TransactionLedgerStore(session_factory)


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip backoff / chunk pauses."""
    monkeypatch.setattr("time.sleep", lambda seconds: None)
