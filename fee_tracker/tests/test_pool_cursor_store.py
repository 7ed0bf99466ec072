import pytest
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from fee_tracker.storage.db import init_db
from fee_tracker.storage.pool_cursor_store import PoolCursorStore
from fee_tracker.utils.exceptions import PersistenceError, PoolNotFoundError

POOL = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640"


def test_get_cursor_for_unknown_pool_raises(cursor_store):
    with pytest.raises(PoolNotFoundError):
        cursor_store.get_cursor(POOL, 1)


def test_register_then_read(cursor_store):
    cursor_store.register_pool(POOL, 1, 21202122)
    assert cursor_store.get_cursor(POOL, 1) == 21202122


def test_pools_are_scoped_by_chain_id(cursor_store):
    cursor_store.register_pool(POOL, 1, 100)
    with pytest.raises(PoolNotFoundError):
        cursor_store.get_cursor(POOL, 10)


def test_advance_only_moves_forward(cursor_store):
    cursor_store.register_pool(POOL, 1, 1000)

    assert cursor_store.advance_cursor(POOL, 1, 1100) is True
    assert cursor_store.advance_cursor(POOL, 1, 1050) is False
    assert cursor_store.advance_cursor(POOL, 1, 1100) is False
    assert cursor_store.get_cursor(POOL, 1) == 1100


def test_out_of_order_advances_converge_on_maximum(cursor_store):
    cursor_store.register_pool(POOL, 1, 500)
    candidates = [900, 620, 1400, 1399, 700, 1400, 10]

    for candidate in candidates:
        cursor_store.advance_cursor(POOL, 1, candidate)

    assert cursor_store.get_cursor(POOL, 1) == max(candidates + [500])


def test_advance_on_missing_pool_is_a_noop(cursor_store):
    assert cursor_store.advance_cursor(POOL, 1, 10) is False


def test_register_is_idempotent_and_never_regresses(cursor_store):
    cursor_store.register_pool(POOL, 1, 1000)
    cursor_store.advance_cursor(POOL, 1, 5000)

    cursor_store.register_pool(POOL, 1, 1000)
    assert cursor_store.get_cursor(POOL, 1) == 5000

    cursor_store.register_pool(POOL, 1, 6000)
    assert cursor_store.get_cursor(POOL, 1) == 6000


def test_store_failures_become_persistence_errors():
    session = MagicMock()
    session.__enter__.return_value = session
    session.execute.side_effect = OperationalError("UPDATE pools", {}, Exception("db down"))

    store = PoolCursorStore(session_factory=lambda: session)

    with pytest.raises(PersistenceError):
        store.advance_cursor(POOL, 1, 10)
    session.rollback.assert_called_once()


def test_concurrent_advances_settle_on_the_maximum(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'cursor.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(bind=engine)
    store = PoolCursorStore(sessionmaker(bind=engine, expire_on_commit=False))
    store.register_pool(POOL, 1, 100)

    candidates = list(range(101, 181))
    random.Random(7).shuffle(candidates)
    barrier = threading.Barrier(8)

    def advance(chunk):
        barrier.wait()
        return [store.advance_cursor(POOL, 1, block) for block in chunk]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(advance, [candidates[i::8] for i in range(8)]))

    assert store.get_cursor(POOL, 1) == 180
    assert any(any(r) for r in results)
    engine.dispose()
