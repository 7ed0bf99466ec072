from unittest.mock import MagicMock
import pytest
from fastapi.testclient import TestClient
from fee_tracker.api.api import get_explorer_factory, get_handlers, get_ledger
from fee_tracker.chains.handlers import HandlerRegistry
from fee_tracker.main import app
from fee_tracker.utils.exceptions import ProviderTimeoutError

POOL = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640"
TX_HASH = "0x" + "ab" * 32


def record(tx_hash, ts, block=21202200):
    return {
        "hash": tx_hash,
        "block_number": block,
        "timestamp": ts,
        "pool": POOL,
        "chain_id": 1,
        "gas_price": "20000000000",
        "gas_used": "21000",
        "transaction_fee_eth": "0.00042",
        "transaction_fee": "1.26",
    }


@pytest.fixture
def explorer():
    explorer = MagicMock()
    explorer.get_block_number.return_value = 21202300
    return explorer


@pytest.fixture
def client(ledger, cursor_store, explorer):
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_handlers] = lambda: HandlerRegistry(cursor_store)
    app.dependency_overrides[get_explorer_factory] = lambda: (lambda chain_id: explorer)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/api/").status_code == 200


def test_list_transactions_pages_in_time_order(client, ledger):
    ledger.bulk_upsert([record(f"0x{i}", 1000 + i) for i in range(5)])

    resp = client.get("/api/transactions", params={"start_time": 1001, "end_time": 1004, "limit": 2, "skip": 1})

    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 4
    assert (body["limit"], body["skip"]) == (2, 1)
    assert [r["hash"] for r in body["results"]] == ["0x2", "0x3"]
    assert body["results"][0]["pool"] == POOL


def test_default_page_size(client, ledger):
    ledger.bulk_upsert([record(f"0x{i:02d}", 1000 + i) for i in range(15)])
    body = client.get("/api/transactions", params={"start_time": 0, "end_time": 5000}).json()
    assert body["total"] == 15
    assert len(body["results"]) == 10


def test_inverted_range_is_rejected(client):
    resp = client.get("/api/transactions", params={"start_time": 10, "end_time": 5})
    assert resp.status_code == 400


@pytest.mark.parametrize("params", [
    {"start_time": 0, "end_time": 10, "limit": 0},
    {"start_time": 0, "end_time": 10, "limit": 1001},
    {"start_time": -1, "end_time": 10},
    {"end_time": 10},
])
def test_bad_query_parameters(client, params):
    assert client.get("/api/transactions", params=params).status_code == 422


def test_transaction_by_hash(client, ledger):
    ledger.bulk_upsert([record(TX_HASH, 1000)])
    resp = client.get(f"/api/transactions/{TX_HASH}")
    assert resp.status_code == 200
    assert resp.json()["block_number"] == 21202200

    missing = client.get(f"/api/transactions/0x{'e' * 64}")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Transaction not found"


def test_sync_status(client, cursor_store):
    cursor_store.register_pool(POOL, 1, 21202250)

    resp = client.get("/api/sync/status", params={"pool_address": "0x88E6A0C2DDD26FEEB64F039A2C41296FCB3F5640", "chain_id": 1})

    assert resp.status_code == 200
    body = resp.json()
    assert body["latest_block"] == 21202300
    assert body["current_sync_block"] == 21202250
    assert body["blocks_behind"] == 50
    assert body["status"] == "DB is 50 blocks behind"


def test_sync_status_error_mapping(client, explorer, cursor_store):
    assert client.get("/api/sync/status", params={"pool_address": POOL, "chain_id": 1}).status_code == 404
    assert client.get("/api/sync/status", params={"pool_address": POOL, "chain_id": 56}).status_code == 400
    resp = client.get("/api/sync/status", params={"pool_address": POOL, "chain_id": 1, "chain_type": "bitcoin"})
    assert resp.status_code == 422

    cursor_store.register_pool(POOL, 1, 21202250)
    explorer.get_block_number.side_effect = ProviderTimeoutError("slow")
    resp = client.get("/api/sync/status", params={"pool_address": POOL, "chain_id": 1})
    assert resp.status_code == 503
    assert resp.json()["error"] == "provider_timeout"


@pytest.mark.parametrize("tx_hash", ["0xabc", "ab" * 32, "0x" + "zz" * 32, "0x" + "ab" * 33])
def test_malformed_hash_is_rejected_before_lookup(client, tx_hash):
    ledger = MagicMock()
    app.dependency_overrides[get_ledger] = lambda: ledger

    assert client.get(f"/api/transactions/{tx_hash}").status_code == 422
    ledger.get_by_hash.assert_not_called()
