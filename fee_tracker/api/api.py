from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fee_tracker.chains.handlers import ChainType, HandlerRegistry
from fee_tracker.sources.etherscan.etherscan_client import get_explorer_client
from fee_tracker.storage.transaction_ledger_store import TransactionLedgerStore

MAX_PAGE_SIZE = 1000
TX_HASH_PATTERN = r"^0x[0-9a-fA-F]{64}$"

router = APIRouter()


def get_ledger() -> TransactionLedgerStore:
    return TransactionLedgerStore()


def get_handlers() -> HandlerRegistry:
    return HandlerRegistry()


def get_explorer_factory():
    return get_explorer_client


@router.get("/")
def read_root():
    return {"message": "Pool fee tracker"}


@router.get("/transactions")
def list_transactions(
    start_time: int = Query(..., ge=0, description="unix seconds, inclusive"),
    end_time: int = Query(..., ge=0, description="unix seconds, inclusive"),
    limit: int = Query(10, gt=0, le=MAX_PAGE_SIZE),
    skip: int = Query(0, ge=0),
    ledger: TransactionLedgerStore = Depends(get_ledger),
):
    if start_time > end_time:
        raise HTTPException(status_code=400, detail="start_time cannot be greater than end_time")
    rows, total = ledger.list_by_time_range(start_time, end_time, limit=limit, skip=skip)
    return {
        "total": total,
        "limit": limit,
        "skip": skip,
        "results": [row.to_dict() for row in rows],
    }


@router.get("/transactions/{tx_hash}")
def get_transaction(
    tx_hash: str = Path(..., pattern=TX_HASH_PATTERN),
    ledger: TransactionLedgerStore = Depends(get_ledger),
):
    row = ledger.get_by_hash(tx_hash)
    if row is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return row.to_dict()


@router.get("/sync/status")
def sync_status(
    pool_address: str,
    chain_id: int,
    chain_type: ChainType = ChainType.ETHEREUM,
    handlers: HandlerRegistry = Depends(get_handlers),
    explorer_factory=Depends(get_explorer_factory),
):
    """How far the stored cursor trails the chain head for one pool."""
    current_block = handlers.get_handler(chain_type).get_current_block(pool_address, chain_id)
    latest_block = explorer_factory(chain_id).get_block_number()
    blocks_behind = max(latest_block - current_block, 0)
    return {
        "status": f"DB is {blocks_behind} blocks behind",
        "latest_block": latest_block,
        "current_sync_block": current_block,
        "blocks_behind": blocks_behind,
        "chain_id": chain_id,
        "pool_address": pool_address,
    }
