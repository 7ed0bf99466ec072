"""Durable ledger of fee-annotated transactions, unique by hash."""
import logging
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from fee_tracker.storage.db import SessionLocal
from fee_tracker.storage.db_utils import chunked, dialect_insert
from fee_tracker.storage.models.transactions import Transaction
from fee_tracker.utils.exceptions import PersistenceError

log = logging.getLogger(__name__)

# keeps each statement under the bind-parameter limits of postgres and sqlite
UPSERT_BATCH_SIZE = 500

UPDATABLE_COLUMNS = (
    "block_number",
    "timestamp",
    "pool",
    "chain_id",
    "gas_price",
    "gas_used",
    "transaction_fee_eth",
    "transaction_fee",
)


def unique_rows(records: list[dict]) -> list[dict]:
    """Drop hash-less rows and every repeat of an already seen hash.

    The first occurrence of a hash wins; later ones are logged and discarded.
    """
    seen: set[str] = set()
    rows = []
    for record in records:
        tx_hash = record.get("hash")
        if not tx_hash:
            log.warning(f"Transaction without a hash encountered, skipping: {record}")
            continue
        if tx_hash in seen:
            log.warning(f"Duplicate transaction hash detected: {tx_hash}")
            continue
        seen.add(tx_hash)
        rows.append(record)
    return rows


class TransactionLedgerStore:
    def __init__(self, session_factory=SessionLocal) -> None:
        self.session_factory = session_factory

    def bulk_upsert(self, records: list[dict]) -> int:
        """Insert or overwrite rows keyed by hash. Returns the number of rows written."""
        rows = unique_rows(records)
        if not rows:
            return 0

        with self.session_factory() as db:
            try:
                insert = dialect_insert(db)
                for batch in chunked(rows, UPSERT_BATCH_SIZE):
                    stmt = insert(Transaction).values(batch)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=["hash"],
                        set_={col: stmt.excluded[col] for col in UPDATABLE_COLUMNS},
                    )
                    db.execute(stmt)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Ledger upsert of {len(rows)} rows failed: {e}") from e

        log.info(f"Upserted {len(rows)} transactions")
        return len(rows)

    def get_by_hash(self, tx_hash: str) -> Transaction | None:
        with self.session_factory() as db:
            return db.get(Transaction, tx_hash)

    def list_by_time_range(
        self,
        start_time: int,
        end_time: int,
        limit: int = 10,
        skip: int = 0,
    ) -> tuple[list[Transaction], int]:
        """Page through transactions with `start_time <= timestamp <= end_time`, oldest first."""
        window = Transaction.timestamp.between(start_time, end_time)
        with self.session_factory() as db:
            total = db.execute(
                select(func.count()).select_from(Transaction).where(window)
            ).scalar_one()
            rows = db.execute(
                select(Transaction)
                .where(window)
                .order_by(Transaction.timestamp.asc(), Transaction.hash.asc())
                .offset(skip)
                .limit(limit)
            ).scalars().all()
        return list(rows), total
