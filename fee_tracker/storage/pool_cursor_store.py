"""
Durable per-pool sync cursor.

The cursor only ever moves forward. Every write is a single conditional
statement, so concurrent or out-of-order writers converge on the maximum
candidate without any application-level lock.
"""
import logging
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from fee_tracker.storage.db import SessionLocal
from fee_tracker.storage.db_utils import dialect_insert
from fee_tracker.storage.models.pools import Pool
from fee_tracker.utils.exceptions import PersistenceError, PoolNotFoundError

log = logging.getLogger(__name__)


class PoolCursorStore:
    def __init__(self, session_factory=SessionLocal) -> None:
        self.session_factory = session_factory

    def get_cursor(self, address: str, chain_id: int) -> int:
        try:
            with self.session_factory() as db:
                block = db.execute(
                    select(Pool.current_block)
                    .where(Pool.address == address, Pool.chain_id == chain_id)
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cursor read failed for {address} on chain {chain_id}: {e}") from e

        if block is None:
            raise PoolNotFoundError(
                f"Pool not found for address {address} on chainId {chain_id}",
                details={"address": address, "chain_id": chain_id},
            )
        return int(block)

    def advance_cursor(self, address: str, chain_id: int, candidate_block: int) -> bool:
        """Set the cursor to `candidate_block` if that is greater than the stored value.

        Returns True only when the stored value actually increased.
        """
        stmt = (
            update(Pool)
            .where(
                Pool.address == address,
                Pool.chain_id == chain_id,
                Pool.current_block < candidate_block,
            )
            .values(current_block=candidate_block)
            .execution_options(synchronize_session=False)
        )
        with self.session_factory() as db:
            try:
                result = db.execute(stmt)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(
                    f"Cursor advance failed for {address} on chain {chain_id}: {e}"
                ) from e
        updated = result.rowcount > 0
        log.debug(f"Cursor {chain_id}:{address} -> {candidate_block} (updated={updated})")
        return updated

    def register_pool(self, address: str, chain_id: int, seed_block: int) -> None:
        """Create the cursor row, or advance an existing one to `seed_block`.

        Never moves an existing cursor backwards, so re-running pool bootstrap
        with an older seed is harmless.
        """
        with self.session_factory() as db:
            try:
                insert = dialect_insert(db)
                stmt = (
                    insert(Pool)
                    .values(address=address, chain_id=chain_id, current_block=seed_block)
                    .on_conflict_do_nothing(index_elements=["address", "chain_id"])
                )
                created = db.execute(stmt).rowcount > 0
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(
                    f"Pool registration failed for {address} on chain {chain_id}: {e}"
                ) from e

        if created:
            log.info(f"Registered pool {chain_id}:{address} at block {seed_block}")
        else:
            self.advance_cursor(address, chain_id, seed_block)
