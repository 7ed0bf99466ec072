"""
Stage 1 of the sync pipeline: find the blocks each pool has not seen yet.

For every registered pool the chain head is compared with the stored cursor.
When the head is ahead, one enrichment task covering (cursor, head] is queued.
The resolver never writes the cursor; stage 2 advances it after the range has
been stored. A failure for one pool is logged and the remaining pools are
still processed.
"""
import logging
from typing import Callable
from fee_tracker.chains.handlers import HandlerRegistry
from fee_tracker.pools.registry import PoolInfo, PoolRegistry
from fee_tracker.sources.etherscan.etherscan_client import get_explorer_client
from fee_tracker.sync.enrichment_task import EnrichmentTask

log = logging.getLogger(__name__)


class BlockRangeResolver:
    def __init__(
        self,
        pools: PoolRegistry,
        handlers: HandlerRegistry,
        enqueue: Callable[[EnrichmentTask], None],
        explorer_factory=get_explorer_client,
    ) -> None:
        self.pools = pools
        self.handlers = handlers
        self.enqueue = enqueue
        self.explorer_factory = explorer_factory

    def run(self) -> list[EnrichmentTask]:
        """One polling pass over all pools. Returns the tasks that were queued."""
        log.info(f"🔄 Polling for new blocks across {len(self.pools)} pools…")
        queued = []
        for pool in self.pools:
            task = self.process_pool(pool)
            if task is not None:
                queued.append(task)
        return queued

    def process_pool(self, pool: PoolInfo) -> EnrichmentTask | None:
        try:
            latest_block = self.explorer_factory(pool.chain_id).get_block_number()
            current_block = self.handlers.get_handler(pool.chain_type).get_current_block(
                pool.address, pool.chain_id
            )
            log.info(
                f"Pool {pool.address} on chain {pool.chain_id}: "
                f"head {latest_block}, cursor {current_block}"
            )

            if latest_block <= current_block:
                log.debug(f"No new blocks to process for pool {pool.address}")
                return None

            task = EnrichmentTask(
                pool_address=pool.address,
                chain_id=pool.chain_id,
                chain_type=pool.chain_type.value,
                contract_address=pool.token0,
                start_block=current_block + 1,
                end_block=latest_block,
            )
            self.enqueue(task)
            log.info(
                f"🚀 Queued blocks {task.start_block} to {task.end_block} for pool {pool.address}"
            )
            return task
        except Exception:
            log.exception(f"❌ Error while processing pool {pool.address} on chain {pool.chain_id}")
            return None
