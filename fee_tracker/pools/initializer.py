import logging
from fee_tracker.chains.handlers import HandlerRegistry
from fee_tracker.config.settings import APP_START_BLOCK
from fee_tracker.pools.registry import PoolRegistry
from fee_tracker.utils.exceptions import FeeTrackerError

log = logging.getLogger(__name__)


def initialize_pools(
    registry: PoolRegistry,
    handlers: HandlerRegistry,
    start_block: int | None = APP_START_BLOCK,
) -> int:
    """Seed a cursor for every registered pool. Returns how many pools were seeded.

    The seed is `start_block` when configured, else the pool's creation block.
    Existing cursors are only ever advanced, never reset.
    """
    seeded = 0
    for pool in registry:
        seed = start_block if start_block is not None else pool.created_block
        try:
            handlers.get_handler(pool.chain_type).register_pool(pool.address, pool.chain_id, seed)
            seeded += 1
            log.info(f"✅ Initialized pool {pool.address} on chainId {pool.chain_id} (seed {seed})")
        except FeeTrackerError as e:
            log.error(f"❌ Failed to initialize pool {pool.address} on chainId {pool.chain_id}: {e}")
    return seeded
