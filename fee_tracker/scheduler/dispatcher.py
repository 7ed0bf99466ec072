from functools import lru_cache
import logging
from fee_tracker.celery.celery_app import celery_app
from fee_tracker.chains.handlers import HandlerRegistry
from fee_tracker.config.settings import QUEUE_RATE_LIMIT
from fee_tracker.pools.registry import load_pool_registry
from fee_tracker.storage.db import WorkerSessionLocal
from fee_tracker.storage.pool_cursor_store import PoolCursorStore
from fee_tracker.sync.block_range_resolver import BlockRangeResolver
from fee_tracker.utils.constants import BLOCK_SYNC_QUEUE

log = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_block_range_resolver() -> BlockRangeResolver:
    # imported here: sync.tasks and this module both load through celery_app
    from fee_tracker.sync.tasks import enqueue_enrichment

    return BlockRangeResolver(
        pools=load_pool_registry(),
        handlers=HandlerRegistry(PoolCursorStore(WorkerSessionLocal)),
        enqueue=enqueue_enrichment,
    )


@celery_app.task(name="poll_blocks", queue=BLOCK_SYNC_QUEUE, rate_limit=QUEUE_RATE_LIMIT)
def poll_blocks() -> int:
    """Fired by beat: queue enrichment work for every pool that is behind its chain head."""
    queued = get_block_range_resolver().run()
    log.info(f"📬 Poll finished, {len(queued)} enrichment tasks queued")
    return len(queued)
