"""Celery side of the enrichment stage."""
from functools import lru_cache
import logging
from fee_tracker.celery.celery_app import celery_app
from fee_tracker.chains.handlers import HandlerRegistry
from fee_tracker.config.settings import QUEUE_RATE_LIMIT
from fee_tracker.pools.registry import load_pool_registry
from fee_tracker.sources.price_providers import PriceProviderRegistry
from fee_tracker.storage.db import WorkerSessionLocal
from fee_tracker.storage.pool_cursor_store import PoolCursorStore
from fee_tracker.storage.transaction_ledger_store import TransactionLedgerStore
from fee_tracker.sync.enrichment_task import EnrichmentTask
from fee_tracker.sync.event_enrichment import EventEnrichmentWorker
from fee_tracker.utils.constants import TRANSACTION_PROCESSING_QUEUE
from fee_tracker.utils.exceptions import PersistenceError

log = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_enrichment_worker() -> EventEnrichmentWorker:
    """Process-wide worker, built on first use inside the Celery child."""
    return EventEnrichmentWorker(
        handlers=HandlerRegistry(PoolCursorStore(WorkerSessionLocal)),
        ledger=TransactionLedgerStore(WorkerSessionLocal),
        price_providers=PriceProviderRegistry(),
        pools=load_pool_registry(),
    )


def enqueue_enrichment(task: EnrichmentTask) -> None:
    process_transactions.apply_async(kwargs=task.to_dict(), queue=TRANSACTION_PROCESSING_QUEUE)


@celery_app.task(
    name="process_transactions",
    queue=TRANSACTION_PROCESSING_QUEUE,
    rate_limit=QUEUE_RATE_LIMIT,
    autoretry_for=(PersistenceError,),
    max_retries=3,
    retry_backoff=True,
)
def process_transactions(**payload) -> None:
    """
    Enrich one block range for one pool.

    Parameters
    ----------
    payload : EnrichmentTask fields as JSON kwargs
        pool_address, chain_id, chain_type, contract_address,
        start_block, end_block
    """
    get_enrichment_worker().process(EnrichmentTask.from_dict(payload))
