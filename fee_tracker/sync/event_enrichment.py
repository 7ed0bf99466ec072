"""
Stage 2 of the sync pipeline: turn a block range into fee records.

Steps, per task:
  1. fetch transfer events for [start_block, end_block]; a page that hit the
     explorer cap comes back without its last (possibly incomplete) block
  2. widen the events' time span to 5-minute boundaries
  3. walk the price candles for that window chunk by chunk
  4. pair each event with its nearest candle, dropping events 5 min or more away
  5. compute the native and quote fee
  6. + 7. upsert the records (first occurrence of a hash wins within the batch)
  8. advance the pool cursor to end_block, or to the last kept block when trimmed

An empty range still advances the cursor. A range with no prices does not.
Errors end the task with a log line, except store failures, which are raised
so the queue can redeliver the task.
"""
import logging
from fee_tracker.chains.handlers import HandlerRegistry
from fee_tracker.config.settings import PRICE_PROVIDER
from fee_tracker.pools.registry import PoolRegistry
from fee_tracker.sources.binance.binance_klines_source import CHUNK_PAUSE_SECONDS, fetch_price_series
from fee_tracker.sources.etherscan.etherscan_client import TransferEventsPage, get_explorer_client
from fee_tracker.sources.price_providers import PriceProviderRegistry
from fee_tracker.storage.transaction_ledger_store import TransactionLedgerStore
from fee_tracker.sync.enrichment_task import EnrichmentTask
from fee_tracker.sync.fees import build_transaction_record
from fee_tracker.sync.price_matching import match_price, price_window
from fee_tracker.utils.exceptions import PersistenceError

log = logging.getLogger(__name__)

DEFAULT_PRICE_SYMBOL = "ETHUSDT"


class EventEnrichmentWorker:
    def __init__(
        self,
        handlers: HandlerRegistry,
        ledger: TransactionLedgerStore,
        price_providers: PriceProviderRegistry,
        pools: PoolRegistry | None = None,
        explorer_factory=get_explorer_client,
        chunk_pause_seconds: float = CHUNK_PAUSE_SECONDS,
    ) -> None:
        self.handlers = handlers
        self.ledger = ledger
        self.price_providers = price_providers
        self.pools = pools
        self.explorer_factory = explorer_factory
        self.chunk_pause_seconds = chunk_pause_seconds

    def process(self, task: EnrichmentTask) -> None:
        log.debug(f"Payload received to process >>> {task.to_dict()}")
        log.info(
            f"Processing transactions for pool {task.pool_address} on chain {task.chain_id} "
            f"from block {task.start_block} to {task.end_block}"
        )
        try:
            self._process(task)
        except PersistenceError:
            log.exception(f"❌ Store failure for pool {task.pool_address} on chain {task.chain_id}")
            raise
        except Exception:
            log.exception(
                f"❌ Error while processing transactions for pool {task.pool_address} "
                f"on chain {task.chain_id}"
            )

    def _process(self, task: EnrichmentTask) -> None:
        handler = self.handlers.get_handler(task.chain_type)

        # ── 1. Transfer events ------------------------------------------------
        page = self.explorer_factory(task.chain_id).get_token_transfer_events(
            contract_address=task.contract_address,
            address=task.pool_address,
            start_block=task.start_block,
            end_block=task.end_block,
        )
        if not page.events:
            self._handle_no_events(task, page)
            return
        log.info(f"Fetched {page.total} events for processing (trimmed={page.is_trimmed})")

        # ── 2. + 3. Price window and candles ---------------------------------
        start_ms, end_ms = price_window(page.events)
        log.info(f"Fetching price data for expanded time range: {start_ms} - {end_ms}")
        provider, symbol = self._price_source(task)
        prices = fetch_price_series(
            self.price_providers.get_client(provider),
            symbol,
            start_ms,
            end_ms,
            pause_seconds=self.chunk_pause_seconds,
        )
        if not prices:
            log.error(f"Price data is empty for pool {task.pool_address}; nothing stored")
            return
        log.info(f"Fetched {len(prices)} price points for processing")

        # ── 4. + 5. Match and price each event -------------------------------
        pool_address = handler.normalize_address(task.pool_address)
        records = []
        for event in page.events:
            sample = match_price(event, prices)
            if sample is None:
                continue
            records.append(build_transaction_record(event, sample.price, pool_address, task.chain_id))

        # ── 6. + 7. Persist ---------------------------------------------------
        if records:
            log.info(f"Mapped {len(records)} of {page.total} events to transactions")
            self.ledger.bulk_upsert(records)
        else:
            log.warning(f"No valid transactions to save for pool {task.pool_address}")

        # ── 8. Advance the cursor --------------------------------------------
        last_block = page.events[-1].block_number if page.is_trimmed else task.end_block
        handler.set_current_block(task.pool_address, task.chain_id, last_block)
        log.info(f"✅ Processed pool {task.pool_address} up to block {last_block}")

    def _handle_no_events(self, task: EnrichmentTask, page: TransferEventsPage) -> None:
        handler = self.handlers.get_handler(task.chain_type)
        if page.is_trimmed:
            # a single block filled the whole page; only the blocks before it are known complete
            target = page.dropped_block - 1
            log.error(
                f"Block {page.dropped_block} alone exceeds the explorer page cap for pool "
                f"{task.pool_address}; holding the cursor at {target}"
            )
        else:
            target = task.end_block
            log.warning(f"No transactions found for pool {task.pool_address} in {task.start_block}-{task.end_block}")
        handler.set_current_block(task.pool_address, task.chain_id, target)

    def _price_source(self, task: EnrichmentTask) -> tuple[str, str]:
        """(provider, symbol) for the task's pool, falling back to the configured defaults."""
        if self.pools is not None:
            pool = self.pools.find(task.pool_address, task.chain_id)
            if pool is not None:
                return pool.price_provider, pool.price_symbol
        return PRICE_PROVIDER, DEFAULT_PRICE_SYMBOL
