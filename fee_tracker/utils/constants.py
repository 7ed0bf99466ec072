INTERVAL_MS = {
    "1m": 60_000,
    "3m": 180_000,
    "5m": 300_000,
    "15m": 900_000,
    "30m": 1_800_000,
    "1h": 3_600_000,
}

# Chain ids per network
CHAIN_MAP = {
    "ETHEREUM_MAINNET": 1,
    "SOLANA_MAINNET": 101,   # illustrative, Solana has no EVM chain id
}

# ── Explorer ─────────────────────────────────────────────
# Account endpoints never return more than this many rows per call
EXPLORER_PAGE_CAP = 10_000

# ── Prices ───────────────────────────────────────────────
PRICE_INTERVAL_MINUTES = 5
PRICE_INTERVAL = "5m"
PRICE_PAGE_LIMIT = 1000                      # Binance kline hard limit
PRICE_CHUNK_MS = PRICE_INTERVAL_MINUTES * (PRICE_PAGE_LIMIT - 1) * 60 * 1000
PRICE_WINDOW_MS = PRICE_INTERVAL_MINUTES * 60 * 1000

# An event further than this from its nearest candle gets no price
PRICE_MATCH_TOLERANCE_MS = 5 * 60 * 1000

WEI_PER_NATIVE = 10 ** 18

# ── Queues ───────────────────────────────────────────────
BLOCK_SYNC_QUEUE = "block_sync"
TRANSACTION_PROCESSING_QUEUE = "transaction_processing"
