import httpx
import time
import backoff
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fee_tracker.config.settings import BINANCE_KLINES_URL, HTTP_TIMEOUT_SECONDS
from fee_tracker.utils.constants import INTERVAL_MS, PRICE_CHUNK_MS, PRICE_INTERVAL, PRICE_PAGE_LIMIT
from fee_tracker.utils.exceptions import (
    InvalidInputError,
    ProviderConnectionError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTimeoutError,
)
import logging

log = logging.getLogger(__name__)

MAX_LIMIT = PRICE_PAGE_LIMIT
CHUNK_PAUSE_SECONDS = 0.2
DEFAULT_RETRY_AFTER_SECONDS = 60


def _retry_after_seconds(value: str | None) -> int:
    # Retry-After may also be an HTTP-date; only the delta-seconds form is used
    try:
        return int(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS


@dataclass
class Kline:
    open_time: int      # ms
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    close_time: int     # ms

    @classmethod
    def from_row(cls, row: list) -> "Kline":
        return cls(
            open_time=int(row[0]),
            open=Decimal(str(row[1])),
            high=Decimal(str(row[2])),
            low=Decimal(str(row[3])),
            close=Decimal(str(row[4])),
            volume=Decimal(str(row[5])),
            close_time=int(row[6]),
        )


@dataclass
class PriceSample:
    timestamp: int      # ms
    price: Decimal


class BinanceKlinesClient:
    def __init__(self, base_url: str = BINANCE_KLINES_URL, timeout: float = HTTP_TIMEOUT_SECONDS):
        self._base_url = base_url
        self._client = httpx.Client(timeout=timeout)

    def get_klines(self, symbol: str, interval: str, start_ms: int, end_ms: int,
                   limit: int = MAX_LIMIT) -> list[Kline]:
        """Candles for `symbol` with open time in [start_ms, end_ms], at most `limit` of them."""
        if interval not in INTERVAL_MS:
            raise InvalidInputError(f"Unsupported interval: {interval}")
        if not 0 < limit <= MAX_LIMIT:
            raise InvalidInputError(f"limit must be in 1..{MAX_LIMIT}, got {limit}")

        params = {
            "symbol": symbol.upper().replace("/", ""),
            "interval": interval,
            "startTime": start_ms,
            "endTime": end_ms,
            "limit": limit,
            "timeZone": "0",
        }
        try:
            resp = self._send(params)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"Binance timeout: {e}") from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"Cannot connect to Binance: {e}") from e

        if resp.status_code in (418, 429):
            retry_after = _retry_after_seconds(resp.headers.get("Retry-After"))
            raise ProviderRateLimitError("Binance rate limit exceeded", retry_after=retry_after)
        if resp.status_code >= 400:
            raise ProviderResponseError(f"Binance HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            rows = resp.json()
            return [Kline.from_row(row) for row in rows]
        except (ValueError, TypeError, IndexError, InvalidOperation) as e:
            raise ProviderResponseError(f"Malformed kline data: {e}") from e

    def close(self) -> None:
        self._client.close()

    @backoff.on_exception(backoff.expo, httpx.TransportError, max_tries=3, jitter=None)
    def _send(self, params: dict) -> httpx.Response:
        return self._client.get(self._base_url, params=params)


def fetch_price_series(client: BinanceKlinesClient, symbol: str, start_ms: int, end_ms: int,
                       interval: str = PRICE_INTERVAL,
                       pause_seconds: float = CHUNK_PAUSE_SECONDS) -> list[PriceSample]:
    """Open prices for [start_ms, end_ms], walked oldest → newest in page-sized chunks.

    Each chunk covers at most MAX_LIMIT candles. At least one chunk is requested,
    so a zero-width window still returns the candle opening at `start_ms`.
    A failing chunk ends the walk; whatever was collected up to that point is
    returned.
    """
    prices: list[PriceSample] = []
    cursor = start_ms
    while True:
        chunk_end = min(cursor + PRICE_CHUNK_MS, end_ms)
        try:
            klines = client.get_klines(symbol, interval, cursor, chunk_end, limit=MAX_LIMIT)
        except Exception as e:
            log.error(f"❌ Error fetching {symbol} klines for {cursor} - {chunk_end}: {e}", exc_info=True)
            break
        prices.extend(PriceSample(timestamp=k.open_time, price=k.open) for k in klines)
        log.debug(f"Fetched {len(klines)} {symbol} klines for {cursor} - {chunk_end}")
        cursor += PRICE_CHUNK_MS
        if cursor >= end_ms:
            break
        if pause_seconds:
            time.sleep(pause_seconds)

    if not prices:
        log.error(f"No {symbol} kline data found for {start_ms} - {end_ms}")
    return prices
