"""Time alignment between transfer events and 5-minute price candles."""
import logging
from fee_tracker.sources.binance.binance_klines_source import PriceSample
from fee_tracker.sources.etherscan.etherscan_client import TransferEvent
from fee_tracker.utils.constants import PRICE_MATCH_TOLERANCE_MS, PRICE_WINDOW_MS

log = logging.getLogger(__name__)


def floor_to_window(ts_ms: int, window_ms: int = PRICE_WINDOW_MS) -> int:
    return ts_ms - ts_ms % window_ms


def ceil_to_window(ts_ms: int, window_ms: int = PRICE_WINDOW_MS) -> int:
    return -floor_to_window(-ts_ms, window_ms)


def price_window(events: list[TransferEvent]) -> tuple[int, int]:
    """(start_ms, end_ms) spanning the events, widened outward to 5-minute boundaries.

    `events` must be in ascending block/time order.
    """
    start_ms = events[0].timestamp * 1000
    end_ms = events[-1].timestamp * 1000
    return floor_to_window(start_ms), ceil_to_window(end_ms)


def find_closest_price(event_ms: int, prices: list[PriceSample]) -> PriceSample:
    """Sample with the smallest |timestamp - event_ms|; the earliest one wins a tie."""
    closest = prices[0]
    closest_diff = abs(closest.timestamp - event_ms)
    for sample in prices[1:]:
        diff = abs(sample.timestamp - event_ms)
        if diff < closest_diff:
            closest, closest_diff = sample, diff
    return closest


def match_price(event: TransferEvent, prices: list[PriceSample],
                tolerance_ms: int = PRICE_MATCH_TOLERANCE_MS) -> PriceSample | None:
    """Nearest sample for `event`, or None when even the nearest is `tolerance_ms` or more away."""
    if not prices:
        return None
    event_ms = event.timestamp * 1000
    closest = find_closest_price(event_ms, prices)
    if abs(closest.timestamp - event_ms) >= tolerance_ms:
        log.warning(
            f"Timestamp difference too large for {event.hash}: "
            f"event {event_ms}, closest price {closest.timestamp}"
        )
        return None
    return closest
