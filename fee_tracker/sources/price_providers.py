"""
Price provider registry.

Candle sources are looked up by provider name, so a pool can be priced from a
source other than Binance without touching the enrichment worker. Each client
must offer `get_klines(symbol, interval, start_ms, end_ms, limit)`.

Adding a provider:
  1. write its client next to `sources/binance/`
  2. add a `PriceProvider` member and map it in `PriceProviderRegistry.PROVIDER_CLASSES`
"""
from enum import Enum
from fee_tracker.sources.binance.binance_klines_source import BinanceKlinesClient
from fee_tracker.utils.exceptions import UnsupportedPriceProviderError


class PriceProvider(str, Enum):
    BINANCE = "binance"


class PriceProviderRegistry:
    """Static provider-name → candle client table."""

    PROVIDER_CLASSES: dict[PriceProvider, type] = {
        PriceProvider.BINANCE: BinanceKlinesClient,
    }

    def __init__(self, clients: dict | None = None) -> None:
        if clients is None:
            clients = {provider: cls() for provider, cls in self.PROVIDER_CLASSES.items()}
        self._clients = {PriceProvider(name): client for name, client in clients.items()}

    def get_client(self, provider: PriceProvider | str):
        try:
            return self._clients[PriceProvider(provider)]
        except (ValueError, KeyError):
            raise UnsupportedPriceProviderError(
                f"Pricing provider {str(provider)!r} is not supported",
                details={"provider": str(provider)},
            ) from None
