"""
Etherscan client: chain head and ERC-20 transfer events.

API docs: https://docs.etherscan.io/etherscan-v2
The v2 endpoint serves every supported EVM chain; the chain is picked with
the `chainid` parameter, so one client instance is bound to one chain id.

Account endpoints return at most EXPLORER_PAGE_CAP rows per call. A full page
may stop in the middle of a block, so the last block of a full page is dropped
and the page is flagged as trimmed; the caller resumes from that block later.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import backoff
import httpx

from fee_tracker.config.settings import (
    ETHERSCAN_API_KEY,
    ETHERSCAN_BASE_URL,
    HTTP_TIMEOUT_SECONDS,
)
from fee_tracker.utils.constants import CHAIN_MAP, EXPLORER_PAGE_CAP
from fee_tracker.utils.exceptions import (
    ProviderConnectionError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTimeoutError,
    UnsupportedChainError,
)

log = logging.getLogger(__name__)

ETHERSCAN_CHAIN_IDS = {CHAIN_MAP["ETHEREUM_MAINNET"]}


@dataclass
class TransferEvent:
    hash: str
    block_number: int
    timestamp: int      # unix seconds
    gas_price: str      # wei
    gas_used: str

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> TransferEvent:
        return cls(
            hash=raw.get("hash", ""),
            block_number=int(raw["blockNumber"]),
            timestamp=int(raw["timeStamp"]),
            gas_price=str(raw["gasPrice"]),
            gas_used=str(raw["gasUsed"]),
        )


@dataclass
class TransferEventsPage:
    events: list[TransferEvent] = field(default_factory=list)
    is_trimmed: bool = False
    dropped_block: int | None = None    # block removed from a trimmed page

    @property
    def total(self) -> int:
        return len(self.events)


def trim_incomplete_block(
    events: list[TransferEvent], page_cap: int = EXPLORER_PAGE_CAP
) -> TransferEventsPage:
    """Drop the last block's events when the page hit the provider cap."""
    if len(events) < page_cap:
        return TransferEventsPage(events=events)

    last_block = events[-1].block_number
    kept = [e for e in events if e.block_number != last_block]
    log.info(
        f"Page hit the {page_cap} row cap; dropped {len(events) - len(kept)} events of block {last_block}"
    )
    return TransferEventsPage(events=kept, is_trimmed=True, dropped_block=last_block)


class EtherscanClient:
    def __init__(
        self,
        chain_id: int,
        api_key: str = ETHERSCAN_API_KEY,
        base_url: str = ETHERSCAN_BASE_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        page_cap: int = EXPLORER_PAGE_CAP,
    ) -> None:
        self.chain_id = chain_id
        self._api_key = api_key
        self._base_url = base_url
        self._page_cap = page_cap
        self._client = httpx.Client(timeout=timeout)

    def get_block_number(self) -> int:
        """Current chain head."""
        data = self._get({"module": "proxy", "action": "eth_blockNumber"})
        result = data.get("result")
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise ProviderResponseError(
                f"Etherscan returned no block number: {data.get('message') or result!r}"
            ) from None

    def get_token_transfer_events(
        self,
        contract_address: str,
        address: str,
        start_block: int,
        end_block: int,
    ) -> TransferEventsPage:
        """Token transfers of `contract_address` touching `address` in [start_block, end_block], ascending."""
        data = self._get({
            "module": "account",
            "action": "tokentx",
            "contractaddress": contract_address,
            "address": address,
            "startblock": start_block,
            "endblock": end_block,
            "page": 1,
            "offset": self._page_cap,
            "sort": "asc",
        })

        if data.get("status") == "0":
            result = data.get("result")
            if data.get("message") == "No transactions found" or result == []:
                return TransferEventsPage()
            if "rate limit" in str(result).lower():
                raise ProviderRateLimitError(f"Etherscan rate limit exceeded: {result}")
            raise ProviderResponseError(f"Etherscan error: {data.get('message')} {result}")

        raw_events = data.get("result")
        if not isinstance(raw_events, list):
            raise ProviderResponseError(f"Unexpected tokentx result: {raw_events!r}")
        try:
            events = [TransferEvent.from_raw(raw) for raw in raw_events]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderResponseError(f"Malformed transfer event: {e}") from e

        return trim_incomplete_block(events, self._page_cap)

    def close(self) -> None:
        self._client.close()

    # ──────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────

    @backoff.on_exception(backoff.expo, httpx.TransportError, max_tries=3, jitter=None)
    def _send(self, params: dict[str, Any]) -> httpx.Response:
        return self._client.get(
            self._base_url,
            params={"chainid": self.chain_id, **params, "apikey": self._api_key},
        )

    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._send(params)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"Etherscan timeout: {e}") from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"Cannot connect to Etherscan: {e}") from e

        if resp.status_code == 429:
            raise ProviderRateLimitError("Etherscan rate limit exceeded", retry_after=60)
        if resp.status_code >= 400:
            raise ProviderResponseError(f"Etherscan HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderResponseError(f"Etherscan returned invalid JSON: {e}") from e


# One client per chain id, reused across tasks in the same worker
_explorer_clients: dict[int, EtherscanClient] = {}


def get_explorer_client(chain_id: int) -> EtherscanClient:
    if chain_id not in ETHERSCAN_CHAIN_IDS:
        raise UnsupportedChainError(f"No explorer configured for chainId {chain_id}")
    if chain_id not in _explorer_clients:
        _explorer_clients[chain_id] = EtherscanClient(chain_id)
    return _explorer_clients[chain_id]
