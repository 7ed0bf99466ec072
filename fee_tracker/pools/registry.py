"""
Pool registry.

The set of tracked pools is loaded once at startup and handed to the block
range resolver and the pool bootstrap explicitly. `POOLS_FILE` may point at a
JSON list of pool objects with the same keys as `PoolInfo`; without it the
built-in USDC/WETH pool is tracked.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from fee_tracker.chains.handlers import ChainType
from fee_tracker.config.settings import POOLS_FILE, PRICE_PROVIDER
from fee_tracker.utils.constants import CHAIN_MAP
from fee_tracker.utils.exceptions import InvalidInputError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolInfo:
    address: str
    chain_id: int
    chain_type: ChainType
    token0: str             # transfers of this token are tracked
    token1: str
    created_block: int
    price_symbol: str = "ETHUSDT"   # native/quote pair used to price fees
    price_provider: str = PRICE_PROVIDER
    description: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> PoolInfo:
        try:
            return cls(
                address=raw["address"],
                chain_id=int(raw["chain_id"]),
                chain_type=ChainType(raw["chain_type"]),
                token0=raw["token0"],
                token1=raw["token1"],
                created_block=int(raw["created_block"]),
                price_symbol=raw.get("price_symbol", "ETHUSDT"),
                price_provider=raw.get("price_provider", PRICE_PROVIDER),
                description=raw.get("description", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Malformed pool definition {raw!r}: {e}") from e


# Uniswap v3 USDC/WETH 0.05% on Ethereum mainnet
USDC_WETH_POOL_INFO = PoolInfo(
    address="0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640",
    chain_id=CHAIN_MAP["ETHEREUM_MAINNET"],
    chain_type=ChainType.ETHEREUM,
    token0="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",   # USDC
    token1="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",   # WETH
    created_block=21202122,
    price_symbol="ETHUSDT",
    description="Uniswap v3 USDC/WETH 0.05%",
)


class PoolRegistry:
    """Ordered, read-only collection of tracked pools."""

    def __init__(self, pools: list[PoolInfo]) -> None:
        self._pools = tuple(pools)

    def __iter__(self) -> Iterator[PoolInfo]:
        return iter(self._pools)

    def __len__(self) -> int:
        return len(self._pools)

    def find(self, address: str, chain_id: int) -> PoolInfo | None:
        for pool in self._pools:
            if pool.chain_id != chain_id:
                continue
            # hex addresses compare case-insensitively, base58 ones exactly
            if pool.chain_type is ChainType.ETHEREUM:
                if pool.address.lower() == address.lower():
                    return pool
            elif pool.address == address:
                return pool
        return None


def load_pool_registry(path: str | None = POOLS_FILE) -> PoolRegistry:
    if not path:
        return PoolRegistry([USDC_WETH_POOL_INFO])

    raw = json.loads(Path(path).read_text())
    pools = [PoolInfo.from_dict(item) for item in raw]
    log.info(f"Loaded {len(pools)} pools from {path}")
    return PoolRegistry(pools)
