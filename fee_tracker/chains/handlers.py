"""
Chain handlers.

One handler per blockchain family. A handler knows which chain ids it serves,
how an address looks on that family, and how to normalize it before the
cursor store sees it. Handlers are registered statically in `HandlerRegistry`;
asking for an unknown chain type is an error, there is no fallback handler.

Adding a chain family:
  1. subclass `ChainHandler` with its `chain_type`, `supported_chain_ids`,
     `is_valid_format` and (if needed) `normalize_address`
  2. add it to `HandlerRegistry.HANDLER_CLASSES`
"""
import logging
import re
from enum import Enum
from web3 import Web3
from fee_tracker.storage.pool_cursor_store import PoolCursorStore
from fee_tracker.utils.constants import CHAIN_MAP
from fee_tracker.utils.exceptions import InvalidInputError, UnsupportedChainError

log = logging.getLogger(__name__)

# base58 alphabet (no 0, O, I, l), 32-byte keys encode to 32-44 chars
SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class ChainType(str, Enum):
    ETHEREUM = "ethereum"
    SOLANA = "solana"


class ChainHandler:
    chain_type: ChainType
    supported_chain_ids: frozenset[int] = frozenset()

    def __init__(self, cursor_store: PoolCursorStore) -> None:
        self.cursor_store = cursor_store

    # ── chain-specific policy ───────────────────────────────────
    def is_valid_format(self, address: str) -> bool:
        raise NotImplementedError

    def normalize_address(self, address: str) -> str:
        return address

    # ── shared contract ─────────────────────────────────────────
    def validate_address(self, address: str, chain_id: int) -> bool:
        self._check_chain(chain_id)
        if not address or not isinstance(address, str):
            return False
        return self.is_valid_format(address)

    def get_current_block(self, address: str, chain_id: int) -> int:
        self._check_inputs(address, chain_id)
        return self.cursor_store.get_cursor(self.normalize_address(address), chain_id)

    def set_current_block(self, address: str, chain_id: int, block_number: int) -> bool:
        self._check_inputs(address, chain_id, block_number)
        return self.cursor_store.advance_cursor(
            self.normalize_address(address), chain_id, block_number
        )

    def register_pool(self, address: str, chain_id: int, seed_block: int) -> None:
        self._check_inputs(address, chain_id, seed_block)
        if not self.is_valid_format(address):
            raise InvalidInputError(
                f"Invalid {self.chain_type.value} address: {address!r}",
                details={"address": address, "chain_id": chain_id},
            )
        self.cursor_store.register_pool(self.normalize_address(address), chain_id, seed_block)

    def _check_chain(self, chain_id: int) -> None:
        if chain_id not in self.supported_chain_ids:
            raise UnsupportedChainError(
                f"Unsupported chainId for {self.chain_type.value}: {chain_id}",
                details={"chain_id": chain_id, "supported": sorted(self.supported_chain_ids)},
            )

    def _check_inputs(self, address: str, chain_id: int, block_number: int | None = None) -> None:
        if not address or not isinstance(address, str) or not address.strip():
            raise InvalidInputError("Invalid address")
        if not isinstance(chain_id, int) or isinstance(chain_id, bool) or chain_id <= 0:
            raise InvalidInputError(f"Invalid chainId: {chain_id!r}")
        if block_number is not None and (not isinstance(block_number, int) or block_number < 0):
            raise InvalidInputError(
                f"Invalid block number: {block_number}. Block number must be a non-negative value."
            )
        self._check_chain(chain_id)


class EthereumHandler(ChainHandler):
    """EVM chains. Hex addresses are case-insensitive and stored lower-cased."""

    chain_type = ChainType.ETHEREUM
    supported_chain_ids = frozenset({CHAIN_MAP["ETHEREUM_MAINNET"]})

    def is_valid_format(self, address: str) -> bool:
        # lower/upper hex always passes, mixed case must be a valid EIP-55 checksum
        return Web3.is_address(address)

    def normalize_address(self, address: str) -> str:
        return address.lower()


class SolanaHandler(ChainHandler):
    """Solana. base58 is case-sensitive, addresses pass through untouched."""

    chain_type = ChainType.SOLANA
    supported_chain_ids = frozenset({CHAIN_MAP["SOLANA_MAINNET"]})

    def is_valid_format(self, address: str) -> bool:
        return bool(SOLANA_ADDRESS_RE.match(address))


class HandlerRegistry:
    """Static chain-type → handler table."""

    HANDLER_CLASSES: dict[ChainType, type[ChainHandler]] = {
        ChainType.ETHEREUM: EthereumHandler,
        ChainType.SOLANA: SolanaHandler,
    }

    def __init__(self, cursor_store: PoolCursorStore | None = None) -> None:
        cursor_store = cursor_store or PoolCursorStore()
        self._handlers: dict[ChainType, ChainHandler] = {
            chain_type: cls(cursor_store) for chain_type, cls in self.HANDLER_CLASSES.items()
        }

    def get_handler(self, chain_type: ChainType | str) -> ChainHandler:
        try:
            return self._handlers[ChainType(chain_type)]
        except (ValueError, KeyError):
            raise UnsupportedChainError(
                f"Handler not found for chain type: {chain_type}",
                details={"chain_type": str(chain_type)},
            ) from None
