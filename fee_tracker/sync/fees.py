from decimal import Decimal, getcontext
from fee_tracker.sources.etherscan.etherscan_client import TransferEvent
from fee_tracker.utils.constants import WEI_PER_NATIVE

getcontext().prec = 28  # High precision for fee math


def compute_fees(gas_price_wei: str, gas_used: str, price: Decimal) -> tuple[Decimal, Decimal]:
    """(fee in native currency, fee in quote currency).

    fee_native = gas_price / 10**18 * gas_used
    fee_quote  = fee_native * price
    """
    fee_native = Decimal(gas_price_wei) / Decimal(WEI_PER_NATIVE) * Decimal(gas_used)
    fee_quote = fee_native * Decimal(price)
    return fee_native, fee_quote


def build_transaction_record(event: TransferEvent, price: Decimal,
                             pool_address: str, chain_id: int) -> dict:
    """Ledger row for one priced transfer event."""
    fee_native, fee_quote = compute_fees(event.gas_price, event.gas_used, price)
    return {
        "hash": event.hash,
        "block_number": event.block_number,
        "timestamp": event.timestamp,
        "pool": pool_address,
        "chain_id": chain_id,
        "gas_price": event.gas_price,
        "gas_used": event.gas_used,
        "transaction_fee_eth": fee_native,
        "transaction_fee": fee_quote,
    }
