from decimal import Decimal
from sqlalchemy import BigInteger, Column, Index, Integer, String
from sqlalchemy.types import TypeDecorator
from fee_tracker.storage.base import Base


class DecimalString(TypeDecorator):
    """Decimal kept as its exact text form, identical on postgres and sqlite.

    A NUMERIC column would round fees past its scale and sqlite would hand
    them back as floats.
    """
    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class Transaction(Base):
    """Fee-annotated transfer transaction, one row per hash."""
    __tablename__ = "transactions"

    hash                = Column(String(66),  primary_key=True)
    block_number        = Column(BigInteger,  nullable=False)
    timestamp           = Column(BigInteger,  nullable=False)   # unix seconds
    pool                = Column(String(255), nullable=False)
    chain_id            = Column(Integer,     nullable=False)
    # ─── raw gas figures, kept as the explorer sent them ──────────────────
    gas_price           = Column(String(78),  nullable=False)   # wei
    gas_used            = Column(String(78),  nullable=False)
    # ─── computed fees ───────────────────────────────────────────────────
    transaction_fee_eth = Column(DecimalString, nullable=False)   # native currency
    transaction_fee     = Column(DecimalString, nullable=False)   # quote currency (USDT)

    __table_args__ = (
        Index("idx_timestamp", "timestamp"),
        Index("idx_pool_chain", "pool", "chain_id"),
    )

    def to_dict(self) -> dict:
        return {
            "hash": self.hash,
            "block_number": self.block_number,
            "timestamp": self.timestamp,
            "pool": self.pool,
            "chain_id": self.chain_id,
            "gas_price": self.gas_price,
            "gas_used": self.gas_used,
            "transaction_fee_eth": str(self.transaction_fee_eth),
            "transaction_fee": str(self.transaction_fee),
        }

    def __repr__(self) -> str:
        return f"<Transaction {self.hash} block={self.block_number}>"
