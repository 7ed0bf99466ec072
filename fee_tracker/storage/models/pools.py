# models/pools.py
from sqlalchemy import BigInteger, Column, Index, Integer, String, UniqueConstraint
from fee_tracker.storage.base import Base


class Pool(Base):
    """Sync cursor for one tracked pool on one chain."""
    __tablename__ = "pools"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    address       = Column(String(255), nullable=False)   # normalized by the chain handler
    chain_id      = Column(Integer,     nullable=False)
    current_block = Column(BigInteger,  nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("address", "chain_id", name="uq_pools_address_chain"),
        Index("idx_address", "address"),
    )

    def __repr__(self) -> str:         # for nicer logs
        return f"<Pool {self.chain_id}:{self.address} @ {self.current_block}>"
