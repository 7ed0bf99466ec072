from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class EnrichmentTask:
    """Queue payload handed from range resolution to event enrichment.

    Travels as plain JSON kwargs, see `to_dict` / `from_dict`.
    """

    pool_address: str
    chain_id: int
    chain_type: str
    contract_address: str
    start_block: int
    end_block: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict) -> EnrichmentTask:
        return cls(
            pool_address=payload["pool_address"],
            chain_id=int(payload["chain_id"]),
            chain_type=str(payload["chain_type"]),
            contract_address=payload["contract_address"],
            start_block=int(payload["start_block"]),
            end_block=int(payload["end_block"]),
        )
