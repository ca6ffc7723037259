"""Capacity math for Abyss vaults.

Matches the Abyss API methodology: TVL = aToken supply x exchange rate,
where the exchange rate is the pool's total supply per supply share scaled
by 1e9. All arithmetic is done on Python ints, so u128 pool values stay
exact.
"""
from dataclasses import dataclass

from abyss.errors import DivisionByZero
from abyss.schemas import PoolSnapshot

RATE_SCALE = 10**9


@dataclass(frozen=True)
class CapacityResult:
    """Derived vault amounts in base units, encoded as decimal strings."""

    total_deposited: str
    available_capacity: str
    exchange_rate: str

    @property
    def total_deposited_units(self) -> int:
        return int(self.total_deposited)

    @property
    def available_capacity_units(self) -> int:
        return int(self.available_capacity)

    @property
    def exchange_rate_scaled(self) -> int:
        return int(self.exchange_rate)


def exchange_rate(pool_total_supply: int, pool_supply_shares: int) -> int:
    """Underlying per share, scaled by ``RATE_SCALE`` and floored."""
    if pool_supply_shares == 0:
        raise DivisionByZero("pool has zero supply shares")
    return pool_total_supply * RATE_SCALE // pool_supply_shares


def available_capacity(pool_supply_cap: int, pool_total_supply: int) -> int:
    """Room left before the supply cap, never negative."""
    return max(0, pool_supply_cap - pool_total_supply)


def compute(snapshot: PoolSnapshot) -> CapacityResult:
    rate = exchange_rate(snapshot.pool.total_supply, snapshot.pool.supply_shares)
    total_deposited = snapshot.vault.share_supply * rate // RATE_SCALE
    capacity = available_capacity(snapshot.pool.supply_cap, snapshot.pool.total_supply)
    return CapacityResult(
        total_deposited=str(total_deposited),
        available_capacity=str(capacity),
        exchange_rate=str(rate),
    )
