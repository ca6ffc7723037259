"""Pydantic models for the on-chain objects read from Sui.

Only the fields the capacity computation needs are required. Everything
else in the object JSON is ignored, so protocol upgrades that add fields
do not break validation; upgrades that rename or drop a required field
surface as a validation error (``Malformed`` at the fetcher boundary).
"""
import re
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainValidator

from abyss.assets import Asset

_DIGITS = re.compile(r"[0-9]+")


def _parse_unsigned(value: Any) -> int:
    """Accept a non-negative int or a decimal string of digits (Move u64/u128 JSON)."""
    if isinstance(value, bool):
        raise ValueError("expected an unsigned integer, got a boolean")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"expected an unsigned integer, got {value}")
        return value
    if isinstance(value, str) and _DIGITS.fullmatch(value):
        return int(value)
    raise ValueError(f"expected an unsigned integer string, got {value!r}")


UnsignedInt = Annotated[int, PlainValidator(_parse_unsigned)]


class _MoveStruct(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Balance(_MoveStruct):
    value: UnsignedInt


class TreasuryCap(_MoveStruct):
    total_supply: Balance


class VaultObject(_MoveStruct):
    """Abyss vault: issues aTokens against shares of a margin pool."""

    id: str | None = Field(default=None, description="Vault object id")
    margin_pool_id: str | None = Field(default=None, description="Margin pool backing the vault")
    underlying_decimals: int | None = Field(default=None, description="Decimals of the deposited token")
    atoken_treasury_cap: TreasuryCap = Field(description="Treasury cap of the vault's aToken")

    @property
    def share_supply(self) -> int:
        """aToken supply held by depositors."""
        return self.atoken_treasury_cap.total_supply.value


class PoolState(_MoveStruct):
    total_supply: UnsignedInt
    supply_shares: UnsignedInt


class MarginPoolConfig(_MoveStruct):
    supply_cap: UnsignedInt


class PoolConfig(_MoveStruct):
    margin_pool_config: MarginPoolConfig


class MarginPoolObject(_MoveStruct):
    """Margin pool the vault supplies into; its supply cap bounds deposits."""

    state: PoolState
    config: PoolConfig

    @property
    def total_supply(self) -> int:
        return self.state.total_supply

    @property
    def supply_shares(self) -> int:
        return self.state.supply_shares

    @property
    def supply_cap(self) -> int:
        return self.config.margin_pool_config.supply_cap


@dataclass(frozen=True)
class PoolSnapshot:
    """Validated vault and pool objects for one asset, read in a single round trip."""

    asset: Asset
    vault: VaultObject
    pool: MarginPoolObject

    @classmethod
    def from_values(
        cls,
        asset: Asset,
        vault_share_supply: int,
        pool_total_supply: int,
        pool_supply_shares: int,
        pool_supply_cap: int,
    ) -> "PoolSnapshot":
        """Build a snapshot from plain integers (on-chain JSON shape is synthesised)."""
        raw_vault = {"atoken_treasury_cap": {"total_supply": {"value": str(vault_share_supply)}}}
        raw_pool = {
            "state": {"total_supply": str(pool_total_supply), "supply_shares": str(pool_supply_shares)},
            "config": {"margin_pool_config": {"supply_cap": str(pool_supply_cap)}},
        }
        return cls(
            asset=asset,
            vault=VaultObject.model_validate(raw_vault),
            pool=MarginPoolObject.model_validate(raw_pool),
        )
