"""
Alert management surface for the chat and tool-calling layers.

Users talk in human amounts ("3000 USDC"); the store keeps base units.
This module converts between the two and offers a one-shot vault lookup
that reuses the poller's fetch and compute path.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Union

from abyss.assets import Asset
from abyss.calculator import compute
from abyss.fetcher import PoolStateFetcher
from abyss.store import ThresholdStore
from utils.logging import get_logger

logger = get_logger("abyss.service")

AssetLike = Union[Asset, str]


@dataclass(frozen=True)
class Amount:
    """A token amount in base units with its display form."""

    raw: str
    formatted: str
    unit: str

    @classmethod
    def of(cls, asset: Asset, base_units) -> "Amount":
        return cls(raw=str(int(base_units)), formatted=asset.format(base_units), unit=asset.symbol)


@dataclass(frozen=True)
class AlertView:
    asset: Asset
    threshold: Decimal
    threshold_base_units: int
    formatted: str


@dataclass(frozen=True)
class VaultInfo:
    asset: Asset
    total_deposited: Amount
    available_capacity: Amount
    exchange_rate: str
    vault_id: str
    margin_pool_id: str
    underlying_decimals: int


def _view(asset: Asset, threshold: int) -> AlertView:
    return AlertView(
        asset=asset,
        threshold=asset.to_human(threshold),
        threshold_base_units=threshold,
        formatted=f"{asset.format(threshold)} {asset.symbol}",
    )


class AlertService:
    def __init__(self, store: ThresholdStore, fetcher: PoolStateFetcher):
        self.store = store
        self.fetcher = fetcher

    def register_user(self, user_id: int) -> None:
        self.store.create_user(user_id)

    def set_alert(self, user_id: int, asset: AssetLike, human_amount) -> AlertView:
        """Subscribe ``user_id`` to ``asset`` reaching ``human_amount`` of available capacity.

        Raises ``UnknownUser`` for unregistered users, ``UnknownAsset`` for
        untracked symbols and ``ValueError`` for non-positive amounts.
        """
        asset = Asset.from_symbol(asset)
        threshold = asset.to_base_units(human_amount)
        record_id = self.store.insert(user_id, asset, threshold)
        logger.info("User %d set alert %d: %s at %s", user_id, record_id, asset.symbol, threshold)
        return _view(asset, threshold)

    def list_alerts(self, user_id: int) -> List[AlertView]:
        return [_view(record.asset, record.threshold) for record in self.store.list_by_user(user_id)]

    def remove_alert(self, user_id: int, asset: AssetLike, human_amount) -> int:
        """Remove the alerts set at exactly ``human_amount``; returns how many went away."""
        asset = Asset.from_symbol(asset)
        threshold = asset.to_base_units(human_amount)
        return self.store.delete_by_user_asset_threshold(user_id, asset, threshold)

    def remove_all_alerts(self, user_id: int, asset: AssetLike) -> int:
        asset = Asset.from_symbol(asset)
        return self.store.delete_all_by_user_asset(user_id, asset)

    def get_vault_info(self, asset: AssetLike) -> VaultInfo:
        """Current deposits and free capacity of one vault, read on demand.

        Raises ``RemoteNotFound``, ``RemoteMalformed`` or ``DivisionByZero``.
        """
        asset = Asset.from_symbol(asset)
        snapshot = self.fetcher.fetch_or_raise(asset)
        amounts = compute(snapshot)
        decimals = snapshot.vault.underlying_decimals
        return VaultInfo(
            asset=asset,
            total_deposited=Amount.of(asset, amounts.total_deposited),
            available_capacity=Amount.of(asset, amounts.available_capacity),
            exchange_rate=amounts.exchange_rate,
            vault_id=snapshot.vault.id or asset.vault_id,
            margin_pool_id=snapshot.vault.margin_pool_id or asset.pool_id,
            underlying_decimals=decimals if decimals is not None else asset.decimals,
        )
