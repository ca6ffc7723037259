from decimal import Decimal
from enum import Enum

from abyss.errors import UnknownAsset
from utils.formatting import format_token_amount, to_base_units, to_human


class Asset(Enum):
    USDC = (
        "USDC",
        "0x86cd17116a5c1bc95c25296a901eb5ea91531cb8ba59d01f64ee2018a14d6fa5",
        "0xba473d9ae278f10af75c50a8fa341e9c6a1c087dc91a3f23e8048baf67d0754f",
        6,
    )
    SUI = (
        "SUI",
        "0x670c12c8ea3981be65b8b11915c2ba1832b4ebde160b03cd7790021920a8ce68",
        "0x53041c6f86c4782aabbfc1d4fe234a6d37160310c7ee740c915f0a01b7127344",
        9,
    )
    WAL = (
        "WAL",
        "0x09b367346a0fc3709e32495e8d522093746ddd294806beff7e841c9414281456",
        "0x38decd3dbb62bd4723144349bf57bc403b393aee86a51596846a824a1e0c2c01",
        9,
    )
    DEEP = (
        "DEEP",
        "0xec54bde40cf2261e0c5d9c545f51c67a9ae5a8add9969c7e4cdfe1d15d4ad92e",
        "0x1d723c5cd113296868b55208f2ab5a905184950dd59c48eb7345607d6b5e6af7",
        6,
    )

    def __init__(self, symbol: str, vault_id: str, pool_id: str, decimals: int):
        self.symbol = symbol
        self.vault_id = vault_id
        self.pool_id = pool_id
        self.decimals = decimals

    @classmethod
    def from_symbol(cls, symbol) -> "Asset":
        if isinstance(symbol, cls):
            return symbol
        wanted = str(symbol).strip().upper()
        for asset in cls:
            if asset.symbol == wanted:
                return asset
        raise UnknownAsset(f"Unknown asset: {symbol}")

    def to_base_units(self, human_amount) -> int:
        return to_base_units(human_amount, self.decimals)

    def to_human(self, base_units) -> Decimal:
        return to_human(base_units, self.decimals)

    def format(self, base_units) -> str:
        return format_token_amount(base_units, self.decimals)
