"""
Read the vault and margin pool objects of one asset from the Sui GraphQL API.

Both objects are requested in one ``multiGetObjects`` query. The fetcher only
checks existence and shape: it never raises for remote problems and never
retries, the poller simply tries again on its next tick.
"""

from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError

from abyss.assets import Asset
from abyss.errors import RemoteMalformed, RemoteNotFound
from abyss.schemas import MarginPoolObject, PoolSnapshot, VaultObject
from utils.http import graphql_query
from utils.logging import get_logger

logger = get_logger("abyss.fetcher")

MULTI_GET_OBJECTS_QUERY = """
query ($keys: [ObjectKey!]!) {
  multiGetObjects(keys: $keys) {
    address
    asMoveObject {
      contents {
        json
      }
    }
  }
}
"""


@dataclass(frozen=True)
class NotFound:
    """An object is missing, or the read itself failed."""

    asset: Asset
    reason: str

    def to_error(self) -> RemoteNotFound:
        return RemoteNotFound(f"{self.asset.symbol}: {self.reason}")


@dataclass(frozen=True)
class Malformed:
    """Both objects exist but one of them has unexpected content."""

    asset: Asset
    reason: str

    def to_error(self) -> RemoteMalformed:
        return RemoteMalformed(f"{self.asset.symbol}: {self.reason}")


FetchResult = Union[PoolSnapshot, NotFound, Malformed]


def _normalize_id(object_id: str) -> str:
    """Sui addresses may come back with or without leading zero padding."""
    return "0x" + object_id.lower().removeprefix("0x").lstrip("0")


def _extract_json(node) -> dict | None:
    if not isinstance(node, dict):
        return None
    move_object = node.get("asMoveObject") or {}
    contents = move_object.get("contents") or {}
    payload = contents.get("json")
    return payload if isinstance(payload, dict) else None


class PoolStateFetcher:
    """Fetch ``PoolSnapshot`` values from a Sui GraphQL endpoint."""

    def __init__(self, graphql_url: str, timeout: int | None = None):
        self.graphql_url = graphql_url
        self.timeout = timeout

    def fetch(self, asset: Asset) -> FetchResult:
        object_ids = [asset.vault_id, asset.pool_id]
        data = graphql_query(
            self.graphql_url,
            MULTI_GET_OBJECTS_QUERY,
            {"keys": [{"address": object_id} for object_id in object_ids]},
            timeout=self.timeout,
        )
        if data is None:
            return NotFound(asset, "object read failed")

        nodes = data.get("multiGetObjects")
        if not isinstance(nodes, list):
            return NotFound(asset, "object read returned no objects")

        by_id = {}
        for node in nodes:
            if isinstance(node, dict) and isinstance(node.get("address"), str):
                by_id[_normalize_id(node["address"])] = node

        vault_node = by_id.get(_normalize_id(asset.vault_id))
        pool_node = by_id.get(_normalize_id(asset.pool_id))
        if vault_node is None:
            return NotFound(asset, f"vault {asset.vault_id} not found")
        if pool_node is None:
            return NotFound(asset, f"margin pool {asset.pool_id} not found")

        raw_vault = _extract_json(vault_node)
        if raw_vault is None:
            return Malformed(asset, f"missing JSON content for vault {asset.vault_id}")
        raw_pool = _extract_json(pool_node)
        if raw_pool is None:
            return Malformed(asset, f"missing JSON content for margin pool {asset.pool_id}")

        try:
            vault = VaultObject.model_validate(raw_vault)
            pool = MarginPoolObject.model_validate(raw_pool)
        except ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in e.errors())
            return Malformed(asset, f"unexpected object shape at {fields}")

        logger.debug("Fetched vault and pool data for %s", asset.symbol)
        return PoolSnapshot(asset=asset, vault=vault, pool=pool)

    def fetch_or_raise(self, asset: Asset) -> PoolSnapshot:
        """Like ``fetch`` but raises ``RemoteNotFound`` / ``RemoteMalformed``."""
        result = self.fetch(asset)
        if isinstance(result, (NotFound, Malformed)):
            raise result.to_error()
        return result
