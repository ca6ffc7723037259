#!/usr/bin/env python3
"""
Abyss vault capacity alerts.

    python -m abyss.main             # poll forever
    python -m abyss.main --once      # single tick, e.g. from cron
    python -m abyss.main vault-info USDC
"""

import argparse
import sys

from abyss.assets import Asset
from abyss.errors import AbyssError
from abyss.fetcher import PoolStateFetcher
from abyss.notifier import TelegramNotifier
from abyss.poller import CapacityPoller
from abyss.service import AlertService
from abyss.store import ThresholdStore
from utils.config import Config
from utils.logging import get_logger

logger = get_logger("abyss.main")


def build_poller(config) -> CapacityPoller:
    store = ThresholdStore(config.db_url)
    fetcher = PoolStateFetcher(config.graphql_url, timeout=config.request_timeout)
    return CapacityPoller(
        store,
        fetcher,
        TelegramNotifier(config.telegram_bot_token),
        interval=config.poll_interval,
        max_workers=config.max_workers,
    )


def print_vault_info(config, symbol: str) -> int:
    store = ThresholdStore(config.db_url)
    service = AlertService(store, PoolStateFetcher(config.graphql_url, timeout=config.request_timeout))
    try:
        info = service.get_vault_info(symbol)
    except AbyssError as e:
        logger.error("Failed to fetch vault data for %s: %s", symbol, e)
        return 1
    finally:
        store.close()
    print(f"{info.asset.symbol} vault")
    print(f"  Total deposited:    {info.total_deposited.formatted} {info.asset.symbol}")
    print(f"  Available capacity: {info.available_capacity.formatted} {info.asset.symbol}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Notify users when Abyss vault capacity frees up")
    parser.add_argument("--once", action="store_true", help="run a single tick and exit")
    subparsers = parser.add_subparsers(dest="command")
    info_parser = subparsers.add_parser("vault-info", help="print current capacity of one vault")
    info_parser.add_argument("asset", choices=[asset.symbol for asset in Asset], type=str.upper)
    args = parser.parse_args(argv)

    config = Config.get_alerter_config()
    if args.command == "vault-info":
        return print_vault_info(config, args.asset)

    if not config.telegram_bot_token:
        logger.warning("TELEGRAM_BOT_TOKEN_ABYSS not set, every delivery will fail")

    poller = build_poller(config)
    if args.once:
        try:
            outcomes = poller.tick()
        finally:
            poller.stop()
            poller.store.close()
        for asset, outcome in outcomes.items():
            logger.info("%s: %s", asset.symbol, outcome.value)
        return 0

    try:
        poller.run_forever()
    finally:
        poller.store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
