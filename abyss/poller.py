"""
Capacity alert poller.

Every tick, each tracked asset runs one independent cycle:

    fetch -> compute -> select triggered alerts -> notify -> retire

Cycles for different assets run in parallel. A cycle for an asset whose
previous cycle is still running is skipped, so one asset never has two
cycles in flight. Failures end only the cycle they happen in; the records
it would have handled stay in the store for the next tick.

Delivery is at-most-once: every record that was attempted is deleted after
the attempts finish, whether or not the message went out. A failed delivery
is logged and dropped.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Dict, Iterable, List, Optional

from abyss.assets import Asset
from abyss.calculator import compute
from abyss.errors import DivisionByZero
from abyss.fetcher import Malformed, NotFound, PoolStateFetcher
from abyss.notifier import DeliveryCallback
from abyss.store import AlertRecord, ThresholdStore
from utils.logging import get_logger

logger = get_logger("abyss.poller")

POLL_INTERVAL = 30.0  # seconds


class CycleOutcome(Enum):
    """How one asset's cycle ended."""

    SKIPPED = "skipped"  # previous cycle for the asset still running
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    FAILED = "failed"
    NO_ALERTS = "no_alerts"
    DISPATCHED = "dispatched"


class CapacityPoller:
    """Owns the tick timer, the worker pools and the per-asset guards.

    A poller is single use: once stopped it cannot be started again.
    """

    def __init__(
        self,
        store: ThresholdStore,
        fetcher: PoolStateFetcher,
        notify: DeliveryCallback,
        assets: Optional[Iterable[Asset]] = None,
        interval: float = POLL_INTERVAL,
        max_workers: int = 8,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.store = store
        self.fetcher = fetcher
        self.notify = notify
        self.assets: List[Asset] = list(assets) if assets is not None else list(Asset)
        self.interval = interval

        self._asset_locks: Dict[Asset, threading.Lock] = {asset: threading.Lock() for asset in self.assets}
        # cycles wait on deliveries, so they must not share a pool
        self._cycle_pool = ThreadPoolExecutor(max_workers=2 * len(self.assets) or 1, thread_name_prefix="cycle")
        self._delivery_pool = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="delivery")
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # lifecycle

    def start(self) -> None:
        """Run a tick now, then one every ``interval`` seconds, in a background thread."""
        if self._thread is not None:
            logger.warning("Poller already started")
            return
        logger.info("Starting vault alert poller (%ss interval) for %s", self.interval, ", ".join(a.symbol for a in self.assets))
        self._thread = threading.Thread(target=self._run, name="poller", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop ticking, then wait for in-flight cycles and their deliveries to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
        # cycles first: a running cycle still submits to the delivery pool
        self._cycle_pool.shutdown(wait=True)
        self._delivery_pool.shutdown(wait=True)
        logger.info("Vault alert poller stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_forever(self) -> None:
        """Start and block until interrupted."""
        self.start()
        try:
            while self.running:
                self._thread.join(timeout=1.0)
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            self.stop()

    def _run(self) -> None:
        # strict period: the next tick is due interval seconds after the previous
        # one was due, however long its cycles take
        next_run = time.monotonic()
        while not self._stop_event.is_set():
            self.submit_tick()
            next_run += self.interval
            self._stop_event.wait(max(0.0, next_run - time.monotonic()))

    # ticks

    def submit_tick(self) -> Dict[Asset, Future]:
        """Schedule one cycle per asset without waiting for them."""
        return {asset: self._cycle_pool.submit(self.check_asset, asset) for asset in self.assets}

    def tick(self) -> Dict[Asset, CycleOutcome]:
        """Run one cycle per asset in parallel and wait for all of them."""
        futures = self.submit_tick()
        return {asset: future.result() for asset, future in futures.items()}

    def check_asset(self, asset: Asset) -> CycleOutcome:
        lock = self._asset_locks[asset]
        if not lock.acquire(blocking=False):
            logger.warning("Previous cycle for %s still running, skipping this tick", asset.symbol)
            return CycleOutcome.SKIPPED
        try:
            return self._run_cycle(asset)
        except Exception:
            logger.exception("Alert cycle for %s failed", asset.symbol)
            return CycleOutcome.FAILED
        finally:
            lock.release()

    def _run_cycle(self, asset: Asset) -> CycleOutcome:
        result = self.fetcher.fetch(asset)
        if isinstance(result, NotFound):
            logger.warning("Skipping %s this tick: %s", asset.symbol, result.reason)
            return CycleOutcome.NOT_FOUND
        if isinstance(result, Malformed):
            logger.error("Skipping %s this tick, object schema may have changed: %s", asset.symbol, result.reason)
            return CycleOutcome.MALFORMED

        try:
            amounts = compute(result)
        except DivisionByZero as e:
            logger.error("Cannot compute capacity for %s: %s", asset.symbol, e)
            return CycleOutcome.FAILED

        available = amounts.available_capacity_units
        alerts = self.store.select_triggered(asset, available)
        if not alerts:
            logger.debug("%s available capacity %s, no alerts triggered", asset.symbol, asset.format(available))
            return CycleOutcome.NO_ALERTS

        logger.info("%d alerts to send for %s vault", len(alerts), asset.symbol)
        attempted = self._notify_all(asset, available, alerts)
        self.store.delete_by_ids(attempted)
        logger.info("Deleted %d triggered alerts for %s", len(attempted), asset.symbol)
        return CycleOutcome.DISPATCHED

    def _notify_all(self, asset: Asset, available: int, alerts: List[AlertRecord]) -> List[int]:
        """Send every alert in parallel; returns the ids of all attempted records."""
        futures = [self._delivery_pool.submit(self._deliver, asset, available, alert) for alert in alerts]
        wait(futures)
        sent = sum(1 for future in futures if future.result())
        if sent < len(alerts):
            logger.warning("%d of %d %s alerts failed to deliver and will not be retried", len(alerts) - sent, len(alerts), asset.symbol)
        return [alert.id for alert in alerts]

    def _deliver(self, asset: Asset, available: int, alert: AlertRecord) -> bool:
        try:
            self.notify(alert.user_id, asset, available, alert.threshold)
        except Exception:
            logger.exception("Failed to send alert %d to user %d", alert.id, alert.user_id)
            return False
        logger.info("Alert sent to user %d for %s vault (threshold: %d)", alert.user_id, asset.symbol, alert.threshold)
        return True
