"""
Status Monitor: the periodic check engine.

Each tick:
  1. Reload the service list from the store
  2. Probe every service's container and URL concurrently
  3. Evaluate one status per service and persist the snapshot
  4. Reconcile the batch against the incident history and persist it

A tick that fails (store or config I/O) is reported and abandoned; the
previously persisted documents stay as they were. Ticks never overlap:
if the previous one is still running when the next is due, it is skipped.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional

from statuspage import notifier
from statuspage.config import ConfigError
from statuspage.evaluator import evaluate
from statuspage.incidents import newly_opened, newly_resolved, reconcile
from statuspage.models import MonitorSettings, ServiceConfig, ServiceStatus, StatusSnapshot
from statuspage.probes import ProbeAdapter
from statuspage.store import JsonStatusStore, StoreError


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StatusMonitor:
    """
    Runs status checks against every configured service.

    Attributes:
        store: Where config is read and snapshot/history are persisted.
        probes: Probe adapter for containers and URLs.
        settings: Global monitor settings.
    """

    def __init__(
        self,
        store: JsonStatusStore,
        probes: ProbeAdapter,
        settings: MonitorSettings,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.probes = probes
        self.settings = settings
        self._clock = clock
        self._lock = asyncio.Lock()
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        """True while a tick is in progress."""
        return self._lock.locked()

    async def start(self) -> None:
        """
        Run one tick immediately, then one every ``check_interval`` seconds.
        Runs indefinitely until cancelled.
        """
        loop = asyncio.get_running_loop()
        next_run = loop.time()

        try:
            while True:
                task = asyncio.create_task(self.tick(), name="status-tick")
                self._tasks.append(task)
                task.add_done_callback(self._tasks.remove)

                next_run += self.settings.check_interval
                await asyncio.sleep(max(0.0, next_run - loop.time()))
        except asyncio.CancelledError:
            pending = list(self._tasks)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise

    async def tick(self) -> Optional[StatusSnapshot]:
        """
        Run a single guarded tick.

        Returns the snapshot that was persisted, or None if the tick was
        skipped or failed.
        """
        if self._lock.locked():
            notifier.print_tick_skipped()
            return None

        async with self._lock:
            try:
                return await self.run_once()
            except (ConfigError, StoreError) as exc:
                notifier.print_error("Status update", str(exc))
            except Exception as exc:
                notifier.print_error("Status update", f"{type(exc).__name__}: {exc}")
        return None

    async def run_once(self) -> StatusSnapshot:
        """
        Execute one full tick. Store and config errors propagate.
        """
        services = self.store.load_config()
        statuses = await asyncio.gather(*(self._check(svc) for svc in services))

        snapshot = StatusSnapshot(last_update=self._clock(), services=list(statuses))
        self.store.write_snapshot(snapshot)

        history = self.store.read_history()
        updated = reconcile(history, snapshot.services, self._clock())
        self.store.write_history(updated)

        self._report(snapshot, history, updated)
        return snapshot

    async def _check(self, service: ServiceConfig) -> ServiceStatus:
        container_result, url_result = await asyncio.gather(
            self.probes.probe_container(service.container),
            self.probes.probe_url(service.url),
        )
        return evaluate(service, container_result, url_result, self._clock())

    def _report(self, snapshot: StatusSnapshot, before, after) -> None:
        debug = self.settings.log_level == "DEBUG"
        if debug:
            for status in snapshot.services:
                notifier.print_service_status(status)

        opened = newly_opened(before, after)
        resolved = newly_resolved(before, after)
        for inc in opened:
            notifier.print_incident_opened(inc)
        for inc in resolved:
            notifier.print_incident_resolved(inc)
        if debug and not opened and not resolved:
            notifier.print_no_changes()

        operational = sum(1 for s in snapshot.services if s.is_operational)
        notifier.print_tick_complete(operational, len(snapshot.services))
