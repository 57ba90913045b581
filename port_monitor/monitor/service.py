"""Monitoring pipeline: probe -> state tracker -> alert dispatcher."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional

from port_monitor.metrics import cycles_skipped_total, cycles_total
from port_monitor.monitor.alarms import AlarmManager
from port_monitor.monitor.dispatcher import AlertDispatcher, Notifier
from port_monitor.monitor.events import EventBus
from port_monitor.monitor.prober import ProbeResult, probe
from port_monitor.monitor.registry import TargetRegistry, load_registry
from port_monitor.monitor.state import StateTracker

logger = logging.getLogger(__name__)

Prober = Callable[[str, int, float], Awaitable[ProbeResult]]


def _now_ms() -> int:
    return int(time.time() * 1000)


class MonitorService:
    """Runs monitoring cycles over every registered endpoint.

    Endpoints are probed sequentially in registry order. Cycles never
    overlap: a cycle requested while another is running is skipped.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        events: Optional[EventBus] = None,
        prober: Prober = probe,
        notifier: Optional[Notifier] = None,
        probe_timeout_ms: int = 3000,
        escalation_threshold_ms: int = 120_000,
        alarm_interval: float = 2.5,
        clock: Callable[[], int] = _now_ms,
    ):
        self.registry = registry
        self.events = events or EventBus()
        self.tracker = StateTracker(registry)
        self.alarms = AlarmManager(self.events, interval=alarm_interval)
        self.dispatcher = AlertDispatcher(
            self.alarms,
            self.events,
            notifier=notifier,
            escalation_threshold_ms=escalation_threshold_ms,
        )
        self.prober = prober
        self.probe_timeout_ms = probe_timeout_ms
        self.clock = clock
        self.cycle_count = 0
        self._cycle_lock = asyncio.Lock()
        self._stopped = False

    @property
    def cycle_running(self) -> bool:
        return self._cycle_lock.locked()

    async def run_cycle(self) -> bool:
        """Probe every configured endpoint once.

        Returns:
            True if the cycle ran, False if it was skipped.
        """
        if self._stopped:
            return False

        if self._cycle_lock.locked():
            logger.warning("Previous monitoring cycle still running, skipping")
            cycles_skipped_total.inc()
            return False

        async with self._cycle_lock:
            started = time.perf_counter()
            probed = 0

            for endpoint in self.registry:
                if self._stopped:
                    logger.info("Monitor stopped, abandoning cycle")
                    cycles_total.labels(status="aborted").inc()
                    return False
                if not endpoint.configured:
                    continue

                self.tracker.mark_checking(endpoint.id)
                try:
                    result = await self.prober(endpoint.host, endpoint.port, self.probe_timeout_ms)
                except Exception as e:
                    logger.error("Probe of %s:%d raised: %s", endpoint.host, endpoint.port, e)
                    result = ProbeResult(open=False, elapsed_ms=0, detail=str(e))

                if self._stopped:
                    # Shut down while the probe was in flight
                    cycles_total.labels(status="aborted").inc()
                    return False

                now_ms = self.clock()
                transition = self.tracker.apply_result(endpoint.id, result, now_ms)
                self.dispatcher.handle(self.tracker.get(endpoint.id), transition, now_ms)
                probed += 1

            self.cycle_count += 1
            cycles_total.labels(status="completed").inc()
            self.events.publish("snapshot", endpoints=self.snapshot())
            logger.info(
                "Monitoring cycle %d: probed %d endpoints in %.2fs",
                self.cycle_count,
                probed,
                time.perf_counter() - started,
            )
            return True

    def snapshot(self) -> List[Dict]:
        """Current state of every endpoint, in registry order."""
        return [state.to_dict() for state in self.tracker.states()]

    async def shutdown(self) -> None:
        """Stop cycling, cancel active alarms and pending notifications."""
        self._stopped = True
        await self.alarms.cancel_all()
        await self.dispatcher.cancel_pending()
        for state in self.tracker.states():
            state.alarm_active = False
            state.checking = False
        logger.info("Monitor shutdown complete")


# Global monitor instance
monitor: Optional[MonitorService] = None


def create_monitor() -> MonitorService:
    """Create the monitor from application settings."""
    from port_monitor.config import settings

    registry = load_registry(settings.targets_file)
    return MonitorService(
        registry,
        probe_timeout_ms=settings.probe_timeout_ms,
        escalation_threshold_ms=settings.escalation_threshold_ms,
        alarm_interval=settings.alarm_interval_seconds,
    )


def get_monitor() -> Optional[MonitorService]:
    """Get the current monitor instance, or None if not started."""
    return monitor


def set_monitor(instance: Optional[MonitorService]) -> None:
    global monitor
    monitor = instance


async def run_monitor_cycle() -> bool:
    """Scheduler job: run one cycle on the global monitor."""
    if monitor is None:
        logger.warning("Monitor not initialised, skipping cycle")
        return False
    return await monitor.run_cycle()
