"""Alarm and escalation policy applied to state transitions."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from port_monitor.metrics import escalations_total
from port_monitor.monitor.alarms import AlarmManager
from port_monitor.monitor.events import EventBus
from port_monitor.monitor.registry import Endpoint
from port_monitor.monitor.state import EndpointState, StateTransition

logger = logging.getLogger(__name__)

Notifier = Callable[[Endpoint, int], Awaitable[bool]]

DEFAULT_ESCALATION_THRESHOLD_MS = 120_000


class AlertDispatcher:
    """Reacts to state transitions with alarms, notices and escalations.

    Escalation fires at most once per outage episode: ``escalation_sent`` is
    set before the notifier runs and is only cleared on recovery, so a failed
    notification is not retried within the same episode.
    """

    def __init__(
        self,
        alarms: AlarmManager,
        events: EventBus,
        notifier: Optional[Notifier] = None,
        escalation_threshold_ms: int = DEFAULT_ESCALATION_THRESHOLD_MS,
    ):
        if notifier is None:
            from port_monitor.notifications.notifier import send_escalation_notification
            notifier = send_escalation_notification

        self.alarms = alarms
        self.events = events
        self.notifier = notifier
        self.escalation_threshold_ms = escalation_threshold_ms
        self._pending: Set[asyncio.Task] = set()

    def handle(self, state: EndpointState, transition: StateTransition, now_ms: int) -> None:
        """Apply the alert policy for one transition."""
        endpoint = state.endpoint

        if transition == StateTransition.OPENED_TO_CLOSED:
            self.alarms.start(endpoint)
            state.alarm_active = True
            logger.warning(
                "Port %d is CLOSED on %s (%s %s): %s",
                endpoint.port,
                endpoint.host,
                endpoint.brand,
                endpoint.role.label,
                state.last_result.detail if state.last_result else "",
            )
            self.events.notice(
                "error",
                f"Port {endpoint.port} is CLOSED on {endpoint.host}",
                **endpoint.to_dict(),
            )

        elif transition == StateTransition.STILL_CLOSED:
            if (
                not state.escalation_sent
                and state.closed_duration_ms(now_ms) >= self.escalation_threshold_ms
            ):
                self._escalate(state, now_ms)

        elif transition == StateTransition.CLOSED_TO_OPEN:
            self.alarms.stop(endpoint)
            state.alarm_active = False
            logger.info(
                "Port %d RECOVERED on %s (%s %s)",
                endpoint.port,
                endpoint.host,
                endpoint.brand,
                endpoint.role.label,
            )
            self.events.notice(
                "success",
                f"Port {endpoint.port} is OPEN on {endpoint.host}",
                **endpoint.to_dict(),
            )

    def _escalate(self, state: EndpointState, now_ms: int) -> None:
        endpoint = state.endpoint
        closed_since_ms = state.closed_since_ms
        state.escalation_sent = True

        escalations_total.labels(brand=endpoint.brand, role=endpoint.role.value).inc()
        logger.warning(
            "Escalating outage of %s %s (%s:%d), closed for %ds",
            endpoint.brand,
            endpoint.role.label,
            endpoint.host,
            endpoint.port,
            state.closed_duration_ms(now_ms) // 1000,
        )
        self.events.publish("escalation", closed_since_ms=closed_since_ms, **endpoint.to_dict())

        task = asyncio.create_task(self._notify(endpoint, closed_since_ms))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _notify(self, endpoint: Endpoint, closed_since_ms: int) -> None:
        try:
            delivered = await self.notifier(endpoint, closed_since_ms)
            if not delivered:
                logger.warning(
                    "Escalation for %s %s was not delivered by any channel",
                    endpoint.brand,
                    endpoint.role.label,
                )
        except Exception as e:
            logger.error(
                "Notifier failed for %s %s: %s",
                endpoint.brand,
                endpoint.role.label,
                e,
            )

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def wait_pending(self) -> None:
        """Wait for in-flight notifier calls to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def cancel_pending(self) -> None:
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
