"""Repeating local alarms, one asyncio task per closed endpoint."""

import asyncio
import logging
from typing import Dict

from port_monitor.metrics import alarms_active
from port_monitor.monitor.events import EventBus
from port_monitor.monitor.registry import Endpoint, EndpointId, Role

logger = logging.getLogger(__name__)

# Alarm voice per role so the UI can tell primary and secondary outages apart
VOICES = {
    Role.PRIMARY: "low",
    Role.SECONDARY: "siren",
}


class AlarmManager:
    """Starts and stops per-endpoint repeating alarms.

    Each alarm publishes an ``alarm_tick`` event every ``interval`` seconds
    until stopped.
    """

    def __init__(self, events: EventBus, interval: float = 2.5):
        self.events = events
        self.interval = interval
        self._tasks: Dict[EndpointId, asyncio.Task] = {}
        self._closed = False

    def is_active(self, endpoint_id: EndpointId) -> bool:
        return endpoint_id in self._tasks

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def start(self, endpoint: Endpoint) -> bool:
        """Start the alarm for an endpoint.

        Returns:
            True if a new alarm was started, False if one was already running
            or the manager has been shut down.
        """
        if self._closed or endpoint.id in self._tasks:
            return False

        voice = VOICES[endpoint.role]
        self.events.publish("alarm_start", voice=voice, **endpoint.to_dict())
        self._tasks[endpoint.id] = asyncio.create_task(
            self._ring(endpoint, voice),
            name=f"alarm:{endpoint.brand}:{endpoint.role.value}",
        )
        alarms_active.set(len(self._tasks))
        logger.info("Alarm started for %s %s", endpoint.brand, endpoint.role.label)
        return True

    def stop(self, endpoint: Endpoint) -> bool:
        """Stop the alarm for an endpoint.

        Returns:
            True if an alarm was running and has been cancelled.
        """
        task = self._tasks.pop(endpoint.id, None)
        if task is None:
            return False

        task.cancel()
        alarms_active.set(len(self._tasks))
        self.events.publish("alarm_stop", voice=VOICES[endpoint.role], **endpoint.to_dict())
        logger.info("Alarm stopped for %s %s", endpoint.brand, endpoint.role.label)
        return True

    async def cancel_all(self) -> None:
        """Cancel every running alarm and refuse new ones.

        Called at shutdown; later start() calls are ignored.
        """
        self._closed = True
        tasks = list(self._tasks.values())
        self._tasks.clear()
        alarms_active.set(0)

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d active alarms", len(tasks))

    async def _ring(self, endpoint: Endpoint, voice: str) -> None:
        while True:
            self.events.publish("alarm_tick", voice=voice, **endpoint.to_dict())
            await asyncio.sleep(self.interval)
