"""In-memory event bus feeding the UI.

Alarm start/tick/stop events, notices and per-cycle snapshots are pushed to
every subscriber queue. Recent notices are kept in a bounded history so a
freshly connected UI can show the latest checks.
"""

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Set

logger = logging.getLogger(__name__)

# Maximum notices kept for the recent-checks history
MAX_NOTICES = 50

# Per-subscriber queue size; slow consumers drop events
SUBSCRIBER_QUEUE_SIZE = 200


class EventBus:
    def __init__(self, max_notices: int = MAX_NOTICES):
        self._subscribers: Set[asyncio.Queue] = set()
        self._notices: Deque[Dict[str, Any]] = deque(maxlen=max_notices)

    def publish(self, event_type: str, **data: Any) -> Dict[str, Any]:
        """Publish an event to all subscribers.

        Args:
            event_type: Event name, e.g. 'alarm_start' or 'notice'.
            **data: Event payload.

        Returns:
            The published event.
        """
        event = {
            "type": event_type,
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            **data,
        }
        if event_type == "notice":
            self._notices.appendleft(event)

        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug("Dropping %s event for slow subscriber", event_type)
        return event

    def notice(self, level: str, message: str, **data: Any) -> Dict[str, Any]:
        """Publish a human readable notice ('error', 'success', 'info')."""
        return self.publish("notice", level=level, message=message, **data)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def recent_notices(self, limit: int = MAX_NOTICES) -> List[Dict[str, Any]]:
        """Most recent notices, newest first."""
        return list(self._notices)[:limit]
