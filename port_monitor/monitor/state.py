"""Per-endpoint open/closed state machine."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from port_monitor.config import epoch_ms_to_local_iso
from port_monitor.metrics import endpoint_open
from port_monitor.monitor.prober import ProbeResult
from port_monitor.monitor.registry import Endpoint, EndpointId, TargetRegistry

logger = logging.getLogger(__name__)


class EndpointStatus(str, Enum):
    UNKNOWN = "unknown"
    OPEN = "open"
    CLOSED = "closed"
    CHECKING = "checking"


class StateTransition(str, Enum):
    NONE = "none"
    OPENED_TO_CLOSED = "opened_to_closed"
    CLOSED_TO_OPEN = "closed_to_open"
    STILL_CLOSED = "still_closed"
    STILL_OPEN = "still_open"


@dataclass
class EndpointState:
    """Mutable monitoring state of one endpoint.

    ``status`` only ever holds the settled outcome (unknown/open/closed);
    an in-flight probe is flagged by ``checking`` so that ``closed_since_ms``
    stays set exactly while the endpoint is closed.
    """

    endpoint: Endpoint
    status: EndpointStatus = EndpointStatus.UNKNOWN
    closed_since_ms: Optional[int] = None
    escalation_sent: bool = False
    alarm_active: bool = False
    checking: bool = False
    last_checked_ms: Optional[int] = None
    last_change_ms: Optional[int] = None
    last_result: Optional[ProbeResult] = None

    @property
    def display_status(self) -> EndpointStatus:
        if self.checking:
            return EndpointStatus.CHECKING
        return self.status

    def closed_duration_ms(self, now_ms: int) -> int:
        if self.closed_since_ms is None:
            return 0
        return now_ms - self.closed_since_ms

    def to_dict(self) -> Dict:
        data = self.endpoint.to_dict()
        data.update({
            "status": self.display_status.value,
            "closed_since": epoch_ms_to_local_iso(self.closed_since_ms),
            "closed_since_ms": self.closed_since_ms,
            "escalation_sent": self.escalation_sent,
            "alarm_active": self.alarm_active,
            "last_checked": epoch_ms_to_local_iso(self.last_checked_ms),
            "last_change": epoch_ms_to_local_iso(self.last_change_ms),
            "time_ms": self.last_result.elapsed_ms if self.last_result else None,
            "message": self.last_result.detail if self.last_result else None,
        })
        return data


class StateTracker:
    """Owns one EndpointState per registered endpoint."""

    def __init__(self, registry: TargetRegistry):
        self.registry = registry
        self._states: Dict[EndpointId, EndpointState] = {
            endpoint.id: EndpointState(endpoint=endpoint) for endpoint in registry
        }
        for endpoint in registry:
            self._set_gauge(self._states[endpoint.id])

    def get(self, endpoint_id: EndpointId) -> EndpointState:
        return self._states[endpoint_id]

    def states(self) -> List[EndpointState]:
        return list(self._states.values())

    def mark_checking(self, endpoint_id: EndpointId) -> None:
        state = self._states[endpoint_id]
        if state.endpoint.configured:
            state.checking = True

    def apply_result(
        self,
        endpoint_id: EndpointId,
        result: ProbeResult,
        now_ms: int,
    ) -> StateTransition:
        """Fold a probe result into the endpoint state.

        Args:
            endpoint_id: (brand, role) key.
            result: Outcome of the probe.
            now_ms: Current time in epoch milliseconds.

        Returns:
            The transition this result caused.
        """
        state = self._states[endpoint_id]
        if not state.endpoint.configured:
            return StateTransition.NONE

        previous = state.status
        state.checking = False
        state.last_checked_ms = now_ms
        state.last_result = result

        if not result.open:
            if previous != EndpointStatus.CLOSED:
                state.status = EndpointStatus.CLOSED
                state.closed_since_ms = now_ms
                state.escalation_sent = False
                state.last_change_ms = now_ms
                transition = StateTransition.OPENED_TO_CLOSED
            else:
                transition = StateTransition.STILL_CLOSED
        elif previous == EndpointStatus.CLOSED:
            state.status = EndpointStatus.OPEN
            state.closed_since_ms = None
            state.escalation_sent = False
            state.last_change_ms = now_ms
            transition = StateTransition.CLOSED_TO_OPEN
        elif previous == EndpointStatus.UNKNOWN:
            state.status = EndpointStatus.OPEN
            state.last_change_ms = now_ms
            transition = StateTransition.NONE
        else:
            transition = StateTransition.STILL_OPEN

        self._set_gauge(state)
        logger.debug(
            "%s %s: %s -> %s (%s)",
            state.endpoint.brand,
            state.endpoint.role.value,
            previous.value,
            state.status.value,
            transition.value,
        )
        return transition

    @staticmethod
    def _set_gauge(state: EndpointState) -> None:
        value = {EndpointStatus.OPEN: 1, EndpointStatus.CLOSED: 0}.get(state.status, -1)
        endpoint_open.labels(
            brand=state.endpoint.brand,
            role=state.endpoint.role.value,
        ).set(value)
