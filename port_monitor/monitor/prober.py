"""Bounded-timeout TCP port prober."""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Optional

from port_monitor.metrics import probe_duration_seconds, probes_total
from port_monitor.monitor.registry import TargetRegistry

logger = logging.getLogger(__name__)

MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 30000
DEFAULT_TIMEOUT_MS = 3000


class InvalidInputError(ValueError):
    """Raised when a probe request names an unknown brand or bad port."""


@dataclass(frozen=True)
class ProbeResult:
    open: bool
    elapsed_ms: int
    detail: str


def clamp_timeout_ms(timeout_ms: float) -> int:
    """Clamp a timeout to the allowed probe range.

    NaN falls back to the default; infinities clamp to the range ends.
    """
    if math.isnan(timeout_ms):
        return DEFAULT_TIMEOUT_MS
    return int(min(max(timeout_ms, MIN_TIMEOUT_MS), MAX_TIMEOUT_MS))


async def probe(host: str, port: int, timeout_ms: float = 3000) -> ProbeResult:
    """Attempt a TCP connection to host:port within the timeout.

    The connection is closed as soon as it is established. Failures are
    never raised: timeouts and connection errors both report closed.

    Args:
        host: Hostname or IP address.
        port: TCP port.
        timeout_ms: Connect timeout in milliseconds, clamped to [1000, 30000].

    Returns:
        ProbeResult with open flag, elapsed time and detail text.
    """
    timeout = clamp_timeout_ms(timeout_ms) / 1000
    writer = None
    start = time.perf_counter()
    try:
        future = asyncio.open_connection(host, port)
        reader, writer = await asyncio.wait_for(future, timeout=timeout)
        open_, detail = True, "connected"
        logger.debug("TCP connect to %s:%d successful", host, port)
    except asyncio.TimeoutError:
        open_, detail = False, "timed out"
        logger.debug("TCP connect to %s:%d timed out", host, port)
    except Exception as e:
        open_, detail = False, str(e) or e.__class__.__name__
        logger.debug("TCP connect to %s:%d failed: %s", host, port, detail)
    finally:
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except Exception:
                pass  # Ignore cleanup errors

    elapsed = time.perf_counter() - start
    probe_duration_seconds.observe(elapsed)
    probes_total.labels(result="open" if open_ else "closed").inc()

    return ProbeResult(open=open_, elapsed_ms=int(elapsed * 1000), detail=detail)


async def check_port(
    registry: TargetRegistry,
    brand: str,
    ip: Optional[str],
    port: int,
    timeout_seconds: float = 3,
) -> Dict:
    """Probe an arbitrary host/port on behalf of a brand.

    Stateless: the monitoring state is never touched.

    Args:
        registry: Registry used to validate the brand.
        brand: Brand name, must exist in the registry.
        ip: Host or IP to probe; falls back to the brand host when empty.
        port: TCP port, 1-65535.
        timeout_seconds: Timeout in seconds, clamped to [1, 30].

    Returns:
        Dictionary with open, host, port, time_ms, message and brand.

    Raises:
        InvalidInputError: Unknown brand or port out of range.
    """
    entry = registry.get_brand(brand) if brand else None
    if entry is None:
        raise InvalidInputError("Unknown or missing brand")

    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise InvalidInputError("Invalid port number")

    host = ip or entry.host
    timeout_ms = clamp_timeout_ms(timeout_seconds * 1000)
    logger.info("Checking port: %s:%d (timeout: %dms)", host, port, timeout_ms)

    result = await probe(host, port, timeout_ms)

    return {
        "open": result.open,
        "host": host,
        "port": port,
        "time_ms": result.elapsed_ms,
        "message": result.detail,
        "brand": brand,
    }
