"""Shared pytest fixtures."""

import os
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

# Set test environment before importing app modules
os.environ.setdefault(
    "DATA_DIR",
    str(Path(__file__).resolve().parents[1] / "data" / "test_data"),
)
os.environ.setdefault("TZ", "UTC")


SAMPLE_BRANDS = {
    "Bareeze": {
        "host": "barz.example.com",
        "port": 20000,
        "primary_ip": "10.0.0.1",
        "secondary_ip": "10.0.1.1",
    },
    "Rangja": {
        "host": "rnja.example.com",
        "port": 20000,
        "primary_ip": "10.0.0.2",
        "secondary_ip": "",
    },
}


class FakeProber:
    """Scripted prober: hosts listed in ``closed`` report closed."""

    def __init__(self, closed=None):
        self.closed = set(closed or ())
        self.calls: List[Tuple[str, int, float]] = []

    async def __call__(self, host: str, port: int, timeout_ms: float):
        from port_monitor.monitor.prober import ProbeResult

        self.calls.append((host, port, timeout_ms))
        if host in self.closed:
            return ProbeResult(open=False, elapsed_ms=int(timeout_ms), detail="timed out")
        return ProbeResult(open=True, elapsed_ms=12, detail="connected")

    def probed_hosts(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeClock:
    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def sample_brands() -> Dict:
    return {name: dict(entry) for name, entry in SAMPLE_BRANDS.items()}


@pytest.fixture
def registry(sample_brands):
    from port_monitor.monitor.registry import TargetRegistry

    return TargetRegistry(sample_brands)


@pytest.fixture
def fake_prober():
    return FakeProber()


@pytest.fixture
def clock():
    return FakeClock()

