"""Tests for API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from port_monitor.monitor.prober import ProbeResult
from port_monitor.monitor.service import MonitorService


@pytest.fixture
def monitor(registry, fake_prober, clock):
    return MonitorService(
        registry,
        prober=fake_prober,
        notifier=AsyncMock(return_value=True),
        alarm_interval=10,
        clock=clock,
    )


@pytest.fixture
def client(monitor):
    """Create test client with mocked dependencies."""
    with patch("port_monitor.web.app.create_monitor", return_value=monitor), \
         patch("port_monitor.web.app.start_scheduler"), \
         patch("port_monitor.web.app.shutdown_scheduler"), \
         patch("port_monitor.scheduler.job_scheduler.scheduler", None):

        from port_monitor.web.app import app
        with TestClient(app) as test_client:
            yield test_client


class TestCheckEndpoint:
    """Tests for POST /api/check."""

    def test_check_open_port(self, client):
        probe_mock = AsyncMock(return_value=ProbeResult(open=True, elapsed_ms=15, detail="connected"))

        with patch("port_monitor.monitor.prober.probe", new=probe_mock):
            response = client.post("/api/check", json={"brand": "Bareeze", "port": 20000})

        assert response.status_code == 200
        assert response.json() == {
            "open": True,
            "host": "barz.example.com",
            "port": 20000,
            "time_ms": 15,
            "message": "connected",
            "brand": "Bareeze",
        }

    def test_check_nan_timeout_is_clamped(self, client):
        probe_mock = AsyncMock(return_value=ProbeResult(open=True, elapsed_ms=8, detail="connected"))

        with patch("port_monitor.monitor.prober.probe", new=probe_mock):
            response = client.post(
                "/api/check",
                content='{"brand": "Bareeze", "port": 20000, "timeout": NaN}',
                headers={"Content-Type": "application/json"},
            )

        assert response.status_code == 200
        assert response.json()["open"] is True
        probe_mock.assert_awaited_once_with("barz.example.com", 20000, 3000)

    def test_check_rejects_out_of_range_port(self, client, monitor):
        before = monitor.snapshot()

        response = client.post("/api/check", json={"brand": "Bareeze", "port": 70000})

        assert response.status_code == 400
        assert "port" in response.json()["detail"].lower()
        assert monitor.snapshot() == before

    def test_check_rejects_unknown_brand(self, client):
        response = client.post("/api/check", json={"brand": "Nope", "port": 20000})

        assert response.status_code == 400
        assert "brand" in response.json()["detail"].lower()


class TestStatusEndpoints:
    """Tests for monitoring state endpoints."""

    def test_status_before_first_cycle(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        data = response.json()
        assert data["cycle_count"] == 0
        assert [e["status"] for e in data["endpoints"]] == ["unknown"] * 4

    def test_trigger_cycle_runs_directly_without_scheduler(self, client, fake_prober):
        fake_prober.closed.add("10.0.0.1")

        response = client.post("/api/cycle/trigger")

        assert response.status_code == 200
        assert response.json()["message"] == "Monitoring cycle completed"

        data = client.get("/api/status").json()
        statuses = {(e["brand"], e["role"]): e["status"] for e in data["endpoints"]}
        assert statuses[("Bareeze", "primary")] == "closed"
        assert statuses[("Bareeze", "secondary")] == "open"
        assert statuses[("Rangja", "secondary")] == "unknown"
        assert data["active_alarms"] == 1

        notices = client.get("/api/notices").json()
        assert notices[0]["level"] == "error"

    def test_brand_endpoints(self, client):
        response = client.get("/api/endpoints/Rangja")

        assert response.status_code == 200
        assert [e["role"] for e in response.json()] == ["primary", "secondary"]

    def test_brand_endpoints_not_found(self, client):
        response = client.get("/api/endpoints/Missing")

        assert response.status_code == 404

    def test_get_config_hides_secrets(self, client):
        response = client.get("/api/config")

        assert response.status_code == 200
        data = response.json()
        assert data["check_interval_seconds"] == 30
        assert "smtp_configured" in data
        assert "smtp_password" not in data
        assert "whatsapp_access_token" not in data

    def test_jobs_empty_without_scheduler(self, client):
        response = client.get("/api/jobs")

        assert response.status_code == 200
        assert response.json() == []


class TestAlertEndpoints:
    def test_whatsapp_alert(self, client):
        with patch("port_monitor.web.routes.api.send_whatsapp_alert", new=AsyncMock(return_value=True)) as send_mock:
            response = client.post("/api/alerts/whatsapp", json={
                "destination_number": "+15550001",
                "brand": "Bareeze",
                "host": "10.0.0.1",
                "port": "20000",
            })

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert send_mock.await_args.kwargs["brand"] == "Bareeze"

    def test_email_alert_failure_reported(self, client):
        with patch("port_monitor.web.routes.api.send_escalation_email", new=AsyncMock(return_value=False)):
            response = client.post("/api/alerts/email", json={
                "brand": "Bareeze",
                "ip": "10.0.0.1",
                "role_label": "Brain Net IP",
                "closed_since": "2025-01-01T00:00:00Z",
            })

        assert response.status_code == 200
        assert response.json() == {"success": False}


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check_degraded_without_scheduler(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["scheduler_running"] is False
        assert data["monitor_ready"] is True

    def test_version_endpoint(self, client):
        from port_monitor.version import __version__

        response = client.get("/version")

        assert response.status_code == 200
        assert response.json()["version"] == __version__

    def test_liveness(self, client):
        response = client.get("/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True

    def test_readiness_without_scheduler(self, client):
        response = client.get("/ready")

        assert response.json()["ready"] is False

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "port_monitor_probes_total" in response.text
