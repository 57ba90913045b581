"""Prometheus metrics for the Port Monitor application."""

from prometheus_client import Counter, Gauge, Histogram, Info

from port_monitor.version import __version__

# Application info
app_info = Info("port_monitor", "Application information")
app_info.info({
    "version": __version__,
    "service": "port-monitor",
})

# Probe metrics
probes_total = Counter(
    "port_monitor_probes_total",
    "Total number of TCP probes executed",
    ["result"],
)

probe_duration_seconds = Histogram(
    "port_monitor_probe_duration_seconds",
    "Duration of TCP probes in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2, 3, 5, 10, 30],
)

# Endpoint status (1=open, 0=closed, -1=unknown)
endpoint_open = Gauge(
    "port_monitor_endpoint_open",
    "Endpoint reachability status",
    ["brand", "role"],
)

alarms_active = Gauge(
    "port_monitor_alarms_active",
    "Number of endpoints with an active local alarm",
)

# Cycle metrics
cycles_total = Counter(
    "port_monitor_cycles_total",
    "Total number of monitoring cycles",
    ["status"],
)

cycles_skipped_total = Counter(
    "port_monitor_cycles_skipped_total",
    "Cycles skipped because the previous cycle was still running",
)

# Escalation and notification metrics
escalations_total = Counter(
    "port_monitor_escalations_total",
    "Total number of outage escalations fired",
    ["brand", "role"],
)

notifications_sent_total = Counter(
    "port_monitor_notifications_sent_total",
    "Total number of notifications sent",
    ["channel", "type"],
)

notifications_failed_total = Counter(
    "port_monitor_notifications_failed_total",
    "Total number of failed notification attempts",
    ["channel", "type"],
)
