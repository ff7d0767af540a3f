# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "roster_requests_total",
    "Total HTTP requests to roster service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "roster_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "roster_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
ASSIGNMENTS_TOTAL = Counter(
    "roster_assignments_total",
    "Total participant assignments (including moves)",
    ["bus"],
)
REMOVALS_TOTAL = Counter(
    "roster_removals_total",
    "Total participant removals from a bus",
    ["bus"],
)
OVER_CAPACITY_ASSIGNMENTS = Counter(
    "roster_over_capacity_assignments_total",
    "Assignments that pushed a bus over its configured capacity",
    ["bus"],
)
SEARCHES_TOTAL = Counter(
    "roster_searches_total",
    "Total participant searches performed",
)
INGESTIONS_TOTAL = Counter(
    "roster_ingestions_total",
    "Total ingestion attempts",
    ["source", "status"],
)
INGESTION_DURATION = Histogram(
    "roster_ingestion_duration_seconds",
    "Time to fetch and swap in a participant snapshot",
    ["source"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)
MALFORMED_ROWS = Counter(
    "roster_malformed_rows_total",
    "Spreadsheet rows skipped during ingestion",
)
PARTICIPANTS_TOTAL = Gauge(
    "roster_participants",
    "Number of participants in the current snapshot",
)
BUS_OCCUPANCY = Gauge(
    "roster_bus_occupancy",
    "Participants currently assigned to each bus",
    ["bus"],
)
LOGINS_TOTAL = Counter(
    "roster_logins_total",
    "Login attempts",
    ["method", "status"],
)
