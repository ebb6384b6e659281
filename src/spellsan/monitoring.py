"""Monitoring configuration for the progress engine."""
from prometheus_client import Counter, Histogram, start_http_server

# Practice metrics
answers_recorded = Counter(
    "spellsan_answers_recorded_total",
    "Total number of individual answers recorded",
    ["result"],
)

sessions_recorded = Counter(
    "spellsan_sessions_recorded_total",
    "Total number of practice session records written",
    ["mode"],
)

sessions_started = Counter(
    "spellsan_sessions_started_total",
    "Total number of practice sessions started",
)

session_duration = Histogram(
    "spellsan_session_duration_minutes",
    "Duration of recorded practice sessions in minutes",
    buckets=[1, 5, 10, 20, 30, 60],
)

practice_set_size = Histogram(
    "spellsan_practice_set_size",
    "Number of words selected for a practice session",
    buckets=[5, 10, 15, 20, 30, 50, 100],
)

# Storage metrics
store_operations = Counter(
    "spellsan_store_operations_total",
    "Total number of progress store operations",
    ["operation_type"],
)

store_errors = Counter(
    "spellsan_store_errors_total",
    "Total number of progress store errors",
    ["operation_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
