"""Prometheus metrics for Student Insights."""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Insight pipeline
# ---------------------------------------------------------------------------

insights_generation_requests_total = Counter(
    "insights_generation_requests_total",
    "Total insight generation requests",
    ["status"],  # success | invalid | forbidden | not_found | overloaded | failed | persistence_error
)

insights_pipeline_latency_seconds = Histogram(
    "insights_pipeline_latency_seconds",
    "End-to-end insight generation latency in seconds",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
)

# ---------------------------------------------------------------------------
# Generation service
# ---------------------------------------------------------------------------

insights_generation_attempts_total = Counter(
    "insights_generation_attempts_total",
    "Generation service attempts",
    ["outcome"],  # success | overloaded | error
)

insights_generation_latency_seconds = Histogram(
    "insights_generation_latency_seconds",
    "Generation service call latency in seconds, retries included",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

insights_db_failures_total = Counter(
    "insights_db_failures_total",
    "Database operation failures",
    ["operation"],  # load_student | create_insight | list_insights
)
