"""Unit tests for metrics module."""

from student_insights.core import metrics


def test_metrics_are_defined():
    assert hasattr(metrics, "insights_generation_requests_total")
    assert hasattr(metrics, "insights_pipeline_latency_seconds")
    assert hasattr(metrics, "insights_generation_attempts_total")
    assert hasattr(metrics, "insights_generation_latency_seconds")
    assert hasattr(metrics, "insights_db_failures_total")


def test_metrics_have_labels():
    assert hasattr(metrics.insights_generation_requests_total, "labels")
    assert hasattr(metrics.insights_generation_attempts_total, "labels")
    assert hasattr(metrics.insights_db_failures_total, "labels")
