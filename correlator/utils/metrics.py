"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- Analysis job execution time and outcome
- Outbound API call counts and latency (GitHub, LLM provider)
"""

import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager

from correlator.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


class JobMetrics:
    """
    Collects metrics during an analysis job.

    Tracks:
    - Execution start/end time
    - Final status
    - API call counts and latency
    """

    def __init__(self, job_id: str, kind: str, target_id: str):
        """
        Initialize metrics collector.

        Args:
            job_id: Job ID
            kind: Job kind ('transcript', 'commit', 'pull_request')
            target_id: Identifier of the analysed object
        """
        self.job_id = job_id
        self.kind = kind
        self.target_id = target_id

        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None

        self.api_calls: Dict[str, int] = {}
        self.api_latencies: Dict[str, list[float]] = {}

        self.status: str = "queued"
        self.error_message: Optional[str] = None

    def start(self) -> None:
        """Mark job execution start."""
        self.start_time = datetime.now(timezone.utc)
        self.status = "running"

    def complete(self, status: str = "completed", error_message: Optional[str] = None) -> None:
        """
        Mark job execution completion.

        Args:
            status: Final status ('completed', 'failed')
            error_message: Error message if failed
        """
        self.end_time = datetime.now(timezone.utc)
        self.status = status
        self.error_message = error_message

        if self.start_time:
            duration = (self.end_time - self.start_time).total_seconds()
            self.duration_ms = int(duration * 1000)

        logger.info(
            f"Analysis job {self.job_id} finished with status {status}",
            extra={"job_id": self.job_id, **self.get_metrics_summary()}
        )

    def record_api_call(self, service: str, duration_ms: float) -> None:
        """
        Record API call and latency.

        Args:
            service: Service name (e.g., 'github', 'openai')
            duration_ms: Call duration in milliseconds
        """
        self.api_calls[service] = self.api_calls.get(service, 0) + 1
        self.api_latencies.setdefault(service, []).append(duration_ms)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.

        Returns:
            Dictionary of metrics
        """
        summary: Dict[str, Any] = {
            "kind": self.kind,
            "target_id": self.target_id,
            "status": self.status,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "api_calls": self.api_calls,
        }

        if self.api_latencies:
            summary["api_latencies"] = {
                service: {
                    "count": len(latencies),
                    "min_ms": round(min(latencies), 2),
                    "max_ms": round(max(latencies), 2),
                    "avg_ms": round(sum(latencies) / len(latencies), 2),
                }
                for service, latencies in self.api_latencies.items()
                if latencies
            }

        if self.error_message:
            summary["error_message"] = self.error_message

        return summary


@asynccontextmanager
async def track_api_call(
    metrics_collector: Optional[JobMetrics],
    service: str,
    logger_adapter,
    endpoint: str = "",
    method: str = "GET"
):
    """
    Context manager to track API call timing.

    Usage:
        async with track_api_call(metrics, "github", logger, endpoint=url):
            response = await client.get(url)

    Args:
        metrics_collector: Metrics collector (optional)
        service: Service name
        logger_adapter: Logger for logging API calls
        endpoint: Endpoint being called
        method: HTTP method
    """
    start_time = time.time()
    error = None

    try:
        yield
    except Exception as e:
        error = e
        raise
    finally:
        duration_ms = (time.time() - start_time) * 1000

        if metrics_collector:
            metrics_collector.record_api_call(service, duration_ms)

        log_api_call(
            logger_adapter,
            service=service,
            endpoint=endpoint,
            method=method,
            duration_ms=duration_ms,
            error=str(error) if error else None
        )


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric.

    Metrics are written to the structured log stream, where the log shipper
    picks them up.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
