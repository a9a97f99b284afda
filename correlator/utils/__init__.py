"""
Utility modules for the correlation engine.
"""

from correlator.utils.logging import (
    get_logger,
    setup_logging,
    log_webhook_event,
    log_state_transition,
    log_api_call,
    log_error_with_context,
)
from correlator.utils.metrics import (
    JobMetrics,
    track_api_call,
    emit_metric,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_webhook_event",
    "log_state_transition",
    "log_api_call",
    "log_error_with_context",
    "JobMetrics",
    "track_api_call",
    "emit_metric",
]
