"""
Notification fan-out to live UI subscribers.

Messages are JSON documents published on the Redis pub/sub channel
``notifications:{project_id}``. Delivery is best effort: a failed publish is
logged and dropped, and the UI can always fall back to polling.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from correlator.utils.logging import get_logger, log_error_with_context

logger = get_logger(__name__)

COMMIT = "commit"
PULL_REQUEST = "pr"
ANALYSIS_COMPLETE = "analysis_complete"
ANALYSIS_FAILED = "analysis_failed"
TRANSCRIPT_COMPLETE = "transcript_complete"


class Notifier:
    """Publishes project-scoped events through the Redis client."""

    CHANNEL = "notifications:{project_id}"

    def __init__(self, redis_client):
        self._redis = redis_client

    @classmethod
    def channel_for(cls, project_id: str) -> str:
        return cls.CHANNEL.format(project_id=project_id)

    async def notify(
        self,
        project_id: str,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Publish one event.

        Returns:
            True if the message was handed to Redis, False otherwise
        """
        message = {
            "type": event_type,
            "project_id": project_id,
            "data": data or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        try:
            await self._redis.publish(self.channel_for(project_id), message)
        except Exception as e:
            log_error_with_context(
                logger,
                f"Failed to publish {event_type} notification",
                e,
                project_id=project_id,
                notification_type=event_type,
            )
            return False

        return True
